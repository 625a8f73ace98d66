"""Automatic synthesis -> audit pipeline.

Each processed document (resume or story) runs synthesis over its evidence
and then audits the user's claims, without a separate trigger.

Usage:
    from identity_system.pipeline import SynthesisPipeline

    pipeline = SynthesisPipeline(claim_store=store, oracle=gemini, embedder=gemini)
    stats = await pipeline.process_document("user-123", evidence_items, "doc-9")
"""

from typing import Any, List, Optional

import structlog

from identity_system.agents.sifters.quality import (
    ClaimAuditor,
    ClaimGroundingEvaluator,
)
from identity_system.agents.sifters.synthesis import (
    ClaimSynthesisAgent,
    SynthesisResult,
)
from identity_system.agents.sifters.synthesis.claim_synthesizer import (
    ClaimUpdateCallback,
    ProgressCallback,
)
from identity_system.data_management import ClaimStore, InMemoryCandidateRetriever
from identity_system.data_management.candidate_retriever import CandidateRetriever
from identity_system.data_management.schemas import EvidenceItem
from identity_system.llm.oracle import EmbeddingProvider, LLMOracle


class SynthesisPipeline:
    """Orchestrates document evidence -> claims -> audit.

    Agents are lazy-initialized from the shared store and the injected
    oracle/embedder when not supplied.
    """

    def __init__(
        self,
        claim_store: Optional[ClaimStore] = None,
        synthesis_agent: Optional[ClaimSynthesisAgent] = None,
        auditor: Optional[ClaimAuditor] = None,
        oracle: Optional[LLMOracle] = None,
        embedder: Optional[EmbeddingProvider] = None,
        retriever: Optional[CandidateRetriever] = None,
        run_grounding_review: bool = True,
    ) -> None:
        """Initialize SynthesisPipeline.

        Args:
            claim_store: Shared claim store (memory-only if None).
            synthesis_agent: Pre-configured agent. Lazy-initialized if None.
            auditor: Pre-configured auditor. Lazy-initialized if None.
            oracle: LLM oracle for synthesis and grounding review.
            embedder: Embedding provider for new claim labels.
            retriever: Candidate retriever (in-memory over the store if None).
            run_grounding_review: Include the AI review in the audit.
        """
        self.claim_store = claim_store or ClaimStore()
        self._synthesis_agent = synthesis_agent
        self._auditor = auditor
        self._oracle = oracle
        self._embedder = embedder
        self._retriever = retriever
        self.run_grounding_review = run_grounding_review
        self._logger = structlog.get_logger().bind(component="SynthesisPipeline")

    def _get_oracle(self) -> LLMOracle:
        if self._oracle is None:
            from identity_system.llm.gemini_client import GeminiClient

            self._oracle = GeminiClient()
        return self._oracle

    def _get_embedder(self) -> EmbeddingProvider:
        if self._embedder is None:
            oracle = self._get_oracle()
            if not hasattr(oracle, "embed"):
                raise ValueError("An embedding provider is required for synthesis")
            self._embedder = oracle
        return self._embedder

    def _get_agent(self) -> ClaimSynthesisAgent:
        """Lazy-init ClaimSynthesisAgent with the shared store."""
        if self._synthesis_agent is None:
            self._synthesis_agent = ClaimSynthesisAgent(
                claim_store=self.claim_store,
                retriever=self._retriever or InMemoryCandidateRetriever(self.claim_store),
                oracle=self._get_oracle(),
                embedder=self._get_embedder(),
            )
        return self._synthesis_agent

    def _get_auditor(self) -> ClaimAuditor:
        """Lazy-init ClaimAuditor with the shared store."""
        if self._auditor is None:
            evaluator = (
                ClaimGroundingEvaluator(self._get_oracle())
                if self.run_grounding_review
                else None
            )
            self._auditor = ClaimAuditor(
                claim_store=self.claim_store,
                grounding_evaluator=evaluator,
            )
        return self._auditor

    async def run_synthesis(
        self,
        user_id: str,
        evidence_items: List[EvidenceItem],
        progress_callback: Optional[ProgressCallback] = None,
        claim_update_callback: Optional[ClaimUpdateCallback] = None,
    ) -> SynthesisResult:
        """Run synthesis only (standalone mode)."""
        return await self._get_agent().synthesize(
            user_id,
            evidence_items,
            progress_callback=progress_callback,
            claim_update_callback=claim_update_callback,
        )

    async def on_synthesis_complete(
        self,
        user_id: str,
        document_id: Optional[str],
        result: SynthesisResult,
    ) -> dict[str, Any]:
        """Handler run after synthesis: audits the user's claims.

        Skipped when synthesis changed nothing.

        Returns:
            Audit stats, or an 'audit_skipped' / 'audit_error' marker.
        """
        if result.claims_created == 0 and result.claims_updated == 0:
            self._logger.info("audit_skipped", user_id=user_id, document_id=document_id)
            return {"issues_found": 0, "issues_stored": 0, "audit_skipped": "no claim changes"}

        try:
            eval_result = await self._get_auditor().run_claim_eval(user_id, document_id)
        except Exception as e:
            self._logger.error(
                "audit_failed",
                user_id=user_id,
                document_id=document_id,
                error=str(e),
                exc_info=True,
            )
            return {"issues_found": 0, "issues_stored": 0, "audit_error": str(e)}

        return eval_result.model_dump()

    async def process_document(
        self,
        user_id: str,
        evidence_items: List[EvidenceItem],
        document_id: Optional[str] = None,
        progress_callback: Optional[ProgressCallback] = None,
        claim_update_callback: Optional[ClaimUpdateCallback] = None,
    ) -> dict[str, Any]:
        """Synthesize a document's evidence, then audit.

        Args:
            user_id: Owner of the claims.
            evidence_items: Evidence extracted from the document.
            document_id: Source document, recorded on stored issues.
            progress_callback: Forwarded to synthesis.
            claim_update_callback: Forwarded to synthesis.

        Returns:
            Combined synthesis and audit stats.
        """
        self._logger.info(
            "document_started",
            user_id=user_id,
            document_id=document_id,
            evidence_count=len(evidence_items),
        )

        result = await self.run_synthesis(
            user_id, evidence_items, progress_callback, claim_update_callback
        )
        audit_stats = await self.on_synthesis_complete(user_id, document_id, result)

        stats = {
            "user_id": user_id,
            "document_id": document_id,
            **result.model_dump(),
            **audit_stats,
        }
        self._logger.info("document_complete", **stats)
        return stats
