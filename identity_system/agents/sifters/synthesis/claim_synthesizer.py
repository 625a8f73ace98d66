"""Claim synthesis agent: evidence items -> new or reinforced claims.

Per evidence item:
1. Skip oversized text and evidence already linked to one of the user's claims
2. Retrieve up to N candidate claims by embedding similarity
3. Ask the oracle whether the evidence matches a candidate or needs a new claim
4. Parse the answer into Match | NewClaim | NoOp
5. Match: upsert link and recalculate confidence
   NewClaim: reuse an identical (type, label) claim if the user owns one,
   otherwise embed the label and create the claim with its first link

A failure on one item is logged and withholds that item's counts; the rest
of the batch continues.

Usage:
    from identity_system.agents.sifters.synthesis import ClaimSynthesisAgent

    agent = ClaimSynthesisAgent(
        claim_store=store,
        retriever=InMemoryCandidateRetriever(store),
        oracle=GeminiClient(),
        embedder=gemini,
    )
    result = await agent.synthesize("user-123", evidence_items)
"""

import asyncio
from typing import Awaitable, Callable, Dict, List, Optional

import aiometer
from tenacity import AsyncRetrying, stop_after_attempt, wait_exponential

from identity_system.agents.sifters.base_sifter import BaseSifter
from identity_system.agents.sifters.scoring import ConfidenceScorer
from identity_system.agents.sifters.synthesis.schemas import (
    ClaimUpdate,
    MatchDecision,
    NewClaimDecision,
    NoOpDecision,
    SynthesisResult,
    parse_decision,
)
from identity_system.config.prompts import (
    EVIDENCE_TO_CLAIM_TYPE,
    NO_CANDIDATES_TEXT,
    SYNTHESIS_SYSTEM_PROMPT,
    SYNTHESIS_USER_PROMPT,
)
from identity_system.config.settings import settings
from identity_system.data_management.candidate_retriever import CandidateRetriever
from identity_system.data_management.claim_store import ClaimStore
from identity_system.data_management.schemas import (
    CandidateClaim,
    Claim,
    ClaimEvidenceLink,
    EvidenceItem,
    Strength,
)
from identity_system.errors import OracleError
from identity_system.llm.oracle import EmbeddingProvider, LLMOracle
from identity_system.utils.logging import get_correlation_id, get_structured_logger

ProgressCallback = Callable[[int, int], Awaitable[None]]
ClaimUpdateCallback = Callable[[ClaimUpdate], Awaitable[None]]


class ClaimSynthesisAgent(BaseSifter):
    """
    Turns evidence items into claims through an LLM match-or-create decision.

    Attributes:
        claim_store: Claim graph storage
        retriever: Nearest-neighbor candidate lookup
        oracle: LLM used for decisions
        embedder: Embedding provider for new claim labels
        scorer: Confidence recalculation
        candidate_count: Candidates retrieved per item
        max_text_length: Evidence longer than this is skipped
        concurrency: Items processed at once (1 = sequential)
        max_attempts: Oracle attempts per item
    """

    def __init__(
        self,
        claim_store: ClaimStore,
        retriever: CandidateRetriever,
        oracle: LLMOracle,
        embedder: EmbeddingProvider,
        scorer: Optional[ConfidenceScorer] = None,
        candidate_count: Optional[int] = None,
        max_text_length: Optional[int] = None,
        concurrency: Optional[int] = None,
        max_attempts: Optional[int] = None,
        retry_backoff: float = 1.0,
    ):
        """
        Initialize synthesis agent.

        Args:
            claim_store: Claim graph storage
            retriever: Candidate retriever implementing find_candidates()
            oracle: LLM oracle implementing complete()
            embedder: Embedding provider implementing embed()
            scorer: Confidence scorer (defaults to one over claim_store)
            candidate_count: Candidates per item (default from settings)
            max_text_length: Oversize cutoff (default from settings)
            concurrency: Bounded fan-out width (default from settings)
            max_attempts: Oracle retry attempts (default from settings)
            retry_backoff: Exponential backoff multiplier in seconds (0 disables waiting)
        """
        super().__init__(
            name="ClaimSynthesisAgent",
            description="Synthesizes evidence into deduplicated, scored claims",
        )
        self.claim_store = claim_store
        self.retriever = retriever
        self.oracle = oracle
        self.embedder = embedder
        self.scorer = scorer or ConfidenceScorer(claim_store)
        self.candidate_count = (
            settings.candidate_count if candidate_count is None else candidate_count
        )
        self.max_text_length = (
            settings.max_evidence_text_length if max_text_length is None else max_text_length
        )
        self.concurrency = (
            settings.synthesis_concurrency if concurrency is None else concurrency
        )
        self.max_attempts = (
            settings.oracle_max_attempts if max_attempts is None else max_attempts
        )
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {self.max_attempts}")
        self.retry_backoff = retry_backoff

        self.failed_items: int = 0
        self._create_locks: Dict[str, asyncio.Lock] = {}
        self._log = get_structured_logger("ClaimSynthesisAgent")

    async def synthesize(
        self,
        user_id: str,
        evidence_items: List[EvidenceItem],
        progress_callback: Optional[ProgressCallback] = None,
        claim_update_callback: Optional[ClaimUpdateCallback] = None,
    ) -> SynthesisResult:
        """
        Synthesize a batch of evidence into the user's claims.

        Args:
            user_id: Owner of the resulting claims
            evidence_items: Evidence to process
            progress_callback: Awaited with (completed, total) after each item
            claim_update_callback: Awaited with a ClaimUpdate per created/matched claim

        Returns:
            SynthesisResult with claims_created and claims_updated
        """
        result = SynthesisResult()
        if not evidence_items:
            return result

        log = self._log.bind(user_id=user_id, correlation_id=get_correlation_id())
        total = len(evidence_items)
        completed = 0

        log.info("synthesis_started", evidence_count=total, concurrency=self.concurrency)

        async def handle(item: EvidenceItem) -> None:
            nonlocal completed
            update = await self._synthesize_item(user_id, item, log)

            if update is not None:
                if update.action == "created":
                    result.claims_created += 1
                else:
                    result.claims_updated += 1
                if claim_update_callback is not None:
                    await self._notify(claim_update_callback, update, log)

            completed += 1
            if progress_callback is not None:
                await self._notify_progress(progress_callback, completed, total, log)

        if self.concurrency <= 1:
            for item in evidence_items:
                await handle(item)
        else:
            await aiometer.run_on_each(handle, evidence_items, max_at_once=self.concurrency)

        log.info(
            "synthesis_complete",
            claims_created=result.claims_created,
            claims_updated=result.claims_updated,
        )
        return result

    async def _synthesize_item(
        self,
        user_id: str,
        item: EvidenceItem,
        log,
    ) -> Optional[ClaimUpdate]:
        """Process one evidence item; never raises."""
        item_log = log.bind(evidence_id=item.id)

        if len(item.text) > self.max_text_length:
            item_log.info("evidence_skipped", reason="text_too_long", length=len(item.text))
            return None

        try:
            if await self.claim_store.is_evidence_linked(user_id, item.id):
                item_log.info("evidence_skipped", reason="already_linked")
                return None

            await self.claim_store.save_evidence(item)

            candidates = await self.retriever.find_candidates(
                item.embedding, user_id, self.candidate_count
            )
            raw = await self._ask_oracle(self.build_prompt(item, candidates))
            decision = parse_decision(raw)

            if isinstance(decision, NoOpDecision):
                item_log.info("evidence_skipped", reason=decision.reason)
                return None

            if isinstance(decision, MatchDecision):
                matched = next(
                    (c for c in candidates if c.label == decision.label), None
                )
                if matched is None:
                    item_log.info(
                        "evidence_skipped",
                        reason="match_not_in_candidates",
                        label=decision.label,
                    )
                    return None
                return await self._link_existing(
                    matched.id, matched.label, item, decision.strength, item_log
                )

            if isinstance(decision, NewClaimDecision):
                return await self._create_or_reuse(user_id, item, decision, item_log)

        except Exception as e:
            item_log.error("evidence_failed", error=str(e), exc_info=True)
            self.failed_items += 1
            return None

        return None

    def build_prompt(self, item: EvidenceItem, candidates: List[CandidateClaim]) -> str:
        """Render the decision prompt for one evidence item."""
        if candidates:
            candidate_list = "\n".join(
                f'{i}. "{c.label}" ({c.type.value if c.type else "unknown"}) - '
                f'{c.description or "No description"}'
                for i, c in enumerate(candidates, start=1)
            )
        else:
            candidate_list = NO_CANDIDATES_TEXT

        evidence_type = item.type.value
        return SYNTHESIS_USER_PROMPT.format(
            evidence_text=item.text,
            evidence_type=evidence_type,
            expected_claim_type=EVIDENCE_TO_CLAIM_TYPE.get(evidence_type, "skill"),
            candidate_list=candidate_list,
        )

    async def _ask_oracle(self, prompt: str) -> str:
        """
        Call the oracle with bounded exponential-backoff retry.

        Raises:
            OracleError: If every attempt fails
        """
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.max_attempts),
                wait=wait_exponential(multiplier=self.retry_backoff, max=10),
                reraise=True,
            ):
                with attempt:
                    return await self.oracle.complete(
                        prompt, system_prompt=SYNTHESIS_SYSTEM_PROMPT
                    )
        except OracleError:
            raise
        except Exception as e:
            raise OracleError(f"Oracle failed after {self.max_attempts} attempts: {e}") from e

    async def _link_existing(
        self,
        claim_id: str,
        label: str,
        item: EvidenceItem,
        strength: Strength,
        log,
    ) -> ClaimUpdate:
        await self.claim_store.upsert_link(
            ClaimEvidenceLink(
                claim_id=claim_id,
                evidence_id=item.id,
                strength=strength,
                source_type=item.source_type,
                evidence_date=item.evidence_date,
            )
        )
        confidence = await self.scorer.recalculate(claim_id)
        log.info("claim_matched", claim_id=claim_id, label=label, confidence=confidence)
        return ClaimUpdate(action="matched", label=label, claim_id=claim_id)

    async def _create_or_reuse(
        self,
        user_id: str,
        item: EvidenceItem,
        decision: NewClaimDecision,
        log,
    ) -> ClaimUpdate:
        proposal = decision.claim
        claim_type = proposal.claim_type

        # Serialize label lookup and creation per user so concurrent items
        # proposing the same label converge on one claim
        async with self._user_create_lock(user_id):
            existing = await self.claim_store.find_claim_by_label(
                user_id, claim_type, proposal.label
            )
            if existing is not None:
                log.info("new_claim_exists", claim_id=existing.id, label=existing.label)
                return await self._link_existing(
                    existing.id, existing.label, item, decision.strength, log
                )

            embedding = await self.embedder.embed(proposal.label)
            claim = Claim(
                user_id=user_id,
                type=claim_type,
                label=proposal.label,
                description=proposal.description,
                confidence=self.scorer.initial_confidence(
                    decision.strength,
                    claim_type=claim_type,
                    source_type=item.source_type,
                    evidence_date=item.evidence_date,
                ),
                embedding=embedding,
            )
            await self.claim_store.create_claim(
                claim,
                ClaimEvidenceLink(
                    claim_id=claim.id,
                    evidence_id=item.id,
                    strength=decision.strength,
                    source_type=item.source_type,
                    evidence_date=item.evidence_date,
                ),
            )

        log.info(
            "claim_created",
            claim_id=claim.id,
            label=claim.label,
            claim_type=claim_type.value,
            confidence=claim.confidence,
        )
        return ClaimUpdate(action="created", label=claim.label, claim_id=claim.id)

    def _user_create_lock(self, user_id: str) -> asyncio.Lock:
        if user_id not in self._create_locks:
            self._create_locks[user_id] = asyncio.Lock()
        return self._create_locks[user_id]

    async def _notify(self, callback: ClaimUpdateCallback, update: ClaimUpdate, log) -> None:
        try:
            await callback(update)
        except Exception as e:
            log.warning("claim_update_callback_failed", error=str(e))

    async def _notify_progress(
        self, callback: ProgressCallback, completed: int, total: int, log
    ) -> None:
        try:
            await callback(completed, total)
        except Exception as e:
            log.warning("progress_callback_failed", error=str(e))

    async def sift(self, content: dict) -> list[dict]:
        """
        Synthesize a request dict.

        Args:
            content: {'user_id': str, 'evidence': [EvidenceItem dicts]}

        Returns:
            ClaimUpdate dicts for every created or matched claim
        """
        user_id = content["user_id"]
        evidence = [EvidenceItem.model_validate(e) for e in content.get("evidence", [])]
        updates: List[ClaimUpdate] = []

        async def collect(update: ClaimUpdate) -> None:
            updates.append(update)

        await self.synthesize(user_id, evidence, claim_update_callback=collect)
        return [u.model_dump() for u in updates]

    def get_capabilities(self) -> list[str]:
        return ["claim_synthesis", "claim_matching", "confidence_scoring"]

    def get_stats(self) -> dict:
        stats = super().get_stats()
        stats["failed_items"] = self.failed_items
        return stats
