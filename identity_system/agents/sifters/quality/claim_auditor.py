"""Claim audit orchestration.

run_claim_eval() is the offline quality pass over one user's claims:

1. Load the claims with their evidence link counts
2. Run rule checks (duplicates, missing fields)
3. Sample the least-supported claims and run the AI grounding review
4. Store the issues; dismissed and already-open tuples are not re-created

The audit only reads claims and writes issues, so it can run while
synthesis is still linking evidence.
"""

from typing import List, Optional

from pydantic import BaseModel

from identity_system.agents.sifters.base_sifter import BaseSifter
from identity_system.agents.sifters.quality.distinguishing_tokens import (
    DistinguishingTokenGuard,
)
from identity_system.agents.sifters.quality.grounding_evaluator import (
    ClaimGroundingEvaluator,
    ClaimWithEvidence,
    EvidenceSnippet,
)
from identity_system.agents.sifters.quality.rule_checks import (
    run_rule_checks,
    sample_claims_for_eval,
)
from identity_system.config.settings import settings
from identity_system.data_management.claim_store import ClaimStore
from identity_system.data_management.schemas import ClaimForEval, ClaimIssue
from identity_system.utils.logging import get_correlation_id, get_structured_logger


class ClaimEvalResult(BaseModel):
    """Outcome of one audit run."""

    issues_found: int = 0
    issues_stored: int = 0


class ClaimAuditor(BaseSifter):
    """
    Runs rule checks and the optional grounding review, then stores issues.

    Without a grounding evaluator the audit is rule-based only.

    Attributes:
        claim_store: Claim graph storage
        grounding_evaluator: Optional AI review of sampled claims
        duplicate_threshold: Jaro-Winkler cutoff for duplicates
        guard: Trailing-token policy for duplicate detection
    """

    def __init__(
        self,
        claim_store: ClaimStore,
        grounding_evaluator: Optional[ClaimGroundingEvaluator] = None,
        duplicate_threshold: Optional[float] = None,
        guard: Optional[DistinguishingTokenGuard] = None,
    ):
        super().__init__(
            name="ClaimAuditor",
            description="Flags duplicate, malformed and ungrounded claims",
        )
        self.claim_store = claim_store
        self.grounding_evaluator = grounding_evaluator
        self.duplicate_threshold = (
            settings.duplicate_threshold if duplicate_threshold is None else duplicate_threshold
        )
        self.guard = guard or DistinguishingTokenGuard()
        self._log = get_structured_logger("ClaimAuditor")

    async def collect_issues(
        self,
        user_id: str,
        max_claims_for_ai_eval: Optional[int] = None,
    ) -> List[ClaimIssue]:
        """Compute issues for a user's claims without storing them."""
        max_count = (
            settings.max_claims_for_eval
            if max_claims_for_ai_eval is None
            else max_claims_for_ai_eval
        )

        claims = await self.claim_store.list_claims(user_id)
        link_counts = await self.claim_store.get_link_counts(user_id)
        claims_for_eval = [
            ClaimForEval.from_claim(claim, link_counts.get(claim.id, 0))
            for claim in claims
        ]

        issues = run_rule_checks(claims_for_eval, self.duplicate_threshold, self.guard)

        if self.grounding_evaluator is not None and max_count > 0:
            sampled = sample_claims_for_eval(claims_for_eval, max_count)
            if sampled:
                issues.extend(
                    await self.grounding_evaluator.evaluate(
                        [await self._with_evidence(claim) for claim in sampled]
                    )
                )

        return issues

    async def run_claim_eval(
        self,
        user_id: str,
        document_id: Optional[str] = None,
        max_claims_for_ai_eval: Optional[int] = None,
    ) -> ClaimEvalResult:
        """
        Audit a user's claims and store the findings.

        Args:
            user_id: Owner of the claims to audit
            document_id: Document whose processing triggered the audit
            max_claims_for_ai_eval: Grounding review sample size (default from settings)

        Returns:
            ClaimEvalResult with issues_found and issues_stored
        """
        log = self._log.bind(user_id=user_id, correlation_id=get_correlation_id())
        log.info("audit_started", document_id=document_id)

        issues = await self.collect_issues(user_id, max_claims_for_ai_eval)
        if not issues:
            log.info("audit_complete", issues_found=0, issues_stored=0)
            return ClaimEvalResult()

        if document_id is not None:
            issues = [issue.model_copy(update={"document_id": document_id}) for issue in issues]

        stored = await self.claim_store.add_issues(issues)

        log.info("audit_complete", issues_found=len(issues), issues_stored=stored)
        return ClaimEvalResult(issues_found=len(issues), issues_stored=stored)

    async def _with_evidence(self, claim: ClaimForEval) -> ClaimWithEvidence:
        pairs = await self.claim_store.get_claim_evidence(claim.id)
        return ClaimWithEvidence(
            id=claim.id,
            label=claim.label or "",
            description=claim.description,
            evidence=[
                EvidenceSnippet(text=item.text, strength=link.strength.value)
                for link, item in pairs
                if item is not None
            ],
        )

    async def sift(self, content: dict) -> list[dict]:
        """
        Audit a request dict and return the issues now open for the user.

        Args:
            content: {'user_id': str, 'document_id': optional str}
        """
        user_id = content["user_id"]
        await self.run_claim_eval(user_id, content.get("document_id"))
        issues = await self.claim_store.list_issues(user_id=user_id)
        return [issue.model_dump(mode="json") for issue in issues]

    def get_capabilities(self) -> list[str]:
        return ["duplicate_detection", "field_validation", "grounding_review"]
