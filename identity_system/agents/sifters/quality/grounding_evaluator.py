"""AI grounding and quality review of sampled claims.

Sends a small sample of claims, each with its evidence texts and link
strengths, to the oracle and converts the verdicts into issues:

- grounded = false       -> not_grounded warning
- quality_issue present  -> low_quality warning (independent of grounding)
- oracle/parse failure   -> unevaluated warning for every sampled claim
"""

import json
from typing import List, Optional

from pydantic import BaseModel, Field, ValidationError
from tenacity import AsyncRetrying, stop_after_attempt, wait_exponential

from identity_system.agents.sifters.synthesis.schemas import strip_code_fences
from identity_system.config.prompts import CLAIM_GROUNDING_PROMPT
from identity_system.config.settings import settings
from identity_system.data_management.schemas import (
    ClaimIssue,
    IssueSeverity,
    IssueType,
)
from identity_system.llm.oracle import LLMOracle
from identity_system.utils.logging import get_structured_logger

NOT_GROUNDED_MESSAGE = "Claim is not supported by evidence"
UNEVALUATED_MESSAGE = "Could not verify this claim - AI evaluation failed"


class EvidenceSnippet(BaseModel):
    text: str
    strength: str


class ClaimWithEvidence(BaseModel):
    """A sampled claim with the evidence shown to the reviewer."""

    id: str
    label: str
    description: Optional[str] = None
    evidence: List[EvidenceSnippet] = Field(default_factory=list)


class GroundingEvaluation(BaseModel):
    claim_id: str
    grounded: bool
    issue: Optional[str] = None
    quality_issue: Optional[str] = None


class GroundingResponse(BaseModel):
    evaluations: List[GroundingEvaluation]


class ClaimGroundingEvaluator:
    """
    Oracle-backed grounding review.

    Usage:
        evaluator = ClaimGroundingEvaluator(oracle=GeminiClient())
        issues = await evaluator.evaluate(claims_with_evidence)
    """

    def __init__(
        self,
        oracle: LLMOracle,
        max_attempts: Optional[int] = None,
        retry_backoff: float = 1.0,
    ):
        self.oracle = oracle
        self.max_attempts = (
            settings.oracle_max_attempts if max_attempts is None else max_attempts
        )
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {self.max_attempts}")
        self.retry_backoff = retry_backoff
        self._log = get_structured_logger("ClaimGroundingEvaluator")

    def build_prompt(self, claims: List[ClaimWithEvidence]) -> str:
        payload = [claim.model_dump() for claim in claims]
        return CLAIM_GROUNDING_PROMPT.format(claims_json=json.dumps(payload, indent=2))

    async def evaluate(self, claims: List[ClaimWithEvidence]) -> List[ClaimIssue]:
        """
        Review claims and return the resulting issues.

        Verdicts for claim ids outside the sample are ignored.

        Args:
            claims: Sampled claims with evidence

        Returns:
            not_grounded / low_quality warnings, or one unevaluated warning
            per claim when the review fails
        """
        if not claims:
            return []

        try:
            raw = await self._ask_oracle(self.build_prompt(claims))
            response = GroundingResponse.model_validate(json.loads(strip_code_fences(raw)))
        except (json.JSONDecodeError, ValidationError) as e:
            self._log.warning("grounding_unparsable", error=str(e), claims=len(claims))
            return self._unevaluated(claims)
        except Exception as e:
            self._log.error("grounding_failed", error=str(e), claims=len(claims), exc_info=True)
            return self._unevaluated(claims)

        sampled_ids = {claim.id for claim in claims}
        issues: List[ClaimIssue] = []

        for evaluation in response.evaluations:
            if evaluation.claim_id not in sampled_ids:
                self._log.debug("grounding_unknown_claim", claim_id=evaluation.claim_id)
                continue

            if not evaluation.grounded:
                issues.append(
                    ClaimIssue(
                        claim_id=evaluation.claim_id,
                        issue_type=IssueType.NOT_GROUNDED,
                        severity=IssueSeverity.WARNING,
                        message=evaluation.issue or NOT_GROUNDED_MESSAGE,
                    )
                )

            if evaluation.quality_issue:
                issues.append(
                    ClaimIssue(
                        claim_id=evaluation.claim_id,
                        issue_type=IssueType.LOW_QUALITY,
                        severity=IssueSeverity.WARNING,
                        message=evaluation.quality_issue,
                    )
                )

        self._log.info("grounding_complete", claims=len(claims), issues=len(issues))
        return issues

    async def _ask_oracle(self, prompt: str) -> str:
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=self.retry_backoff, max=10),
            reraise=True,
        ):
            with attempt:
                return await self.oracle.complete(prompt)

    def _unevaluated(self, claims: List[ClaimWithEvidence]) -> List[ClaimIssue]:
        return [
            ClaimIssue(
                claim_id=claim.id,
                issue_type=IssueType.UNEVALUATED,
                severity=IssueSeverity.WARNING,
                message=UNEVALUATED_MESSAGE,
            )
            for claim in claims
        ]
