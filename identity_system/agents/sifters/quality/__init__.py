"""Claim quality audit: rule checks, grounding review and issue storage."""

from identity_system.agents.sifters.quality.claim_auditor import (
    ClaimAuditor,
    ClaimEvalResult,
)
from identity_system.agents.sifters.quality.distinguishing_tokens import (
    DistinguishingTokenGuard,
)
from identity_system.agents.sifters.quality.grounding_evaluator import (
    ClaimGroundingEvaluator,
    ClaimWithEvidence,
    EvidenceSnippet,
)
from identity_system.agents.sifters.quality.rule_checks import (
    find_duplicates,
    find_missing_fields,
    run_rule_checks,
    sample_claims_for_eval,
)
from identity_system.agents.sifters.quality.string_similarity import (
    jaro_winkler_similarity,
)

__all__ = [
    "ClaimAuditor",
    "ClaimEvalResult",
    "ClaimGroundingEvaluator",
    "ClaimWithEvidence",
    "DistinguishingTokenGuard",
    "EvidenceSnippet",
    "find_duplicates",
    "find_missing_fields",
    "jaro_winkler_similarity",
    "run_rule_checks",
    "sample_claims_for_eval",
]
