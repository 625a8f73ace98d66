"""Schema package for evidence, claims, links and quality issues.

Primary exports:
- EvidenceItem: Immutable synthesis input
- Claim / ClaimEvidenceLink: Persisted claim graph
- CandidateClaim: Transient retrieval output
- ClaimIssue: Quality audit finding

Usage:
    from identity_system.data_management.schemas import Claim, ClaimType
    claim = Claim(user_id="u-1", type=ClaimType.SKILL, label="Python")
"""

from identity_system.data_management.schemas.evidence_schema import (
    EvidenceItem,
    EvidenceType,
    SourceType,
)
from identity_system.data_management.schemas.claim_schema import (
    AI_PROPOSABLE_CLAIM_TYPES,
    CandidateClaim,
    Claim,
    ClaimEvidenceLink,
    ClaimForEval,
    ClaimType,
    Strength,
)
from identity_system.data_management.schemas.issue_schema import (
    ClaimIssue,
    IssueSeverity,
    IssueType,
)

__all__ = [
    # Evidence
    "EvidenceItem",
    "EvidenceType",
    "SourceType",
    # Claims
    "AI_PROPOSABLE_CLAIM_TYPES",
    "CandidateClaim",
    "Claim",
    "ClaimEvidenceLink",
    "ClaimForEval",
    "ClaimType",
    "Strength",
    # Issues
    "ClaimIssue",
    "IssueSeverity",
    "IssueType",
]
