"""Claim issue schema - findings produced by the quality audit.

Issues are created by the rule engine (duplicate, missing_field) and by the
AI grounding review (not_grounded, low_quality, unevaluated). Users may
dismiss an issue; a dismissed (claim_id, related_claim_id, issue_type) tuple
is never re-created by later audit runs.
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class IssueType(str, Enum):
    """Kind of quality finding."""

    DUPLICATE = "duplicate"
    MISSING_FIELD = "missing_field"
    NOT_GROUNDED = "not_grounded"
    LOW_QUALITY = "low_quality"
    UNEVALUATED = "unevaluated"


class IssueSeverity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


class ClaimIssue(BaseModel):
    """A quality finding attached to a claim.

    Attributes:
        id: Issue identifier.
        claim_id: Claim the issue is about (the newer claim for duplicates).
        issue_type: Kind of finding.
        severity: error or warning.
        message: Human-readable explanation.
        related_claim_id: The other claim of a duplicate pair.
        document_id: Document whose processing triggered the audit, if any.
        created_at: When the issue was recorded.
        dismissed_at: When the user dismissed it, if ever.
    """

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    claim_id: str
    issue_type: IssueType
    severity: IssueSeverity
    message: str
    related_claim_id: Optional[str] = None
    document_id: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    dismissed_at: Optional[datetime] = None

    @property
    def is_dismissed(self) -> bool:
        return self.dismissed_at is not None

    @property
    def dedup_key(self) -> tuple[str, Optional[str], str, Optional[str]]:
        """Identity used for suppression.

        (claim_id, related_claim_id, issue_type), plus the message for
        missing_field issues so each missing attribute is tracked separately.
        """
        detail = self.message if self.issue_type == IssueType.MISSING_FIELD else None
        return (self.claim_id, self.related_claim_id, self.issue_type.value, detail)
