"""Claim schemas - scored, labeled assertions about a person.

A Claim is created by the synthesis agent, re-scored whenever its evidence
link set changes, edited by the user, and deleted on request (cascading its
links and issues).

ClaimEvidenceLink is the many-to-many join between claims and evidence. The
pair (claim_id, evidence_id) is unique; re-linking upserts the strength.

CandidateClaim is transient retrieval output and is never persisted.
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from identity_system.data_management.schemas.evidence_schema import SourceType


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ClaimType(str, Enum):
    """Category of a claim."""

    SKILL = "skill"
    ACHIEVEMENT = "achievement"
    ATTRIBUTE = "attribute"
    EDUCATION = "education"
    CERTIFICATION = "certification"


# Types the synthesis oracle may propose; education and certification claims
# come from structured extraction instead.
AI_PROPOSABLE_CLAIM_TYPES = frozenset(
    {ClaimType.SKILL, ClaimType.ACHIEVEMENT, ClaimType.ATTRIBUTE}
)


class Strength(str, Enum):
    """Qualitative weight of one evidence-to-claim link."""

    WEAK = "weak"
    MEDIUM = "medium"
    STRONG = "strong"


class Claim(BaseModel):
    """A claim owned by a user.

    Type and label are optional at the schema level so that legacy or
    hand-edited rows can still be loaded and flagged by the rule engine.
    Claims created through synthesis always carry both.

    Attributes:
        id: Claim identifier.
        user_id: Owner.
        type: Claim category.
        label: Short reusable label ("Performance Engineering").
        description: Longer free-text description.
        confidence: Support estimate in [0, 0.95].
        embedding: Embedding of the label, used for candidate retrieval.
        created_at: Creation time (None for rows of unknown age).
        updated_at: Last mutation time.
    """

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    user_id: str = Field(..., description="Owner of the claim")
    type: Optional[ClaimType] = Field(default=None, description="Claim category")
    label: str = Field(default="", description="Claim label")
    description: Optional[str] = Field(default=None)
    confidence: float = Field(default=0.0, ge=0.0, le=0.95)
    embedding: list[float] = Field(default_factory=list)
    created_at: Optional[datetime] = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    model_config = {
        "validate_assignment": True,
        "json_schema_extra": {
            "examples": [
                {
                    "user_id": "user-123",
                    "type": "achievement",
                    "label": "Performance Engineering",
                    "description": "Cut API latency by 85% through profiling and caching",
                    "confidence": 0.6,
                }
            ]
        },
    }


class ClaimEvidenceLink(BaseModel):
    """Join row between a claim and one supporting evidence item.

    Source type and evidence date are copied from the evidence so that
    weighted scoring does not need to re-read the evidence.
    """

    claim_id: str
    evidence_id: str
    strength: Strength = Strength.MEDIUM
    source_type: SourceType = SourceType.RESUME
    evidence_date: Optional[datetime] = None
    linked_at: datetime = Field(default_factory=_utcnow)

    @property
    def key(self) -> tuple[str, str]:
        """Uniqueness key of the link."""
        return (self.claim_id, self.evidence_id)


class CandidateClaim(BaseModel):
    """A claim retrieved by vector similarity as a plausible match."""

    id: str
    type: Optional[ClaimType] = None
    label: str
    description: Optional[str] = None
    confidence: float = 0.0
    similarity: float = 0.0


class ClaimForEval(BaseModel):
    """Flattened claim view consumed by the rule engine.

    evidence_count of None is treated as zero when sampling.
    """

    id: str
    type: Optional[str] = None
    label: Optional[str] = None
    description: Optional[str] = None
    created_at: Optional[datetime] = None
    evidence_count: Optional[int] = None

    @classmethod
    def from_claim(cls, claim: Claim, evidence_count: Optional[int] = None) -> "ClaimForEval":
        """Build the rule-engine view of a stored claim."""
        return cls(
            id=claim.id,
            type=claim.type.value if claim.type else None,
            label=claim.label,
            description=claim.description,
            created_at=claim.created_at,
            evidence_count=evidence_count,
        )
