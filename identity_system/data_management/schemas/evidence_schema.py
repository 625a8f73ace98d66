"""Evidence schema - the input unit of claim synthesis.

Evidence items are short snippets extracted from a resume or a personal
story. They are immutable once created and owned by the document that
produced them.

Text length is deliberately not validated here: oversized evidence must be
skipped by the synthesis agent, not rejected at construction time.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class EvidenceType(str, Enum):
    """What kind of signal the snippet carries."""

    ACCOMPLISHMENT = "accomplishment"
    SKILL_LISTED = "skill_listed"
    TRAIT_INDICATOR = "trait_indicator"
    EDUCATION = "education"
    CERTIFICATION = "certification"


class SourceType(str, Enum):
    """Where the evidence originated; drives source weighting."""

    RESUME = "resume"
    STORY = "story"
    CERTIFICATION = "certification"
    INFERRED = "inferred"


class EvidenceItem(BaseModel):
    """A single piece of evidence about a person.

    Attributes:
        id: Evidence identifier (also the idempotency key during synthesis).
        text: The snippet text.
        type: Declared evidence type.
        embedding: Fixed-dimension embedding vector of the text.
        source_type: Origin of the evidence (defaults to resume).
        evidence_date: When the evidence occurred, if known.
    """

    id: str = Field(..., min_length=1, description="Evidence identifier")
    text: str = Field(..., description="Evidence snippet text")
    type: EvidenceType = Field(..., description="Declared evidence type")
    embedding: list[float] = Field(
        default_factory=list, description="Embedding vector of the text"
    )
    source_type: SourceType = Field(
        default=SourceType.RESUME, description="Origin of the evidence"
    )
    evidence_date: Optional[datetime] = Field(
        default=None, description="When the evidence occurred"
    )

    model_config = {
        "frozen": True,
        "json_schema_extra": {
            "examples": [
                {
                    "id": "ev-001",
                    "text": "Reduced p99 API latency from 800ms to 120ms",
                    "type": "accomplishment",
                    "embedding": [0.01, -0.12, 0.33],
                    "source_type": "resume",
                    "evidence_date": "2023-06-01T00:00:00Z",
                }
            ]
        },
    }
