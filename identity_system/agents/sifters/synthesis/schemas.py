"""Decision and result schemas for claim synthesis.

The oracle answers each evidence item with a JSON object of the form

    {"match": "<label>" | null, "strength": "weak|medium|strong",
     "new_claim": null | {"type": "...", "label": "...", "description": "..."}}

parse_decision() turns that free text into exactly one of three tagged
variants. Anything that does not fit a variant becomes a NoOpDecision carrying
the reason, so the agent never acts on a half-valid payload.
"""

import json
import re
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field, StrictStr, ValidationError, field_validator

from identity_system.data_management.schemas import ClaimType, Strength

FENCE_PATTERN = re.compile(r"```(?:json)?\s*([\s\S]*?)```")


class NewClaimProposal(BaseModel):
    """A claim the oracle proposes to create."""

    type: Literal["skill", "achievement", "attribute"]
    label: StrictStr
    description: StrictStr

    @field_validator("label")
    @classmethod
    def label_not_blank(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("label must not be blank")
        return stripped

    @property
    def claim_type(self) -> ClaimType:
        return ClaimType(self.type)


class MatchDecision(BaseModel):
    """Evidence supports the candidate whose label equals ``label``."""

    kind: Literal["match"] = "match"
    label: str
    strength: Strength


class NewClaimDecision(BaseModel):
    """Evidence needs a new claim."""

    kind: Literal["new_claim"] = "new_claim"
    claim: NewClaimProposal
    strength: Strength


class NoOpDecision(BaseModel):
    """Nothing to do for this evidence item."""

    kind: Literal["noop"] = "noop"
    reason: str = "no_decision"


SynthesisDecision = Annotated[
    Union[MatchDecision, NewClaimDecision, NoOpDecision],
    Field(discriminator="kind"),
]


def strip_code_fences(text: str) -> str:
    """Return the body of the first markdown code block, or the trimmed text."""
    fenced = FENCE_PATTERN.search(text)
    if fenced:
        return fenced.group(1).strip()
    return text.strip()


def parse_decision(text: Optional[str]) -> SynthesisDecision:
    """
    Parse raw oracle output into a synthesis decision.

    A non-empty ``match`` string takes priority over ``new_claim``. A missing
    or unknown strength is read as medium, the same fallback the confidence
    multipliers use.

    Args:
        text: Raw oracle response (may be fenced, empty or None)

    Returns:
        MatchDecision, NewClaimDecision or NoOpDecision
    """
    if not text or not text.strip():
        return NoOpDecision(reason="empty_response")

    try:
        payload = json.loads(strip_code_fences(text))
    except json.JSONDecodeError:
        return NoOpDecision(reason="unparsable")

    if not isinstance(payload, dict):
        return NoOpDecision(reason="invalid_shape")

    match = payload.get("match")
    new_claim = payload.get("new_claim")

    if match is None and new_claim is None:
        return NoOpDecision(reason="no_decision")

    try:
        strength = Strength(payload.get("strength"))
    except ValueError:
        strength = Strength.MEDIUM

    if isinstance(match, str) and match.strip():
        return MatchDecision(label=match, strength=strength)

    if isinstance(new_claim, dict):
        try:
            proposal = NewClaimProposal.model_validate(new_claim)
        except ValidationError:
            return NoOpDecision(reason="invalid_new_claim")
        return NewClaimDecision(claim=proposal, strength=strength)

    return NoOpDecision(reason="invalid_shape")


class ClaimUpdate(BaseModel):
    """Notification emitted when synthesis creates or reinforces a claim."""

    action: Literal["created", "matched"]
    label: str
    claim_id: str


class SynthesisResult(BaseModel):
    """Aggregate counts of one synthesis batch."""

    claims_created: int = 0
    claims_updated: int = 0

    model_config = {
        "json_schema_extra": {
            "examples": [{"claims_created": 2, "claims_updated": 1}]
        }
    }
