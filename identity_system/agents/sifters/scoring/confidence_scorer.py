"""Claim confidence scoring.

Core formula: confidence = min(0.95, base(n) x mean(weight))

Components:
- base(n): tiered by evidence count (1 -> 0.5, 2 -> 0.7, 3 -> 0.8, 4+ -> 0.9)
- weight: strength multiplier (strong 1.2, medium 1.0, weak 0.7)

With weighted scoring enabled, each link's weight additionally multiplies
in the source weight of its evidence and an exponential recency decay
0.5 ** (age_years / half_life) keyed by claim type.

This module provides the pure building blocks plus ConfidenceScorer, which
recalculates a stored claim from its current link set.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Union

from loguru import logger

from identity_system.config.scoring import (
    CLAIM_HALF_LIVES,
    CONFIDENCE_BASE,
    DAYS_PER_YEAR,
    MAX_CONFIDENCE,
    SOURCE_WEIGHTS,
    STRENGTH_MULTIPLIERS,
)
from identity_system.config.settings import settings
from identity_system.data_management.schemas import (
    ClaimEvidenceLink,
    ClaimType,
    SourceType,
    Strength,
)

SECONDS_PER_YEAR = DAYS_PER_YEAR * 24 * 60 * 60


def _value(item: Union[str, ClaimType, SourceType, Strength, None]) -> Optional[str]:
    if item is None:
        return None
    return item.value if hasattr(item, "value") else str(item)


def base_confidence(evidence_count: int) -> float:
    """Base confidence for a claim supported by ``evidence_count`` links."""
    if evidence_count >= 4:
        return CONFIDENCE_BASE[4]
    if evidence_count == 3:
        return CONFIDENCE_BASE[3]
    if evidence_count == 2:
        return CONFIDENCE_BASE[2]
    return CONFIDENCE_BASE[1]


def strength_multiplier(strength: Union[Strength, str]) -> float:
    """Multiplier for a link strength; unknown strengths count as medium."""
    return STRENGTH_MULTIPLIERS.get(_value(strength), STRENGTH_MULTIPLIERS["medium"])


def get_source_weight(source_type: Union[SourceType, str, None]) -> float:
    """Reliability multiplier for an evidence source; unknown sources weigh 1.0."""
    return SOURCE_WEIGHTS.get(_value(source_type), 1.0)


def calculate_recency_decay(
    evidence_date: Optional[datetime],
    claim_type: Union[ClaimType, str, None],
    reference_date: Optional[datetime] = None,
) -> float:
    """
    Recency decay factor for one piece of evidence.

    Formula: 0.5 ** (age_years / half_life)
    - no date: 1.0 (no penalty)
    - future date: 1.0
    - infinite half-life (education, certification) or unknown type: 1.0

    Args:
        evidence_date: When the evidence occurred
        claim_type: Type of the supported claim (selects the half-life)
        reference_date: Date to measure age from (defaults to now, UTC)

    Returns:
        Decay factor in (0, 1]
    """
    if evidence_date is None:
        return 1.0

    half_life = CLAIM_HALF_LIVES.get(_value(claim_type))
    if half_life is None or half_life == float("inf"):
        return 1.0

    now = reference_date or datetime.now(timezone.utc)
    age_years = (_as_utc(now) - _as_utc(evidence_date)).total_seconds() / SECONDS_PER_YEAR
    if age_years <= 0:
        return 1.0

    return 0.5 ** (age_years / half_life)


def _as_utc(value: datetime) -> datetime:
    # Naive datetimes are taken to be UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


@dataclass
class EvidenceWeightInput:
    """Inputs for weighting one evidence link.

    Attributes:
        strength: Link strength
        source_type: Where the evidence came from
        evidence_date: When the evidence occurred (None = unknown)
        claim_type: Type of the supported claim
    """

    strength: Union[Strength, str]
    source_type: Union[SourceType, str, None] = SourceType.RESUME
    evidence_date: Optional[datetime] = None
    claim_type: Union[ClaimType, str, None] = None

    @classmethod
    def from_link(
        cls,
        link: ClaimEvidenceLink,
        claim_type: Union[ClaimType, str, None],
    ) -> "EvidenceWeightInput":
        return cls(
            strength=link.strength,
            source_type=link.source_type,
            evidence_date=link.evidence_date,
            claim_type=claim_type,
        )


def calculate_evidence_weight(
    evidence: EvidenceWeightInput,
    reference_date: Optional[datetime] = None,
) -> float:
    """Combined weight: strength x recency decay x source weight."""
    return (
        strength_multiplier(evidence.strength)
        * calculate_recency_decay(evidence.evidence_date, evidence.claim_type, reference_date)
        * get_source_weight(evidence.source_type)
    )


def calculate_strength_confidence(strengths: Iterable[Union[Strength, str]]) -> float:
    """
    Confidence from link strengths alone.

    Returns 0.0 when there are no links.
    """
    multipliers = [strength_multiplier(s) for s in strengths]
    if not multipliers:
        return 0.0
    average = sum(multipliers) / len(multipliers)
    return min(MAX_CONFIDENCE, base_confidence(len(multipliers)) * average)


def calculate_claim_confidence(
    evidence_items: List[EvidenceWeightInput],
    reference_date: Optional[datetime] = None,
) -> float:
    """
    Confidence with source weighting and recency decay folded in.

    Formula: min(0.95, base(n) x mean(evidence weight)); 0.0 for no evidence.
    """
    if not evidence_items:
        return 0.0

    total_weight = sum(
        calculate_evidence_weight(item, reference_date) for item in evidence_items
    )
    average = total_weight / len(evidence_items)
    return min(MAX_CONFIDENCE, base_confidence(len(evidence_items)) * average)


class ConfidenceScorer:
    """
    Recalculates stored claim confidence from the claim's current links.

    The read of the link set and the write of the new scalar happen under
    the claim's lock, so two links landing on the same claim concurrently
    cannot overwrite each other's recalculation.

    Usage:
        scorer = ConfidenceScorer(store)
        confidence = await scorer.recalculate(claim_id)

    Attributes:
        claim_store: Store holding claims and links
        weighted: Fold source weight and recency decay into the score
    """

    def __init__(
        self,
        claim_store: "ClaimStore",  # noqa: F821
        weighted: Optional[bool] = None,
    ):
        """
        Initialize scorer.

        Args:
            claim_store: Store to read links from and write confidence to
            weighted: Use weighted scoring (defaults to settings.weighted_confidence)
        """
        self.claim_store = claim_store
        self.weighted = settings.weighted_confidence if weighted is None else weighted
        self.logger = logger.bind(component="ConfidenceScorer")

    def initial_confidence(
        self,
        strength: Union[Strength, str],
        claim_type: Union[ClaimType, str, None] = None,
        source_type: Union[SourceType, str, None] = SourceType.RESUME,
        evidence_date: Optional[datetime] = None,
    ) -> float:
        """Confidence of a claim created from a single evidence link."""
        if self.weighted:
            return calculate_claim_confidence(
                [EvidenceWeightInput(strength, source_type, evidence_date, claim_type)]
            )
        return min(MAX_CONFIDENCE, base_confidence(1) * strength_multiplier(strength))

    async def recalculate(
        self,
        claim_id: str,
        reference_date: Optional[datetime] = None,
    ) -> Optional[float]:
        """
        Recompute and store a claim's confidence.

        Args:
            claim_id: Claim to recalculate
            reference_date: Date recency is measured from (weighted mode only)

        Returns:
            The new confidence, or None if the claim has no links
            (confidence is left untouched in that case)

        Raises:
            ClaimNotFoundError: If the claim disappears before the write
        """
        async with self.claim_store.claim_lock(claim_id):
            links = await self.claim_store.get_links(claim_id)
            if not links:
                self.logger.debug(f"No links for claim {claim_id}, skipping recalculation")
                return None

            if self.weighted:
                claim = await self.claim_store.get_claim(claim_id)
                claim_type = claim.type if claim else None
                confidence = calculate_claim_confidence(
                    [EvidenceWeightInput.from_link(link, claim_type) for link in links],
                    reference_date,
                )
            else:
                confidence = calculate_strength_confidence(link.strength for link in links)

            await self.claim_store.update_confidence(claim_id, confidence)

        self.logger.debug(
            f"Confidence recalculated: {confidence:.3f}",
            claim_id=claim_id,
            links=len(links),
            weighted=self.weighted,
        )
        return confidence


__all__ = [
    "ConfidenceScorer",
    "EvidenceWeightInput",
    "base_confidence",
    "strength_multiplier",
    "get_source_weight",
    "calculate_recency_decay",
    "calculate_evidence_weight",
    "calculate_strength_confidence",
    "calculate_claim_confidence",
]
