"""Confidence scoring for claims."""

from identity_system.agents.sifters.scoring.confidence_scorer import (
    ConfidenceScorer,
    EvidenceWeightInput,
    base_confidence,
    calculate_claim_confidence,
    calculate_evidence_weight,
    calculate_recency_decay,
    calculate_strength_confidence,
    get_source_weight,
    strength_multiplier,
)

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
