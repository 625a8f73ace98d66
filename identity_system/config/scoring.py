"""Confidence scoring configuration for identity claims.

Confidence starts from a base determined by how many evidence links a claim
has, then scales by the average per-link weight:

    confidence = min(MAX_CONFIDENCE, base(n) x mean(weight))

Per-link weight is the strength multiplier alone, or, with weighted scoring,
strength x recency decay x source weight.

Source hierarchy (most to least trusted):
1. Third-party certification: 1.5
2. Resume (professional record, baseline): 1.0
3. Personal story (valuable but unverified): 0.8
4. Inferred by the system: 0.6
"""

import math
from typing import Dict

# Base confidence keyed by evidence count; 4+ uses the last tier
CONFIDENCE_BASE: Dict[int, float] = {
    1: 0.5,  # One data point is tentative
    2: 0.7,  # Two corroborating sources
    3: 0.8,
    4: 0.9,  # Nearly certain
}

STRENGTH_MULTIPLIERS: Dict[str, float] = {
    "strong": 1.2,  # Direct, clear evidence
    "medium": 1.0,  # Related evidence
    "weak": 0.7,  # Tangential connection
}

MAX_CONFIDENCE: float = 0.95
MIN_CONFIDENCE: float = 0.0

SOURCE_WEIGHTS: Dict[str, float] = {
    "certification": 1.5,
    "resume": 1.0,
    "story": 0.8,
    "inferred": 0.6,
}

# Half-life in years; after one half-life evidence contributes 50% of its weight
CLAIM_HALF_LIVES: Dict[str, float] = {
    "skill": 4.0,  # Tech skills evolve fast
    "achievement": 7.0,
    "attribute": 15.0,  # Character traits are durable
    "education": math.inf,  # Degrees don't expire
    "certification": math.inf,  # Expiry is tracked separately from decay
}

DAYS_PER_YEAR: float = 365.25
