"""Prompt templates for LLM-powered agents.

Modules:
    synthesis_prompts: Match-or-create decision prompt for one evidence item
    grounding_prompts: Grounding and quality review of sampled claims
"""

from identity_system.config.prompts.synthesis_prompts import (
    EVIDENCE_TO_CLAIM_TYPE,
    NO_CANDIDATES_TEXT,
    SYNTHESIS_SYSTEM_PROMPT,
    SYNTHESIS_USER_PROMPT,
)
from identity_system.config.prompts.grounding_prompts import CLAIM_GROUNDING_PROMPT

__all__ = [
    "EVIDENCE_TO_CLAIM_TYPE",
    "NO_CANDIDATES_TEXT",
    "SYNTHESIS_SYSTEM_PROMPT",
    "SYNTHESIS_USER_PROMPT",
    "CLAIM_GROUNDING_PROMPT",
]
