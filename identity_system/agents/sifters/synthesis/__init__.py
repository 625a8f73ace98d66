"""Claim synthesis: oracle-driven match-or-create decisions over evidence."""

from identity_system.agents.sifters.synthesis.claim_synthesizer import ClaimSynthesisAgent
from identity_system.agents.sifters.synthesis.schemas import (
    ClaimUpdate,
    MatchDecision,
    NewClaimDecision,
    NewClaimProposal,
    NoOpDecision,
    SynthesisDecision,
    SynthesisResult,
    parse_decision,
    strip_code_fences,
)

__all__ = [
    "ClaimSynthesisAgent",
    "ClaimUpdate",
    "MatchDecision",
    "NewClaimDecision",
    "NewClaimProposal",
    "NoOpDecision",
    "SynthesisDecision",
    "SynthesisResult",
    "parse_decision",
    "strip_code_fences",
]
