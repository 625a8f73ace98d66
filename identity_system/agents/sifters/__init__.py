"""Sifter agents for turning evidence into claims and auditing them.

- ClaimSynthesisAgent: EvidenceItem -> new or reinforced Claim
- ClaimAuditor: Claims -> ClaimIssue findings

All sifters inherit from BaseSifter and implement the sift() method.
"""

from identity_system.agents.sifters.base_sifter import BaseSifter
from identity_system.agents.sifters.quality import ClaimAuditor
from identity_system.agents.sifters.synthesis import ClaimSynthesisAgent

__all__ = [
    "BaseSifter",
    "ClaimAuditor",
    "ClaimSynthesisAgent",
]
