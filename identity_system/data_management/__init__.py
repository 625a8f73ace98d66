"""Data management package for the identity claim system.

Provides storage adapters and schemas for:
- Claims, evidence links and quality issues
- Candidate retrieval over stored claim embeddings

Storage adapters:
- ClaimStore: User-scoped claim graph persistence
- InMemoryCandidateRetriever: Cosine nearest-neighbor lookup over a ClaimStore
"""

from identity_system.data_management.claim_store import ClaimStore
from identity_system.data_management.candidate_retriever import (
    CandidateRetriever,
    InMemoryCandidateRetriever,
)

__all__ = [
    "ClaimStore",
    "CandidateRetriever",
    "InMemoryCandidateRetriever",
]
