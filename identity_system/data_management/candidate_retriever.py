"""In-memory nearest-neighbor candidate retrieval over a user's claims.

Implements the retrieval contract used by the synthesis agent:

    find_candidates(embedding, user_id, count) -> ranked CandidateClaim list

Results are ranked by cosine similarity, descending, and never exceed
``count``. A vector database would implement the same coroutine.
"""

from typing import List, Protocol

from loguru import logger

from identity_system.data_management.claim_store import ClaimStore
from identity_system.data_management.schemas import CandidateClaim


class CandidateRetriever(Protocol):
    """Contract for nearest-neighbor claim lookup scoped to a user."""

    async def find_candidates(
        self,
        embedding: List[float],
        user_id: str,
        count: int,
    ) -> List[CandidateClaim]:
        ...


def cosine_similarity(vec_a: List[float], vec_b: List[float]) -> float:
    """Cosine similarity; 0.0 for mismatched dimensions or zero vectors."""
    if len(vec_a) != len(vec_b) or not vec_a:
        return 0.0

    dot_product = sum(a * b for a, b in zip(vec_a, vec_b))
    norm_a = sum(a * a for a in vec_a) ** 0.5
    norm_b = sum(b * b for b in vec_b) ** 0.5

    if norm_a == 0 or norm_b == 0:
        return 0.0

    return dot_product / (norm_a * norm_b)


class InMemoryCandidateRetriever:
    """
    Brute-force cosine retrieval over claims held in a ClaimStore.

    Claims without an embedding are never returned.

    Usage:
        retriever = InMemoryCandidateRetriever(store)
        candidates = await retriever.find_candidates(evidence.embedding, "user-1", 5)
    """

    def __init__(self, claim_store: ClaimStore):
        self.claim_store = claim_store
        self.logger = logger.bind(component="InMemoryCandidateRetriever")

    async def find_candidates(
        self,
        embedding: List[float],
        user_id: str,
        count: int,
    ) -> List[CandidateClaim]:
        if count <= 0 or not embedding:
            return []

        claims = await self.claim_store.list_claims(user_id)
        scored = []
        for claim in claims:
            if not claim.embedding:
                continue
            scored.append((cosine_similarity(embedding, claim.embedding), claim))

        scored.sort(key=lambda pair: pair[0], reverse=True)

        candidates = [
            CandidateClaim(
                id=claim.id,
                type=claim.type,
                label=claim.label,
                description=claim.description,
                confidence=claim.confidence,
                similarity=similarity,
            )
            for similarity, claim in scored[:count]
        ]

        self.logger.debug(
            f"Retrieved {len(candidates)} candidates",
            user_id=user_id,
            pool=len(claims),
        )
        return candidates
