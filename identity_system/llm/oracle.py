"""Contracts for the external LLM oracle and embedding provider.

The synthesis agent and grounding evaluator depend only on these
protocols, so a deterministic test double or another provider can be
injected in place of GeminiClient.
"""

from typing import List, Optional, Protocol


class LLMOracle(Protocol):
    """Free text in, free text out (expected to contain JSON)."""

    async def complete(self, prompt: str, system_prompt: Optional[str] = None) -> str:
        ...


class EmbeddingProvider(Protocol):
    """Fixed-dimension embedding for a piece of text."""

    async def embed(self, text: str) -> List[float]:
        ...
