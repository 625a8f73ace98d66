"""Gemini API client implementing the LLM oracle and embedding contracts."""

import asyncio
from typing import List, Optional

import google.generativeai as genai
from google.generativeai.types.generation_types import BlockedPromptException
from loguru import logger

from identity_system.config.settings import settings
from identity_system.errors import OracleError, RetrievalError


class GeminiClient:
    """
    Google Gemini API client used as synthesis oracle and label embedder.

    Retries are applied by the caller (the synthesis agent wraps every
    oracle call in a bounded retry), so this client surfaces failures
    immediately as OracleError / RetrievalError.

    Attributes:
        model_name: Generative model used for decisions
        embedding_model: Embedding model used for claim labels
        temperature: Sampling temperature (0 for deterministic decisions)
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model_name: Optional[str] = None,
        embedding_model: Optional[str] = None,
        temperature: float = 0.0,
        max_output_tokens: int = 500,
    ):
        """
        Initialize Gemini client with API key from settings.

        Raises:
            ValueError: If API key is not configured
        """
        key = api_key or settings.gemini_api_key
        if not key:
            raise ValueError("GEMINI_API_KEY not configured in environment")

        genai.configure(api_key=key)

        self.model_name = model_name or settings.gemini_model
        self.embedding_model = embedding_model or settings.embedding_model
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens
        self.logger = logger.bind(component="GeminiClient")

        self.logger.info(
            f"Gemini client initialized with model {self.model_name}",
            embedding_model=self.embedding_model,
        )

    async def complete(self, prompt: str, system_prompt: Optional[str] = None) -> str:
        """
        Generate a completion for one prompt.

        Args:
            prompt: User prompt
            system_prompt: Optional system instruction

        Returns:
            Generated text (may be empty)

        Raises:
            OracleError: If the prompt is blocked or the API call fails
        """
        model = genai.GenerativeModel(
            self.model_name,
            system_instruction=system_prompt,
        )

        try:
            response = await model.generate_content_async(
                prompt,
                generation_config=genai.types.GenerationConfig(
                    temperature=self.temperature,
                    max_output_tokens=self.max_output_tokens,
                ),
            )
        except BlockedPromptException as e:
            self.logger.error(f"Prompt blocked by safety filters: {e}")
            raise OracleError(f"Prompt blocked: {e}") from e
        except Exception as e:
            raise OracleError(f"Gemini request failed: {e}") from e

        try:
            return response.text
        except ValueError:
            # No candidate parts (e.g. finish_reason=SAFETY); treated as empty output
            self.logger.warning("Gemini response had no text parts")
            return ""

    async def embed(self, text: str) -> List[float]:
        """
        Embed text with the configured embedding model.

        Raises:
            RetrievalError: If the embedding call fails
        """
        try:
            result = await asyncio.to_thread(
                genai.embed_content,
                model=self.embedding_model,
                content=text,
            )
        except Exception as e:
            raise RetrievalError(f"Embedding request failed: {e}") from e

        return list(result["embedding"])

    def count_tokens(self, text: str) -> int:
        """Count tokens in text for cost estimation."""
        model = genai.GenerativeModel(self.model_name)
        return model.count_tokens(text).total_tokens
