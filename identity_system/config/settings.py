"""Application settings using Pydantic BaseSettings for environment variable management."""

from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """
    Global application settings loaded from environment variables.

    Attributes:
        gemini_api_key: Google Gemini API key (required for the live oracle)
        gemini_model: Gemini model used for synthesis decisions and grounding review
        embedding_model: Gemini embedding model used for claim label embeddings
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Log output format (json for production, console for dev)
        max_evidence_text_length: Evidence longer than this is skipped
        candidate_count: Number of candidate claims retrieved per evidence item
        synthesis_concurrency: Evidence items processed concurrently (1 = sequential)
        oracle_max_attempts: Attempts per oracle call before giving up
        duplicate_threshold: Jaro-Winkler similarity cutoff for duplicate labels
        max_claims_for_eval: Claims sampled for AI grounding review per audit
        weighted_confidence: Fold source weight and recency decay into recalculation
    """

    gemini_api_key: str = Field(default="", description="Google Gemini API key")
    gemini_model: str = Field(
        default="gemini-1.5-flash",
        description="Default Gemini model identifier"
    )
    embedding_model: str = Field(
        default="models/text-embedding-004",
        description="Gemini embedding model identifier"
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level"
    )
    log_format: str = Field(
        default="json",
        description="Log output format: json or console"
    )
    max_evidence_text_length: int = Field(
        default=5000,
        description="Evidence text longer than this is skipped"
    )
    candidate_count: int = Field(
        default=5,
        description="Candidate claims retrieved per evidence item"
    )
    synthesis_concurrency: int = Field(
        default=1,
        ge=1,
        le=8,
        description="Evidence items synthesized concurrently"
    )
    oracle_max_attempts: int = Field(
        default=3,
        ge=1,
        description="Attempts per oracle call (bounded retry)"
    )
    duplicate_threshold: float = Field(
        default=0.85,
        ge=0.0,
        le=1.0,
        description="Jaro-Winkler similarity cutoff for duplicate detection"
    )
    max_claims_for_eval: int = Field(
        default=5,
        description="Claims sampled for AI grounding review"
    )
    weighted_confidence: bool = Field(
        default=False,
        description="Apply source weight and recency decay during recalculation"
    )

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }


# Singleton instance - import this throughout the application
settings = Settings()
