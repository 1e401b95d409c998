from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConsolidationSettings(BaseSettings):
    """Runtime configuration, read from JOURNAL_MEMORY_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="JOURNAL_MEMORY_", env_file=".env", extra="ignore"
    )

    # Similarity search
    similarity_threshold: float = Field(default=0.5, ge=0.0, le=1.0)
    similarity_limit: int = Field(default=5, ge=1)
    sweep_similarity_threshold: float = Field(default=0.85, ge=0.0, le=1.0)

    # Pipeline
    max_workers: int = Field(default=3, ge=1)
    extraction_timeout_seconds: float = 30.0
    embedding_timeout_seconds: float = 10.0
    decision_timeout_seconds: float = 30.0
    pipeline_timeout_seconds: float = 60.0
    min_candidate_confidence: float = Field(default=0.5, ge=0.0, le=1.0)

    # Storage
    database_url: str = "sqlite:///journal_memory.db"

    # Collaborators
    embedding_model: str = "text-embedding-3-small"
    embedding_dimensions: Optional[int] = None
    decision_model: str = "gpt-4o-mini"