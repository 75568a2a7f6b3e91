"""
Application configuration using pydantic-settings.

Supports swappable embedding and LLM providers via environment variables.
Use the section prefix for nested settings, e.g. EMBEDDING__PROVIDER=openai
or ASK__ENABLE_VECTOR_RAG=true.

The ask core never reads this module directly: callers resolve a TierConfig
via Settings.tier_config() and pass plain values in.
"""

from functools import lru_cache
from enum import Enum
from typing import Optional, List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from portfolio_ask.schemas.ask import TierConfig


class TimeoutSettings(BaseSettings):
    """Timeout configuration for external services."""

    model_config = SettingsConfigDict(
        env_prefix="TIMEOUT__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    llm_seconds: float = 30.0        # Completion API timeout
    embedding_seconds: float = 15.0  # Embedding API timeout
    db_seconds: float = 10.0         # Vector store query timeout


class EmbeddingProvider(str, Enum):
    """Supported embedding providers."""
    OPENAI = "openai"
    HUGGINGFACE = "huggingface"


class EmbeddingSettings(BaseSettings):
    """Swappable embedding provider configuration."""

    model_config = SettingsConfigDict(
        env_prefix="EMBEDDING__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    provider: EmbeddingProvider = EmbeddingProvider.OPENAI
    model: str = "text-embedding-3-small"
    dimension: int = 1536
    api_key: str = ""  # Falls back to LLM__API_KEY for openai


class LLMProvider(str, Enum):
    """Supported LLM providers."""
    OPENAI = "openai"
    GEMINI = "gemini"


class LLMSettings(BaseSettings):
    """Swappable LLM provider configuration.

    An empty api_key is a valid state: the LLM tiers are simply disabled.
    """

    model_config = SettingsConfigDict(
        env_prefix="LLM__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    provider: LLMProvider = LLMProvider.OPENAI
    model: str = "gpt-4o-mini"
    api_key: str = ""


class AskSettings(BaseSettings):
    """Knobs for retrieval, ranking and answer generation."""

    model_config = SettingsConfigDict(
        env_prefix="ASK__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    enable_llm: bool = False
    enable_vector_rag: bool = False

    top_k: int = 8
    candidates_k: int = 24
    max_per_doc: int = 3
    min_cosine_similarity: Optional[float] = None

    max_tokens: int = 450
    temperature: float = 0.2
    stream_chunk_size: int = 48

    website_case_study_slug: str = "portfolio-website"
    content_path: str = "data/portfolio.json"
    private_profile_paths: List[str] = Field(default_factory=list)

    @field_validator("top_k")
    @classmethod
    def clamp_top_k(cls, v: int) -> int:
        return min(12, max(3, v))

    @field_validator("candidates_k")
    @classmethod
    def clamp_candidates_k(cls, v: int) -> int:
        return min(60, max(12, v))

    @field_validator("max_per_doc")
    @classmethod
    def clamp_max_per_doc(cls, v: int) -> int:
        return min(6, max(1, v))

    @field_validator("stream_chunk_size")
    @classmethod
    def validate_stream_chunk_size(cls, v: int) -> int:
        if v < 1:
            raise ValueError("stream_chunk_size must be positive")
        return v

    @property
    def effective_candidates_k(self) -> int:
        """Candidate pool size, never smaller than the final selection."""
        return max(self.top_k, self.candidates_k)

    @property
    def website_doc_id(self) -> str:
        return f"case_study:{self.website_case_study_slug}"


class IngestSettings(BaseSettings):
    """Re-index (ingestion) configuration."""

    model_config = SettingsConfigDict(
        env_prefix="INGEST__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    chunk_size: int = 1200
    chunk_overlap: int = 150
    embed_batch_size: int = 32
    prune_missing: bool = False
    reindex_token: str = ""  # Empty disables the /reindex endpoint


class OpikSettings(BaseSettings):
    """Opik observability configuration."""

    model_config = SettingsConfigDict(
        env_prefix="OPIK_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    enabled: bool = False
    api_key: str = ""
    workspace: str = ""
    project_name: str = "portfolio-ask"


class DBOSSettings(BaseSettings):
    """DBOS configuration."""

    model_config = SettingsConfigDict(
        env_prefix="DBOS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    system_database_url: str = ""
    conductor_key: str = ""
    conductor_url: str = ""


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # App Settings
    log_level: str = "INFO"
    json_logs: bool = False  # Set to True for JSON output in production

    # Vector store (pgvector). Empty means "no vector database configured".
    database_url: str = ""

    # Nested settings
    embedding: EmbeddingSettings = Field(default_factory=EmbeddingSettings)
    llm: LLMSettings = Field(default_factory=LLMSettings)
    ask: AskSettings = Field(default_factory=AskSettings)
    ingest: IngestSettings = Field(default_factory=IngestSettings)
    opik: OpikSettings = Field(default_factory=OpikSettings)
    timeout: TimeoutSettings = Field(default_factory=TimeoutSettings)
    dbos: DBOSSettings = Field(default_factory=DBOSSettings)

    @property
    def embedding_api_key(self) -> str:
        return self.embedding.api_key or self.llm.api_key

    def tier_config(self) -> TierConfig:
        """Resolve feature flags and credentials into the core's tier switches."""
        llm_enabled = self.ask.enable_llm and bool(self.llm.api_key)
        vector_enabled = (
            llm_enabled
            and self.ask.enable_vector_rag
            and bool(self.database_url)
        )
        return TierConfig(vector_enabled=vector_enabled, llm_enabled=llm_enabled)


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
