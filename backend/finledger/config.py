"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (never hardcoded)
    - get_settings() is cached (lru_cache) — single instance per process
    - Model call ceilings are explicit: main answer and confirmation each have a timeout

Design Decisions:
    - Defaults provided for all non-secret settings: runs out-of-the-box on SQLite
    - Empty chroma_url / embedding_url select the dependency-free in-process backends
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database (key-value ledger persistence)
    database_url: str = "sqlite+aiosqlite:///./finledger.db"

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosted Postgres URLs come as postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 20
    database_max_overflow: int = 10

    # Anthropic
    anthropic_api_key: str = "sk-ant-placeholder"
    anthropic_max_retries: int = 3
    anthropic_timeout_seconds: int = 60
    anthropic_base_delay_ms: int = 1000
    anthropic_max_delay_ms: int = 60_000

    # Interpreter
    agent_model: str = "claude-sonnet-4-5"
    inference_timeout_seconds: float = 30.0
    confirmation_timeout_seconds: float = 30.0
    answer_max_tokens: int = 512
    confirmation_max_tokens: int = 150
    memory_max_messages: int = 50
    context_turns: int = 5

    # Retrieval
    embedding_url: str = ""
    embedding_model: str = "nomic-embed-text"
    embedding_dimensions: int = 256
    embedding_timeout_seconds: float = 10.0
    chroma_url: str = ""
    chroma_api_key: str | None = None
    chroma_tenant: str | None = None
    chroma_database: str | None = None
    chroma_collection: str = "finance-knowledge"

    # Ledger bootstrap
    seed_sample_data: bool = False

    # API
    cors_origins: list[str] = ["http://localhost:5173"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
