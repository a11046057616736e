from pydantic_settings import BaseSettings
from pydantic import model_validator
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Environment variables can come from:
    - docker-compose.yml environment section
    - .env file (for secrets like API keys)
    - System environment

    DATABASE_URL wins over the POSTGRES_* components when both are set.
    """

    # Environment
    environment: str = "development"

    # PostgreSQL
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_user: str = "curator_user"
    postgres_password: str = "curator_pass"
    postgres_db: str = "curator"
    database_url: Optional[str] = None

    # Redis (job queue, status ledger, suggestion cache)
    redis_url: str = "redis://localhost:6379"

    # OpenAI
    openai_api_key: str = ""
    analysis_model: str = "gpt-4o-mini"
    synthesis_model: str = "gpt-4o"
    embedding_model: str = "text-embedding-3-small"
    llm_timeout: float = 60.0

    # Extraction
    fetch_timeout: float = 10.0

    # Workers (seconds)
    content_poll_interval: float = 5.0
    summary_poll_interval: float = 10.0
    max_backoff_interval: float = 300.0

    # Redis TTLs (seconds)
    job_status_ttl: int = 3600
    job_meta_ttl: int = 86400
    suggestion_ttl: int = 3600

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"  # Ignore extra env vars

    @model_validator(mode='after')
    def construct_database_url(self) -> 'Settings':
        """Construct database URL from components if not explicitly set"""
        if not self.database_url:
            self.database_url = (
                f"postgresql://{self.postgres_user}:{self.postgres_password}"
                f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
            )
        return self


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
