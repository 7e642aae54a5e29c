"""Application configuration using pydantic-settings."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    # Database
    DATABASE_URL: str

    # Environment
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # CORS
    CORS_ORIGINS: str = "http://localhost:5173,http://localhost:3000"

    # Result cache
    RESULT_CACHE_TTL_DAYS: int = 30

    # Static validation limits
    RULE_MAX_DEPTH: int = 20
    RULE_MAX_COMPLEXITY: int = 100

    # Evaluation circuit breakers
    EVALUATION_MAX_DEPTH: int = 100
    EVALUATION_STEP_BUDGET: int = 10_000
    EVALUATION_TIMEOUT_MS: int = 5_000

    # Batch evaluation (1 = sequential)
    BATCH_CONCURRENCY: int = 1

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
    )

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]


# Global settings instance
settings = Settings()
