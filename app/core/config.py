from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="allow",
    )

    PORT: int = 8000
    APP_NAME: str = "Steam AI Reco"
    APP_ENV: Literal["development", "production", "test"] = "production"
    HOST_NAME: str = "http://localhost:8000"

    # Comma separated. When both are empty every origin is accepted.
    ALLOWED_ORIGINS: str = ""
    DEV_ORIGINS: str = ""

    REDIS_URL: str = "redis://localhost:6379/0"
    # Maximum number of connections Redis client will open per process
    REDIS_MAX_CONNECTIONS: int = 20

    # Steam Web API
    STEAM_API_KEY: str | None = None
    STEAM_API_BASE_URL: str = "https://api.steampowered.com"
    STEAM_CACHE_TTL_SECONDS: int = 3600
    COMPLETION_FETCH_LIMIT: int = 12

    # Catalog dataset, first readable path wins
    CATALOG_PATHS: list[str] = [
        "data/games.min.json.gz",
        "data/games.mock.json",
        "data/games.json",
        "data/games.json.gz",
    ]
    DEFAULT_PRICE_CEILING: float = 60.0

    # AI ranking (OpenRouter chat completions)
    RANKING_ENABLED: bool = True
    OPENROUTER_API_KEY: str | None = None
    OPENROUTER_BASE_URL: str = "https://openrouter.ai/api/v1"
    RANKING_PRIMARY_MODEL: str = "meta-llama/llama-3.3-70b-instruct:free"
    RANKING_FALLBACK_MODEL: str = "deepseek/deepseek-r1"
    RANKING_MAX_TOKENS: int = 220
    RANKING_TEMPERATURE: float = 0.4
    RANKING_TIMEOUT_SECONDS: float = 60.0
    RANKING_VARIANT: Literal["titles", "candidates"] = "titles"

    # Caches and quotas
    RECOMMENDATION_CACHE_TTL_SECONDS: int = 86400  # 24 hours
    REROLL_DAILY_LIMIT: int = 3
    EXPLAIN_CACHE_TTL_SECONDS: int = 900  # 15 minutes
    HISTORY_LIMIT: int = 50

    # Edge protection (process local, per instance)
    RATE_LIMIT_MAX: int = 500
    RATE_LIMIT_WINDOW_SECONDS: int = 3600
    RATE_LIMIT_MAX_IDENTITIES: int = 10000
    QUEUE_WINDOW_SECONDS: int = 30
    QUEUE_MAX_WAITING: int = 5

    @property
    def ranking_configured(self) -> bool:
        return self.RANKING_ENABLED and bool(self.OPENROUTER_API_KEY)

    @property
    def origin_allowlist(self) -> list[str]:
        raw = f"{self.ALLOWED_ORIGINS},{self.DEV_ORIGINS}"
        return [o.strip() for o in raw.split(",") if o.strip()]


settings = Settings()
