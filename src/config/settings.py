import os
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Empty means the in-memory impression store
    DATABASE_URL: Optional[str] = os.getenv("DATABASE_URL") or None
    DB_STATEMENT_TIMEOUT_MS: int = 2000

    # Trending query
    TRENDING_DEFAULT_LIMIT: int = 5
    TRENDING_MAX_LIMIT: int = 50
    TRENDING_CACHE_TTL_SECONDS: float = 30.0
    TRENDING_SCORING_MODE: str = "count"  # "count" | "decay"
    TRENDING_DECAY_LAMBDA_PER_HOUR: float = 0.1

    # Bounded waits on collaborators
    STORE_TIMEOUT_SECONDS: float = 2.0
    METADATA_TIMEOUT_SECONDS: float = 2.0
    METADATA_PROVIDER: str = "memory"  # "memory" | "dexscreener"
    DEXSCREENER_BASE_URL: str = "https://api.dexscreener.com"
    DEGRADE_ON_METADATA_OUTAGE: bool = True

    # Retention
    IMPRESSION_RETENTION_DAYS: int = 30
    RETENTION_PRUNE_INTERVAL_SECONDS: float = 3600.0

    LOG_LEVEL: str = "INFO"
    HOST: str = "0.0.0.0"
    PORT: int = 8000


settings = Settings()
