"""
Casket Ledger — Configuration
All settings are read from environment variables (or .env file).
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # ── Service ──────────────────────────────────────────────────────
    SERVICE_NAME: str = "casket-ledger"
    SERVICE_VERSION: str = "1.0.0"
    DEBUG: bool = False
    HOST: str = "0.0.0.0"
    PORT: int = 8010
    LOG_LEVEL: str = "INFO"

    # ── Ledger database (PostgreSQL) ─────────────────────────────────
    POSTGRES_HOST: str = "ledger-db"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "ledger_db"
    POSTGRES_USER: str = "ledger_user"
    POSTGRES_PASSWORD: str = "ledger_pass"

    # Full URL override, e.g. sqlite+aiosqlite:///./ledger.db for local runs
    DATABASE_URL: str | None = None

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    # ── Redis (idempotency cache) ────────────────────────────────────
    REDIS_HOST: str = "redis"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0
    REDIS_PASSWORD: str = ""

    @property
    def redis_url(self) -> str:
        if self.REDIS_PASSWORD:
            return f"redis://:{self.REDIS_PASSWORD}@{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"

    # ── Versioned writes ─────────────────────────────────────────────
    OPT_LOCK_MAX_RETRIES: int = 5         # attempts before a 409 concurrency_conflict
    OPT_LOCK_BASE_DELAY_MS: int = 50      # doubled after every lost race
    OPT_LOCK_MAX_DELAY_MS: int = 1000
    OPT_LOCK_JITTER_MS: int = 50

    # ── Idempotency ──────────────────────────────────────────────────
    IDEMPOTENCY_ENABLED: bool = True
    IDEMPOTENCY_KEY_TTL_SECONDS: int = 86400

    # ── Order triage ─────────────────────────────────────────────────
    ORDER_URGENT_DAYS: int = 3            # stock orders, by expected delivery
    SPECIAL_ORDER_URGENT_DAYS: int = 7    # special orders, by service date

    # ── Observability ────────────────────────────────────────────────
    METRICS_ENABLED: bool = True
    HEALTH_CHECK_TIMEOUT: float = 5.0     # seconds, also the Redis socket timeout


@lru_cache()
def get_settings() -> Settings:
    return Settings()
