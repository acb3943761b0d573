from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="GATEVAULT_",
        extra="ignore",
    )

    # ─────────── APP ───────────
    app_name: str = "GateVault Event Financing Ledger"
    environment: str = "dev"
    log_level: str = "INFO"

    # ─────────── API ───────────
    api_prefix: str = "/api/v1"
    request_id_header: str = "X-Request-Id"

    # ─────────── LEDGER STORE ───────────
    store_backend: str = "memory"  # memory | sql
    database_url: str = "sqlite+pysqlite:///./gatevault.db"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
