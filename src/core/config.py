"""
Centralised application settings loaded from environment / .env file.
"""
from __future__ import annotations

from pathlib import Path
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv

_ROOT = Path(__file__).resolve().parents[2]

# Load .env from project root (two levels up from this file)
load_dotenv(_ROOT / ".env")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # ── Postgres ─────────────────────────────────────────
    postgres_user: str = "erp"
    postgres_password: str = "erp_pw"
    postgres_db: str = "erp"
    postgres_host: str = "localhost"
    postgres_port: int = 5432

    # ── Query engine ─────────────────────────────────────
    allow_list_path: Path = _ROOT / "config" / "allow_list.yml"
    catalog_cache_ttl_seconds: float = 0.0  # 0 = look metadata up on every request
    catalog_cache_max_size: int = 1024
    query_timeout_ms: int = 10_000

    # ── App ──────────────────────────────────────────────
    api_port: int = 8000
    log_level: str = "INFO"
    cors_origins: list[str] = ["http://localhost:3000"]

    @property
    def database_url(self) -> str:
        return (
            f"postgresql://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )


@lru_cache
def get_settings() -> Settings:
    return Settings()
