from __future__ import annotations

from functools import cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

PROJECT_ROOT = Path(__file__).resolve().parents[1]
ARTIFACTS_DIR = PROJECT_ROOT / "artifacts"
DB_FILE = ARTIFACTS_DIR / "pacaprints_ops.db"


class AppSettings(BaseSettings):
    supabase_url: str = ""
    supabase_key: str = ""
    supabase_timeout: float = 10.0
    database_url: str = f"sqlite:///{DB_FILE}"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    @property
    def use_supabase(self) -> bool:
        return bool(self.supabase_url and self.supabase_key)


@cache
def config() -> AppSettings:
    return AppSettings()
