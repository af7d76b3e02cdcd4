"""Runtime settings read from the environment (and an optional .env file)."""
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes")


@dataclass(frozen=True)
class Settings:
    db_url: str
    api_key: Optional[str]
    frontend_origin: str
    dedup_window_hours: int
    scanner_window_minutes: int
    geolocation_enabled: bool
    geolocation_url: str
    geolocation_timeout_sec: float


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings(
        db_url=os.getenv("DB_URL", "sqlite:///db.sqlite"),
        api_key=os.getenv("API_KEY") or None,
        frontend_origin=os.getenv("FRONTEND_ORIGIN", "http://localhost:3000"),
        dedup_window_hours=int(os.getenv("DEDUP_WINDOW_HOURS", "24")),
        scanner_window_minutes=int(os.getenv("SCANNER_WINDOW_MINUTES", "10")),
        geolocation_enabled=_env_bool("GEOLOCATION_ENABLED", True),
        geolocation_url=os.getenv("GEOLOCATION_URL", "https://ipapi.co/{address}/json/"),
        geolocation_timeout_sec=float(os.getenv("GEOLOCATION_TIMEOUT_SEC", "1.0")),
    )
