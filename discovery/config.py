"""
config.py – Settings loaded from the environment (.env).
One immutable `settings` instance shared by the app.
"""
import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./discovery.db")
    default_radius_km: float = _float_env("DEFAULT_RADIUS_KM", 7.0)
    fallback_radius_km: float = _float_env("FALLBACK_RADIUS_KM", 15.0)
    fallback_min_results: int = int(_float_env("FALLBACK_MIN_RESULTS", 5))
    gemini_api_key: str = os.getenv("GEMINI_API_KEY", "")
    gemini_model: str = os.getenv("GEMINI_MODEL", "gemini-2.0-flash")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")


settings = Settings()
