"""config.py — Environment-driven settings for the API and CLI.

Values are read from the process environment (and a local ``.env`` file, if
present) when ``get_settings()`` is called. Nothing here opens a connection;
``api.py`` and ``bloom_calc.py`` build the collaborators from these values.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from care.care_lookup import DEFAULT_DATABASE_PATH

load_dotenv()


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    return float(raw) if raw not in (None, "") else default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    return int(raw) if raw not in (None, "") else default


@dataclass(frozen=True)
class Settings:
    plants_database_path: Path = DEFAULT_DATABASE_PATH

    # Remote record store (Supabase)
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    supabase_table: str = "plants"

    # Name suggestions (any OpenAI-compatible chat endpoint)
    ai_api_key: Optional[str] = None
    ai_base_url: str = "https://api.perplexity.ai"
    ai_model: str = "sonar-pro"

    # Resolution
    tier_timeout_seconds: float = 8.0
    remote_search_limit: int = 5
    remote_warm_page_size: int = 10

    log_level: str = "INFO"

    @property
    def remote_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_key)

    @property
    def ai_configured(self) -> bool:
        return bool(self.ai_api_key)


def get_settings() -> Settings:
    return Settings(
        plants_database_path=Path(os.getenv("PLANTS_DATABASE_PATH") or DEFAULT_DATABASE_PATH),
        supabase_url=os.getenv("SUPABASE_URL") or None,
        supabase_key=os.getenv("SUPABASE_KEY") or None,
        supabase_table=os.getenv("SUPABASE_TABLE", "plants"),
        ai_api_key=os.getenv("AI_API_KEY") or os.getenv("PERPLEX_API") or None,
        ai_base_url=os.getenv("AI_BASE_URL", "https://api.perplexity.ai"),
        ai_model=os.getenv("AI_MODEL", "sonar-pro"),
        tier_timeout_seconds=_env_float("TIER_TIMEOUT_SECONDS", 8.0),
        remote_search_limit=_env_int("REMOTE_SEARCH_LIMIT", 5),
        remote_warm_page_size=_env_int("REMOTE_WARM_PAGE_SIZE", 10),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )
