"""wiring.py — Build the shared resolver from ``Settings``.

Both entry points (``api.py`` and ``bloom_calc.py``) call ``build_resolver()``
once at startup and pass the resulting object to every request.
"""
from __future__ import annotations

import logging

from care.care_lookup import PlantIndex
from care.resolver import TieredPlantResolver
from config import Settings
from remote.ai_suggest import ChatNameSuggester
from remote.plant_store import SupabasePlantStore

logger = logging.getLogger(__name__)


def build_resolver(settings: Settings, *, remote: bool = True, ai: bool = True) -> TieredPlantResolver:
    """
    Load the local index and attach whichever collaborators are configured.

    Args:
        settings: Application settings.
        remote:   Attach the Supabase store when credentials are present.
        ai:       Attach the chat name suggester when an API key is present.
    """
    index = PlantIndex.from_file(settings.plants_database_path)

    store = None
    if remote and settings.remote_configured:
        try:
            store = SupabasePlantStore.from_credentials(
                settings.supabase_url, settings.supabase_key, settings.supabase_table
            )
        except Exception:
            logger.exception("Failed to create the Supabase client; remote tiers disabled.")
    elif remote:
        logger.info("SUPABASE_URL / SUPABASE_KEY not set; remote tiers disabled.")

    suggester = None
    if ai and settings.ai_configured:
        suggester = ChatNameSuggester(
            api_key=settings.ai_api_key,
            base_url=settings.ai_base_url,
            model=settings.ai_model,
        )
    elif ai:
        logger.info("AI_API_KEY not set; AI name suggestions disabled.")

    return TieredPlantResolver(
        index,
        store=store,
        suggester=suggester,
        tier_timeout=settings.tier_timeout_seconds,
        search_limit=settings.remote_search_limit,
    )
