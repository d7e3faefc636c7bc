"""resolver.py — Tiered plant name resolution.

``TieredPlantResolver.resolve()`` walks the lookup tiers cheapest first and
stops at the first hit:

    START → LOCAL_LOOKUP → REMOTE_CACHE_LOOKUP → REMOTE_SEARCH → AI_SUGGEST
          → RESOLVED | NOT_FOUND

A hit in any lookup state goes straight to RESOLVED. AI_SUGGEST asks the
name suggester once and replays the three lookup states with the suggested
name and a stricter fuzzy threshold; the suggester is never asked twice.

Remote and AI calls are awaited one at a time, each bounded by a timeout.
A failed or timed-out call counts as a miss. Only malformed input raises;
an unknown plant is reported as ``ResolutionStatus.NOT_FOUND``.

Create one resolver per application and share it between requests. The
remote cache is a plain dict keyed by normalized name; concurrent writers
simply overwrite each other (last writer wins).
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, NamedTuple, Optional, TypeVar

from bloom.errors import InvalidQueryError
from care.care_lookup import FUZZY_THRESHOLD, LookupResult, PlantIndex, match_record
from data.records import MalformedRecordError, PlantRecord, SourceTier, normalize_name
from matching.similarity import rank_suggestions
from remote.ai_suggest import NameSuggester
from remote.plant_store import PlantStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Stricter bar for fuzzy matches of an AI-suggested name.
AI_FUZZY_THRESHOLD = 0.6

DEFAULT_TIER_TIMEOUT = 8.0
DEFAULT_SEARCH_LIMIT = 5

POPULAR_PLANTS: tuple[str, ...] = (
    "Rose", "Marigold", "Sunflower", "Tulip", "Jasmine",
    "Tomato", "Chili", "Brinjal", "Okra", "Cucumber",
    "Mango", "Banana", "Papaya", "Guava", "Lemon",
)
MAX_POPULAR = 10


class ResolutionState(str, Enum):
    START = "START"
    LOCAL_LOOKUP = "LOCAL_LOOKUP"
    REMOTE_CACHE_LOOKUP = "REMOTE_CACHE_LOOKUP"
    REMOTE_SEARCH = "REMOTE_SEARCH"
    AI_SUGGEST = "AI_SUGGEST"
    RESOLVED = "RESOLVED"
    NOT_FOUND = "NOT_FOUND"


class ResolutionStatus(str, Enum):
    RESOLVED = "RESOLVED"
    NOT_FOUND = "NOT_FOUND"


_NEXT_ON_MISS: dict[ResolutionState, ResolutionState] = {
    ResolutionState.START:               ResolutionState.LOCAL_LOOKUP,
    ResolutionState.LOCAL_LOOKUP:        ResolutionState.REMOTE_CACHE_LOOKUP,
    ResolutionState.REMOTE_CACHE_LOOKUP: ResolutionState.REMOTE_SEARCH,
    ResolutionState.REMOTE_SEARCH:       ResolutionState.AI_SUGGEST,
    ResolutionState.AI_SUGGEST:          ResolutionState.NOT_FOUND,
}

_TERMINAL = (ResolutionState.RESOLVED, ResolutionState.NOT_FOUND)


def next_state(state: ResolutionState, hit: bool) -> ResolutionState:
    """
    Pure transition function of the resolution state machine.

    START always moves to LOCAL_LOOKUP; any other non-terminal state moves
    to RESOLVED on a hit and to the next tier on a miss.

    Raises:
        ValueError: for a terminal state.
    """
    if state in _TERMINAL:
        raise ValueError(f"{state.value} is terminal")
    if state is ResolutionState.START:
        return ResolutionState.LOCAL_LOOKUP
    return ResolutionState.RESOLVED if hit else _NEXT_ON_MISS[state]


class TierHit(NamedTuple):
    record: PlantRecord
    suggested_name: Optional[str]
    tier: SourceTier


@dataclass(frozen=True)
class ResolutionResult:
    query: str
    status: ResolutionStatus
    matched_record: Optional[PlantRecord] = None
    source_tier: Optional[SourceTier] = None
    corrected_from: Optional[str] = None
    suggested_name: Optional[str] = None
    ai_assisted: bool = False
    trail: tuple[ResolutionState, ...] = ()

    @property
    def found(self) -> bool:
        return self.status is ResolutionStatus.RESOLVED

    @property
    def display_name(self) -> str:
        if self.suggested_name:
            return self.suggested_name
        return self.matched_record.name if self.matched_record else self.query

    def to_dict(self) -> dict:
        return {
            "query":          self.query,
            "status":         self.status.value,
            "matched_name":   self.matched_record.name if self.matched_record else None,
            "source_tier":    self.source_tier.value if self.source_tier else None,
            "corrected_from": self.corrected_from,
            "suggested_name": self.suggested_name,
            "ai_assisted":    self.ai_assisted,
            "trail":          [s.value for s in self.trail],
        }


class TieredPlantResolver:
    """
    Resolve free-text plant names against local, remote and AI tiers.

    Args:
        index:          Local dataset index (may be empty).
        store:          Remote record store, or ``None`` to skip remote tiers.
        suggester:      Name suggester, or ``None`` to skip the AI tier.
        tier_timeout:   Seconds allowed for each remote or AI call.
        search_limit:   ``limit`` passed to ``PlantStore.search``.
    """

    def __init__(
        self,
        index: PlantIndex,
        store: Optional[PlantStore] = None,
        suggester: Optional[NameSuggester] = None,
        tier_timeout: float = DEFAULT_TIER_TIMEOUT,
        search_limit: int = DEFAULT_SEARCH_LIMIT,
    ) -> None:
        self.index = index
        self.store = store
        self.suggester = suggester
        self.tier_timeout = tier_timeout
        self.search_limit = search_limit
        self._remote_cache: dict[str, PlantRecord] = {}

    # ── Remote cache ──────────────────────────────────────────────────────────

    @property
    def cached_records(self) -> list[PlantRecord]:
        return list(self._remote_cache.values())

    def cache_record(self, record: PlantRecord) -> None:
        self._remote_cache[record.key] = record

    async def warm_cache(self, page_size: int = 10) -> int:
        """Load the first page of remote records into the cache; returns the count."""
        if self.store is None:
            return 0
        try:
            page = await self._call("remote page", lambda: self.store.get_all(1, page_size))
        except MalformedRecordError as exc:
            logger.warning("Skipping remote cache warm-up: %s", exc)
            return 0
        if page is None:
            return 0
        for record in page.items:
            self.cache_record(record)
        logger.info("Cached %d remote plants.", len(page.items))
        return len(page.items)

    # ── Collaborator calls ────────────────────────────────────────────────────

    async def _call(self, label: str, factory: Callable[[], Awaitable[T]]) -> Optional[T]:
        try:
            return await asyncio.wait_for(factory(), timeout=self.tier_timeout)
        except MalformedRecordError:
            raise
        except asyncio.TimeoutError:
            logger.warning("%s timed out after %.1fs; treating as no result.", label, self.tier_timeout)
        except Exception as exc:
            logger.warning("%s failed (%s); treating as no result.", label, exc)
        return None

    # ── Tiers ─────────────────────────────────────────────────────────────────

    async def _try_state(
        self, state: ResolutionState, name: str, threshold: float
    ) -> Optional[TierHit]:
        if state is ResolutionState.LOCAL_LOOKUP:
            return self._hit(self.index.lookup(name, threshold), SourceTier.LOCAL)

        if state is ResolutionState.REMOTE_CACHE_LOOKUP:
            return self._hit(match_record(name, self.cached_records, threshold), SourceTier.REMOTE)

        if state is ResolutionState.REMOTE_SEARCH:
            if self.store is None:
                return None
            matches = await self._call(
                "remote search", lambda: self.store.search(name, self.search_limit)
            )
            if not matches:
                return None
            record = matches[0]
            self.cache_record(record)
            return TierHit(record, None, SourceTier.REMOTE)

        raise ValueError(f"{state.value} is not a lookup state")

    @staticmethod
    def _hit(result: LookupResult, tier: SourceTier) -> Optional[TierHit]:
        if result.record is None:
            return None
        return TierHit(result.record, result.suggested_name, tier)

    async def _walk_tiers(
        self, name: str, threshold: float, trail: list[ResolutionState]
    ) -> Optional[TierHit]:
        state = next_state(ResolutionState.START, hit=False)
        while state is not ResolutionState.AI_SUGGEST:
            trail.append(state)
            hit = await self._try_state(state, name, threshold)
            logger.debug("%s '%s': %s", state.value, name, "hit" if hit else "miss")
            state = next_state(state, hit is not None)
            if state is ResolutionState.RESOLVED:
                return hit
        return None

    # ── Public API ────────────────────────────────────────────────────────────

    async def resolve(self, query: str) -> ResolutionResult:
        """
        Resolve *query* to a plant record.

        Raises:
            InvalidQueryError: if *query* is empty or blank. No tier runs.
        """
        original = (query or "").strip()
        if not original:
            raise InvalidQueryError("Please enter a plant, fruit, or vegetable name.")

        trail: list[ResolutionState] = [ResolutionState.START]

        hit = await self._walk_tiers(original, FUZZY_THRESHOLD, trail)
        if hit is not None:
            corrected = (
                hit.suggested_name is not None
                and normalize_name(hit.suggested_name) != normalize_name(original)
            )
            return self._resolved(
                original,
                hit,
                trail,
                corrected_from=original if corrected else None,
                suggested_name=hit.suggested_name if corrected else None,
            )

        trail.append(ResolutionState.AI_SUGGEST)
        suggestion: Optional[str] = None
        if self.suggester is not None:
            suggestion = await self._call("AI suggestion", lambda: self.suggester.suggest(original))
            suggestion = (suggestion or "").strip() or None

        if suggestion is None or normalize_name(suggestion) == normalize_name(original):
            return self._not_found(original, trail)

        hit = await self._walk_tiers(suggestion, AI_FUZZY_THRESHOLD, trail)
        if hit is None:
            return self._not_found(original, trail)

        if hit.suggested_name is not None:
            display = hit.suggested_name
        elif hit.tier is SourceTier.REMOTE and normalize_name(hit.record.name) != normalize_name(suggestion):
            display = hit.record.name
        else:
            display = suggestion
        return self._resolved(
            original,
            hit,
            trail,
            corrected_from=original,
            suggested_name=display,
            ai_assisted=True,
        )

    def _resolved(
        self,
        query: str,
        hit: TierHit,
        trail: list[ResolutionState],
        corrected_from: Optional[str],
        suggested_name: Optional[str],
        ai_assisted: bool = False,
    ) -> ResolutionResult:
        trail.append(ResolutionState.RESOLVED)
        logger.info(
            "Resolved '%s' → '%s' (%s%s).",
            query,
            hit.record.name,
            hit.tier.value,
            ", AI-assisted" if ai_assisted else "",
        )
        return ResolutionResult(
            query=query,
            status=ResolutionStatus.RESOLVED,
            matched_record=hit.record,
            source_tier=hit.tier,
            corrected_from=corrected_from,
            suggested_name=suggested_name,
            ai_assisted=ai_assisted,
            trail=tuple(trail),
        )

    @staticmethod
    def _not_found(query: str, trail: list[ResolutionState]) -> ResolutionResult:
        trail.append(ResolutionState.NOT_FOUND)
        logger.info("No plant data found for '%s'.", query)
        return ResolutionResult(query=query, status=ResolutionStatus.NOT_FOUND, trail=tuple(trail))

    # ── Browsing helpers (no network) ─────────────────────────────────────────

    def popular_plants(self) -> list[str]:
        """Popular plant names resolvable from local data or the remote cache."""
        found: list[str] = []
        for name in POPULAR_PLANTS:
            hit = self.index.lookup(name)
            if hit.record is None:
                hit = match_record(name, self.cached_records)
            if hit.record is not None and hit.record.name not in found:
                found.append(hit.record.name)
        return found[:MAX_POPULAR]

    def suggest_names(self, query: str, limit: int = 5) -> list[str]:
        """Autocomplete over local names, cached remote names and popular names."""
        candidates = list(dict.fromkeys(
            [*self.index.names(), *(r.name for r in self.cached_records), *POPULAR_PLANTS]
        ))
        return rank_suggestions(query, candidates, limit)
