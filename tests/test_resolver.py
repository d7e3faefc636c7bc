"""Tests for care/resolver.py — tier ordering, fallbacks and provenance."""

import pytest

from bloom.errors import InvalidQueryError
from care.care_lookup import PlantIndex
from care.resolver import (
    ResolutionState as S,
    ResolutionStatus,
    TieredPlantResolver,
    next_state,
)
from conftest import FakeSuggester, RecordingStore
from data.records import MalformedRecordError, SourceTier, from_remote_row


# ── Transition function ──

class TestNextState:
    def test_start_goes_local(self):
        assert next_state(S.START, hit=False) is S.LOCAL_LOOKUP
        assert next_state(S.START, hit=True) is S.LOCAL_LOOKUP

    @pytest.mark.parametrize("state", [S.LOCAL_LOOKUP, S.REMOTE_CACHE_LOOKUP, S.REMOTE_SEARCH])
    def test_hit_resolves(self, state):
        assert next_state(state, hit=True) is S.RESOLVED

    def test_miss_order(self):
        assert next_state(S.LOCAL_LOOKUP, hit=False) is S.REMOTE_CACHE_LOOKUP
        assert next_state(S.REMOTE_CACHE_LOOKUP, hit=False) is S.REMOTE_SEARCH
        assert next_state(S.REMOTE_SEARCH, hit=False) is S.AI_SUGGEST
        assert next_state(S.AI_SUGGEST, hit=False) is S.NOT_FOUND

    @pytest.mark.parametrize("state", [S.RESOLVED, S.NOT_FOUND])
    def test_terminal_states(self, state):
        with pytest.raises(ValueError):
            next_state(state, hit=False)


# ── Local tier ──

@pytest.mark.asyncio
async def test_local_hit_never_touches_remote_or_ai(small_index):
    store, ai = RecordingStore(), FakeSuggester("Rose")
    resolver = TieredPlantResolver(small_index, store=store, suggester=ai)

    result = await resolver.resolve("Marigold")

    assert result.status is ResolutionStatus.RESOLVED
    assert result.source_tier is SourceTier.LOCAL
    assert result.corrected_from is None
    assert result.trail == (S.START, S.LOCAL_LOOKUP, S.RESOLVED)
    assert store.search_calls == []
    assert ai.calls == []


@pytest.mark.asyncio
async def test_fuzzy_local_correction(bundled_index):
    resolver = TieredPlantResolver(bundled_index)

    result = await resolver.resolve("Merigold")

    assert result.matched_record.name == "Marigold"
    assert result.corrected_from == "Merigold"
    assert result.suggested_name == "Marigold"
    assert result.display_name == "Marigold"
    assert not result.ai_assisted


@pytest.mark.asyncio
async def test_blank_query_rejected_before_any_tier(small_index):
    store, ai = RecordingStore(), FakeSuggester("Rose")
    resolver = TieredPlantResolver(small_index, store=store, suggester=ai)

    with pytest.raises(InvalidQueryError):
        await resolver.resolve("   ")
    assert store.search_calls == []
    assert ai.calls == []


# ── Remote tiers ──

@pytest.mark.asyncio
async def test_remote_search_then_cache(remote_rows):
    store = RecordingStore(remote_rows)
    resolver = TieredPlantResolver(PlantIndex(), store=store)

    first = await resolver.resolve("lavender")
    assert first.source_tier is SourceTier.REMOTE
    assert first.matched_record.name == "Lavender"
    assert first.trail[-2:] == (S.REMOTE_SEARCH, S.RESOLVED)
    assert store.search_calls == [("lavender", 5)]

    second = await resolver.resolve("lavender")
    assert second.trail == (S.START, S.LOCAL_LOOKUP, S.REMOTE_CACHE_LOOKUP, S.RESOLVED)
    assert store.search_calls == [("lavender", 5)]

    assert (second.source_tier, second.matched_record.name) == (first.source_tier, first.matched_record.name)


@pytest.mark.asyncio
async def test_local_takes_precedence_over_remote(small_index):
    store = RecordingStore([{"id": 9, "name": "Rose", "bloom_harvest_time": "10 days"}])
    resolver = TieredPlantResolver(small_index, store=store)
    await resolver.warm_cache()

    result = await resolver.resolve("rose")

    assert result.source_tier is SourceTier.LOCAL
    assert result.matched_record.bloom_harvest_time == "2-3 months"


@pytest.mark.asyncio
async def test_warm_cache_avoids_search(remote_rows):
    store = RecordingStore(remote_rows)
    resolver = TieredPlantResolver(PlantIndex(), store=store)

    assert await resolver.warm_cache(page_size=2) == 2
    result = await resolver.resolve("Lavendar")

    assert result.matched_record.name == "Lavender"
    assert result.corrected_from == "Lavendar"
    assert store.search_calls == []


@pytest.mark.asyncio
async def test_warm_cache_failure_is_not_fatal(remote_rows):
    resolver = TieredPlantResolver(PlantIndex(), store=RecordingStore(remote_rows, fail=True))
    assert await resolver.warm_cache() == 0


class _NamelessRowStore(RecordingStore):
    async def get_all(self, page=1, page_size=10):
        return from_remote_row({"id": 1, "name": ""})


@pytest.mark.asyncio
async def test_warm_cache_skips_malformed_page(small_index):
    resolver = TieredPlantResolver(small_index, store=_NamelessRowStore())

    assert await resolver.warm_cache() == 0
    result = await resolver.resolve("Marigold")

    assert result.status is ResolutionStatus.RESOLVED
    assert result.source_tier is SourceTier.LOCAL
    assert resolver.cached_records == []


@pytest.mark.asyncio
async def test_remote_failure_advances_to_ai(small_index):
    store, ai = RecordingStore(fail=True), FakeSuggester("Marigold")
    resolver = TieredPlantResolver(small_index, store=store, suggester=ai)

    result = await resolver.resolve("genda phool")

    assert result.status is ResolutionStatus.RESOLVED
    assert result.source_tier is SourceTier.LOCAL
    assert result.ai_assisted
    assert result.corrected_from == "genda phool"
    assert result.suggested_name == "Marigold"
    assert ai.calls == ["genda phool"]
    assert result.trail == (
        S.START, S.LOCAL_LOOKUP, S.REMOTE_CACHE_LOOKUP, S.REMOTE_SEARCH,
        S.AI_SUGGEST, S.LOCAL_LOOKUP, S.RESOLVED,
    )


@pytest.mark.asyncio
async def test_remote_timeout_treated_as_miss(small_index):
    store, ai = RecordingStore(delay=1.0), FakeSuggester(None)
    resolver = TieredPlantResolver(small_index, store=store, suggester=ai, tier_timeout=0.05)

    result = await resolver.resolve("Xyzzyplant")

    assert result.status is ResolutionStatus.NOT_FOUND
    assert ai.calls == ["Xyzzyplant"]


@pytest.mark.asyncio
async def test_malformed_remote_row_propagates():
    class BrokenStore(RecordingStore):
        async def search(self, name, limit=5):
            return [from_remote_row({"id": 4, "name": "  "})]

    resolver = TieredPlantResolver(PlantIndex(), store=BrokenStore())
    with pytest.raises(MalformedRecordError):
        await resolver.resolve("anything")


# ── AI tier ──

@pytest.mark.asyncio
async def test_not_found_without_exception():
    ai = FakeSuggester(None)
    resolver = TieredPlantResolver(PlantIndex(), store=RecordingStore(), suggester=ai)

    result = await resolver.resolve("Xyzzyplant")

    assert result.status is ResolutionStatus.NOT_FOUND
    assert not result.found
    assert result.matched_record is None
    assert result.trail[-2:] == (S.AI_SUGGEST, S.NOT_FOUND)
    assert ai.calls == ["Xyzzyplant"]


@pytest.mark.asyncio
async def test_ai_failure_ends_not_found(small_index):
    resolver = TieredPlantResolver(small_index, suggester=FakeSuggester(fail=True))
    result = await resolver.resolve("Xyzzyplant")
    assert result.status is ResolutionStatus.NOT_FOUND


@pytest.mark.asyncio
async def test_ai_round_uses_stricter_threshold(small_index):
    # "Mxxxxold" scores exactly 0.5 against "Marigold"
    ai = FakeSuggester("Mxxxxold")
    resolver = TieredPlantResolver(small_index, suggester=ai)

    result = await resolver.resolve("zzz")

    assert result.status is ResolutionStatus.NOT_FOUND
    assert ai.calls == ["zzz"]


@pytest.mark.asyncio
async def test_ai_suggestion_equal_to_query_skips_second_round(small_index):
    ai = FakeSuggester("XYZZYPLANT")
    resolver = TieredPlantResolver(small_index, suggester=ai)

    result = await resolver.resolve("Xyzzyplant")

    assert result.status is ResolutionStatus.NOT_FOUND
    assert result.trail.count(S.LOCAL_LOOKUP) == 1


@pytest.mark.asyncio
async def test_ai_suggestion_resolved_by_remote_search(remote_rows):
    store, ai = RecordingStore(remote_rows), FakeSuggester("adenium rose")
    resolver = TieredPlantResolver(PlantIndex(), store=store, suggester=ai)

    # "adenium rose" misses; the store has no such name
    result = await resolver.resolve("adenium")
    assert result.status is ResolutionStatus.NOT_FOUND

    ai.answer = "Desert Rose"
    result = await resolver.resolve("adenium")
    assert result.status is ResolutionStatus.RESOLVED
    assert result.source_tier is SourceTier.REMOTE
    assert result.suggested_name == "Desert Rose"
    assert result.corrected_from == "adenium"
    assert len(ai.calls) == 2


# ── Browsing helpers ──

def test_popular_plants(small_index):
    resolver = TieredPlantResolver(small_index)
    assert resolver.popular_plants() == ["Rose", "Marigold", "Tomato"]


def test_suggest_names_includes_cached_remote(small_index):
    resolver = TieredPlantResolver(small_index)
    resolver.cache_record(from_remote_row({"name": "Rosemary"}))
    suggestions = resolver.suggest_names("ros")
    assert suggestions[:2] == ["Rose", "Rosemary"]
