"""
Pytest configuration and shared fixtures for the bloom calculator tests.
"""

import os
import sys

import pytest

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

os.environ.setdefault("LOG_LEVEL", "WARNING")

from care.care_lookup import PlantIndex  # noqa: E402
from data.records import PlantRecord, SourceTier  # noqa: E402
from remote.plant_store import InMemoryPlantStore  # noqa: E402


class RecordingStore(InMemoryPlantStore):
    """In-memory store that records calls and can fail or stall on demand."""

    def __init__(self, rows=(), fail=False, delay=0.0):
        super().__init__(rows)
        self.fail = fail
        self.delay = delay
        self.search_calls = []
        self.page_calls = []

    async def search(self, name, limit=5):
        self.search_calls.append((name, limit))
        if self.delay:
            import asyncio
            await asyncio.sleep(self.delay)
        if self.fail:
            raise ConnectionError("plant store unreachable")
        return await super().search(name, limit)

    async def get_all(self, page=1, page_size=10):
        self.page_calls.append((page, page_size))
        if self.fail:
            raise ConnectionError("plant store unreachable")
        return await super().get_all(page, page_size)


class FakeSuggester:
    def __init__(self, answer=None, fail=False):
        self.answer = answer
        self.fail = fail
        self.calls = []

    async def suggest(self, raw_name):
        self.calls.append(raw_name)
        if self.fail:
            raise TimeoutError("AI service down")
        return self.answer


def local(name, **fields):
    return PlantRecord(name=name, source_tier=SourceTier.LOCAL, **fields)


@pytest.fixture
def bundled_index():
    """Index over the shipped data/PlantsDatabase.json."""
    return PlantIndex.from_file()


@pytest.fixture
def small_index():
    return PlantIndex([
        local("Marigold", bloom_harvest_time="50-60 days", care_instructions="Deadhead spent flowers"),
        local("Rose", bloom_harvest_time="2-3 months"),
        local("Tomato", bloom_harvest_time="60-80 days"),
        local("Hibiscus", region="Tropical India", season="Year-round"),
    ])


@pytest.fixture
def remote_rows():
    return [
        {"id": 1, "name": "Lavender", "bloom_harvest_time": "90-120 days", "care_instructions": "Avoid overwatering"},
        {"id": 2, "name": "Desert Rose", "bloom_harvest_time": "4 months", "image": " /img/adenium.jpg "},
        {"id": 3, "name": "Curry Leaf", "growing_months": "March, April", "region": None},
    ]
