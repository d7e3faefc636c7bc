"""plant_store.py — Read access to the remote plant record store.

The surrounding application owns full CRUD on the ``plants`` table; the
resolver only needs two reads, described by the ``PlantStore`` protocol:

* ``search(name, limit)`` — records whose name matches *name*.
* ``get_all(page, page_size)`` — one page of records, newest first.

``SupabasePlantStore`` talks to the hosted table. ``InMemoryPlantStore``
serves a fixed list, for the CLI without credentials and for tests.
"""
from __future__ import annotations

import asyncio
import logging
import math
from dataclasses import dataclass
from typing import Any, Iterable, Protocol

from supabase import Client, create_client

from data.records import PlantRecord, from_remote_row, normalize_name

logger = logging.getLogger(__name__)

PLANT_COLUMNS = (
    "id, name, region, growing_months, season, soil_requirements, "
    "bloom_harvest_time, sunlight_needs, care_instructions, image, plant_type"
)


@dataclass(frozen=True)
class Page:
    items: list[PlantRecord]
    total: int
    page: int
    page_size: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.page_size) if self.page_size else 0

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages


class PlantStore(Protocol):
    async def search(self, name: str, limit: int = 5) -> list[PlantRecord]: ...

    async def get_all(self, page: int = 1, page_size: int = 10) -> Page: ...


def escape_like(text: str) -> str:
    """Escape LIKE wildcards so *text* matches literally."""
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class SupabasePlantStore:
    """
    ``PlantStore`` backed by a Supabase (PostgREST) table.

    The supabase client is synchronous, so each query runs in a worker thread
    to keep the event loop free.

    Args:
        client: Configured supabase ``Client``.
        table:  Table holding plant rows.
    """

    def __init__(self, client: Client, table: str = "plants") -> None:
        self._client = client
        self._table = table

    @classmethod
    def from_credentials(cls, url: str, key: str, table: str = "plants") -> "SupabasePlantStore":
        return cls(create_client(url, key), table)

    def _search_sync(self, name: str, limit: int) -> list[dict[str, Any]]:
        name = escape_like(name)
        # Case-insensitive exact match first, then a partial match.
        exact = (
            self._client.table(self._table)
            .select(PLANT_COLUMNS)
            .ilike("name", name)
            .limit(limit)
            .execute()
        )
        if exact.data:
            return exact.data

        partial = (
            self._client.table(self._table)
            .select(PLANT_COLUMNS)
            .ilike("name", f"%{name}%")
            .limit(limit)
            .execute()
        )
        return partial.data or []

    def _page_sync(self, page: int, page_size: int) -> tuple[list[dict[str, Any]], int]:
        start = (page - 1) * page_size
        rows = (
            self._client.table(self._table)
            .select(PLANT_COLUMNS)
            .order("created_at", desc=True)
            .range(start, start + page_size - 1)
            .execute()
        )
        counted = (
            self._client.table(self._table)
            .select("id", count="exact", head=True)
            .execute()
        )
        return rows.data or [], counted.count or 0

    async def search(self, name: str, limit: int = 5) -> list[PlantRecord]:
        query = (name or "").strip()
        if not query:
            return []
        rows = await asyncio.to_thread(self._search_sync, query, limit)
        logger.debug("Remote search '%s' returned %d row(s).", query, len(rows))
        return [from_remote_row(row) for row in rows]

    async def get_all(self, page: int = 1, page_size: int = 10) -> Page:
        page = max(page, 1)
        rows, total = await asyncio.to_thread(self._page_sync, page, page_size)
        return Page([from_remote_row(row) for row in rows], total, page, page_size)


class InMemoryPlantStore:
    """
    ``PlantStore`` over a fixed list of remote-shaped rows.

    ``search`` mirrors the Supabase behaviour: exact (case-insensitive) names
    first, otherwise names containing the query.
    """

    def __init__(self, rows: Iterable[dict[str, Any]] = ()) -> None:
        self._records = [from_remote_row(row) for row in rows]

    async def search(self, name: str, limit: int = 5) -> list[PlantRecord]:
        needle = normalize_name(name)
        if not needle:
            return []
        exact = [r for r in self._records if r.key == needle]
        if exact:
            return exact[:limit]
        return [r for r in self._records if needle in r.key][:limit]

    async def get_all(self, page: int = 1, page_size: int = 10) -> Page:
        page = max(page, 1)
        start = (page - 1) * page_size
        return Page(self._records[start : start + page_size], len(self._records), page, page_size)
