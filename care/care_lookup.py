"""care_lookup.py — Local plant dataset index.

``PlantIndex`` wraps the bundled ``PlantsDatabase.json`` table, loaded once at
startup and read-only afterwards. ``lookup()`` is the first (and cheapest)
tier consulted by ``TieredPlantResolver``.

``match_record()`` holds the three-step name lookup on its own so the
resolver can run the same algorithm over its cache of remote records.

Usage::

    index = PlantIndex.from_file(Path("data/PlantsDatabase.json"))
    result = index.lookup("Merigold")
    print(result.record.name, result.suggested_name)   # Marigold Marigold
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Iterable, NamedTuple, Optional, Sequence

from data.records import PlantRecord, from_local_row, normalize_name
from matching.similarity import find_best_match

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_PATH = Path(__file__).resolve().parent.parent / "data" / "PlantsDatabase.json"

# Minimum similarity for a fuzzy name match during a plain lookup.
FUZZY_THRESHOLD = 0.5


class LookupResult(NamedTuple):
    record: Optional[PlantRecord]
    suggested_name: Optional[str] = None
    score: float = 0.0

    @property
    def found(self) -> bool:
        return self.record is not None


MISS = LookupResult(None)


def match_record(
    query: str,
    records: Sequence[PlantRecord],
    threshold: float = FUZZY_THRESHOLD,
) -> LookupResult:
    """
    Find *query* among *records*; the first step that succeeds wins.

    1. Exact match (case-insensitive, trimmed).
    2. Containment in either direction, in record order.
    3. Fuzzy match over all names at *threshold*. ``suggested_name`` is set
       only when the matched name differs from the query.

    Args:
        query:     Free-text plant name.
        records:   Candidate records of a single tier.
        threshold: Minimum similarity accepted in step 3.

    Returns:
        ``LookupResult``; ``record`` is ``None`` on a miss or a blank query.
    """
    needle = normalize_name(query)
    if not needle or not records:
        return MISS

    # 1. Exact match
    for record in records:
        if record.key == needle:
            return LookupResult(record, None, 1.0)

    # 2. Substring match in either direction
    for record in records:
        if needle in record.key or record.key in needle:
            return LookupResult(record, None, 1.0)

    # 3. Fuzzy match
    best = find_best_match(needle, [r.name for r in records], threshold)
    if best.match is None:
        return LookupResult(None, None, best.score)

    record = next(r for r in records if r.name == best.match)
    suggested = record.name if record.key != needle else None
    return LookupResult(record, suggested, best.score)


def load_plants(path: Path) -> list[PlantRecord]:
    """
    Read ``{"Plants": [...]}`` from *path* and adapt each row.

    Raises:
        OSError, ValueError: missing file, invalid JSON, unexpected shape or a
        row without a name. ``PlantIndex.from_file`` turns these into an
        empty index.
    """
    with open(path, "r", encoding="utf-8") as fh:
        payload = json.load(fh)

    rows = payload.get("Plants") if isinstance(payload, dict) else None
    if not isinstance(rows, list) or not all(isinstance(row, dict) for row in rows):
        raise ValueError(f"{path} has no 'Plants' list of objects")
    return [from_local_row(row) for row in rows]


class PlantIndex:
    """
    Immutable in-memory index over the local plant table.

    Args:
        records: Local-tier records in dataset order.
    """

    def __init__(self, records: Iterable[PlantRecord] = ()) -> None:
        self._records: tuple[PlantRecord, ...] = tuple(records)

    @classmethod
    def from_file(cls, path: Path = DEFAULT_DATABASE_PATH) -> "PlantIndex":
        """Load the index; any load failure yields an empty index."""
        try:
            records = load_plants(path)
        except (OSError, ValueError) as exc:
            logger.warning(
                "Local plant database unavailable at '%s' (%s). "
                "Continuing with remote and AI tiers only.",
                path,
                exc,
            )
            return cls()
        logger.info("Loaded %d local plants from '%s'.", len(records), path)
        return cls(records)

    def __len__(self) -> int:
        return len(self._records)

    @property
    def records(self) -> tuple[PlantRecord, ...]:
        return self._records

    def names(self) -> list[str]:
        return [r.name for r in self._records]

    def lookup(self, name: str, threshold: float = FUZZY_THRESHOLD) -> LookupResult:
        return match_record(name, self._records, threshold)
