"""records.py — Canonical plant record shared by every lookup tier.

Each tier stores plants with its own field names (``"Growing Months"`` in the
bundled JSON table, ``growing_months`` in the Supabase ``plants`` table).
``from_local_row()`` and ``from_remote_row()`` convert at the boundary so the
resolver, normalizer and API only ever see ``PlantRecord``.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional


class SourceTier(str, Enum):
    LOCAL = "Local"
    REMOTE = "Remote"
    GENERATED = "Generated"


# Display labels used in reports, keyed by tier.
DATA_SOURCE_LABELS: dict[SourceTier, str] = {
    SourceTier.LOCAL:     "Local Database",
    SourceTier.REMOTE:    "Live Database",
    SourceTier.GENERATED: "AI Suggestion",
}


def normalize_name(name: str) -> str:
    """Case-fold and trim a plant name for identity comparisons and cache keys."""
    return (name or "").strip().casefold()


@dataclass(frozen=True)
class PlantRecord:
    name: str
    source_tier: SourceTier
    region: str = ""
    growing_months: str = ""
    season: str = ""
    soil_requirements: str = ""
    bloom_harvest_time: str = ""
    sunlight_needs: str = ""
    care_instructions: str = ""
    image: Optional[str] = None
    plant_type: Optional[str] = None
    record_id: Optional[str] = None

    @property
    def key(self) -> str:
        return normalize_name(self.name)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name":               self.name,
            "region":             self.region,
            "growing_months":     self.growing_months,
            "season":             self.season,
            "soil_requirements":  self.soil_requirements,
            "bloom_harvest_time": self.bloom_harvest_time,
            "sunlight_needs":     self.sunlight_needs,
            "care_instructions":  self.care_instructions,
            "image":              self.image,
            "plant_type":         self.plant_type,
            "source_tier":        self.source_tier.value,
        }


# ── Tier adapters ─────────────────────────────────────────────────────────────

def _text(row: Mapping[str, Any], key: str) -> str:
    value = row.get(key)
    return str(value).strip() if value is not None else ""


def _optional(row: Mapping[str, Any], key: str) -> Optional[str]:
    return _text(row, key) or None


class MalformedRecordError(ValueError):
    """A tier returned a row that cannot become a ``PlantRecord``."""


def _required_name(row: Mapping[str, Any]) -> str:
    name = _text(row, "name")
    if not name:
        raise MalformedRecordError(f"Plant row has no name: {dict(row)!r}")
    return name


def from_local_row(row: Mapping[str, Any]) -> PlantRecord:
    """
    Convert a row of ``PlantsDatabase.json`` into a ``PlantRecord``.

    The bundled table uses title-cased, space-separated keys
    (``"Bloom and Harvest Time"``, ``"Sunlight Needs"``, ...).

    Raises:
        MalformedRecordError: if the row has no ``name``.
    """
    return PlantRecord(
        name=_required_name(row),
        source_tier=SourceTier.LOCAL,
        region=_text(row, "Region"),
        growing_months=_text(row, "Growing Months"),
        season=_text(row, "Season"),
        soil_requirements=_text(row, "Soil Requirements"),
        bloom_harvest_time=_text(row, "Bloom and Harvest Time"),
        sunlight_needs=_text(row, "Sunlight Needs"),
        care_instructions=_text(row, "Care Instructions"),
        image=_optional(row, "Image"),
        plant_type=_optional(row, "Plant Type"),
    )


def from_remote_row(row: Mapping[str, Any]) -> PlantRecord:
    """
    Convert a row of the remote ``plants`` table into a ``PlantRecord``.

    Nullable columns become empty strings; ``id`` is kept as ``record_id``.

    Raises:
        MalformedRecordError: if the row has no ``name``.
    """
    record_id = row.get("id")
    return PlantRecord(
        name=_required_name(row),
        source_tier=SourceTier.REMOTE,
        region=_text(row, "region"),
        growing_months=_text(row, "growing_months"),
        season=_text(row, "season"),
        soil_requirements=_text(row, "soil_requirements"),
        bloom_harvest_time=_text(row, "bloom_harvest_time"),
        sunlight_needs=_text(row, "sunlight_needs"),
        care_instructions=_text(row, "care_instructions"),
        image=_optional(row, "image"),
        plant_type=_optional(row, "plant_type"),
        record_id=str(record_id) if record_id is not None else None,
    )
