"""normalizer.py — Turn free-text bloom/harvest fields into day counts.

Plant records describe timing loosely ("60-90 days", "3 months",
"Harvest after fruits turn glossy"). ``normalize()`` reduces a record to a
``BloomProfile`` with whole-day numbers the timeline calculator can use.
"""
from __future__ import annotations

import math
import re
from dataclasses import dataclass

from data.records import PlantRecord

DAYS_PER_MONTH = 30

# Uniform defaults; the source text carries no germination or bloom length.
DEFAULT_DAYS_TO_GERMINATION = 7
DEFAULT_BLOOM_DURATION_DAYS = 60
DEFAULT_DAYS_TO_MATURITY = 60

_RANGE_RE = re.compile(r"(\d+)\s*(?:-|to)\s*(\d+)\s*(days?|months?)", re.IGNORECASE)
_SINGLE_RE = re.compile(r"(\d+)\s*(days?|months?)", re.IGNORECASE)


@dataclass(frozen=True)
class BloomProfile:
    days_to_germination: int
    days_to_maturity: int
    bloom_duration_days: int
    care_tips: tuple[str, ...]

    def to_dict(self) -> dict:
        return {
            "days_to_germination": self.days_to_germination,
            "days_to_maturity":    self.days_to_maturity,
            "bloom_duration_days": self.bloom_duration_days,
            "care_tips":           list(self.care_tips),
        }


def _to_days(value: int, unit: str) -> int:
    return value * DAYS_PER_MONTH if unit.lower().startswith("month") else value


def _split_list(text: str) -> list[str]:
    return [part.strip() for part in (text or "").split(",") if part.strip()]


def parse_days_to_maturity(bloom_harvest_time: str, growing_months: str = "") -> int:
    """
    Estimate days to maturity; the first rule that applies wins.

    1. ``"<min>-<max> days|months"`` (or ``"<min> to <max> ..."``): the
       average of the bounds, rounded half up.
    2. ``"<n> days|months"``.
    3. Number of comma-separated entries in *growing_months*, times 30.
    4. ``DEFAULT_DAYS_TO_MATURITY``.

    Months count as 30 days.
    """
    text = bloom_harvest_time or ""

    m = _RANGE_RE.search(text)
    if m:
        low, high, unit = int(m.group(1)), int(m.group(2)), m.group(3)
        avg = math.floor((low + high) / 2 + 0.5)
        return _to_days(avg, unit)

    m = _SINGLE_RE.search(text)
    if m:
        return _to_days(int(m.group(1)), m.group(2))

    months = _split_list(growing_months)
    if months:
        return len(months) * DAYS_PER_MONTH

    return DEFAULT_DAYS_TO_MATURITY


def care_tips(record: PlantRecord) -> tuple[str, ...]:
    """Comma-split care instructions, or four tips built from the record's context."""
    tips = _split_list(record.care_instructions)
    if tips:
        return tuple(tips)
    return (
        f"Region: {record.region}",
        f"Season: {record.season}",
        f"Sunlight: {record.sunlight_needs}",
        f"Soil: {record.soil_requirements}",
    )


def normalize(record: PlantRecord) -> BloomProfile:
    return BloomProfile(
        days_to_germination=DEFAULT_DAYS_TO_GERMINATION,
        days_to_maturity=parse_days_to_maturity(record.bloom_harvest_time, record.growing_months),
        bloom_duration_days=DEFAULT_BLOOM_DURATION_DAYS,
        care_tips=care_tips(record),
    )
