"""calculator.py — Plant query + sowing month → bloom report.

``BloomCalculator.calculate()`` is the public interface for ``api.py`` and
``bloom_calc.py``. It validates both inputs, resolves the plant through the
shared ``TieredPlantResolver``, normalizes the record and computes the
timeline.

Usage::

    calculator = BloomCalculator(resolver)
    report = await calculator.calculate("Merigold", "January")
    print(report.display_name, report.timeline.bloom_start_month)
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from bloom.normalizer import BloomProfile, normalize
from bloom.timeline import TimelineResult, canonical_month, compute_timeline
from care.resolver import ResolutionResult, TieredPlantResolver
from data.records import DATA_SOURCE_LABELS


@dataclass(frozen=True)
class BloomReport:
    resolution: ResolutionResult
    profile: Optional[BloomProfile] = None
    timeline: Optional[TimelineResult] = None

    @property
    def found(self) -> bool:
        return self.resolution.found

    @property
    def display_name(self) -> str:
        return self.resolution.display_name

    @property
    def data_source(self) -> Optional[str]:
        tier = self.resolution.source_tier
        return DATA_SOURCE_LABELS[tier] if tier else None

    @property
    def image(self) -> Optional[str]:
        record = self.resolution.matched_record
        return record.image if record else None

    @property
    def message(self) -> str:
        if self.found:
            return f"Bloom timeline for {self.display_name}."
        return (
            f'No bloom data found for "{self.resolution.query}". '
            "Try a different name or choose from the list."
        )

    def to_dict(self) -> dict:
        return {
            "found":        self.found,
            "plant":        self.display_name,
            "message":      self.message,
            "data_source":  self.data_source,
            "image":        self.image,
            "resolution":   self.resolution.to_dict(),
            "profile":      self.profile.to_dict() if self.profile else None,
            "timeline":     self.timeline.to_dict() if self.timeline else None,
        }


class BloomCalculator:
    def __init__(self, resolver: TieredPlantResolver) -> None:
        self.resolver = resolver

    async def calculate(self, plant: str, sowing_month: str) -> BloomReport:
        """
        Build the bloom report for *plant* sown in *sowing_month*.

        Raises:
            InvalidMonthError: unknown sowing month (checked before any lookup).
            InvalidQueryError: blank plant name.
        """
        month = canonical_month(sowing_month)
        resolution = await self.resolver.resolve(plant)
        if not resolution.found:
            return BloomReport(resolution)

        profile = normalize(resolution.matched_record)
        return BloomReport(resolution, profile, compute_timeline(month, profile))
