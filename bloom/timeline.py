"""timeline.py — Month-granular bloom timeline.

Sowing month plus a ``BloomProfile`` gives the month the first flowers (or
harvest) appear and the month blooming ends. Arithmetic is over twelve month
labels modulo 12: no days within a month, no years, no leap years.

Example::

    profile = BloomProfile(5, 50, 90, ())
    compute_timeline("January", profile)
    # TimelineResult(sowing_month='January', bloom_start_month='March',
    #                bloom_end_month='June', total_days_to_first_bloom=55,
    #                months_to_bloom=2)
"""
from __future__ import annotations

import math
from dataclasses import asdict, dataclass

from bloom.errors import InvalidMonthError
from bloom.normalizer import DAYS_PER_MONTH, BloomProfile

MONTHS: tuple[str, ...] = (
    "January", "February", "March",     "April",   "May",      "June",
    "July",    "August",   "September", "October", "November", "December",
)

_MONTH_INDEX = {m.lower(): i for i, m in enumerate(MONTHS)}


@dataclass(frozen=True)
class TimelineResult:
    sowing_month: str
    bloom_start_month: str
    bloom_end_month: str
    total_days_to_first_bloom: int
    months_to_bloom: int

    def to_dict(self) -> dict:
        return asdict(self)


def month_index(month: str) -> int:
    """
    Zero-based index of a month label, matched case-insensitively.

    Raises:
        InvalidMonthError: if *month* is not one of ``MONTHS``.
    """
    try:
        return _MONTH_INDEX[(month or "").strip().lower()]
    except KeyError:
        raise InvalidMonthError(
            f"Unknown month '{month}'. Expected one of: {', '.join(MONTHS)}."
        ) from None


def canonical_month(month: str) -> str:
    return MONTHS[month_index(month)]


def add_months(month: str, months_to_add: int) -> str:
    return MONTHS[(month_index(month) + months_to_add) % 12]


def months_for(days: int) -> int:
    """Whole months needed to cover *days* (30-day months, rounded up)."""
    return math.ceil(max(days, 0) / DAYS_PER_MONTH)


def compute_timeline(sowing_month: str, profile: BloomProfile) -> TimelineResult:
    sowing = canonical_month(sowing_month)
    total_days = max(profile.days_to_germination + profile.days_to_maturity, 0)
    months_to_bloom = months_for(total_days)

    bloom_start = add_months(sowing, months_to_bloom)
    bloom_end = add_months(bloom_start, months_for(profile.bloom_duration_days))

    return TimelineResult(
        sowing_month=sowing,
        bloom_start_month=bloom_start,
        bloom_end_month=bloom_end,
        total_days_to_first_bloom=total_days,
        months_to_bloom=months_to_bloom,
    )
