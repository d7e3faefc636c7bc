"""errors.py — Input validation errors raised before any lookup tier runs.

A plant that cannot be found is *not* an error: the resolver reports it as
``ResolutionStatus.NOT_FOUND``. Only malformed input raises.
"""
from __future__ import annotations


class BloomCalculatorError(ValueError):
    """Base class for rejected calculator input."""


class InvalidQueryError(BloomCalculatorError):
    """The plant query is empty or blank."""


class InvalidMonthError(BloomCalculatorError):
    """The sowing month is not one of the twelve month labels."""
