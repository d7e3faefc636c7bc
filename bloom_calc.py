"""bloom_calc.py — Command-line bloom calculator.

Resolves a plant name (typos welcome) and prints when it will bloom if sown
in the given month, followed by care tips. Remote and AI tiers are used when
their credentials are present in the environment (see ``config.py``).

Run::

    python bloom_calc.py --plant Merigold --month January
    python bloom_calc.py --plant "genda phool" --month June --json
    python bloom_calc.py --plant Tomato --month November --no-remote --no-ai

Exit codes: 0 found, 1 plant not found, 2 invalid input.
"""
from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys

from bloom.calculator import BloomCalculator, BloomReport
from bloom.errors import BloomCalculatorError
from care.wiring import build_resolver
from config import get_settings

EXIT_FOUND = 0
EXIT_NOT_FOUND = 1
EXIT_INVALID = 2


def format_report(report: BloomReport) -> str:
    if not report.found:
        return report.message

    res = report.resolution
    timeline = report.timeline
    profile = report.profile

    lines = []
    if res.corrected_from:
        lines.append(f"Showing results for '{res.suggested_name}' (you typed '{res.corrected_from}').")
    lines += [
        f"Plant:        {report.display_name}",
        f"Data source:  {report.data_source}",
        f"Sowing month: {timeline.sowing_month}",
        f"First bloom:  {timeline.bloom_start_month}  (~{timeline.total_days_to_first_bloom} days)",
        f"Bloom ends:   {timeline.bloom_end_month}",
        "",
        "Care tips:",
    ]
    lines += [f"  • {tip}" for tip in profile.care_tips]
    return "\n".join(lines)


async def run(plant: str, month: str, *, remote: bool, ai: bool, as_json: bool) -> int:
    settings = get_settings()
    resolver = build_resolver(settings, remote=remote, ai=ai)
    if resolver.store is not None:
        await resolver.warm_cache(settings.remote_warm_page_size)

    try:
        report = await BloomCalculator(resolver).calculate(plant, month)
    except BloomCalculatorError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return EXIT_INVALID

    print(json.dumps(report.to_dict(), indent=2) if as_json else format_report(report))
    return EXIT_FOUND if report.found else EXIT_NOT_FOUND


# ── CLI ───────────────────────────────────────────────────────────────────────

def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Predict when a plant will bloom")
    parser.add_argument("--plant",     required=True,       help="Plant, fruit or vegetable name")
    parser.add_argument("--month",     required=True,       help="Sowing month, e.g. January")
    parser.add_argument("--no-remote", action="store_true", help="Skip the remote plant store")
    parser.add_argument("--no-ai",     action="store_true", help="Skip AI name suggestions")
    parser.add_argument("--json",      action="store_true", help="Print the full report as JSON")
    args = parser.parse_args(argv)

    logging.basicConfig(level=get_settings().log_level, format="%(levelname)s %(name)s: %(message)s")

    return asyncio.run(
        run(args.plant, args.month, remote=not args.no_remote, ai=not args.no_ai, as_json=args.json)
    )


if __name__ == "__main__":
    sys.exit(main())
