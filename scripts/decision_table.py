#!/usr/bin/env python3
"""Print a rendezvous decision-support table from position feeds.

Positions are read from JSON files and/or HTTP feeds (a list of position
objects or ``{"positions": [...]}``), loaded into a track registry, and the
tag targets are ranked for the given mover.

Examples::

    python scripts/decision_table.py --mover lauv-xplore-1 positions.json
    python scripts/decision_table.py --mover ship --feed https://hub.example/api/v1/positions \\
        --ship-speed 8 --safety-distance 2000
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

# Allow running from repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pysitaware import SitAwareConfig, SitAwareTransportError, TrackRegistry  # noqa: E402
from pysitaware.planning import decision_support  # noqa: E402
from pysitaware.sources import HttpLocationSource, parse_positions  # noqa: E402


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("files", nargs="*", type=Path, help="JSON files with position reports")
    parser.add_argument("--feed", action="append", default=[], help="HTTP JSON feed URL (repeatable)")
    parser.add_argument("--mover", required=True, help="Asset name of the pursuing platform")
    parser.add_argument("--predict", action="store_true", help="Use the mover's predicted position")
    parser.add_argument("--ship-speed", type=float, help="Mover speed (m/s)")
    parser.add_argument("--target-speed", type=float, help="Target platform speed (m/s)")
    parser.add_argument("--safety-distance", type=float, help="Safety distance (m)")
    parser.add_argument("--max-age-hours", type=float, help="Ignore positions older than this")
    parser.add_argument("--json", action="store_true", help="Emit rows as JSON")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser.parse_args(argv)


def _config_from_args(args: argparse.Namespace) -> SitAwareConfig:
    overrides: dict[str, float] = {}
    if args.ship_speed is not None:
        overrides["ship_speed_mps"] = args.ship_speed
    if args.target_speed is not None:
        overrides["target_speed_mps"] = args.target_speed
    if args.safety_distance is not None:
        overrides["safety_distance_m"] = args.safety_distance
    if args.max_age_hours is not None:
        overrides["max_position_age_hours"] = args.max_age_hours
    return SitAwareConfig.from_env(audible_updates=False, **overrides)


async def _poll_feeds(registry: TrackRegistry, urls: list[str]) -> None:
    for url in urls:
        source = HttpLocationSource(url, url)
        await source.on_start()
        try:
            registry.add_positions(await source.poll_once())
        except SitAwareTransportError as exc:
            print(f"warning: {exc}", file=sys.stderr)
        finally:
            await source.on_stop()


def _format_seconds(value: float | None) -> str:
    if value is None:
        return "-"
    minutes, seconds = divmod(int(round(value)), 60)
    hours, minutes = divmod(minutes, 60)
    return f"{hours:d}:{minutes:02d}:{seconds:02d}"


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)
    config = _config_from_args(args)
    registry = TrackRegistry.from_config(config)

    for path in args.files:
        registry.add_positions(parse_positions(json.loads(path.read_text(encoding="utf-8"))))
    if args.feed:
        asyncio.run(_poll_feeds(registry, args.feed))

    rows = decision_support(registry, args.mover, config, use_prediction=args.predict)
    if rows is None:
        print(f"Position of {args.mover} is unknown", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps([row.model_dump() for row in rows], indent=2))
        return 0

    print(f"{'target':<24} {'type':<10} {'distance (m)':>13} {'ship ETA':>10} {'target ETA':>11}  feasible")
    for row in rows:
        distance = f"{row.distance_m:.0f}" if row.distance_m is not None else "-"
        print(
            f"{row.target_name:<24} {row.target_type:<10} {distance:>13} "
            f"{_format_seconds(row.eta_seconds):>10} {_format_seconds(row.target_eta_seconds):>11}  "
            f"{'yes' if row.feasible else 'no (' + (row.reason or '') + ')'}"
        )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
