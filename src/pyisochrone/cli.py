"""Command-line entry point: compute aggregated isochrones for a set of points.

Example::

    ORS_API_KEY=... pyisochrone --time 5 --speed 50 \
        --point 53.55,10.01667 --point 53.6,9.9 --output isochrones.geojson
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from pyisochrone.client import IsochroneClient
from pyisochrone.config import IsochroneConfig
from pyisochrone.exceptions import IsochroneError
from pyisochrone.sink import GeoJsonSink
from pyisochrone.state.events import PointStatus


def parse_point(value: str) -> tuple[float, float]:
    """Parse ``"LAT,LNG"`` into a coordinate pair."""
    parts = [part.strip() for part in value.split(",")]
    if len(parts) != 2:
        raise argparse.ArgumentTypeError(f"expected LAT,LNG, got {value!r}")
    try:
        lat, lng = float(parts[0]), float(parts[1])
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected numeric LAT,LNG, got {value!r}") from exc
    if not -90 <= lat <= 90 or not -180 <= lng <= 180:
        raise argparse.ArgumentTypeError(f"coordinates out of range: {value!r}")
    return lat, lng


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pyisochrone",
        description="Aggregate distance isochrones (area and population) for a set of points.",
    )
    parser.add_argument(
        "--point",
        "-p",
        action="append",
        type=parse_point,
        default=[],
        metavar="LAT,LNG",
        help="Point to track (repeatable)",
    )
    parser.add_argument("--time", "-t", type=float, help="Travel time budget in minutes")
    parser.add_argument("--speed", "-s", type=float, help="Speed in km/h")
    parser.add_argument("--profile", help="Routing profile (default: driving-car)")
    parser.add_argument("--timeout", type=float, default=120.0, help="Seconds to wait for all results")
    parser.add_argument("--output", "-o", help="Write rendered overlays as GeoJSON to FILE")
    parser.add_argument("--json", action="store_true", dest="json_mode", help="Output machine-readable JSON")
    parser.add_argument("--sensitivity", action="store_true", help="Also print distance per speed for the time budget")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    return parser


async def run(args: argparse.Namespace) -> dict[str, Any]:
    overrides: dict[str, Any] = {"debounce_seconds": 0.0}
    if args.profile:
        overrides["profile"] = args.profile
    config = IsochroneConfig.from_env(**overrides)

    sink = GeoJsonSink()
    async with IsochroneClient(config, sink=sink) as client:
        if args.time is not None:
            client.set_time(args.time)
        if args.speed is not None:
            client.set_speed(args.speed)
        for lat, lng in args.point:
            client.add_point(lat, lng)
        totals = await client.wait_settled(timeout=args.timeout)

        result: dict[str, Any] = {
            "time_minutes": client.parameters.time_minutes,
            "speed_kmh": client.parameters.speed_kmh,
            "distance_m": client.distance_budget_m,
            "total_area_km2": totals.area_display,
            "total_population": totals.population,
            "points": [
                {
                    "point_id": outcome.point_id,
                    "status": str(outcome.status),
                    "area_km2": round(outcome.result.area_km2, 2) if outcome.result is not None else None,
                    "population": outcome.result.population if outcome.result is not None else None,
                    "error": outcome.error,
                }
                for outcome in client.point_statuses().values()
            ],
        }
        if args.sensitivity:
            result["sensitivity"] = [p.model_dump() for p in client.sensitivity()]

    if args.output:
        Path(args.output).write_text(json.dumps(sink.to_feature_collection()), encoding="utf-8")
    return result


def _print_report(result: dict[str, Any]) -> None:
    print(
        f"time={result['time_minutes']:g} min  speed={result['speed_kmh']:g} km/h  "
        f"distance={result['distance_m']} m"
    )
    for point in result["points"]:
        if point["status"] == PointStatus.SUCCEEDED:
            print(f"  point {point['point_id']}: {point['area_km2']:.2f} km²  population {point['population']}")
        else:
            print(f"  point {point['point_id']}: {point['status']} ({point['error']})")
    print(f"Total area: {result['total_area_km2']} km²")
    print(f"Population: {result['total_population']}")
    for row in result.get("sensitivity", []):
        print(f"  {row['speed_kmh']:>5g} km/h -> {row['distance_km']:.2f} km")


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING)

    try:
        result = asyncio.run(run(args))
    except (IsochroneError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
    except TimeoutError:
        print(f"error: results did not settle within {args.timeout:g}s", file=sys.stderr)
        return 2

    if args.json_mode:
        print(json.dumps(result, indent=2, ensure_ascii=False))
    else:
        _print_report(result)
    if args.output:
        print(f"GeoJSON written to {args.output}", file=sys.stderr)

    failed = sum(1 for point in result["points"] if point["status"] == PointStatus.FAILED)
    return 1 if failed else 0


if __name__ == "__main__":
    raise SystemExit(main())
