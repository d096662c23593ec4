"""Deterministic in-memory aggregation store.

This is the only component allowed to merge fetch outcomes. Totals are
derived from the stored per-point results, so they always equal the sum over
the entries that are present: nothing is counted twice and nothing is
counted after its generation was retired.
"""

from __future__ import annotations

import math
from collections.abc import Iterable

from pydantic import BaseModel, ConfigDict

from pyisochrone.models.isochrone import IsochroneResult
from pyisochrone.models.point import Point
from pyisochrone.state.events import MergeOutcome, PointStatus
from pyisochrone.state.policy import classify_response, is_settled


class GenerationSnapshot(BaseModel):
    """Immutable inputs of one generation."""

    model_config = ConfigDict(frozen=True)

    points: tuple[Point, ...]
    distance_m: int

    def key(self) -> tuple[tuple[tuple[int, float, float], ...], int]:
        """Comparable identity of the snapshot (point ids, coordinates, budget)."""
        return tuple((p.point_id, p.lat, p.lng) for p in self.points), self.distance_m


class PointOutcome(BaseModel):
    model_config = ConfigDict(frozen=True)

    point_id: int
    status: PointStatus
    result: IsochroneResult | None = None
    error: str | None = None


class Totals(BaseModel):
    """Running totals for the current generation."""

    model_config = ConfigDict(frozen=True)

    generation: int = 0
    area_km2: float = 0.0
    population: int = 0
    succeeded: int = 0
    failed: int = 0
    pending: int = 0

    @property
    def area_display(self) -> str:
        """Area formatted the way it is shown to users (two decimals)."""
        return f"{self.area_km2:.2f}"


class AggregationStore:
    """Per-generation merge state.

    Given the same sequence of ``start_generation`` / ``merge_*`` calls, it
    always produces the same totals, whatever order responses arrive in.
    """

    def __init__(self) -> None:
        self._generation = 0
        self._statuses: dict[int, PointStatus] = {}
        self._results: dict[int, IsochroneResult] = {}
        self._errors: dict[int, str] = {}

    @property
    def generation(self) -> int:
        return self._generation

    def start_generation(self, points: Iterable[Point]) -> int:
        """Retire the current generation and open a new one for *points*."""
        self.retire()
        self._statuses = {point.point_id: PointStatus.PENDING for point in points}
        return self._generation

    def retire(self) -> int:
        """Drop every entry and advance the generation; in-flight work becomes stale."""
        self._generation += 1
        self._statuses = {}
        self._results = {}
        self._errors = {}
        return self._generation

    def classify(self, generation: int, point_id: int) -> MergeOutcome | None:
        """``None`` if a response for (*generation*, *point_id*) may be merged."""
        return classify_response(
            current_generation=self._generation,
            response_generation=generation,
            point_status=self._statuses.get(point_id),
        )

    def merge_success(self, generation: int, point_id: int, result: IsochroneResult) -> MergeOutcome:
        rejected = self.classify(generation, point_id)
        if rejected is not None:
            return rejected
        self._statuses[point_id] = PointStatus.SUCCEEDED
        self._results[point_id] = result
        return MergeOutcome.ACCEPTED

    def merge_failure(self, generation: int, point_id: int, error: str) -> MergeOutcome:
        rejected = self.classify(generation, point_id)
        if rejected is not None:
            return rejected
        self._statuses[point_id] = PointStatus.FAILED
        self._errors[point_id] = error
        return MergeOutcome.FAILED

    @property
    def settled(self) -> bool:
        return is_settled(self._statuses)

    def results(self) -> dict[int, IsochroneResult]:
        return dict(self._results)

    def outcomes(self) -> dict[int, PointOutcome]:
        return {
            point_id: PointOutcome(
                point_id=point_id,
                status=status,
                result=self._results.get(point_id),
                error=self._errors.get(point_id),
            )
            for point_id, status in self._statuses.items()
        }

    def totals(self) -> Totals:
        statuses = list(self._statuses.values())
        return Totals(
            generation=self._generation,
            # fsum is exactly rounded, so the total does not depend on arrival order
            area_km2=math.fsum(result.area_km2 for result in self._results.values()),
            population=sum(result.population for result in self._results.values()),
            succeeded=statuses.count(PointStatus.SUCCEEDED),
            failed=statuses.count(PointStatus.FAILED),
            pending=statuses.count(PointStatus.PENDING),
        )
