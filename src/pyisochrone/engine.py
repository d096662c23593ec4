"""Incremental isochrone aggregation engine.

The engine reacts to registry and parameter changes, debounces them, and
runs *generations*: one fetch per tracked point for one distance budget.
Responses are merged as they arrive; a response from an older generation
has no effect, whenever it completes.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from pyisochrone.config import IsochroneConfig
from pyisochrone.exceptions import FetchError
from pyisochrone.fetcher import IsochroneFetcher
from pyisochrone.models.isochrone import IsochroneResult
from pyisochrone.models.point import Parameters, Point
from pyisochrone.parameters import ParameterStore
from pyisochrone.registry import PointRegistry, RegistryChange
from pyisochrone.sink import MarkerStyle, OverlaySink, OverlayStyle
from pyisochrone.state.events import EnginePhase, MergeOutcome, Trigger, TriggerKind
from pyisochrone.state.store import AggregationStore, GenerationSnapshot, PointOutcome, Totals

_logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class GenerationReport:
    """Summary emitted once every point of a generation has an outcome."""

    generation: int
    snapshot: GenerationSnapshot
    triggers: tuple[TriggerKind, ...]
    totals: Totals
    duration: float


class AggregationEngine:
    """Debounced, generation-tagged fan-out of isochrone fetches.

    Usage::

        engine = AggregationEngine(config, fetcher, sink, registry, parameters)
        registry.add_point(53.55, 10.0)
        await engine.wait_settled()
        print(engine.totals.area_display, engine.totals.population)
        await engine.aclose()

    All methods must be called from the event loop thread.
    """

    def __init__(
        self,
        config: IsochroneConfig,
        fetcher: IsochroneFetcher,
        sink: OverlaySink,
        registry: PointRegistry,
        parameters: ParameterStore,
        *,
        overlay_style: OverlayStyle | None = None,
        marker_style: MarkerStyle | None = None,
        on_totals: Callable[[Totals], None] | None = None,
        on_generation: Callable[[GenerationReport], None] | None = None,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self._config = config
        self._fetcher = fetcher
        self._sink = sink
        self._registry = registry
        self._parameters = parameters
        self._overlay_style = overlay_style or OverlayStyle()
        self._marker_style = marker_style or MarkerStyle()
        self._on_totals_cb = on_totals
        self._on_generation_cb = on_generation
        self._loop = loop

        self._store = AggregationStore()
        self._phase = EnginePhase.IDLE
        self._settled = asyncio.Event()
        self._settled.set()
        self._closed = False

        self._debounce_handle: asyncio.TimerHandle | None = None
        self._triggers: list[Trigger] = []
        self._snapshot: GenerationSnapshot | None = None
        self._generation_triggers: tuple[TriggerKind, ...] = ()
        self._generation_started_at = 0.0
        self._last_clean_key: tuple[object, ...] | None = None
        self._distance_m = parameters.distance_budget_m

        self._tasks: set[asyncio.Task[None]] = set()
        self._semaphore = asyncio.Semaphore(config.max_concurrency) if config.max_concurrency else None

        # point id -> shown on the sink
        self._overlays: set[int] = set()
        self._markers: set[int] = set()

        self._unsubscribe = [
            registry.subscribe(self._on_registry_change),
            parameters.subscribe(self._on_parameters_change),
        ]

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def phase(self) -> EnginePhase:
        return self._phase

    @property
    def generation(self) -> int:
        return self._store.generation

    @property
    def snapshot(self) -> GenerationSnapshot | None:
        """Inputs of the current generation, or ``None`` when nothing is tracked."""
        return self._snapshot

    @property
    def totals(self) -> Totals:
        return self._store.totals()

    @property
    def overlay_ids(self) -> frozenset[int]:
        return frozenset(self._overlays)

    @property
    def marker_ids(self) -> frozenset[int]:
        return frozenset(self._markers)

    def results(self) -> dict[int, IsochroneResult]:
        return self._store.results()

    def point_statuses(self) -> dict[int, PointOutcome]:
        """Per-point outcome of the current generation, failures included."""
        return self._store.outcomes()

    async def wait_settled(self) -> None:
        """Wait until no trigger is pending and the current generation has settled."""
        await self._settled.wait()

    # ------------------------------------------------------------------
    # Inputs
    # ------------------------------------------------------------------

    def refresh(self) -> None:
        """Re-run the current point set and budget (e.g. to retry failed points)."""
        self._enqueue(Trigger(kind=TriggerKind.REFRESH, distance_m=self._distance_m))

    def _on_registry_change(self, change: RegistryChange) -> None:
        if change.cleared:
            self._clear_all()
            return
        point = change.point
        if point is None:
            return
        marker_args = (point.lat, point.lng, self._marker_style)
        if self._sink_call("add marker", point.point_id, self._sink.add_marker, *marker_args):
            self._markers.add(point.point_id)
        self._enqueue(Trigger(kind=TriggerKind.POINT_ADDED, point_id=point.point_id))

    def _on_parameters_change(self, _params: Parameters) -> None:
        distance_m = self._parameters.distance_budget_m
        if distance_m == self._distance_m:
            _logger.debug("Parameters changed but distance budget is still %d m", distance_m)
            return
        self._distance_m = distance_m
        self._enqueue(Trigger(kind=TriggerKind.BUDGET_CHANGED, distance_m=distance_m))

    # ------------------------------------------------------------------
    # Debounce
    # ------------------------------------------------------------------

    def _enqueue(self, trigger: Trigger) -> None:
        if self._closed:
            _logger.debug("Engine closed; ignoring trigger %s", trigger.kind)
            return
        self._triggers.append(trigger)
        if self._debounce_handle is not None:
            self._debounce_handle.cancel()
        loop = self._loop or asyncio.get_running_loop()
        self._debounce_handle = loop.call_later(self._config.debounce_seconds, self._on_debounce_elapsed)
        self._phase = EnginePhase.DEBOUNCING
        self._settled.clear()

    def _cancel_debounce(self) -> None:
        if self._debounce_handle is not None:
            self._debounce_handle.cancel()
            self._debounce_handle = None
        self._triggers.clear()

    def _on_debounce_elapsed(self) -> None:
        self._debounce_handle = None
        triggers = tuple(trigger.kind for trigger in self._triggers)
        self._triggers.clear()
        snapshot = GenerationSnapshot(points=self._registry.points, distance_m=self._parameters.distance_budget_m)
        _logger.debug(
            "Debounce elapsed after %d trigger(s) %s: %d point(s) at %d m",
            len(triggers),
            [str(kind) for kind in triggers],
            len(snapshot.points),
            snapshot.distance_m,
        )
        self._start_generation(snapshot, triggers)

    # ------------------------------------------------------------------
    # Generations
    # ------------------------------------------------------------------

    def _start_generation(self, snapshot: GenerationSnapshot, triggers: tuple[TriggerKind, ...]) -> None:
        if not snapshot.points:
            self._mark_idle_if_quiet()
            return

        if (
            self._config.elide_unchanged
            and TriggerKind.REFRESH not in triggers
            and self._last_clean_key is not None
            and snapshot.key() == self._last_clean_key
            and self._store.settled
        ):
            _logger.debug("Snapshot unchanged since generation %d; skipping", self._store.generation)
            self._mark_idle_if_quiet()
            return

        self._remove_overlays()

        generation = self._store.start_generation(snapshot.points)
        self._snapshot = snapshot
        self._generation_triggers = triggers
        self._generation_started_at = time.monotonic()
        self._last_clean_key = None
        self._phase = EnginePhase.FETCHING
        self._settled.clear()
        _logger.debug(
            "Generation %d started: %d fetch(es) at %d m",
            generation,
            len(snapshot.points),
            snapshot.distance_m,
        )
        self._emit_totals()

        for point in snapshot.points:
            task = asyncio.create_task(
                self._fetch_and_merge(generation, point, snapshot.distance_m),
                name=f"isochrone-g{generation}-p{point.point_id}",
            )
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

    async def _fetch_and_merge(self, generation: int, point: Point, distance_m: int) -> None:
        try:
            if self._semaphore is None:
                result = await self._fetcher.fetch(point, distance_m)
            else:
                async with self._semaphore:
                    # A newer generation may have started while queued.
                    if generation != self._store.generation:
                        _logger.debug("Generation %d retired before point %d was fetched", generation, point.point_id)
                        return
                    result = await self._fetcher.fetch(point, distance_m)
        except FetchError as exc:
            self._merge_failure(generation, point, str(exc))
            return
        except Exception as exc:
            _logger.exception("Unexpected error fetching point %d (generation %d)", point.point_id, generation)
            self._merge_failure(generation, point, f"unexpected error: {exc!r}")
            return
        self._merge_success(generation, point, result)

    def _merge_success(self, generation: int, point: Point, result: IsochroneResult) -> None:
        rejected = self._store.classify(generation, point.point_id)
        if rejected is not None:
            self._log_dropped(rejected, generation, point)
            return

        try:
            self._sink.add_overlay(point.point_id, result.feature_collection(), self._overlay_style)
        except Exception as exc:
            _logger.exception("Sink failed to render overlay for point %d", point.point_id)
            self._merge_failure(generation, point, f"render failed: {exc!r}")
            return

        self._overlays.add(point.point_id)
        self._store.merge_success(generation, point.point_id, result)
        _logger.debug(
            "Generation %d merged point %d: +%.2f km2 +%d people",
            generation,
            point.point_id,
            result.area_km2,
            result.population,
        )
        self._emit_totals()
        self._finish_if_settled(generation)

    def _merge_failure(self, generation: int, point: Point, error: str) -> None:
        outcome = self._store.merge_failure(generation, point.point_id, error)
        if outcome != MergeOutcome.FAILED:
            self._log_dropped(outcome, generation, point)
            return
        _logger.warning("Isochrone for point %d failed (generation %d): %s", point.point_id, generation, error)
        self._emit_totals()
        self._finish_if_settled(generation)

    def _log_dropped(self, outcome: MergeOutcome, generation: int, point: Point) -> None:
        _logger.debug(
            "Dropped %s response for point %d (generation %d, current %d)",
            outcome,
            point.point_id,
            generation,
            self._store.generation,
        )

    def _finish_if_settled(self, generation: int) -> None:
        if generation != self._store.generation or not self._store.settled:
            return
        totals = self._store.totals()
        snapshot = self._snapshot
        if snapshot is None:
            return
        if totals.failed == 0:
            self._last_clean_key = snapshot.key()
        report = GenerationReport(
            generation=generation,
            snapshot=snapshot,
            triggers=self._generation_triggers,
            totals=totals,
            duration=time.monotonic() - self._generation_started_at,
        )
        _logger.debug(
            "Generation %d settled in %.3fs: %s km2, %d people, %d failed",
            generation,
            report.duration,
            totals.area_display,
            totals.population,
            totals.failed,
        )
        self._mark_idle_if_quiet()
        if self._on_generation_cb is not None:
            try:
                self._on_generation_cb(report)
            except Exception:
                _logger.debug("on_generation callback failed", exc_info=True)

    def _mark_idle_if_quiet(self) -> None:
        if self._debounce_handle is not None:
            return
        if self._phase == EnginePhase.FETCHING and not self._store.settled:
            return
        self._phase = EnginePhase.IDLE
        self._settled.set()

    def _sink_call(self, action: str, point_id: int, method: Callable[..., None], *args: object) -> bool:
        """Run one sink operation; a failing sink is logged and never stops the engine."""
        try:
            method(point_id, *args)
        except Exception:
            _logger.exception("Sink failed to %s for point %d", action, point_id)
            return False
        return True

    def _remove_overlays(self) -> None:
        for point_id in sorted(self._overlays):
            self._sink_call("remove overlay", point_id, self._sink.remove_overlay)
        self._overlays.clear()

    def _emit_totals(self) -> None:
        if self._on_totals_cb is None:
            return
        try:
            self._on_totals_cb(self._store.totals())
        except Exception:
            _logger.debug("on_totals callback failed", exc_info=True)

    # ------------------------------------------------------------------
    # Clear / shutdown
    # ------------------------------------------------------------------

    def _clear_all(self) -> None:
        """Remove everything shown, zero the totals, and go idle without fetching."""
        self._cancel_debounce()
        self._remove_overlays()
        for point_id in sorted(self._markers):
            self._sink_call("remove marker", point_id, self._sink.remove_marker)
        self._markers.clear()
        generation = self._store.retire()
        self._snapshot = None
        self._last_clean_key = None
        self._phase = EnginePhase.IDLE
        self._settled.set()
        _logger.debug("Cleared; generation advanced to %d", generation)
        self._emit_totals()

    async def aclose(self) -> None:
        """Stop reacting to inputs and retire all outstanding work."""
        if self._closed:
            return
        self._closed = True
        for unsubscribe in self._unsubscribe:
            unsubscribe()
        self._cancel_debounce()
        self._store.retire()
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()
        self._phase = EnginePhase.IDLE
        self._settled.set()
