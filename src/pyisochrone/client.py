"""High-level async client wiring the registry, parameters and engine together."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any

import aiohttp

from pyisochrone._transport import HttpTransport, Transport
from pyisochrone.config import IsochroneConfig
from pyisochrone.distance import SensitivityPoint, sensitivity_series
from pyisochrone.engine import AggregationEngine, GenerationReport
from pyisochrone.exceptions import IsochroneConfigError, IsochroneError
from pyisochrone.fetcher import IsochroneFetcher
from pyisochrone.models.point import Point
from pyisochrone.parameters import ParameterStore
from pyisochrone.registry import PointRegistry
from pyisochrone.sink import GeoJsonSink, MarkerStyle, OverlaySink, OverlayStyle
from pyisochrone.state.store import PointOutcome, Totals

_logger = logging.getLogger(__name__)


class IsochroneClient:
    """Async facade over the isochrone aggregation engine.

    Usage::

        async with IsochroneClient(IsochroneConfig.from_env()) as client:
            client.add_point(53.55, 10.01667)
            client.set_time(10)
            await client.wait_settled()
            print(client.totals.area_display, client.totals.population)
    """

    def __init__(
        self,
        config: IsochroneConfig,
        *,
        sink: OverlaySink | None = None,
        session: aiohttp.ClientSession | None = None,
        transport: Transport | None = None,
        overlay_style: OverlayStyle | None = None,
        marker_style: MarkerStyle | None = None,
        on_totals: Callable[[Totals], None] | None = None,
        on_generation: Callable[[GenerationReport], None] | None = None,
    ) -> None:
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._transport = transport
        self._sink: OverlaySink = sink if sink is not None else GeoJsonSink()
        self._overlay_style = overlay_style
        self._marker_style = marker_style
        self._on_totals = on_totals
        self._on_generation = on_generation
        self.registry = PointRegistry()
        self.parameters = ParameterStore(config)
        self._engine: AggregationEngine | None = None

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> IsochroneClient:
        loop = asyncio.get_running_loop()
        if self._transport is None:
            if not self._config.api_key:
                raise IsochroneConfigError("No oracle API key configured (set ORS_API_KEY or config.api_key)")
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            self._transport = HttpTransport(self._config, self._http_session)
        self._engine = AggregationEngine(
            self._config,
            IsochroneFetcher(self._config, self._transport),
            self._sink,
            self.registry,
            self.parameters,
            overlay_style=self._overlay_style,
            marker_style=self._marker_style,
            on_totals=self._on_totals,
            on_generation=self._on_generation,
            loop=loop,
        )
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if self._engine is not None:
            await self._engine.aclose()
            self._engine = None
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None

    def _require_engine(self) -> AggregationEngine:
        if self._engine is None:
            raise IsochroneError("Client not initialized. Use 'async with IsochroneClient(...) as client:'")
        return self._engine

    # ------------------------------------------------------------------
    # Inputs
    # ------------------------------------------------------------------

    def add_point(self, lat: float, lng: float) -> Point:
        self._require_engine()
        return self.registry.add_point(lat, lng)

    def clear_all(self) -> None:
        self._require_engine()
        self.registry.clear_all()

    def set_time(self, minutes: float) -> None:
        self._require_engine()
        self.parameters.set_time(minutes)

    def set_speed(self, speed_kmh: float) -> None:
        self._require_engine()
        self.parameters.set_speed(speed_kmh)

    def refresh(self) -> None:
        self._require_engine().refresh()

    async def wait_settled(self, timeout: float | None = None) -> Totals:
        """Wait for the engine to settle and return the resulting totals."""
        engine = self._require_engine()
        await asyncio.wait_for(engine.wait_settled(), timeout)
        return engine.totals

    # ------------------------------------------------------------------
    # Outputs
    # ------------------------------------------------------------------

    @property
    def sink(self) -> OverlaySink:
        return self._sink

    @property
    def engine(self) -> AggregationEngine:
        return self._require_engine()

    @property
    def totals(self) -> Totals:
        return self._require_engine().totals

    @property
    def distance_budget_m(self) -> int:
        return self.parameters.distance_budget_m

    def point_statuses(self) -> dict[int, PointOutcome]:
        return self._require_engine().point_statuses()

    def sensitivity(self) -> list[SensitivityPoint]:
        """Distance per speed for the current time budget (chart data)."""
        return sensitivity_series(self.parameters.time_minutes)
