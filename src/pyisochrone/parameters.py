"""Parameter store: current travel time budget and speed."""

from __future__ import annotations

import logging
from collections.abc import Callable

from pyisochrone.config import IsochroneConfig
from pyisochrone.distance import distance_budget_m
from pyisochrone.models.point import Parameters

_logger = logging.getLogger(__name__)

ParametersListener = Callable[[Parameters], None]


def _check_range(name: str, value: float, bounds: tuple[int, int]) -> float:
    low, high = bounds
    number = float(value)
    if not low <= number <= high:
        raise ValueError(f"{name} must be between {low} and {high}, got {value}")
    return number


class ParameterStore:
    """Holds the time and speed parameters and derives the distance budget.

    Out-of-range values are a caller error and raise :class:`ValueError`
    without changing state. Listeners fire only on an actual change.
    """

    def __init__(self, config: IsochroneConfig) -> None:
        self._config = config
        self._params = Parameters(
            time_minutes=_check_range("time", config.default_time, config.time_range),
            speed_kmh=_check_range("speed", config.default_speed, config.speed_range),
        )
        self._listeners: list[ParametersListener] = []

    @property
    def parameters(self) -> Parameters:
        return self._params

    @property
    def time_minutes(self) -> float:
        return self._params.time_minutes

    @property
    def speed_kmh(self) -> float:
        return self._params.speed_kmh

    @property
    def distance_budget_m(self) -> int:
        """Current distance budget in metres (recomputed on every read)."""
        return distance_budget_m(
            self._params.time_minutes,
            self._params.speed_kmh,
            self._config.distance_rounding,
        )

    def subscribe(self, listener: ParametersListener) -> Callable[[], None]:
        """Register *listener*; returns a callable that unregisters it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def set_time(self, value: float) -> None:
        time_minutes = _check_range("time", value, self._config.time_range)
        self._update(self._params.model_copy(update={"time_minutes": time_minutes}))

    def set_speed(self, value: float) -> None:
        speed_kmh = _check_range("speed", value, self._config.speed_range)
        self._update(self._params.model_copy(update={"speed_kmh": speed_kmh}))

    def _update(self, params: Parameters) -> None:
        if params == self._params:
            return
        self._params = params
        _logger.debug(
            "Parameters changed: time=%s min speed=%s km/h distance=%d m",
            params.time_minutes,
            params.speed_kmh,
            self.distance_budget_m,
        )
        for listener in list(self._listeners):
            listener(params)
