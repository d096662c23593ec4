"""Point registry: the ordered set of tracked points."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from dataclasses import dataclass

from pyisochrone.models.point import Point

_logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RegistryChange:
    """What happened to the registry.

    ``point`` is set for additions and ``None`` for a clear.
    """

    point: Point | None = None

    @property
    def cleared(self) -> bool:
        return self.point is None


RegistryListener = Callable[[RegistryChange], None]


class PointRegistry:
    """Ordered collection of points with stable, never-reused identities.

    Only bulk clearing is supported; there is no single-point removal.
    """

    def __init__(self) -> None:
        self._next_id = 1
        self._points: dict[int, Point] = {}
        self._listeners: list[RegistryListener] = []

    def __len__(self) -> int:
        return len(self._points)

    def __iter__(self) -> Iterator[Point]:
        return iter(tuple(self._points.values()))

    @property
    def points(self) -> tuple[Point, ...]:
        return tuple(self._points.values())

    def get(self, point_id: int) -> Point | None:
        return self._points.get(point_id)

    def subscribe(self, listener: RegistryListener) -> Callable[[], None]:
        """Register *listener*; returns a callable that unregisters it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def add_point(self, lat: float, lng: float) -> Point:
        point = Point(point_id=self._next_id, lat=lat, lng=lng)
        self._next_id += 1
        self._points[point.point_id] = point
        _logger.debug("Point %d added at lat=%s lng=%s", point.point_id, lat, lng)
        self._notify(RegistryChange(point=point))
        return point

    def clear_all(self) -> None:
        count = len(self._points)
        self._points.clear()
        _logger.debug("Registry cleared (%d points)", count)
        self._notify(RegistryChange())

    def _notify(self, change: RegistryChange) -> None:
        for listener in list(self._listeners):
            listener(change)
