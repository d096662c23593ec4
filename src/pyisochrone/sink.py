"""Overlay sink: the rendering collaborator.

The engine talks to the map through :class:`OverlaySink` only. Sinks are
stateless with respect to history; the engine owns the point-id
correlation needed to remove what it added.
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Protocol

from pydantic import BaseModel, ConfigDict, Field

_logger = logging.getLogger(__name__)


class OverlayStyle(BaseModel):
    """Polygon style for an isochrone overlay."""

    model_config = ConfigDict(frozen=True)

    color: str = "#6366f1"
    fill_color: str = "#6366f1"
    fill_opacity: float = Field(default=0.3, ge=0, le=1)


class MarkerStyle(BaseModel):
    """Circle marker style for a tracked point."""

    model_config = ConfigDict(frozen=True)

    radius: float = Field(default=2, gt=0)
    color: str = "red"
    fill_color: str = "red"
    fill_opacity: float = Field(default=1, ge=0, le=1)


class OverlaySink(Protocol):
    """Rendering capability keyed by point identity."""

    def add_overlay(self, point_id: int, geometry: dict[str, Any], style: OverlayStyle) -> None:
        ...

    def remove_overlay(self, point_id: int) -> None:
        ...

    def add_marker(self, point_id: int, lat: float, lng: float, style: MarkerStyle) -> None:
        ...

    def remove_marker(self, point_id: int) -> None:
        ...


class GeoJsonSink:
    """In-memory sink that renders the current map as GeoJSON.

    Adding an overlay or marker for an id that is already shown replaces it.
    Removing an unknown id is a no-op.
    """

    def __init__(self) -> None:
        self._overlays: dict[int, tuple[dict[str, Any], OverlayStyle]] = {}
        self._markers: dict[int, tuple[float, float, MarkerStyle]] = {}

    @property
    def overlay_ids(self) -> frozenset[int]:
        return frozenset(self._overlays)

    @property
    def marker_ids(self) -> frozenset[int]:
        return frozenset(self._markers)

    def add_overlay(self, point_id: int, geometry: dict[str, Any], style: OverlayStyle) -> None:
        self._overlays[point_id] = (copy.deepcopy(geometry), style)

    def remove_overlay(self, point_id: int) -> None:
        self._overlays.pop(point_id, None)

    def add_marker(self, point_id: int, lat: float, lng: float, style: MarkerStyle) -> None:
        self._markers[point_id] = (lat, lng, style)

    def remove_marker(self, point_id: int) -> None:
        self._markers.pop(point_id, None)

    def to_feature_collection(self) -> dict[str, Any]:
        """Current overlays and markers as one GeoJSON FeatureCollection."""
        features: list[dict[str, Any]] = []
        for point_id, (geometry, style) in sorted(self._overlays.items()):
            for feature in _iter_features(geometry):
                properties = dict(feature.get("properties") or {})
                properties.update({"point_id": point_id, "kind": "isochrone", **style.model_dump()})
                features.append({"type": "Feature", "geometry": feature.get("geometry"), "properties": properties})
        for point_id, (lat, lng, marker_style) in sorted(self._markers.items()):
            features.append(
                {
                    "type": "Feature",
                    "geometry": {"type": "Point", "coordinates": [lng, lat]},
                    "properties": {"point_id": point_id, "kind": "marker", **marker_style.model_dump()},
                }
            )
        return {"type": "FeatureCollection", "features": features}


def _iter_features(geojson: dict[str, Any]) -> list[dict[str, Any]]:
    """Normalise a FeatureCollection, Feature or bare geometry to a feature list."""
    kind = geojson.get("type")
    if kind == "FeatureCollection":
        return [f for f in geojson.get("features", []) if isinstance(f, dict)]
    if kind == "Feature":
        return [geojson]
    return [{"type": "Feature", "geometry": geojson, "properties": {}}]
