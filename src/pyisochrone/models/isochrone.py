"""Isochrone result model."""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, Field, field_validator, model_validator

from pyisochrone._constants import SQUARE_METRES_PER_KM2
from pyisochrone.models._base import IsochroneBaseModel, safe_float, safe_int


class IsochroneResult(IsochroneBaseModel):
    """Area, population and geometry of one isochrone.

    Built from the oracle's GeoJSON FeatureCollection: only ``features[0]``
    is consumed. ``raw`` keeps the whole collection so renderers can draw it
    unchanged.

    Parameters
    ----------
    area : float
        Area in square metres, as returned by the oracle.
    population : int
        Population inside the isochrone (``total_pop``).
    geometry : dict
        GeoJSON geometry of the first feature.
    raw : dict
        Full FeatureCollection.
    """

    area: float = Field(..., ge=0)
    population: int = Field(..., ge=0, validation_alias=AliasChoices("population", "total_pop"))
    geometry: dict[str, Any]

    @model_validator(mode="before")
    @classmethod
    def _unwrap_feature_collection(cls, values: Any) -> Any:
        if not isinstance(values, dict) or "features" not in values:
            return values
        features = values.get("features")
        if not isinstance(features, list) or not features:
            raise ValueError("FeatureCollection has no features")
        first = features[0]
        if not isinstance(first, dict):
            raise ValueError("features[0] is not an object")
        properties = first.get("properties")
        if not isinstance(properties, dict):
            raise ValueError("features[0].properties is missing")
        return {
            "area": properties.get("area"),
            "total_pop": properties.get("total_pop"),
            "geometry": first.get("geometry"),
            "raw": values,
        }

    @field_validator("area", mode="before")
    @classmethod
    def _coerce_area(cls, value: Any) -> float:
        parsed = safe_float(value)
        if parsed is None:
            raise ValueError(f"area is not numeric: {value!r}")
        return parsed

    @field_validator("population", mode="before")
    @classmethod
    def _coerce_population(cls, value: Any) -> int:
        parsed = safe_int(value)
        if parsed is None:
            raise ValueError(f"total_pop is not numeric: {value!r}")
        return parsed

    @field_validator("geometry", mode="before")
    @classmethod
    def _require_geometry(cls, value: Any) -> Any:
        if not isinstance(value, dict) or "type" not in value:
            raise ValueError("features[0].geometry is not a GeoJSON geometry")
        return value

    @property
    def area_km2(self) -> float:
        return self.area / SQUARE_METRES_PER_KM2

    def feature_collection(self) -> dict[str, Any]:
        """GeoJSON to render: the original collection, or one built from ``geometry``."""
        if self.raw:
            return self.raw
        return {
            "type": "FeatureCollection",
            "features": [
                {
                    "type": "Feature",
                    "geometry": self.geometry,
                    "properties": {"area": self.area, "total_pop": self.population},
                }
            ],
        }
