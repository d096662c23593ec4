"""Tracked point and travel parameter value objects."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Point(BaseModel):
    """A user-selected location.

    ``point_id`` is minted by :class:`~pyisochrone.registry.PointRegistry`
    and never reused, so it is safe to correlate overlays and markers by it.
    """

    model_config = ConfigDict(frozen=True)

    point_id: int = Field(..., ge=0)
    lat: float = Field(..., ge=-90.0, le=90.0)
    lng: float = Field(..., ge=-180.0, le=180.0)

    @field_validator("lng", mode="before")
    @classmethod
    def _wrap_longitude(cls, value: Any) -> Any:
        # Map clicks on a panned world copy report longitudes past the antimeridian.
        if isinstance(value, (int, float)) and not isinstance(value, bool) and not -180.0 <= value <= 180.0:
            return ((value + 180.0) % 360.0) - 180.0
        return value

    @property
    def lnglat(self) -> list[float]:
        """Coordinates in oracle order (longitude first)."""
        return [self.lng, self.lat]


class Parameters(BaseModel):
    """Travel time budget (minutes) and speed (km/h)."""

    model_config = ConfigDict(frozen=True)

    time_minutes: float = Field(..., gt=0)
    speed_kmh: float = Field(..., gt=0)
