"""Oracle request payload models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from pyisochrone._constants import RANGE_TYPE_DISTANCE, REQUESTED_ATTRIBUTES
from pyisochrone.models.point import Point


class IsochroneRequest(BaseModel):
    """Body of one ``POST /v2/isochrones/{profile}`` call.

    One request always carries exactly one location so that each point
    fails and merges independently.
    """

    model_config = ConfigDict(frozen=True)

    lng: float
    lat: float
    distance_m: int = Field(..., gt=0)
    smoothing: float = Field(..., ge=0, le=100)

    @classmethod
    def for_point(cls, point: Point, distance_m: int, *, smoothing: float) -> IsochroneRequest:
        return cls(lng=point.lng, lat=point.lat, distance_m=distance_m, smoothing=smoothing)

    def to_payload(self) -> dict[str, Any]:
        return {
            "locations": [[self.lng, self.lat]],
            "range": [self.distance_m],
            "range_type": RANGE_TYPE_DISTANCE,
            "smoothing": self.smoothing,
            "attributes": list(REQUESTED_ATTRIBUTES),
        }
