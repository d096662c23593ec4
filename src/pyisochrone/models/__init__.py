"""Data models for pyisochrone."""

from pyisochrone.models._base import IsochroneBaseModel, safe_float, safe_int
from pyisochrone.models.isochrone import IsochroneResult
from pyisochrone.models.point import Parameters, Point
from pyisochrone.models.requests import IsochroneRequest

__all__ = [
    "IsochroneBaseModel",
    "IsochroneRequest",
    "IsochroneResult",
    "Parameters",
    "Point",
    "safe_float",
    "safe_int",
]
