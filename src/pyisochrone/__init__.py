"""pyisochrone - Incremental aggregation of isochrone area and population."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pyisochrone")
except PackageNotFoundError:
    __version__ = "0+local"
from pyisochrone.client import IsochroneClient
from pyisochrone.config import IsochroneConfig
from pyisochrone.distance import (
    DistanceRounding,
    SensitivityPoint,
    distance_budget_m,
    distance_km,
    sensitivity_series,
)
from pyisochrone.engine import AggregationEngine, GenerationReport
from pyisochrone.exceptions import (
    FetchError,
    IsochroneConfigError,
    IsochroneError,
    MalformedResponse,
    NetworkFailure,
    OracleError,
)
from pyisochrone.fetcher import IsochroneFetcher
from pyisochrone.models import IsochroneRequest, IsochroneResult, Parameters, Point
from pyisochrone.parameters import ParameterStore
from pyisochrone.registry import PointRegistry, RegistryChange
from pyisochrone.sink import GeoJsonSink, MarkerStyle, OverlaySink, OverlayStyle
from pyisochrone.state import EnginePhase, MergeOutcome, PointOutcome, PointStatus, Totals, TriggerKind

__all__ = [
    "__version__",
    "AggregationEngine",
    "DistanceRounding",
    "EnginePhase",
    "FetchError",
    "GenerationReport",
    "GeoJsonSink",
    "IsochroneClient",
    "IsochroneConfig",
    "IsochroneConfigError",
    "IsochroneError",
    "IsochroneFetcher",
    "IsochroneRequest",
    "IsochroneResult",
    "MalformedResponse",
    "MarkerStyle",
    "MergeOutcome",
    "NetworkFailure",
    "OracleError",
    "OverlaySink",
    "OverlayStyle",
    "ParameterStore",
    "Parameters",
    "Point",
    "PointOutcome",
    "PointRegistry",
    "PointStatus",
    "RegistryChange",
    "SensitivityPoint",
    "Totals",
    "TriggerKind",
    "distance_budget_m",
    "distance_km",
    "sensitivity_series",
]
