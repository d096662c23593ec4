"""Internal constants shared across the library."""

BASE_URL = "https://api.openrouteservice.org"
ISOCHRONES_PATH = "/v2/isochrones"
DEFAULT_PROFILE = "driving-car"
USER_AGENT = "pyisochrone"

#: Attributes requested from the oracle on every isochrone call.
REQUESTED_ATTRIBUTES: tuple[str, ...] = ("area", "total_pop")

#: Oracle ``range_type`` discriminator; the budget is always a distance.
RANGE_TYPE_DISTANCE = "distance"

#: Square metres per square kilometre.
SQUARE_METRES_PER_KM2 = 1e6

# ------------------------------------------------------------------
# Parameter policy (observed slider ranges and initial values)
# ------------------------------------------------------------------

DEFAULT_TIME_RANGE: tuple[int, int] = (1, 60)
DEFAULT_SPEED_RANGE: tuple[int, int] = (10, 150)
DEFAULT_TIME_MINUTES = 5
DEFAULT_SPEED_KMH = 50

DEFAULT_DEBOUNCE_SECONDS = 0.5
DEFAULT_SMOOTHING = 0.1
DEFAULT_REQUEST_TIMEOUT = 30.0

#: Speeds plotted by the sensitivity chart (10..150 km/h in 10 km/h steps).
SENSITIVITY_SPEEDS: tuple[int, ...] = tuple(range(10, 151, 10))
