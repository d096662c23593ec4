"""Client configuration for pyisochrone."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from pyisochrone._constants import (
    BASE_URL,
    DEFAULT_DEBOUNCE_SECONDS,
    DEFAULT_PROFILE,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_SMOOTHING,
    DEFAULT_SPEED_KMH,
    DEFAULT_SPEED_RANGE,
    DEFAULT_TIME_MINUTES,
    DEFAULT_TIME_RANGE,
)
from pyisochrone.distance import DistanceRounding


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


@dataclasses.dataclass(frozen=True)
class IsochroneConfig:
    """Engine and oracle configuration.

    Parameters
    ----------
    api_key : str
        Pre-shared oracle credential, sent as the ``Authorization`` header.
        May be empty when a custom transport is injected.
    base_url : str
        Oracle base URL.
    profile : str
        Routing profile path segment (e.g. ``"driving-car"``).
    smoothing : float
        Polygon smoothing factor passed to the oracle.
    debounce_seconds : float
        Quiet window; triggers arriving within it collapse into one generation.
    request_timeout : float
        Total per-request timeout in seconds.
    time_range : tuple of int
        Inclusive bounds accepted by ``ParameterStore.set_time``.
    speed_range : tuple of int
        Inclusive bounds accepted by ``ParameterStore.set_speed``.
    default_time : float
        Initial time budget in minutes.
    default_speed : float
        Initial speed in km/h.
    distance_rounding : DistanceRounding
        How the metre budget is rounded.
    max_concurrency : int or None
        Cap on in-flight fetches. ``None`` means one request per point with
        no upper bound.
    elide_unchanged : bool
        Skip a generation whose snapshot equals the last fully successful one.
    """

    api_key: str = ""
    base_url: str = BASE_URL
    profile: str = DEFAULT_PROFILE
    smoothing: float = DEFAULT_SMOOTHING
    debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    time_range: tuple[int, int] = DEFAULT_TIME_RANGE
    speed_range: tuple[int, int] = DEFAULT_SPEED_RANGE
    default_time: float = DEFAULT_TIME_MINUTES
    default_speed: float = DEFAULT_SPEED_KMH
    distance_rounding: DistanceRounding = DistanceRounding.FLOOR
    max_concurrency: int | None = None
    elide_unchanged: bool = False

    def __post_init__(self) -> None:
        if self.debounce_seconds < 0:
            raise ValueError(f"debounce_seconds must be >= 0, got {self.debounce_seconds}")
        if self.max_concurrency is not None and self.max_concurrency < 1:
            raise ValueError(f"max_concurrency must be >= 1 or None, got {self.max_concurrency}")
        for name in ("time_range", "speed_range"):
            low, high = getattr(self, name)
            if low <= 0 or low > high:
                raise ValueError(f"{name} must be a positive (low, high) pair, got {(low, high)}")

    @classmethod
    def from_env(cls, **overrides: Any) -> IsochroneConfig:
        """Create configuration from environment variables.

        Reads ``ORS_API_KEY``, ``ORS_BASE_URL``, ``ORS_PROFILE`` and the
        optional ``ISOCHRONE_*`` tuning variables. Explicit keyword arguments
        override environment values.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "ORS_API_KEY": "api_key",
            "ORS_BASE_URL": "base_url",
            "ORS_PROFILE": "profile",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        _ENV_FLOAT_MAP = {
            "ISOCHRONE_DEBOUNCE_SECONDS": "debounce_seconds",
            "ISOCHRONE_REQUEST_TIMEOUT": "request_timeout",
            "ISOCHRONE_SMOOTHING": "smoothing",
        }
        for env_key, field_name in _ENV_FLOAT_MAP.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                config_kwargs[field_name] = float(val)

        concurrency_env = env.get("ISOCHRONE_MAX_CONCURRENCY")
        if concurrency_env is not None and "max_concurrency" not in overrides:
            value = int(concurrency_env)
            # 0 (or negative) in the environment means "no cap"
            config_kwargs["max_concurrency"] = value if value > 0 else None

        rounding_env = env.get("ISOCHRONE_DISTANCE_ROUNDING")
        if rounding_env is not None and "distance_rounding" not in overrides:
            config_kwargs["distance_rounding"] = DistanceRounding(rounding_env.strip().lower())

        if "elide_unchanged" not in overrides:
            config_kwargs["elide_unchanged"] = _env_bool(env.get("ISOCHRONE_ELIDE_UNCHANGED"), False)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
