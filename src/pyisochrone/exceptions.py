"""Custom exception hierarchy for pyisochrone."""

from __future__ import annotations


class IsochroneError(Exception):
    """Base exception for all pyisochrone errors."""


class IsochroneConfigError(IsochroneError):
    """Invalid or missing configuration."""


class FetchError(IsochroneError):
    """A single isochrone fetch did not produce a usable result.

    Subclasses describe *why*; the aggregation engine treats them all the
    same way (the point contributes nothing for the current generation).
    """

    def __init__(self, message: str, *, endpoint: str = "") -> None:
        self.endpoint = endpoint
        super().__init__(message)


class NetworkFailure(FetchError):
    """No response from the oracle (connection error, timeout)."""


class OracleError(FetchError):
    """The oracle answered, but the answer reports a failure.

    Covers non-2xx statuses (bad request, quota exhausted, auth) as well as
    2xx bodies carrying an ``error`` object.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        code: str = "",
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.code = code
        super().__init__(message, endpoint=endpoint)


class MalformedResponse(FetchError):
    """Response body is not JSON or does not match the FeatureCollection schema."""
