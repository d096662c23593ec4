"""Isochrone fetcher: one oracle request per (point, distance budget).

Endpoint:
  - POST /v2/isochrones/{profile}
"""

from __future__ import annotations

import logging

from pydantic import ValidationError

from pyisochrone._constants import ISOCHRONES_PATH
from pyisochrone._transport import Transport
from pyisochrone.config import IsochroneConfig
from pyisochrone.exceptions import MalformedResponse
from pyisochrone.models.isochrone import IsochroneResult
from pyisochrone.models.point import Point
from pyisochrone.models.requests import IsochroneRequest

_logger = logging.getLogger(__name__)


class IsochroneFetcher:
    """Issue a single isochrone request and parse the answer.

    There is no retry here: a failed point stays failed until the next
    generation asks for it again.
    """

    def __init__(self, config: IsochroneConfig, transport: Transport) -> None:
        self._config = config
        self._transport = transport

    @property
    def endpoint(self) -> str:
        return f"{ISOCHRONES_PATH}/{self._config.profile}"

    async def fetch(self, point: Point, distance_m: int) -> IsochroneResult:
        """Fetch the isochrone of *point* for a *distance_m* metre budget.

        Returns
        -------
        IsochroneResult
            Parsed area, population and geometry.

        Raises
        ------
        NetworkFailure
            The oracle did not answer.
        OracleError
            The oracle answered with a failure.
        MalformedResponse
            The answer does not match the expected FeatureCollection shape.
        """
        endpoint = self.endpoint
        request = IsochroneRequest.for_point(point, distance_m, smoothing=self._config.smoothing)
        body = await self._transport.post_json(endpoint, request.to_payload())

        try:
            result = IsochroneResult.model_validate(body)
        except ValidationError as exc:
            raise MalformedResponse(
                f"Unexpected isochrone payload from {endpoint}: {exc.error_count()} error(s): "
                f"{exc.errors(include_url=False)[0]['msg']}",
                endpoint=endpoint,
            ) from exc

        _logger.debug(
            "Isochrone point=%d distance_m=%d area_km2=%.2f population=%d",
            point.point_id,
            distance_m,
            result.area_km2,
            result.population,
        )
        return result
