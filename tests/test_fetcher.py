from __future__ import annotations

import json
from typing import Any

import aiohttp
import pytest

from pyisochrone._transport import HttpTransport
from pyisochrone.config import IsochroneConfig
from pyisochrone.exceptions import MalformedResponse, NetworkFailure, OracleError
from pyisochrone.fetcher import IsochroneFetcher
from pyisochrone.models.point import Point

_POINT = Point(point_id=7, lat=53.55, lng=10.01667)
_COLLECTION = {
    "type": "FeatureCollection",
    "features": [
        {
            "type": "Feature",
            "geometry": {"type": "Polygon", "coordinates": [[[10.0, 53.5], [10.1, 53.5], [10.0, 53.5]]]},
            "properties": {"area": 2_000_000.0, "total_pop": 1500},
        }
    ],
}


class _StaticTransport:
    def __init__(self, response: Any = None, error: Exception | None = None) -> None:
        self._response = response
        self._error = error
        self.requests: list[tuple[str, dict[str, Any]]] = []

    async def post_json(self, endpoint: str, payload: dict[str, Any]) -> dict[str, Any]:
        self.requests.append((endpoint, dict(payload)))
        if self._error is not None:
            raise self._error
        return self._response


class _FakeResponse:
    def __init__(self, status: int, body: str | bytes) -> None:
        self.status = status
        self._body = body.encode("utf-8") if isinstance(body, str) else body

    async def read(self) -> bytes:
        return self._body

    async def __aenter__(self) -> _FakeResponse:
        return self

    async def __aexit__(self, *_exc: object) -> None:
        return None


class _FakeSession:
    def __init__(self, response: _FakeResponse | None = None, error: BaseException | None = None) -> None:
        self._response = response
        self._error = error
        self.posts: list[dict[str, Any]] = []

    def post(self, url: str, *, json: Any, headers: dict[str, str], timeout: Any) -> _FakeResponse:
        self.posts.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        if self._error is not None:
            raise self._error
        assert self._response is not None
        return self._response


def _http_transport(session: _FakeSession, **overrides: Any) -> HttpTransport:
    overrides.setdefault("api_key", "secret-key")
    return HttpTransport(IsochroneConfig(**overrides), session)  # type: ignore[arg-type]


# ------------------------------------------------------------------
# IsochroneFetcher
# ------------------------------------------------------------------


@pytest.mark.asyncio
async def test_fetch_posts_one_location_and_parses_result() -> None:
    transport = _StaticTransport(response=_COLLECTION)
    fetcher = IsochroneFetcher(IsochroneConfig(smoothing=0.25, profile="cycling-regular"), transport)

    result = await fetcher.fetch(_POINT, 4166)

    assert result.area_km2 == pytest.approx(2.0)
    assert result.population == 1500
    (endpoint, payload), = transport.requests
    assert endpoint == "/v2/isochrones/cycling-regular"
    assert payload["locations"] == [[10.01667, 53.55]]
    assert payload["range"] == [4166]
    assert payload["smoothing"] == 0.25


@pytest.mark.asyncio
async def test_fetch_wraps_schema_errors_as_malformed_response() -> None:
    fetcher = IsochroneFetcher(IsochroneConfig(), _StaticTransport(response={"type": "FeatureCollection", "features": []}))

    with pytest.raises(MalformedResponse) as exc_info:
        await fetcher.fetch(_POINT, 1000)

    assert exc_info.value.endpoint == "/v2/isochrones/driving-car"
    assert "no features" in str(exc_info.value)


@pytest.mark.asyncio
async def test_fetch_does_not_retry_transport_errors() -> None:
    transport = _StaticTransport(error=NetworkFailure("down"))
    fetcher = IsochroneFetcher(IsochroneConfig(), transport)

    with pytest.raises(NetworkFailure):
        await fetcher.fetch(_POINT, 1000)
    assert len(transport.requests) == 1


# ------------------------------------------------------------------
# HttpTransport error mapping
# ------------------------------------------------------------------


@pytest.mark.asyncio
async def test_http_transport_sends_key_and_json_body() -> None:
    session = _FakeSession(_FakeResponse(200, json.dumps(_COLLECTION)))
    transport = _http_transport(session, base_url="https://ors.example")

    body = await transport.post_json("/v2/isochrones/driving-car", {"range": [1000]})

    assert body == _COLLECTION
    (post,) = session.posts
    assert post["url"] == "https://ors.example/v2/isochrones/driving-car"
    assert post["json"] == {"range": [1000]}
    assert post["headers"]["authorization"] == "secret-key"
    assert post["timeout"].total == pytest.approx(30.0)


@pytest.mark.asyncio
async def test_http_transport_omits_authorization_without_key() -> None:
    session = _FakeSession(_FakeResponse(200, "{}"))
    await _http_transport(session, api_key="").post_json("/x", {})
    assert "authorization" not in session.posts[0]["headers"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [aiohttp.ClientConnectionError("refused"), TimeoutError()],
)
async def test_http_transport_maps_no_response_to_network_failure(error: BaseException) -> None:
    transport = _http_transport(_FakeSession(error=error))

    with pytest.raises(NetworkFailure) as exc_info:
        await transport.post_json("/v2/isochrones/driving-car", {})

    assert exc_info.value.endpoint == "/v2/isochrones/driving-car"


@pytest.mark.asyncio
async def test_http_transport_maps_error_status_to_oracle_error() -> None:
    body = json.dumps({"error": {"code": 2003, "message": "Quota exceeded"}})
    transport = _http_transport(_FakeSession(_FakeResponse(403, body)))

    with pytest.raises(OracleError) as exc_info:
        await transport.post_json("/v2/isochrones/driving-car", {})

    exc = exc_info.value
    assert exc.status_code == 403
    assert exc.code == "2003"
    assert "Quota exceeded" in str(exc)


@pytest.mark.asyncio
async def test_http_transport_maps_non_json_error_status_to_oracle_error() -> None:
    transport = _http_transport(_FakeSession(_FakeResponse(502, "<html>Bad Gateway</html>")))

    with pytest.raises(OracleError) as exc_info:
        await transport.post_json("/v2/isochrones/driving-car", {})

    assert exc_info.value.status_code == 502


@pytest.mark.asyncio
async def test_http_transport_maps_error_body_with_ok_status_to_oracle_error() -> None:
    transport = _http_transport(_FakeSession(_FakeResponse(200, json.dumps({"error": "Unauthorized"}))))

    with pytest.raises(OracleError, match="Unauthorized"):
        await transport.post_json("/v2/isochrones/driving-car", {})


@pytest.mark.asyncio
@pytest.mark.parametrize("text", ["not json", "[1, 2]", ""])
async def test_http_transport_maps_bad_bodies_to_malformed_response(text: str) -> None:
    transport = _http_transport(_FakeSession(_FakeResponse(200, text)))

    with pytest.raises(MalformedResponse):
        await transport.post_json("/v2/isochrones/driving-car", {})


@pytest.mark.asyncio
async def test_http_transport_maps_undecodable_body_to_malformed_response() -> None:
    transport = _http_transport(_FakeSession(_FakeResponse(200, b'{"type": "\xff\xfe"}')))

    with pytest.raises(MalformedResponse, match="Invalid JSON"):
        await transport.post_json("/v2/isochrones/driving-car", {})


@pytest.mark.asyncio
async def test_http_transport_maps_undecodable_error_body_to_oracle_error() -> None:
    transport = _http_transport(_FakeSession(_FakeResponse(500, b"\xff\xfe gateway")))

    with pytest.raises(OracleError) as exc_info:
        await transport.post_json("/v2/isochrones/driving-car", {})

    assert exc_info.value.status_code == 500
