"""HTTP transport for the routing oracle."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol

import aiohttp

from pyisochrone._constants import USER_AGENT
from pyisochrone._redact import redact_for_log
from pyisochrone.config import IsochroneConfig
from pyisochrone.exceptions import MalformedResponse, NetworkFailure, OracleError

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface used by the fetcher.

    Having a protocol here makes it easy to pass test doubles/mocks while
    keeping the production implementation (`HttpTransport`) concrete.
    """

    async def post_json(self, endpoint: str, payload: Mapping[str, Any]) -> dict[str, Any]:
        ...


def _oracle_error_message(body: Any) -> tuple[str, str]:
    """Extract ``(code, message)`` from an oracle error body, if any."""
    if not isinstance(body, dict):
        return "", ""
    error = body.get("error")
    if isinstance(error, dict):
        return str(error.get("code", "")), str(error.get("message", ""))
    if isinstance(error, str):
        return "", error
    return "", ""


class HttpTransport:
    """JSON-over-HTTP transport authenticated with the pre-shared API key."""

    def __init__(
        self,
        config: IsochroneConfig,
        http_session: aiohttp.ClientSession,
    ) -> None:
        self._config = config
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=config.request_timeout)

    def _headers(self) -> dict[str, str]:
        headers: dict[str, str] = {
            "accept": "application/json, application/geo+json",
            "content-type": "application/json; charset=utf-8",
            "user-agent": USER_AGENT,
        }
        if self._config.api_key:
            headers["authorization"] = self._config.api_key
        return headers

    async def post_json(self, endpoint: str, payload: Mapping[str, Any]) -> dict[str, Any]:
        """POST *payload* as JSON and return the decoded JSON object.

        Raises
        ------
        NetworkFailure
            No response was received.
        OracleError
            Non-2xx status, or a 2xx body carrying an ``error`` object.
        MalformedResponse
            The body is not a JSON object.
        """
        url = f"{self._config.base_url}{endpoint}"
        headers = self._headers()

        _logger.debug("POST %s headers=%s body=%s", url, redact_for_log(headers), redact_for_log(payload))

        try:
            async with self._http.post(url, json=dict(payload), headers=headers, timeout=self._timeout) as resp:
                raw = await resp.read()
                status = resp.status
        except (aiohttp.ClientError, TimeoutError) as exc:
            raise NetworkFailure(
                f"Request to {endpoint} failed: {exc!r}",
                endpoint=endpoint,
            ) from exc

        try:
            text = raw.decode("utf-8")
            body: Any = json.loads(text) if text else None
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            text = raw.decode("utf-8", errors="replace")
            if not 200 <= status < 300:
                raise OracleError(
                    f"HTTP {status} from {endpoint}: {text[:200]}",
                    status_code=status,
                    endpoint=endpoint,
                ) from exc
            raise MalformedResponse(
                f"Invalid JSON from {endpoint}: {text[:200]}",
                endpoint=endpoint,
            ) from exc

        code, message = _oracle_error_message(body)
        if not 200 <= status < 300 or code or message:
            raise OracleError(
                f"HTTP {status} from {endpoint}: code={code} message={message or text[:200]}",
                status_code=status,
                code=code,
                endpoint=endpoint,
            )

        if not isinstance(body, dict):
            raise MalformedResponse(
                f"Expected a JSON object from {endpoint}, got {type(body).__name__}",
                endpoint=endpoint,
            )

        _logger.debug("HTTP %d from %s body=%s", status, endpoint, redact_for_log(body, max_items=3))
        return body
