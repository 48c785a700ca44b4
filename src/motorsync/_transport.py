"""HTTP transport for the device's JSON API."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol

import aiohttp

from motorsync._constants import ERROR_BODY_LIMIT, USER_AGENT
from motorsync.config import MotorConfig
from motorsync.exceptions import MotorTransportError

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface used by the poller and dispatcher.

    Having a protocol here makes it easy to pass test doubles while
    keeping the production implementation (`HttpTransport`) concrete.
    """

    async def get_json(self, endpoint: str) -> Any:
        ...

    async def post_json(self, endpoint: str, payload: Mapping[str, Any] | None = None) -> Any:
        ...


def _summarize(text: str, limit: int = ERROR_BODY_LIMIT) -> str:
    text = text.strip()
    if len(text) > limit:
        return f"{text[:limit]}…"
    return text


def _decode_body(raw: bytes, charset: str | None) -> str:
    """Decode a response body without ever failing on bad bytes."""
    try:
        return raw.decode(charset or "utf-8", errors="replace")
    except LookupError:
        return raw.decode("utf-8", errors="replace")


class HttpTransport:
    """JSON-over-HTTP transport backed by a shared ``aiohttp`` session.

    Successful responses decode to the parsed JSON value, or ``None``
    when the body is empty or not JSON. Everything else is raised as
    :class:`MotorTransportError`; cancellation propagates untouched.
    """

    def __init__(self, config: MotorConfig, http_session: aiohttp.ClientSession) -> None:
        self._config = config
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=config.request_timeout)

    async def get_json(self, endpoint: str) -> Any:
        return await self._request("GET", endpoint)

    async def post_json(self, endpoint: str, payload: Mapping[str, Any] | None = None) -> Any:
        return await self._request("POST", endpoint, payload)

    async def _request(
        self,
        method: str,
        endpoint: str,
        payload: Mapping[str, Any] | None = None,
    ) -> Any:
        url = f"{self._config.base_url}{endpoint}"
        headers = {
            "accept": "application/json",
            "content-type": "application/json",
            "user-agent": USER_AGENT,
        }
        body = json.dumps(dict(payload), separators=(",", ":")) if payload is not None else None

        _logger.debug("%s %s %s", method, url, body or "")

        try:
            async with self._http.request(
                method,
                url,
                data=body,
                headers=headers,
                timeout=self._timeout,
            ) as resp:
                text = _decode_body(await resp.read(), resp.charset)
                if not 200 <= resp.status < 300:
                    message = f"{resp.status} {resp.reason or ''} {_summarize(text)}"
                    raise MotorTransportError(
                        " ".join(message.split()),
                        status_code=resp.status,
                        endpoint=endpoint,
                    )
        except MotorTransportError:
            raise
        except TimeoutError as exc:
            raise MotorTransportError(
                f"Request to {endpoint} timed out after {self._config.request_timeout}s",
                endpoint=endpoint,
            ) from exc
        except aiohttp.ClientError as exc:
            raise MotorTransportError(
                f"Request to {endpoint} failed: {exc}",
                endpoint=endpoint,
            ) from exc

        _logger.debug("%s %s -> %s", method, endpoint, _summarize(text, 512))

        if not text.strip():
            return None
        try:
            return json.loads(text)
        except json.JSONDecodeError:
            _logger.debug("Ignoring non-JSON body from %s", endpoint)
            return None

