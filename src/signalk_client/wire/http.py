"""REST transport for the Signal K HTTP API.

:class:`SignalKHttp` issues GET / PUT / POST / DELETE requests against the
discovered ``signalk-http`` endpoint (e.g.
``http://host:3000/signalk/v1/api/``).  It holds no state of its own
besides the endpoint: the API version and bearer token are read from the
shared :class:`~signalk_client.core.types.Session`.

Conventions
-----------
* Paths may be dotted or slashed and may start with ``/``.
* Every method accepts an optional ``version`` keyword that rewrites the
  ``/v<N>/`` segment of the endpoint for that call only.
* ``put`` bodies are wrapped as ``{"value": ...}`` for API version 1 only;
  version 2 and later receive the raw value.
* With no endpoint configured every call returns ``None`` without any
  network activity.
* ``get`` returns the parsed JSON body; the write methods return the
  :class:`httpx.Response` untouched.
"""
from __future__ import annotations

import json
import logging
import re
from typing import TYPE_CHECKING, Any

import httpx

from signalk_client.core.types import ServerIdentity, Session
from signalk_client.wire.paths import (
    context_to_path,
    dot_to_slash,
    notification_path,
    strip_leading_slash,
)

if TYPE_CHECKING:
    from signalk_client.alarms import Alarm, AlarmType

logger = logging.getLogger(__name__)

JSON_CONTENT_TYPE: str = "application/json"

_VERSION_SEGMENT = re.compile(r"/v[0-9]+/")


def auth_headers(token: str, *, json_body: bool = False) -> dict[str, str]:
    """Build request headers for an optional ``JWT`` bearer token."""
    headers: dict[str, str] = {}
    if json_body:
        headers["Content-Type"] = JSON_CONTENT_TYPE
    if token:
        headers["Authorization"] = f"JWT {token}"
    return headers


class SignalKHttp:
    """HTTP client transport for the Signal K REST API.

    Parameters
    ----------
    session:
        Shared session providing ``protocol_version`` and ``auth_token``.
        A private session is created when omitted.
    timeout:
        Request timeout in seconds (default: 30).
    transport:
        Optional :mod:`httpx` transport, e.g. :class:`httpx.MockTransport`.
    """

    def __init__(
        self,
        session: Session | None = None,
        *,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.session = session if session is not None else Session()
        self.endpoint: str = ""
        self.server = ServerIdentity()
        self._timeout = timeout
        self._transport = transport

    # -- session passthrough -------------------------------------------------

    @property
    def version(self) -> int:
        return self.session.protocol_version

    @version.setter
    def version(self, value: int) -> None:
        self.session.protocol_version = value

    @property
    def auth_token(self) -> str:
        return self.session.auth_token

    @auth_token.setter
    def auth_token(self, value: str) -> None:
        self.session.auth_token = value or ""

    # -- helpers -------------------------------------------------------------

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self._timeout, transport=self._transport)

    def _build_headers(self, *, json_body: bool = False) -> dict[str, str]:
        return auth_headers(self.session.auth_token, json_body=json_body)

    def _base(self, version: int | None) -> str:
        if version is None:
            return self.endpoint
        return _VERSION_SEGMENT.sub(f"/v{version}/", self.endpoint, count=1)

    def _url(self, path: str, version: int | None, context: str | None = None) -> str:
        prefix = f"{context_to_path(context)}/" if context else ""
        path = strip_leading_slash(dot_to_slash(path))
        return f"{self._base(version)}{prefix}{path}"

    def _put_body(self, value: Any, version: int | None) -> Any:
        effective = version if version is not None else self.session.protocol_version
        if effective > 1:
            return value
        return {"value": value}

    async def request(
        self,
        method: str,
        url: str,
        *,
        body: Any = None,
        has_body: bool = False,
    ) -> httpx.Response:
        """Send one request to an absolute *url*.

        *body* is JSON-encoded only when *has_body* is set, so ``None`` can be
        sent as ``null``.  Non-GET requests carry a JSON ``Content-Type``.
        """
        logger.debug("%s %s", method.lower(), url)
        headers = self._build_headers(json_body=method != "GET")
        content = json.dumps(body) if has_body else None
        async with self._client() as client:
            return await client.request(method, url, headers=headers, content=content)

    # -- reads ---------------------------------------------------------------

    async def get(self, path: str, *, version: int | None = None) -> Any | None:
        """GET *path* and return the parsed JSON body."""
        if not self.endpoint:
            return None
        response = await self.request("GET", self._url(path, version))
        return response.json()

    async def get_self(self) -> Any | None:
        """Return the Signal K tree of the self vessel."""
        return await self.get("vessels/self")

    async def get_self_id(self) -> Any | None:
        return await self.get("self")

    async def get_meta(self, context: str, path: str) -> Any | None:
        """Return the ``meta`` object for *path* under *context*."""
        return await self.get(f"{context_to_path(context)}/{dot_to_slash(path)}/meta")

    # -- writes --------------------------------------------------------------

    async def put(
        self, path: str, value: Any, *, version: int | None = None
    ) -> httpx.Response | None:
        """PUT *value* to *path*."""
        if not self.endpoint:
            return None
        return await self.request(
            "PUT",
            self._url(path, version),
            body=self._put_body(value, version),
            has_body=True,
        )

    async def put_with_context(
        self,
        context: str,
        path: str,
        value: Any,
        *,
        version: int | None = None,
    ) -> httpx.Response | None:
        """PUT *value* to *path* below *context* (``self`` -> ``vessels/self``)."""
        if not self.endpoint:
            return None
        return await self.request(
            "PUT",
            self._url(path, version, context=context),
            body=self._put_body(value, version),
            has_body=True,
        )

    async def post(
        self, path: str, value: Any, *, version: int | None = None
    ) -> httpx.Response | None:
        if not self.endpoint:
            return None
        return await self.request(
            "POST", self._url(path, version), body=value, has_body=True
        )

    async def delete(
        self, path: str, *, version: int | None = None
    ) -> httpx.Response | None:
        if not self.endpoint:
            return None
        return await self.request("DELETE", self._url(path, version))

    # -- alarms --------------------------------------------------------------

    async def raise_alarm(
        self, context: str, name: str | AlarmType, alarm: Alarm
    ) -> httpx.Response | None:
        """Write *alarm* to ``notifications.<name>``; use ``"*"`` for all contexts."""
        return await self.put_with_context(context, notification_path(name), alarm.value)

    async def clear_alarm(
        self, context: str, name: str | AlarmType
    ) -> httpx.Response | None:
        return await self.put_with_context(context, notification_path(name), None)
