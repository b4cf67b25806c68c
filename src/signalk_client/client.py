"""Signal K Client -- discovery and connection orchestrator.

This module implements :class:`SignalKClient`, the primary entry point of
the library.  It discovers the server's endpoints, wires the REST
(:class:`~signalk_client.wire.http.SignalKHttp`) and stream
(:class:`~signalk_client.wire.stream.SignalKStream`) transports to them and
handles authentication, snapshots and application data.

Connection flow
---------------

1. **Discover** -- ``GET /signalk`` on the host returns the advertised
   endpoints per API version and the server identity.
2. **Resolve** -- pick the ``signalk-http`` / ``signalk-ws`` URLs for the
   selected API version, falling back to ``v1``.
3. **Wire** -- hand the resolved URLs to both transports.
4. **Stream** (optional) -- open the delta or playback WebSocket.

When discovery fails and ``fallback`` is enabled, endpoints derived from
the host address are used instead of raising.  With ``proxied`` set those
derived endpoints are always used, whatever the server advertises.

Usage
-----
::

    from signalk_client import ClientConfig, SignalKClient

    client = SignalKClient(ClientConfig(hostname="demo.signalk.org", port=443, use_ssl=True))
    client.stream.events.on("message", print)
    await client.connect_stream(subscribe="self")
"""
from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Mapping, Sequence
from datetime import UTC, datetime
from typing import Any

import httpx

from signalk_client.core.config import ClientConfig
from signalk_client.core.errors import (
    ConnectionFailed,
    EndpointUnavailable,
    InvalidArgument,
    MissingArgument,
)
from signalk_client.core.types import (
    AppDataContext,
    ConnectionState,
    Endpoint,
    HelloResponse,
    JSONPatch,
    LoginResult,
    PlaybackOptions,
    ServerIdentity,
    ServerInfo,
    Session,
)
from signalk_client.wire.http import SignalKHttp
from signalk_client.wire.identifiers import new_signalk_uuid, new_uuid
from signalk_client.wire.messages import Message
from signalk_client.wire.paths import (
    append_query,
    context_to_path,
    dot_to_slash,
    replace_segment,
    strip_leading_slash,
)
from signalk_client.wire.stream import Connector, SignalKStream

logger = logging.getLogger(__name__)

DISCOVERY_PATH: str = "/signalk"
AUTH_COOKIE_MARKER: str = "JAUTHENTICATION"
LEGACY_SERVER_ID: str = "signalk-server-node"
LOGIN_STATUS_PATH: str = "/skServer/loginStatus"
LEGACY_LOGIN_STATUS_PATH: str = "/loginstatus"
DEFAULT_VERSION_LABEL: str = "v1"

_AUTH_COOKIE = re.compile(rf"{AUTH_COOKIE_MARKER}=([^;,\s]*)")


def _to_utc_second(time: str) -> str:
    """Convert an ISO-8601 time to whole seconds in UTC (``...Z``).

    Times without an offset are taken as UTC.
    """
    try:
        parsed = datetime.fromisoformat(time)
    except ValueError as exc:
        raise InvalidArgument(
            f"Invalid ISO-8601 time: {time!r}", details={"time": time}
        ) from exc
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(UTC).replace(tzinfo=None)
    return f"{parsed.replace(microsecond=0).isoformat()}Z"


def _format_number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


class SignalKClient:
    """Client for a Signal K server.

    Parameters
    ----------
    config:
        Client configuration; ``ClientConfig()`` when omitted.
    transport:
        Optional :mod:`httpx` transport shared by all HTTP calls.
    connector:
        Optional WebSocket connector for the stream transport.

    Attributes
    ----------
    session:
        State shared by :attr:`api` and :attr:`stream` (token, version).
    api:
        REST transport bound to the discovered ``signalk-http`` endpoint.
    stream:
        Stream transport bound to the discovered ``signalk-ws`` endpoint.
    server:
        Capability record from the last successful discovery.
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        connector: Connector | None = None,
    ) -> None:
        self.config = config if config is not None else ClientConfig()
        self.session = Session(
            protocol_version=self.config.version,
            proxied=self.config.proxied,
            fallback=self.config.fallback,
            client_id=self.config.client_id,
            source_label=self.config.source_label,
        )
        self.api = SignalKHttp(
            self.session,
            timeout=self.config.request_timeout,
            transport=transport,
        )
        self.stream = SignalKStream(
            self.session,
            connection_timeout=self.config.connection_timeout,
            connector=connector,
        )
        self.server = ServerInfo()

        self._version_label = f"v{self.config.version}"
        self._state = ConnectionState.DISCONNECTED
        self._app_id = self.config.app_id
        self._app_version = self.config.app_version
        self._background: set[asyncio.Task[Any]] = set()

        self._hostname = self.config.hostname
        self._port = self.config.port
        self._protocol = "http"
        self._fallback_endpoints: dict[str, Endpoint] = {}
        self._init(self.config.hostname, self.config.port, self.config.use_ssl)

    # -- attributes ----------------------------------------------------------

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def version(self) -> int:
        """Preferred Signal K API major version, e.g. ``1``."""
        return int(self._version_label[1:])

    @version.setter
    def version(self, value: int) -> None:
        label = f"v{value}"
        if not self.server.api_versions:
            self._version_label = label
            logger.debug("Signal K api version set to: %s", label)
        else:
            if label in self.server.api_versions:
                self._version_label = label
            logger.debug(
                "Signal K api version set request: %s, result: %s",
                label,
                self._version_label,
            )
        self.session.protocol_version = self.version

    @property
    def auth_token(self) -> str:
        return self.session.auth_token

    @auth_token.setter
    def auth_token(self, value: str) -> None:
        self.session.auth_token = value or ""

    @property
    def fallback(self) -> bool:
        return self.session.fallback

    @fallback.setter
    def fallback(self, value: bool) -> None:
        self.session.fallback = value

    @property
    def proxied(self) -> bool:
        return self.session.proxied

    @proxied.setter
    def proxied(self, value: bool) -> None:
        self.session.proxied = value

    @property
    def message(self) -> type[Message]:
        return Message

    @property
    def uuid(self) -> str:
        """A new random v4 UUID."""
        return new_uuid()

    @property
    def signalk_uuid(self) -> str:
        """A new UUID in ``urn:mrn:signalk:uuid:`` form."""
        return new_signalk_uuid()

    @property
    def base_url(self) -> str:
        return f"{self._protocol}://{self._hostname}:{self._port}"

    @property
    def app_id(self) -> str:
        return self._app_id

    @app_id.setter
    def app_id(self, value: str) -> None:
        self._app_id = value

    @property
    def app_version(self) -> str:
        return self._app_version

    @app_version.setter
    def app_version(self, value: str) -> None:
        self._app_version = value

    # -- connection and discovery --------------------------------------------

    def _init(self, hostname: str | None, port: int | None, use_ssl: bool) -> None:
        self._hostname = hostname or self._hostname
        if use_ssl:
            self._protocol = "https"
            self._port = port or 443
        else:
            self._protocol = "http"
            self._port = port or 80
        ws_url = f"{'wss' if use_ssl else 'ws'}://{self._hostname}:{self._port}"
        self._fallback_endpoints = {
            DEFAULT_VERSION_LABEL: Endpoint(
                version="1.0.0",
                http_url=f"{self.base_url}/signalk/v1/api/",
                ws_url=f"{ws_url}/signalk/v1/stream",
            )
        }

    def _connection_args(
        self, hostname: str | None, port: int | None, use_ssl: bool | None
    ) -> tuple[str, int, bool]:
        return (
            hostname or self.config.hostname,
            port if port is not None else self.config.port,
            use_ssl if use_ssl is not None else self.config.use_ssl,
        )

    async def hello(
        self,
        hostname: str | None = None,
        port: int | None = None,
        use_ssl: bool | None = None,
    ) -> Any:
        """Request the discovery document (``GET /signalk``) and return it.

        Raises
        ------
        httpx.HTTPError
            On transport failure or a non-success status.
        """
        self._init(*self._connection_args(hostname, port, use_ssl))
        response = await self.api.request("GET", self._host_url(DISCOVERY_PATH))
        response.raise_for_status()
        return response.json()

    async def connect(
        self,
        hostname: str | None = None,
        port: int | None = None,
        use_ssl: bool | None = None,
    ) -> bool:
        """Discover endpoints and wire both transports, without opening the stream.

        Raises
        ------
        ConnectionFailed
            If discovery fails and ``fallback`` is disabled.  Server
            information is cleared first.
        """
        logger.debug("Contacting Signal K server.........")
        self._state = ConnectionState.DISCOVERING
        try:
            body = await self.hello(hostname, port, use_ssl)
            response = HelloResponse.model_validate(body)
        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as exc:
            if self.session.fallback:
                logger.debug("Discovery failed (%s), using fallback endpoints", exc)
                self.stream.close()
                self._process_hello(None)
                self._wire_endpoints()
                return True
            self._disconnected_from_server()
            raise ConnectionFailed(
                f"Discovery request to {self.base_url} failed: {exc}",
                details={"url": self._host_url(DISCOVERY_PATH)},
            ) from exc

        self.stream.close()
        self._process_hello(response)
        self._wire_endpoints()
        self._schedule_login_status_check()
        return True

    def disconnect(self) -> None:
        """Close the stream and forget the discovered server."""
        self.stream.close()
        self._disconnected_from_server()

    async def connect_stream(
        self,
        hostname: str | None = None,
        port: int | None = None,
        use_ssl: bool | None = None,
        subscribe: str | None = None,
    ) -> bool:
        """:meth:`connect` then open the delta stream.

        Raises
        ------
        EndpointUnavailable
            If the server advertises no stream endpoint.
        """
        await self.connect(hostname, port, use_ssl)
        url = self.resolve_stream_endpoint()
        if not url:
            raise EndpointUnavailable("Server has no advertised Stream endpoints!")
        self.stream.open(url, subscribe)
        return True

    async def connect_playback(
        self,
        hostname: str | None = None,
        port: int | None = None,
        use_ssl: bool | None = None,
        options: PlaybackOptions | Mapping[str, Any] | None = None,
    ) -> bool:
        """:meth:`connect` then open the playback stream."""
        await self.connect(hostname, port, use_ssl)
        self.open_playback(None, options, self.session.auth_token)
        return True

    def open_stream(
        self,
        url: str | None = None,
        subscribe: str | None = None,
        token: str | None = None,
    ) -> bool:
        """Open the delta stream without discovery.

        With no *url* the discovered stream endpoint is used.
        """
        logger.debug("openStream.........")
        if not url:
            url = self.resolve_stream_endpoint()
            if not url:
                raise EndpointUnavailable("Server has no advertised Stream endpoints!")
        self.stream.open(url, subscribe, token)
        return True

    def open_playback(
        self,
        url: str | None = None,
        options: PlaybackOptions | Mapping[str, Any] | None = None,
        token: str | None = None,
    ) -> bool:
        """Open a playback stream without discovery.

        With no *url* the discovered stream endpoint is used with its
        ``stream`` segment replaced by ``playback``.
        """
        logger.debug("openPlayback.........")
        if not url:
            url = self.resolve_stream_endpoint()
            if not url:
                raise EndpointUnavailable("Server has no advertised Stream endpoints!")
            url = replace_segment(url, "stream", "playback")
        subscribe: str | None = None
        if options is not None:
            if not isinstance(options, PlaybackOptions):
                options = PlaybackOptions.model_validate(options)
            if options.start_time:
                url = append_query(url, "startTime", _to_utc_second(options.start_time))
            if options.playback_rate:
                url = append_query(url, "playbackRate", _format_number(options.playback_rate))
            subscribe = options.subscribe or None
        self.stream.open(url, subscribe, token)
        return True

    def _process_hello(self, response: HelloResponse | None) -> None:
        fallback = {k: v.model_copy() for k, v in self._fallback_endpoints.items()}
        if self.session.proxied:
            endpoints = fallback
        elif response is not None and response.endpoints is not None:
            endpoints = response.endpoints
        else:
            endpoints = fallback
        if response is not None and response.server is not None:
            info = response.server
        else:
            info = ServerIdentity(id="fallback", version="1.43.0")
        self.server = ServerInfo(
            endpoints=endpoints,
            info=info,
            api_versions=list(endpoints),
        )
        logger.debug("endpoints: %s", self.server.api_versions)
        self.api.server = info
        self._state = ConnectionState.CONNECTED

    def _wire_endpoints(self) -> None:
        self.api.endpoint = self.resolve_http_endpoint()
        self.stream.endpoint = self.resolve_stream_endpoint()

    def _resolve(self, attr: str) -> str:
        for label in (self._version_label, DEFAULT_VERSION_LABEL):
            endpoint = self.server.endpoints.get(label)
            url = getattr(endpoint, attr, "") if endpoint is not None else ""
            if url:
                if label != self._version_label:
                    logger.debug("Connection falling back to: %s", label)
                return url
        return ""

    def resolve_stream_endpoint(self) -> str:
        """Return the preferred ``signalk-ws`` URL, or ``""`` if none."""
        return self._resolve("ws_url")

    def resolve_http_endpoint(self) -> str:
        """Return the preferred ``signalk-http`` URL, or ``""`` if none."""
        url = self._resolve("http_url")
        if not url:
            logger.debug(
                "No current connection http endpoint service! "
                "Use connect() to establish a connection."
            )
        return url

    def _disconnected_from_server(self) -> None:
        self.server = ServerInfo()
        self.api.server = ServerIdentity()
        self.api.endpoint = ""
        self.stream.endpoint = ""
        self._state = ConnectionState.DISCONNECTED

    # -- host-relative HTTP --------------------------------------------------

    def _host_url(self, path: str) -> str:
        if "://" in path:
            return path
        return f"{self.base_url}/{dot_to_slash(strip_leading_slash(path))}"

    async def get(self, path: str) -> Any:
        """GET *path* relative to the host (absolute URLs are used as given)."""
        response = await self.api.request("GET", self._host_url(path))
        return response.json()

    async def put(self, path: str, value: Any) -> httpx.Response:
        return await self.api.request(
            "PUT", self._host_url(path), body=value, has_body=True
        )

    async def post(self, path: str, value: Any) -> httpx.Response:
        return await self.api.request(
            "POST", self._host_url(path), body=value, has_body=True
        )

    # -- authentication ------------------------------------------------------

    def _auth_url(self, action: str) -> str:
        return f"{self.base_url}/signalk/{self._version_label}/auth/{action}"

    def _process_auth_response(self, response: httpx.Response) -> LoginResult:
        result = LoginResult(ok=response.is_success, status=response.status_code)
        if not response.is_success:
            return result
        for cookie in response.headers.get_list("set-cookie"):
            match = _AUTH_COOKIE.search(cookie)
            if match:
                self.auth_token = match.group(1)
                result.token = self.auth_token
        return result

    async def login(self, username: str, password: str) -> LoginResult:
        """Authenticate and store the returned token for both transports."""
        response = await self.api.request(
            "POST",
            self._auth_url("login"),
            body={"username": username, "password": password},
            has_body=True,
        )
        return self._process_auth_response(response)

    async def validate(self) -> LoginResult:
        """Validate / refresh the current token."""
        response = await self.api.request("POST", self._auth_url("validate"))
        return self._process_auth_response(response)

    async def logout(self) -> bool:
        """Invalidate the server-side session; ``False`` if the request failed."""
        try:
            response = await self.api.request("PUT", self._auth_url("logout"))
        except httpx.HTTPError as exc:
            logger.debug("logout failed: %s", exc)
            return False
        return response.is_success

    def _login_status_path(self) -> str:
        info = self.server.info
        if info.id == LEGACY_SERVER_ID:
            major, _, rest = info.version.partition(".")
            minor = rest.partition(".")[0]
            if major == "1" and minor.isdigit() and int(minor) < 36:
                return LEGACY_LOGIN_STATUS_PATH
        return LOGIN_STATUS_PATH

    async def get_login_status(self) -> Any:
        """Fetch the login status document from the server."""
        return await self.get(self._login_status_path())

    async def is_logged_in(self) -> bool:
        status = await self.get_login_status()
        return isinstance(status, dict) and status.get("status") == "loggedIn"

    def _schedule_login_status_check(self) -> None:
        task = asyncio.get_running_loop().create_task(self._check_login_status())
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _check_login_status(self) -> None:
        try:
            status = await self.get_login_status()
        except (httpx.HTTPError, ValueError) as exc:
            logger.debug("login status check failed: %s", exc)
            return
        if isinstance(status, dict):
            logger.debug("login status: %s", status.get("status"))

    # -- snapshot ------------------------------------------------------------

    async def snapshot(self, context: str, time: str) -> Any:
        """Return the state of *context* at *time* from the snapshot API.

        Raises
        ------
        MissingArgument
            If *time* is empty.
        InvalidArgument
            If *time* is not an ISO-8601 time.
        EndpointUnavailable
            If no HTTP endpoint has been discovered.
        """
        if not time:
            raise MissingArgument("No time value supplied!", details={"argument": "time"})
        url = self.resolve_http_endpoint()
        if not url:
            raise EndpointUnavailable("Unable to resolve URL!")
        url = replace_segment(url, "api", "snapshot")
        return await self.get(
            f"{url}{context_to_path(context)}?time={_to_utc_second(time)}"
        )

    # -- application data ----------------------------------------------------
    # context: 'user' or 'global'; app_id / version default to the
    # client's app_id / app_version.

    def _app_data_endpoint(
        self, context: AppDataContext | str, app_id: str | None
    ) -> str:
        app_id = app_id or self._app_id
        if not context or not app_id:
            raise MissingArgument(
                "Application data requires a context and an app id!",
                details={"context": str(context), "app_id": app_id},
            )
        try:
            scope = AppDataContext(context)
        except ValueError as exc:
            raise InvalidArgument(
                f"Unknown application data context: {context!r}",
                details={"context": str(context)},
            ) from exc
        base = self.resolve_http_endpoint()
        if not base:
            raise EndpointUnavailable("Unable to resolve URL!")
        url = replace_segment(base, "api", "applicationData")
        return f"{url}{scope.value}/{app_id}/"

    @staticmethod
    def _data_path(path: str) -> str:
        return dot_to_slash(strip_leading_slash(path))

    async def app_data_versions(
        self,
        context: AppDataContext | str = AppDataContext.USER,
        app_id: str | None = None,
    ) -> Any:
        """List the versions of stored data for an application."""
        return await self.get(self._app_data_endpoint(context, app_id))

    async def app_data_keys(
        self,
        path: str = "",
        context: AppDataContext | str = AppDataContext.USER,
        app_id: str | None = None,
        version: str | None = None,
    ) -> Any:
        """List the keys below *path*."""
        url = self._app_data_endpoint(context, app_id)
        version = version or self._app_version
        return await self.get(f"{url}{version}/{self._data_path(path)}?keys=true")

    async def app_data_get(
        self,
        path: str = "",
        context: AppDataContext | str = AppDataContext.USER,
        app_id: str | None = None,
        version: str | None = None,
    ) -> Any:
        url = self._app_data_endpoint(context, app_id)
        version = version or self._app_version
        return await self.get(f"{url}{version}/{self._data_path(path)}")

    async def app_data_set(
        self,
        path: str,
        value: Any,
        context: AppDataContext | str = AppDataContext.USER,
        app_id: str | None = None,
        version: str | None = None,
    ) -> httpx.Response:
        """Store *value* at *path*.

        Raises
        ------
        MissingArgument
            If *path* is empty.
        """
        if not path:
            raise MissingArgument("Invalid path!", details={"argument": "path"})
        url = self._app_data_endpoint(context, app_id)
        version = version or self._app_version
        return await self.post(f"{url}{version}/{self._data_path(path)}", value)

    async def app_data_patch(
        self,
        value: Sequence[JSONPatch | Mapping[str, Any]],
        context: AppDataContext | str = AppDataContext.USER,
        app_id: str | None = None,
        version: str | None = None,
    ) -> httpx.Response:
        """Apply a list of JSON-patch operations to the stored data.

        Raises
        ------
        MissingArgument
            If no version is given or configured.
        """
        version = version or self._app_version
        if not version:
            raise MissingArgument("Invalid path or version!", details={"argument": "version"})
        url = self._app_data_endpoint(context, app_id)
        ops = [
            op.model_dump() if isinstance(op, JSONPatch) else dict(op) for op in value
        ]
        return await self.post(f"{url}{version}", ops)
