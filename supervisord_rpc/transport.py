"""Channels used to reach supervisord.

A channel is anything with
``send(request, timeout, stream=False) -> requests.Response``; with
``stream=True`` the body is left unread for the caller.
:func:`resolve_channel` picks a TCP or Unix-socket channel for an endpoint
and wraps it with :class:`BasicAuthChannel` when credentials are given.
Building a channel performs no I/O; sockets are opened on the first call.
"""

import os
import socket
from typing import Protocol

import requests
from requests.adapters import HTTPAdapter
from requests.auth import HTTPBasicAuth
from urllib3.connection import HTTPConnection
from urllib3.connectionpool import HTTPConnectionPool
from urllib3.exceptions import ConnectTimeoutError, NewConnectionError

from supervisord_rpc.utils import config
from supervisord_rpc.utils.sanitize import strip_credentials

UNIX_SCHEME = "unix://"


class Channel(Protocol):
    def send(
        self, request: requests.PreparedRequest, timeout: float, stream: bool = False
    ) -> requests.Response: ...


class UnixStreamHTTPConnection(HTTPConnection):
    """HTTP connection over Unix socket."""

    def __init__(self, *args, socket_path: str, **kwargs):
        self.socket_path = socket_path
        super().__init__(*args, **kwargs)

    def _new_conn(self) -> socket.socket:
        sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        if isinstance(self.timeout, (int, float)):
            sock.settimeout(self.timeout)
        try:
            sock.connect(self.socket_path)
        except socket.timeout as e:
            sock.close()
            raise ConnectTimeoutError(self, f"Connection to {self.socket_path} timed out") from e
        except OSError as e:
            sock.close()
            raise NewConnectionError(self, f"Failed to connect to {self.socket_path}: {e}") from e
        return sock


class UnixStreamConnectionPool(HTTPConnectionPool):
    """Connection pool whose connections all dial one socket path."""

    ConnectionCls = UnixStreamHTTPConnection

    def __init__(self, socket_path: str, **kwargs):
        self.socket_path = socket_path
        # The host only ends up in the Host header; it is never resolved.
        super().__init__("127.0.0.1", socket_path=socket_path, **kwargs)


class UnixSocketAdapter(HTTPAdapter):
    """Transport adapter that sends every request to a fixed Unix socket,
    whatever host the request URL names."""

    def __init__(self, socket_path: str, pool_maxsize: int = 10):
        self.socket_path = socket_path
        super().__init__(max_retries=0, pool_maxsize=pool_maxsize)
        self._unix_pool = UnixStreamConnectionPool(socket_path, maxsize=pool_maxsize)

    def get_connection_with_tls_context(self, request, verify, proxies=None, cert=None):
        return self._unix_pool

    def get_connection(self, url, proxies=None):
        return self._unix_pool

    def close(self):
        super().close()
        self._unix_pool.close()


class SessionChannel:
    """Base channel that sends prepared requests through a requests session."""

    def __init__(self, session: requests.Session):
        self.session = session

    def send(self, request: requests.PreparedRequest, timeout: float, stream: bool = False) -> requests.Response:
        return self.session.send(request, timeout=timeout, stream=stream, allow_redirects=False)

    def close(self):
        self.session.close()


class BasicAuthChannel:
    """Wraps another channel and adds basic auth to every request."""

    def __init__(self, inner: Channel, username: str, password: str):
        self.inner = inner
        self._auth = HTTPBasicAuth(username, password)

    @property
    def username(self) -> str:
        return self._auth.username

    def send(self, request: requests.PreparedRequest, timeout: float, stream: bool = False) -> requests.Response:
        # Copy so a request shared between threads is never modified.
        request = request.copy()
        request.prepare_auth(self._auth)
        return self.inner.send(request, timeout, stream=stream)

    def close(self):
        close = getattr(self.inner, "close", None)
        if close is not None:
            close()


def tcp_channel() -> SessionChannel:
    session = requests.Session()
    adapter = HTTPAdapter(max_retries=0)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    return SessionChannel(session)


def unix_socket_channel(socket_path: str) -> SessionChannel:
    session = requests.Session()
    # Proxy settings from the environment must not redirect socket traffic.
    session.trust_env = False
    adapter = UnixSocketAdapter(socket_path)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    return SessionChannel(session)


def with_basic_auth(channel: Channel, username: str | None, password: str | None) -> Channel:
    if username and password:
        return BasicAuthChannel(channel, username, password)
    return channel


def is_socket_endpoint(endpoint: str) -> bool:
    return endpoint.startswith((UNIX_SCHEME, "/", "./", "../", "~"))


def socket_path_from_endpoint(endpoint: str) -> str:
    if endpoint.startswith(UNIX_SCHEME):
        endpoint = endpoint[len(UNIX_SCHEME):]
    return os.path.expanduser(endpoint)


def resolve_channel(
    endpoint: str,
    username: str | None = None,
    password: str | None = None,
    base: Channel | None = None,
) -> tuple[Channel, str]:
    """
    Build the channel for ``endpoint`` and the URL requests are addressed to.

    ``endpoint`` is either an http(s) URL or a Unix socket path (bare or
    ``unix://``-prefixed). Socket channels are addressed to a placeholder
    URL so that request preparation always sees a well-formed URL; the
    socket path alone decides where bytes go.

    When ``base`` is given it is used instead of a new TCP or socket
    channel; credentials are still layered on top of it.
    """
    if not endpoint:
        raise ValueError("Endpoint must not be empty")

    if is_socket_endpoint(endpoint):
        channel = base if base is not None else unix_socket_channel(socket_path_from_endpoint(endpoint))
        return with_basic_auth(channel, username, password), config.SOCKET_PLACEHOLDER_URL

    if not endpoint.startswith(("http://", "https://")):
        raise ValueError(f"Unsupported endpoint {endpoint!r}: expected an http(s) URL or a socket path")

    url, url_username, url_password = strip_credentials(endpoint)
    if not username and not password:
        username, password = url_username, url_password
    channel = base if base is not None else tcp_channel()
    return with_basic_auth(channel, username, password), url
