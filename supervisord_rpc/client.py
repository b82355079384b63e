"""Call engine for the supervisord XML-RPC interface.

:class:`RPCConnection` performs one request/response round trip per call:
encode, send with a deadline, read, optionally sanitize, decode, then
check the reply shape. It keeps no per-call state, so one instance can be
shared between threads. :class:`SupervisorClient` adds the typed methods
for the daemon's ``supervisor.*`` and ``system.*`` namespaces.
"""

import socket
import threading
import time
import xmlrpc.client
from typing import Any, Callable, Union
from xml.parsers.expat import ExpatError

import requests
from requests.exceptions import HTTPError, ReadTimeout, RequestException, Timeout
from urllib3.exceptions import ReadTimeoutError

from supervisord_rpc import replies
from supervisord_rpc.errors import (
    DecodeFault,
    EncodeError,
    ExplicitRejection,
    MalformedReply,
    RemoteFault,
    TransportError,
    TransportTimeout,
)
from supervisord_rpc.process_control import ProcessControlMixin
from supervisord_rpc.process_logging import ProcessLoggingMixin
from supervisord_rpc.status_control import StatusControlMixin
from supervisord_rpc.transport import Channel, resolve_channel
from supervisord_rpc.utils import config
from supervisord_rpc.utils.logger import get_logger
from supervisord_rpc.utils.sanitize import replace_xml_unsupported_chars, sanitize_url

logger = get_logger(__name__)

# Values XML-RPC can carry as call arguments.
RPCValue = Union[bool, int, float, str, bytes, list, tuple, dict]

CONTENT_TYPE = "text/xml"

Sanitizer = Callable[[bytes], bytes]


def _check_argument(method: str, value: Any, _containers: tuple = ()) -> None:
    """Reject values ``xmlrpc.client`` would otherwise marshal loosely.

    Plain objects with a ``__dict__`` would be sent as structs.
    """
    if isinstance(value, (bool, int, float, str, bytes)):
        return
    if not isinstance(value, (list, tuple, dict)):
        raise EncodeError(f"Cannot encode {type(value).__name__} argument for {method}", method)
    if any(value is container for container in _containers):
        raise EncodeError(f"Cannot encode recursive argument for {method}", method)

    _containers = _containers + (value,)
    if isinstance(value, dict):
        for key, item in value.items():
            if not isinstance(key, str):
                raise EncodeError(f"Struct keys must be strings, got {key!r} for {method}", method)
            _check_argument(method, item, _containers)
    else:
        for item in value:
            _check_argument(method, item, _containers)


def _is_read_timeout(e: RequestException) -> bool:
    # requests reports a read timeout hit while streaming the body as ConnectionError.
    return isinstance(e, requests.ConnectionError) and bool(e.args) and isinstance(e.args[0], ReadTimeoutError)


def _response_socket(response: requests.Response) -> socket.socket | None:
    connection = getattr(response.raw, "connection", None)
    sock = getattr(connection, "sock", None)
    return sock if isinstance(sock, socket.socket) else None


def _read_before(response: requests.Response, deadline: float) -> bytes:
    """
    Read the whole reply body, or raise ``ReadTimeout`` once ``deadline``
    (a ``time.monotonic()`` value) passes.

    The socket timeout only bounds each read, so a daemon trickling bytes
    could hold a call open indefinitely. A timer shuts the socket down at
    the deadline, which unblocks the read.
    """
    remaining = deadline - time.monotonic()
    if remaining <= 0:
        raise ReadTimeout("Deadline passed before the reply body was read", response=response)

    sock = _response_socket(response)
    if sock is None:
        return response.content

    expired = threading.Event()

    def expire():
        expired.set()
        try:
            sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            # closed by the reader in the meantime
            pass

    timer = threading.Timer(remaining, expire)
    timer.daemon = True
    timer.start()
    try:
        payload = response.content
    except RequestException as e:
        if expired.is_set():
            raise ReadTimeout("Deadline passed while reading the reply body", response=response) from e
        raise
    finally:
        timer.cancel()

    # A shutdown can also look like a short, clean end of body.
    if expired.is_set():
        raise ReadTimeout("Deadline passed while reading the reply body", response=response)
    return payload


class RPCConnection:
    def __init__(
        self,
        endpoint: str = config.DEFAULT_URL,
        username: str | None = None,
        password: str | None = None,
        timeout: float | None = None,
        debug: bool = False,
        sanitize: bool | Sanitizer = False,
        channel: Channel | None = None,
    ):
        """
        Args:
            endpoint: http(s) URL of the RPC service, or a Unix socket path
                (bare or ``unix://``-prefixed).
            username: Basic auth user. Only sent if ``password`` is set too.
            password: Basic auth password.
            timeout: Seconds allowed for each call. Defaults to 30.
            debug: Log request and reply bodies at DEBUG level.
            sanitize: Replace characters XML cannot carry before decoding
                replies. ``True`` uses :func:`replace_xml_unsupported_chars`;
                a callable is used as given.
            channel: Use this channel instead of resolving one from
                ``endpoint``. Credentials are still applied on top of it.
        """
        if timeout is not None and timeout <= 0:
            raise ValueError(f"Timeout must be greater than 0, got {timeout}")

        channel, url = resolve_channel(endpoint, username, password, base=channel)

        if sanitize is True:
            sanitize = replace_xml_unsupported_chars

        self._endpoint = endpoint
        self._channel = channel
        self._url = url
        self._timeout = float(timeout) if timeout is not None else config.DEFAULT_TIMEOUT
        self._debug = debug
        self._sanitize = sanitize or None

    @property
    def endpoint(self) -> str:
        return self._endpoint

    @property
    def url(self) -> str:
        """URL requests are addressed to (a placeholder for Unix sockets)."""
        return self._url

    @property
    def timeout(self) -> float:
        return self._timeout

    @property
    def debug(self) -> bool:
        return self._debug

    @property
    def channel(self) -> Channel:
        return self._channel

    def __repr__(self):
        return f"{type(self).__name__}({sanitize_url(self._endpoint)!r}, timeout={self._timeout})"

    def close(self):
        """Release pooled connections. The client stays usable afterwards."""
        close = getattr(self._channel, "close", None)
        if close is not None:
            close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def call(self, method: str, *args: RPCValue, shape: replies.Shape | None = None) -> Any:
        """
        Call ``method`` with positional ``args`` and return the decoded reply.

        When ``shape`` is given the decoded value is passed through it and
        its result is returned; a mismatch raises :class:`MalformedReply`.

        Raises:
            EncodeError: the request could not be built. Nothing was sent.
            TransportError: sending or reading failed, or the deadline expired
                (:class:`TransportTimeout`).
            DecodeFault: the reply is not valid XML-RPC, or is a fault
                (:class:`RemoteFault`).
            MalformedReply: the reply does not match ``shape``.
        """
        request = self._prepare_request(method, args)
        payload = self._send(method, request)

        if self._sanitize is not None:
            payload = self._sanitize(payload)

        value = self._decode(method, payload)
        if shape is None:
            return value

        try:
            return shape(value)
        except MalformedReply as e:
            e.method = method
            logger.debug(f"Malformed reply to {method}: {e}")
            raise

    def _prepare_request(self, method: str, args: tuple) -> requests.PreparedRequest:
        if not method or not isinstance(method, str):
            raise EncodeError(f"Invalid method name: {method!r}", method)

        for arg in args:
            _check_argument(method, arg)

        try:
            body = xmlrpc.client.dumps(tuple(args), methodname=method, encoding="utf-8").encode("utf-8")
        except (TypeError, OverflowError, ValueError) as e:
            raise EncodeError(f"Cannot encode arguments for {method}: {e}", method) from e

        if self._debug:
            logger.debug(f"xmlrpc call method: {method} args: {args!r}")
            logger.debug(f"xmlrpc request body: {body!r}")

        try:
            return requests.Request(
                "POST", self._url, data=body, headers={"Content-Type": CONTENT_TYPE}
            ).prepare()
        except RequestException as e:
            raise EncodeError(f"Cannot build request for {method}: {e}", method) from e

    def _send(self, method: str, request: requests.PreparedRequest) -> bytes:
        if self._debug:
            logger.debug(f"xmlrpc do request method: {method} url: {sanitize_url(self._url)}")

        deadline = time.monotonic() + self._timeout
        try:
            response = self._channel.send(request, self._timeout, stream=True)
            try:
                response.raise_for_status()
                payload = _read_before(response, deadline)
            finally:
                response.close()
        except Timeout as e:
            logger.debug(f"{method} timed out after {self._timeout}s")
            raise TransportTimeout(f"{method} timed out after {self._timeout}s", method) from e
        except HTTPError as e:
            status_code = e.response.status_code if e.response is not None else None
            logger.debug(f"{method} failed with HTTP status {status_code}")
            raise TransportError(f"{method} failed with HTTP status {status_code}", method, status_code) from e
        except RequestException as e:
            if _is_read_timeout(e):
                logger.debug(f"{method} timed out reading the reply after {self._timeout}s")
                raise TransportTimeout(f"{method} timed out after {self._timeout}s", method) from e
            logger.debug(f"{method} transport failure: {e}")
            raise TransportError(f"{method} failed: {e}", method) from e

        if self._debug:
            logger.debug(f"xmlrpc response body: {payload!r}")
        return payload

    def _decode(self, method: str, payload: bytes) -> Any:
        try:
            params, _ = xmlrpc.client.loads(payload, use_builtin_types=True)
        except xmlrpc.client.Fault as e:
            logger.debug(f"{method} fault {e.faultCode}: {e.faultString}")
            raise RemoteFault(e.faultCode, e.faultString, method) from e
        except (ExpatError, xmlrpc.client.Error, ValueError, TypeError) as e:
            logger.debug(f"Cannot decode reply to {method}: {e}")
            raise DecodeFault(f"Cannot decode reply to {method}: {e}", method) from e

        if len(params) != 1:
            raise MalformedReply(f"Expected one return value from {method}, got {len(params)}", method)
        return params[0]

    def _string_call(self, method: str, *args: RPCValue) -> str:
        return self.call(method, *args, shape=replies.string)

    def _bool_call(self, method: str, *args: RPCValue) -> None:
        if not self.call(method, *args, shape=replies.boolean):
            raise ExplicitRejection(f"{method} returned false", method)


class SupervisorClient(ProcessControlMixin, ProcessLoggingMixin, StatusControlMixin, RPCConnection):
    """
    Client for one supervisord instance.

    Usage:
        client = SupervisorClient("http://127.0.0.1:9001/RPC2")
        client = SupervisorClient("/tmp/supervisor.sock", username="user", password="123")
        for info in client.get_all_process_info():
            print(info.name, info.statename)
    """

    @classmethod
    def from_env(cls, **overrides) -> "SupervisorClient":
        """Build a client from the SUPERVISOR_* environment settings."""
        settings = {
            "endpoint": config.SUPERVISOR_SOCKET or config.SUPERVISOR_URL,
            "username": config.SUPERVISOR_USERNAME,
            "password": config.SUPERVISOR_PASSWORD,
            "timeout": float(config.SUPERVISOR_TIMEOUT),
            "debug": config.SUPERVISOR_DEBUG,
            "sanitize": config.SUPERVISOR_SANITIZE,
        }
        settings.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**settings)
