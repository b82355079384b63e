"""Exception hierarchy for calls made against a supervisord daemon.

Every failure raised by this package derives from :class:`SupervisorError`
and carries a :class:`ErrorKind`. Callers should branch on the exception
class or on ``kind`` rather than on message text, for example to tell
"the daemon said no" apart from "the network broke".
"""

from enum import Enum


class ErrorKind(Enum):
    ENCODE = "encode"
    TRANSPORT = "transport"
    DECODE_FAULT = "decode_fault"
    MALFORMED_REPLY = "malformed_reply"
    EXPLICIT_REJECTION = "explicit_rejection"
    NOT_IMPLEMENTED = "not_implemented"


class SupervisorError(Exception):
    """Base exception for all supervisord client operations."""

    kind: ErrorKind

    def __init__(self, message: str, method: str | None = None):
        super().__init__(message)
        self.method = method


class EncodeError(SupervisorError):
    """The request could not be built locally. Nothing was sent."""

    kind = ErrorKind.ENCODE


class TransportError(SupervisorError):
    """Dialing, sending or reading failed.

    The effect of the call on the daemon is unknown: the request may or
    may not have been applied.
    """

    kind = ErrorKind.TRANSPORT

    def __init__(self, message: str, method: str | None = None, status_code: int | None = None):
        super().__init__(message, method)
        self.status_code = status_code


class TransportTimeout(TransportError):
    """The request deadline expired before a full reply arrived."""


class DecodeFault(SupervisorError):
    """The reply could not be decoded as XML-RPC, or the daemon sent a fault."""

    kind = ErrorKind.DECODE_FAULT


class RemoteFault(DecodeFault):
    """The daemon answered with an XML-RPC ``<fault>``."""

    def __init__(self, fault_code: int, fault_string: str, method: str | None = None):
        super().__init__(f"{fault_string} (fault {fault_code})", method)
        self.fault_code = fault_code
        self.fault_string = fault_string


class MalformedReply(SupervisorError):
    """The reply decoded fine but does not have the expected shape."""

    kind = ErrorKind.MALFORMED_REPLY


class ExplicitRejection(SupervisorError):
    """The daemon returned ``false``: it understood the request and declined it."""

    kind = ErrorKind.EXPLICIT_REJECTION


class OperationNotImplemented(SupervisorError, NotImplementedError):
    """The operation is not supported by this client. No call was made."""

    kind = ErrorKind.NOT_IMPLEMENTED
