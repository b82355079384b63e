"""Client for the supervisord XML-RPC interface."""

from supervisord_rpc.client import RPCConnection, SupervisorClient
from supervisord_rpc.errors import (
    DecodeFault,
    EncodeError,
    ErrorKind,
    ExplicitRejection,
    MalformedReply,
    OperationNotImplemented,
    RemoteFault,
    SupervisorError,
    TransportError,
    TransportTimeout,
)
from supervisord_rpc.models import (
    FaultCode,
    LogSegment,
    ProcessInfo,
    ProcessState,
    ProcessStatus,
    ReloadResult,
    StateCode,
    SupervisorState,
)
from supervisord_rpc.transport import BasicAuthChannel, SessionChannel, resolve_channel
from supervisord_rpc.utils.sanitize import replace_xml_unsupported_chars

__version__ = "0.1.0"
__all__ = [
    "RPCConnection",
    "SupervisorClient",
    "SupervisorError",
    "ErrorKind",
    "EncodeError",
    "TransportError",
    "TransportTimeout",
    "DecodeFault",
    "RemoteFault",
    "MalformedReply",
    "ExplicitRejection",
    "OperationNotImplemented",
    "FaultCode",
    "LogSegment",
    "ProcessInfo",
    "ProcessState",
    "ProcessStatus",
    "ReloadResult",
    "StateCode",
    "SupervisorState",
    "BasicAuthChannel",
    "SessionChannel",
    "resolve_channel",
    "replace_xml_unsupported_chars",
]
