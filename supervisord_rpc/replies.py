"""Reply shapes.

A shape is a callable that takes the decoded XML-RPC value and returns
the typed value, or raises :class:`MalformedReply` when the value does
not have the expected structure. Values are never coerced across
unrelated types: an ``int`` is not accepted where a ``bool`` is expected
and vice versa.
"""

from typing import Any, Callable, TypeVar

from supervisord_rpc.errors import MalformedReply
from supervisord_rpc.models import (
    ProcessInfo,
    ProcessState,
    ProcessStatus,
    ReloadResult,
    StateCode,
    SupervisorState,
)

T = TypeVar("T")
Shape = Callable[[Any], T]


def _type_name(value: Any) -> str:
    return type(value).__name__


def string(value: Any) -> str:
    if not isinstance(value, str):
        raise MalformedReply(f"Expected a string, got {_type_name(value)}")
    return value


def boolean(value: Any) -> bool:
    if not isinstance(value, bool):
        raise MalformedReply(f"Expected a boolean, got {_type_name(value)}")
    return value


def integer(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise MalformedReply(f"Expected an integer, got {_type_name(value)}")
    return value


def list_of(item_shape: Shape[T]) -> Shape[list[T]]:
    def shape(value: Any) -> list[T]:
        if not isinstance(value, list):
            raise MalformedReply(f"Expected an array, got {_type_name(value)}")
        return [item_shape(item) for item in value]

    return shape


def _struct(value: Any, fields: dict[str, Shape]) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise MalformedReply(f"Expected a struct, got {_type_name(value)}")
    missing = [name for name in fields if name not in value]
    if missing:
        raise MalformedReply(f"Struct is missing fields: {', '.join(missing)}")
    result = {}
    for name, field_shape in fields.items():
        try:
            result[name] = field_shape(value[name])
        except MalformedReply as e:
            raise MalformedReply(f"Field {name!r}: {e}") from e
    return result


def _enum_member(enum_cls):
    def shape(value: Any):
        code = integer(value)
        try:
            return enum_cls(code)
        except ValueError as e:
            raise MalformedReply(f"Unknown {enum_cls.__name__} code {code}") from e

    return shape


_PROCESS_INFO_FIELDS = {
    "name": string,
    "group": string,
    "start": integer,
    "stop": integer,
    "now": integer,
    "state": _enum_member(ProcessState),
    "statename": string,
    "spawnerr": string,
    "exitstatus": integer,
    "stdout_logfile": string,
    "stderr_logfile": string,
    "pid": integer,
}


def process_info(value: Any) -> ProcessInfo:
    fields = _struct(value, _PROCESS_INFO_FIELDS)
    description = value.get("description", "")
    return ProcessInfo(description=string(description), **fields)


def process_status(value: Any) -> ProcessStatus:
    fields = _struct(
        value,
        {"name": string, "group": string, "status": integer, "description": string},
    )
    return ProcessStatus(**fields)


def supervisor_state(value: Any) -> SupervisorState:
    fields = _struct(value, {"statecode": _enum_member(StateCode), "statename": string})
    return SupervisorState(code=fields["statecode"], name=fields["statename"])


def reload_result(value: Any) -> ReloadResult:
    """
    Shape of ``supervisor.reloadConfig``.

    The daemon wraps the three name lists in a one-element array:
    ``[[added, changed, removed]]``.
    """
    if not isinstance(value, list) or len(value) != 1:
        raise MalformedReply("Expected a single grouping of added, changed and removed names")
    lists = value[0]
    if not isinstance(lists, list) or len(lists) != 3:
        raise MalformedReply("Expected exactly three name lists: added, changed, removed")
    added, changed, removed = (list_of(string)(names) for names in lists)
    return ReloadResult(added=added, changed=changed, removed=removed)


process_info_list = list_of(process_info)
process_status_list = list_of(process_status)
string_list = list_of(string)
