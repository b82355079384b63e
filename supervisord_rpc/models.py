from dataclasses import dataclass
from enum import IntEnum


class ProcessState(IntEnum):
    """State of a process managed by supervisord."""

    STOPPED = 0
    STARTING = 10
    RUNNING = 20
    BACKOFF = 30
    STOPPING = 40
    EXITED = 100
    FATAL = 200
    UNKNOWN = 1000


class StateCode(IntEnum):
    """Numeric form of supervisord's own state."""

    FATAL = 2
    RUNNING = 1
    RESTARTING = 0
    SHUTDOWN = -1


class FaultCode(IntEnum):
    """Fault codes supervisord uses in XML-RPC ``<fault>`` replies."""

    UNKNOWN_METHOD = 1
    INCORRECT_PARAMETERS = 2
    BAD_ARGUMENTS = 3
    SIGNATURE_UNSUPPORTED = 4
    SHUTDOWN_STATE = 6
    BAD_NAME = 10
    BAD_SIGNAL = 11
    NO_FILE = 20
    NOT_EXECUTABLE = 21
    FAILED = 30
    ABNORMAL_TERMINATION = 40
    SPAWN_ERROR = 50
    ALREADY_STARTED = 60
    NOT_RUNNING = 70
    SUCCESS = 80
    ALREADY_ADDED = 90
    STILL_RUNNING = 91
    CANT_REREAD = 92


@dataclass(frozen=True)
class ProcessInfo:
    name: str
    group: str
    start: int
    stop: int
    now: int
    state: ProcessState
    statename: str
    spawnerr: str
    exitstatus: int
    stdout_logfile: str
    stderr_logfile: str
    pid: int
    description: str = ""

    @property
    def full_name(self) -> str:
        if self.name == self.group:
            return self.name
        return f"{self.group}:{self.name}"

    @property
    def uptime(self) -> int:
        """Seconds the process has been running, or 0 if it is not running."""
        if self.state != ProcessState.RUNNING or not self.start:
            return 0
        return max(self.now - self.start, 0)


@dataclass(frozen=True)
class ProcessStatus:
    """Per-process outcome of a group or all-processes operation."""

    name: str
    group: str
    status: int
    description: str

    @property
    def ok(self) -> bool:
        return self.status == FaultCode.SUCCESS

    @property
    def full_name(self) -> str:
        if self.name == self.group:
            return self.name
        return f"{self.group}:{self.name}"


@dataclass(frozen=True)
class LogSegment:
    payload: str
    offset: int
    overflow: bool


@dataclass(frozen=True)
class SupervisorState:
    code: StateCode
    name: str


@dataclass(frozen=True)
class ReloadResult:
    """Program groups affected by a configuration reload."""

    added: list[str]
    changed: list[str]
    removed: list[str]

    def __iter__(self):
        return iter((self.added, self.changed, self.removed))
