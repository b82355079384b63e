from supervisord_rpc import replies
from supervisord_rpc.errors import OperationNotImplemented
from supervisord_rpc.models import LogSegment, ProcessStatus


class ProcessLoggingMixin:
    """Access to the stdout/stderr logs supervisord keeps per process."""

    def read_process_stdout_log(self, name: str, offset: int, length: int) -> str:
        return self._string_call("supervisor.readProcessStdoutLog", name, offset, length)

    def read_process_stderr_log(self, name: str, offset: int, length: int) -> str:
        return self._string_call("supervisor.readProcessStderrLog", name, offset, length)

    def tail_process_stdout_log(self, name: str, offset: int, length: int) -> LogSegment:
        raise OperationNotImplemented("supervisor.tailProcessStdoutLog is not implemented", "supervisor.tailProcessStdoutLog")

    def tail_process_stderr_log(self, name: str, offset: int, length: int) -> LogSegment:
        raise OperationNotImplemented("supervisor.tailProcessStderrLog is not implemented", "supervisor.tailProcessStderrLog")

    def clear_process_logs(self, name: str) -> None:
        self._bool_call("supervisor.clearProcessLogs", name)

    def clear_all_process_logs(self) -> list[ProcessStatus]:
        return self.call("supervisor.clearAllProcessLogs", shape=replies.process_status_list)
