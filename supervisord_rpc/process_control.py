import signal

from supervisord_rpc import replies
from supervisord_rpc.errors import OperationNotImplemented
from supervisord_rpc.models import ProcessInfo, ProcessStatus, ReloadResult
from supervisord_rpc.utils.logger import get_logger

logger = get_logger(__name__)


def signal_argument(sig: signal.Signals | int | str) -> int | str:
    """supervisord accepts a signal number or a name such as ``"HUP"``."""
    if isinstance(sig, bool):
        raise TypeError("Signal must be a signal, an int or a name, not a bool")
    if isinstance(sig, int):
        return int(sig)
    name = sig.upper()
    return name[3:] if name.startswith("SIG") else name


class ProcessControlMixin:
    """Process lifecycle methods of the ``supervisor`` namespace.

    ``name`` may be a bare process name or ``group:name``. Group and
    all-processes operations return one :class:`ProcessStatus` per
    process touched.
    """

    def get_process_info(self, name: str) -> ProcessInfo:
        return self.call("supervisor.getProcessInfo", name, shape=replies.process_info)

    def get_all_process_info(self) -> list[ProcessInfo]:
        return self.call("supervisor.getAllProcessInfo", shape=replies.process_info_list)

    def signal_process(self, name: str, sig: signal.Signals | int | str) -> None:
        """Requires supervisord >= 3.2.0."""
        self._bool_call("supervisor.signalProcess", name, signal_argument(sig))

    def signal_process_group(self, name: str, sig: signal.Signals | int | str) -> list[ProcessStatus]:
        return self.call(
            "supervisor.signalProcessGroup", name, signal_argument(sig), shape=replies.process_status_list
        )

    def signal_all_processes(self, sig: signal.Signals | int | str) -> list[ProcessStatus]:
        return self.call("supervisor.signalAllProcesses", signal_argument(sig), shape=replies.process_status_list)

    def start_process(self, name: str, wait: bool = True) -> None:
        self._bool_call("supervisor.startProcess", name, wait)

    def start_process_group(self, name: str, wait: bool = True) -> list[ProcessStatus]:
        return self.call("supervisor.startProcessGroup", name, wait, shape=replies.process_status_list)

    def start_all_processes(self, wait: bool = True) -> list[ProcessStatus]:
        return self.call("supervisor.startAllProcesses", wait, shape=replies.process_status_list)

    def stop_process(self, name: str, wait: bool = True) -> None:
        self._bool_call("supervisor.stopProcess", name, wait)

    def stop_process_group(self, name: str, wait: bool = True) -> list[ProcessStatus]:
        return self.call("supervisor.stopProcessGroup", name, wait, shape=replies.process_status_list)

    def stop_all_processes(self, wait: bool = True) -> list[ProcessStatus]:
        return self.call("supervisor.stopAllProcesses", wait, shape=replies.process_status_list)

    def send_process_stdin(self, name: str, chars: str) -> None:
        """Raises ExplicitRejection if the process cannot accept input."""
        self._bool_call("supervisor.sendProcessStdin", name, chars)

    def send_remote_comm_event(self, type, data):
        raise OperationNotImplemented("supervisor.sendRemoteCommEvent is not implemented", "supervisor.sendRemoteCommEvent")

    def reload_config(self) -> ReloadResult:
        """
        Make supervisord re-read its configuration.

        Running processes are left alone; see :meth:`update` to apply the
        changes.
        """
        return self.call("supervisor.reloadConfig", shape=replies.reload_result)

    def add_process_group(self, name: str) -> None:
        self._bool_call("supervisor.addProcessGroup", name)

    def remove_process_group(self, name: str) -> None:
        """The group must be stopped first."""
        self._bool_call("supervisor.removeProcessGroup", name)

    def update(self) -> ReloadResult:
        """
        Reload the configuration and apply it, like ``supervisorctl update``.

        Changed and removed groups are stopped and removed, then added and
        changed groups are added back. This is not transactional: the first
        failure is raised and whatever was done before it stays done.
        """
        result = self.reload_config()
        added, changed, removed = result
        logger.info(f"Config reloaded: added={added} changed={changed} removed={removed}")

        for name in changed + removed:
            logger.info(f"Stopping and removing process group {name}")
            self.stop_process_group(name, True)
            self.remove_process_group(name)

        for name in added + changed:
            logger.info(f"Adding process group {name}")
            self.add_process_group(name)

        return result
