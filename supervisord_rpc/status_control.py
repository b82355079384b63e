from supervisord_rpc import replies
from supervisord_rpc.models import SupervisorState


class StatusControlMixin:
    """Queries and control of the supervisord daemon itself."""

    def get_api_version(self) -> str:
        """
        Return the version of the RPC API used by supervisord.

        The API is versioned separately from supervisord itself, so check
        it before relying on methods added in later releases.
        """
        return self._string_call("supervisor.getAPIVersion")

    def get_supervisor_version(self) -> str:
        return self._string_call("supervisor.getSupervisorVersion")

    def get_identification(self) -> str:
        """Return the ``identifier`` set in supervisord's configuration."""
        return self._string_call("supervisor.getIdentification")

    def get_state(self) -> SupervisorState:
        return self.call("supervisor.getState", shape=replies.supervisor_state)

    def get_pid(self) -> int:
        return self.call("supervisor.getPID", shape=replies.integer)

    def read_log(self, offset: int, length: int) -> str:
        """
        Read ``length`` bytes from the main log starting at ``offset``.

        A negative offset with length 0 reads that many bytes from the end.
        """
        return self._string_call("supervisor.readLog", offset, length)

    def clear_log(self) -> None:
        self._bool_call("supervisor.clearLog")

    def shutdown(self) -> None:
        """Shut supervisord down. Running processes are killed without warning."""
        self._bool_call("supervisor.shutdown")

    def restart(self) -> None:
        """
        Soft-restart supervisord's main loop.

        Running processes are killed without warning. Works even when the
        daemon is in the FATAL state.
        """
        self._bool_call("supervisor.restart")

    def list_methods(self) -> list[str]:
        return self.call("system.listMethods", shape=replies.string_list)

    def method_help(self, name: str) -> str:
        return self._string_call("system.methodHelp", name)
