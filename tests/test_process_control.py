"""
Tests for process_control.py - the process lifecycle methods.

Each method must issue exactly one call with a fixed method name and
positional arguments, and turn the reply into the documented type.
"""

import signal
import unittest

from supervisord_rpc.client import SupervisorClient
from supervisord_rpc.errors import (
    ExplicitRejection,
    MalformedReply,
    OperationNotImplemented,
    RemoteFault,
    TransportError,
)
from supervisord_rpc.models import FaultCode, ProcessInfo, ProcessState, ProcessStatus, ReloadResult
from supervisord_rpc.process_control import signal_argument
from tests.fakes import RecordingChannel, process_info_struct, status_struct


class ProcessControlTestCase(unittest.TestCase):
    def setUp(self):
        self.channel = RecordingChannel()
        self.client = SupervisorClient("http://127.0.0.1:9001/RPC2", channel=self.channel)


class TestProcessInfo(ProcessControlTestCase):
    def test_get_process_info(self):
        self.channel.reply("supervisor.getProcessInfo", process_info_struct("web", description="pid 4242, uptime 0:01:40"))

        info = self.client.get_process_info("web")

        self.assertEqual(self.channel.calls, [("supervisor.getProcessInfo", ("web",))])
        self.assertIsInstance(info, ProcessInfo)
        self.assertEqual(info.name, "web")
        self.assertEqual(info.state, ProcessState.RUNNING)
        self.assertEqual(info.pid, 4242)
        self.assertEqual(info.uptime, 100)
        self.assertEqual(info.description, "pid 4242, uptime 0:01:40")

    def test_get_all_process_info(self):
        self.channel.reply(
            "supervisor.getAllProcessInfo",
            [
                process_info_struct("web"),
                process_info_struct("worker_0", group="workers", state=0, statename="STOPPED", pid=0),
            ],
        )

        infos = self.client.get_all_process_info()

        self.assertEqual([info.full_name for info in infos], ["web", "workers:worker_0"])
        self.assertEqual(infos[1].state, ProcessState.STOPPED)
        self.assertEqual(infos[1].uptime, 0)

    def test_process_info_missing_fields_is_malformed(self):
        info = process_info_struct("web")
        del info["statename"]
        self.channel.reply("supervisor.getProcessInfo", info)

        with self.assertRaises(MalformedReply):
            self.client.get_process_info("web")

    def test_unknown_process_is_remote_fault(self):
        self.channel.fault("supervisor.getProcessInfo", FaultCode.BAD_NAME, "BAD_NAME: nope")

        with self.assertRaises(RemoteFault) as ctx:
            self.client.get_process_info("nope")

        self.assertEqual(ctx.exception.fault_code, FaultCode.BAD_NAME)


class TestStartStop(ProcessControlTestCase):
    def test_start_process_waits_by_default(self):
        self.channel.reply("supervisor.startProcess", True)

        self.client.start_process("web")

        self.assertEqual(self.channel.calls, [("supervisor.startProcess", ("web", True))])

    def test_stop_process_returning_false_is_rejection(self):
        self.channel.reply("supervisor.stopProcess", False)

        with self.assertRaises(ExplicitRejection):
            self.client.stop_process("web", wait=False)

        self.assertEqual(self.channel.calls, [("supervisor.stopProcess", ("web", False))])

    def test_group_and_all_operations_return_statuses(self):
        statuses = [status_struct("worker_0", "workers"), status_struct("worker_1", "workers", 70, "NOT_RUNNING")]
        cases = [
            ("supervisor.startProcessGroup", lambda: self.client.start_process_group("workers"), ("workers", True)),
            ("supervisor.stopProcessGroup", lambda: self.client.stop_process_group("workers", False), ("workers", False)),
            ("supervisor.startAllProcesses", lambda: self.client.start_all_processes(), (True,)),
            ("supervisor.stopAllProcesses", lambda: self.client.stop_all_processes(False), (False,)),
        ]
        for method, invoke, args in cases:
            with self.subTest(method=method):
                self.channel.calls.clear()
                self.channel.reply(method, statuses)

                result = invoke()

                self.assertEqual(self.channel.calls, [(method, args)])
                self.assertEqual(result[0], ProcessStatus("worker_0", "workers", 80, "OK"))
                self.assertTrue(result[0].ok)
                self.assertFalse(result[1].ok)
                self.assertEqual(result[1].full_name, "workers:worker_1")

    def test_status_list_with_wrong_shape_is_malformed(self):
        self.channel.reply("supervisor.startAllProcesses", True)

        with self.assertRaises(MalformedReply):
            self.client.start_all_processes()


class TestSignals(ProcessControlTestCase):
    def test_signal_argument_forms(self):
        self.assertEqual(signal_argument(signal.SIGHUP), int(signal.SIGHUP))
        self.assertEqual(signal_argument(15), 15)
        self.assertEqual(signal_argument("hup"), "HUP")
        self.assertEqual(signal_argument("SIGUSR1"), "USR1")
        with self.assertRaises(TypeError):
            signal_argument(True)

    def test_signal_process(self):
        self.channel.reply("supervisor.signalProcess", True)

        self.client.signal_process("web", signal.SIGHUP)

        self.assertEqual(self.channel.calls, [("supervisor.signalProcess", ("web", int(signal.SIGHUP)))])

    def test_signal_all_processes(self):
        self.channel.reply("supervisor.signalAllProcesses", [status_struct("web")])

        result = self.client.signal_all_processes("TERM")

        self.assertEqual(self.channel.calls, [("supervisor.signalAllProcesses", ("TERM",))])
        self.assertEqual(result, [ProcessStatus("web", "web", 80, "OK")])

    def test_signal_process_group(self):
        self.channel.reply("supervisor.signalProcessGroup", [status_struct("worker_0", "workers")])

        self.client.signal_process_group("workers", signal.SIGUSR2)

        self.assertEqual(
            self.channel.calls, [("supervisor.signalProcessGroup", ("workers", int(signal.SIGUSR2)))]
        )


class TestStdinAndEvents(ProcessControlTestCase):
    def test_send_process_stdin(self):
        self.channel.reply("supervisor.sendProcessStdin", True)

        self.client.send_process_stdin("web", "reload\n")

        self.assertEqual(self.channel.calls, [("supervisor.sendProcessStdin", ("web", "reload\n"))])

    def test_send_remote_comm_event_is_not_implemented(self):
        with self.assertRaises(OperationNotImplemented) as ctx:
            self.client.send_remote_comm_event("type", "data")

        self.assertIsInstance(ctx.exception, NotImplementedError)
        self.assertEqual(self.channel.calls, [])


class TestReloadConfig(ProcessControlTestCase):
    def test_reload_config_returns_three_lists(self):
        self.channel.reply("supervisor.reloadConfig", [[["new"], ["web"], ["old"]]])

        result = self.client.reload_config()

        self.assertEqual(self.channel.calls, [("supervisor.reloadConfig", ())])
        self.assertEqual(result, ReloadResult(added=["new"], changed=["web"], removed=["old"]))
        added, changed, removed = result
        self.assertEqual((added, changed, removed), (["new"], ["web"], ["old"]))

    def test_reload_config_with_empty_lists(self):
        self.channel.reply("supervisor.reloadConfig", [[[], [], []]])

        self.assertEqual(self.client.reload_config(), ReloadResult([], [], []))

    def test_reload_config_other_shapes_are_malformed(self):
        bad_replies = [
            [],
            [[["a"], ["b"]]],
            [[["a"], ["b"], ["c"], ["d"]]],
            [[["a"], ["b"], ["c"]], [[], [], []]],
            [["a", "b", "c"]],
            [[["a"], ["b"], [1]]],
            "added",
            True,
        ]
        for reply in bad_replies:
            with self.subTest(reply=reply):
                self.channel.reply("supervisor.reloadConfig", reply)
                with self.assertRaises(MalformedReply):
                    self.client.reload_config()


class TestUpdate(ProcessControlTestCase):
    def setUp(self):
        super().setUp()
        self.channel.reply("supervisor.stopProcessGroup", [])
        self.channel.reply("supervisor.removeProcessGroup", True)
        self.channel.reply("supervisor.addProcessGroup", True)

    def test_update_stops_removes_and_adds(self):
        self.channel.reply("supervisor.reloadConfig", [[["new"], ["web"], ["old"]]])

        result = self.client.update()

        self.assertEqual(result, ReloadResult(["new"], ["web"], ["old"]))
        self.assertEqual(
            self.channel.calls,
            [
                ("supervisor.reloadConfig", ()),
                ("supervisor.stopProcessGroup", ("web", True)),
                ("supervisor.removeProcessGroup", ("web",)),
                ("supervisor.stopProcessGroup", ("old", True)),
                ("supervisor.removeProcessGroup", ("old",)),
                ("supervisor.addProcessGroup", ("new",)),
                ("supervisor.addProcessGroup", ("web",)),
            ],
        )

    def test_update_with_nothing_changed_only_reloads(self):
        self.channel.reply("supervisor.reloadConfig", [[[], [], []]])

        self.client.update()

        self.assertEqual(self.channel.methods, ["supervisor.reloadConfig"])

    def test_update_stops_at_first_failure_without_rollback(self):
        self.channel.reply("supervisor.reloadConfig", [[["new"], [], ["old"]]])
        self.channel.fault("supervisor.removeProcessGroup", FaultCode.STILL_RUNNING, "STILL_RUNNING: old")

        with self.assertRaises(RemoteFault):
            self.client.update()

        self.assertEqual(
            self.channel.methods,
            ["supervisor.reloadConfig", "supervisor.stopProcessGroup", "supervisor.removeProcessGroup"],
        )

    def test_update_propagates_reload_failure(self):
        channel = RecordingChannel(status_code=500)
        client = SupervisorClient("http://127.0.0.1:9001/RPC2", channel=channel)

        with self.assertRaises(TransportError):
            client.update()

        self.assertEqual(channel.methods, ["supervisor.reloadConfig"])


if __name__ == "__main__":
    unittest.main()
