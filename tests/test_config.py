"""Tests for environment configuration and SupervisorClient.from_env."""

import unittest
from unittest import mock

from supervisord_rpc.client import SupervisorClient
from supervisord_rpc.transport import BasicAuthChannel, UnixSocketAdapter
from supervisord_rpc.utils import config
from supervisord_rpc.utils.sanitize import replace_xml_unsupported_chars
from supervisord_rpc.utils.validate_config import validate_config


def settings(**overrides):
    values = {
        "SUPERVISOR_URL": "http://127.0.0.1:9001/RPC2",
        "SUPERVISOR_SOCKET": None,
        "SUPERVISOR_USERNAME": None,
        "SUPERVISOR_PASSWORD": None,
        "SUPERVISOR_TIMEOUT": "30",
        "SUPERVISOR_DEBUG": False,
        "SUPERVISOR_SANITIZE": False,
        "LOG_LEVEL": "INFO",
    }
    values.update(overrides)
    return mock.patch.multiple(config, **values)


class TestValidateConfig(unittest.TestCase):
    def test_defaults_are_valid(self):
        with settings():
            validate_config()

    def test_all_problems_are_reported_together(self):
        with settings(
            SUPERVISOR_URL="localhost:9001",
            SUPERVISOR_TIMEOUT="soon",
            SUPERVISOR_USERNAME="user",
            LOG_LEVEL="LOUD",
        ):
            with self.assertRaises(ValueError) as ctx:
                validate_config()

        message = str(ctx.exception)
        self.assertIn("SUPERVISOR_URL", message)
        self.assertIn("SUPERVISOR_TIMEOUT", message)
        self.assertIn("SUPERVISOR_PASSWORD", message)
        self.assertIn("LOG_LEVEL", message)

    def test_non_positive_timeout_is_invalid(self):
        with settings(SUPERVISOR_TIMEOUT="0"):
            with self.assertRaises(ValueError):
                validate_config()

    def test_socket_replaces_url_check(self):
        with settings(SUPERVISOR_URL="not a url", SUPERVISOR_SOCKET="/tmp/supervisor.sock"):
            validate_config()

    def test_endpoint_check_can_be_skipped(self):
        with settings(SUPERVISOR_URL="not a url", SUPERVISOR_SOCKET=""):
            validate_config(check_endpoint=False)

            with self.assertRaises(ValueError):
                validate_config()

    def test_skipping_endpoint_check_still_checks_the_rest(self):
        with settings(SUPERVISOR_URL="not a url", SUPERVISOR_TIMEOUT="-1"):
            with self.assertRaises(ValueError) as ctx:
                validate_config(check_endpoint=False)

        self.assertIn("SUPERVISOR_TIMEOUT", str(ctx.exception))
        self.assertNotIn("SUPERVISOR_URL", str(ctx.exception))


class TestFromEnv(unittest.TestCase):
    def test_from_env_uses_url(self):
        with settings(SUPERVISOR_TIMEOUT="5"):
            client = SupervisorClient.from_env()

        self.assertEqual(client.url, "http://127.0.0.1:9001/RPC2")
        self.assertEqual(client.timeout, 5.0)
        self.assertFalse(client.debug)

    def test_socket_takes_precedence(self):
        with settings(SUPERVISOR_SOCKET="/tmp/supervisor.sock"):
            client = SupervisorClient.from_env()

        self.assertEqual(client.url, "http://127.0.0.1/RPC2")
        self.assertIsInstance(client.channel.session.get_adapter(client.url), UnixSocketAdapter)

    def test_credentials_and_sanitize(self):
        with settings(SUPERVISOR_USERNAME="user", SUPERVISOR_PASSWORD="123", SUPERVISOR_SANITIZE=True):
            client = SupervisorClient.from_env()

        self.assertIsInstance(client.channel, BasicAuthChannel)
        self.assertIs(client._sanitize, replace_xml_unsupported_chars)

    def test_overrides_win_and_none_is_ignored(self):
        with settings():
            client = SupervisorClient.from_env(endpoint="http://10.0.0.2:9001/RPC2", timeout=None, debug=True)

        self.assertEqual(client.url, "http://10.0.0.2:9001/RPC2")
        self.assertEqual(client.timeout, 30.0)
        self.assertTrue(client.debug)


if __name__ == "__main__":
    unittest.main()
