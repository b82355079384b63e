import os

# USER CONFIG
SUPERVISOR_URL = os.getenv("SUPERVISOR_URL", "http://127.0.0.1:9001/RPC2")
SUPERVISOR_SOCKET = os.getenv("SUPERVISOR_SOCKET")
SUPERVISOR_USERNAME = os.getenv("SUPERVISOR_USERNAME")
SUPERVISOR_PASSWORD = os.getenv("SUPERVISOR_PASSWORD")
SUPERVISOR_TIMEOUT = os.getenv("SUPERVISOR_TIMEOUT", "30")
SUPERVISOR_DEBUG = os.getenv("SUPERVISOR_DEBUG", "False").lower() in ("true", "1", "t")
SUPERVISOR_SANITIZE = os.getenv("SUPERVISOR_SANITIZE", "False").lower() in ("true", "1", "t")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# APP CONFIG
DEFAULT_URL = "http://127.0.0.1:9001/RPC2"
SOCKET_PLACEHOLDER_URL = "http://127.0.0.1/RPC2"
DEFAULT_TIMEOUT = 30.0
