from urllib.parse import urlparse

from . import config
from .logger import get_logger

logging = get_logger(__name__)


def _endpoint_errors():
    if config.SUPERVISOR_SOCKET is None:
        parsed = urlparse(config.SUPERVISOR_URL)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            return [f"Invalid SUPERVISOR_URL. Expected an http(s) URL such as '{config.DEFAULT_URL}'."]
    elif not config.SUPERVISOR_SOCKET.strip():
        return ["Invalid SUPERVISOR_SOCKET: path must not be empty."]
    return []


def validate_config(check_endpoint: bool = True):
    """
    Check the environment settings and raise one ValueError listing every
    problem. Pass ``check_endpoint=False`` when the endpoint comes from
    somewhere else, such as a command line option.
    """
    logging.debug("Validating environment variables...")
    error_messages = []

    if check_endpoint:
        error_messages.extend(_endpoint_errors())

    try:
        timeout = float(config.SUPERVISOR_TIMEOUT)
        if timeout <= 0:
            error_messages.append(f"Invalid SUPERVISOR_TIMEOUT: '{config.SUPERVISOR_TIMEOUT}'. Must be greater than 0.")
    except (TypeError, ValueError):
        error_messages.append(
            f"Invalid SUPERVISOR_TIMEOUT format: '{config.SUPERVISOR_TIMEOUT}'. Expected a number of seconds like '30' or '2.5'."
        )

    if bool(config.SUPERVISOR_USERNAME) != bool(config.SUPERVISOR_PASSWORD):
        error_messages.append(
            "SUPERVISOR_USERNAME and SUPERVISOR_PASSWORD must be set together; credentials will not be sent."
        )

    valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    if config.LOG_LEVEL.upper() not in valid_levels:
        error_messages.append(f"Invalid LOG_LEVEL: '{config.LOG_LEVEL}'. Must be one of {valid_levels}.")

    if error_messages:
        full_error_message = "Configuration validation failed:\n" + "\n".join(error_messages)
        raise ValueError(full_error_message)

    logging.debug("Environment variables are valid.")
