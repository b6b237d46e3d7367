import logging
import os
from typing import Optional, Union

from localsns.constants import (
    DEFAULT_LISTEN,
    DEFAULT_PORT,
    DEFAULT_REGION,
    DEFAULT_SQS_ENDPOINT,
    FALSE_STRINGS,
    LOCALHOST_IP,
    LOG_LEVELS,
    TRACE_LOG_LEVELS,
    TRUE_STRINGS,
)


def eval_log_type(env_var_name: str) -> Union[str, bool]:
    """Get the log type from environment variable"""
    ls_log = os.environ.get(env_var_name, "").lower().strip()
    return ls_log if ls_log in LOG_LEVELS else False


def parse_boolean_env(env_var_name: str) -> Optional[bool]:
    """Parse the value of the given env variable and return True/False, or None if it is not a boolean value."""
    value = os.environ.get(env_var_name, "").lower().strip()
    if value in TRUE_STRINGS:
        return True
    if value in FALSE_STRINGS:
        return False
    return None


def is_env_true(env_var_name: str) -> bool:
    """Whether the given environment variable has a truthy value."""
    return os.environ.get(env_var_name, "").lower().strip() in TRUE_STRINGS


def is_env_not_false(env_var_name: str) -> bool:
    """Whether the given environment variable is empty or has a truthy value."""
    return os.environ.get(env_var_name, "").lower().strip() not in FALSE_STRINGS


def parse_int_env(env_var_name: str, default: int) -> int:
    value = os.environ.get(env_var_name, "").strip()
    if not value:
        return default
    try:
        return int(value)
    except ValueError as e:
        raise ValueError(f"environment variable {env_var_name}={value} is not a number") from e


class HostAndPort:
    """
    Definition of an address for a server to listen to.

    Includes a `parse` method to convert from `str`, allowing for default fallbacks.
    """

    host: str
    port: int

    def __init__(self, host: str, port: int):
        self.host = host
        self.port = port

    @classmethod
    def parse(
        cls,
        input: str,
        default_host: str,
        default_port: int,
    ) -> "HostAndPort":
        """
        Parse a `HostAndPort` from strings like:
            - 0.0.0.0:9911 -> host=0.0.0.0, port=9911
            - 0.0.0.0      -> host=0.0.0.0, port=`default_port`
            - :9911        -> host=`default_host`, port=9911
        """
        host, port = default_host, default_port
        if ":" in input:
            hostname, port_s = input.split(":", 1)
            if hostname.strip():
                host = hostname.strip()
            try:
                port = int(port_s)
            except ValueError as e:
                raise ValueError(f"specified port {port_s} not a number") from e
        else:
            if input.strip():
                host = input.strip()

        if port < 0 or port >= 2**16:
            raise ValueError("port out of range")

        return cls(host=host, port=port)

    def host_and_port(self):
        return f"{self.host}:{self.port}" if self.port is not None else self.host

    def __eq__(self, other: "str | HostAndPort") -> bool:
        if isinstance(other, self.__class__):
            return self.host == other.host and self.port == other.port
        elif isinstance(other, str):
            return str(self) == other
        else:
            raise TypeError(f"cannot compare {self.__class__} to {other.__class__}")

    def __str__(self) -> str:
        return self.host_and_port()

    def __repr__(self) -> str:
        return f"HostAndPort(host={self.host}, port={self.port})"


def is_trace_logging_enabled():
    if LS_LOG:
        log_level = str(LS_LOG).upper()
        return log_level.lower() in TRACE_LOG_LEVELS
    return False


# the log level (e.g., "debug", "trace"), or False if not set
LS_LOG = eval_log_type("LS_LOG")
DEBUG = is_env_true("DEBUG") or LS_LOG in TRACE_LOG_LEVELS

# address the HTTP listener binds to
GATEWAY_LISTEN = HostAndPort.parse(
    os.environ.get("GATEWAY_LISTEN", "").strip() or DEFAULT_LISTEN,
    default_host=LOCALHOST_IP,
    default_port=DEFAULT_PORT,
)

# number of worker threads used to deliver published messages
SNS_PUBLISH_WORKERS = parse_int_env("SNS_PUBLISH_WORKERS", 10)

# base endpoint used when a queue subscription endpoint is not a parseable URL
SQS_DEFAULT_ENDPOINT = os.environ.get("SQS_DEFAULT_ENDPOINT", "").strip() or DEFAULT_SQS_ENDPOINT

AWS_REGION = os.environ.get("AWS_DEFAULT_REGION", "").strip() or DEFAULT_REGION

if DEBUG:
    logging.getLogger("").setLevel(logging.DEBUG)
    logging.getLogger("localsns").setLevel(logging.DEBUG)
