"""Log line formatting for localsns."""
import logging

LOGGER_NAME_WIDTH = 24
THREAD_NAME_WIDTH = 10

LOG_FORMAT = (
    f"%(asctime)s.%(msecs)03d %(short_level)5s --- [%(short_thread){THREAD_NAME_WIDTH}s] "
    f"%(short_name)-{LOGGER_NAME_WIDTH}s : %(message)s"
)
LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"

# levels whose name is longer than the level column
SHORT_LEVEL_NAMES = {
    logging.CRITICAL: "FATAL",
    logging.WARNING: "WARN",
}

PACKAGE_PREFIX = "localsns."


def short_logger_name(name: str, width: int = LOGGER_NAME_WIDTH) -> str:
    """
    Shortens a logger name for the name column. The ``localsns.`` prefix is dropped, then leading segments are cut
    to their first character until the name fits, f.e. ``botocore.credentials`` with width 12 turns into
    ``b.credentials``. The last segment is always kept in full.
    """
    if name.startswith(PACKAGE_PREFIX):
        name = name[len(PACKAGE_PREFIX) :]

    parts = name.split(".")
    for i in range(len(parts) - 1):
        if len(".".join(parts)) <= width:
            break
        parts[i] = parts[i][:1]
    return ".".join(parts)


def short_thread_name(name: str, width: int = THREAD_NAME_WIDTH) -> str:
    """
    Shortens a thread name for the thread column. Publish workers (``sns_pub_3``) fit as they are, werkzeug request
    threads (``Thread-12 (process_request_thread)``) are cut to their number.
    """
    name = name.split(" ", 1)[0]
    return name[-width:]


class DefaultFormatter(logging.Formatter):
    """
    Formats records with ``LOG_FORMAT``, adding the abbreviated level, logger and thread name to each record.
    """

    def __init__(self, fmt: str = LOG_FORMAT, datefmt: str = LOG_DATE_FORMAT):
        super().__init__(fmt=fmt, datefmt=datefmt)

    def format(self, record: logging.LogRecord) -> str:
        record.short_level = SHORT_LEVEL_NAMES.get(record.levelno, record.levelname)
        record.short_name = short_logger_name(record.name)
        record.short_thread = short_thread_name(record.threadName)
        return super().format(record)
