import logging
import sys
import warnings

from localsns import config, constants

from .format import DefaultFormatter

# log levels of third-party and internal loggers that would otherwise be too chatty
default_log_levels = {
    "boto3": logging.INFO,
    "botocore": logging.ERROR,
    "s3transfer": logging.INFO,
    "urllib3": logging.WARNING,
    "werkzeug": logging.WARNING,
    "rolo": logging.WARNING,
    "localsns.protocol.serializer": logging.INFO,
}

trace_log_levels = {
    "rolo": logging.DEBUG,
    "werkzeug": logging.INFO,
    "localsns.protocol.serializer": logging.DEBUG,
}


def get_log_level_from_config():
    # overriding the log level if LS_LOG has been set
    if config.LS_LOG:
        log_level = str(config.LS_LOG).upper()
        if log_level.lower() in constants.TRACE_LOG_LEVELS:
            log_level = "DEBUG"
        log_level = logging._nameToLevel[log_level]
        return log_level

    return logging.DEBUG if config.DEBUG else logging.INFO


def setup_logging_from_config():
    log_level = get_log_level_from_config()
    setup_logging(log_level)

    if config.is_trace_logging_enabled():
        for name, level in trace_log_levels.items():
            logging.getLogger(name).setLevel(level)


def create_default_handler(log_level: int):
    log_handler = logging.StreamHandler(stream=sys.stderr)
    log_handler.setLevel(log_level)
    log_handler.setFormatter(DefaultFormatter())
    return log_handler


def setup_logging(log_level=logging.INFO) -> None:
    """
    Configures the python logging environment for localsns.

    :param log_level: the optional log level.
    """
    log_handler = create_default_handler(log_level)

    # replace any existing handlers
    logging.basicConfig(level=log_level, handlers=[log_handler], force=True)

    warnings.filterwarnings("ignore")
    logging.captureWarnings(True)

    logging.root.setLevel(log_level)
    logging.getLogger("localsns").setLevel(log_level)
    for logger, level in default_log_levels.items():
        logging.getLogger(logger).setLevel(level)
