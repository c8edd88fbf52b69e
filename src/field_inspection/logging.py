import logging
import os
import sys

from pythonjsonlogger import jsonlogger

SERVICE_NAME = "field-inspection"

LOG_FORMAT = (
    "%(asctime)s %(levelname)s %(name)s %(service)s %(message)s "
    "%(trace_id)s %(span_id)s"
)

# Client libraries that log every connection or request at INFO.
NOISY_LOGGERS = ("pika", "urllib3", "httpx", "assemblyai")

_configured = False


class _ServiceFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.service = SERVICE_NAME
        return True


def setup_logging():
    """
    Configures structured JSON logging for the inspection services.

    The first call installs a single stdout handler on the root logger and on
    the Uvicorn loggers used by the API; later calls only return the root
    logger. Records carry the service name and, when ddtrace is patched in,
    the active trace_id and span_id. LOG_LEVEL overrides the INFO default.

    Returns:
        logging.Logger: The configured root logger instance.
    """
    global _configured
    root_logger = logging.getLogger()
    if _configured:
        return root_logger

    level = os.getenv("LOG_LEVEL", "INFO").upper()
    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setFormatter(jsonlogger.JsonFormatter(LOG_FORMAT))
    stream_handler.addFilter(_ServiceFilter())

    root_logger.setLevel(level)
    root_logger.handlers = [stream_handler]

    for logger_name in ("uvicorn", "uvicorn.access", "uvicorn.error"):
        uvicorn_logger = logging.getLogger(logger_name)
        uvicorn_logger.setLevel(level)
        uvicorn_logger.handlers = [stream_handler]
        uvicorn_logger.propagate = False

    for logger_name in NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)

    _configured = True
    return root_logger
