"""JSON structured logging configuration."""

import logging
import sys

from pythonjsonlogger.json import JsonFormatter

# Third-party loggers that chatter at INFO for every crawled page.
_QUIET_LOGGERS = ("httpx", "httpcore")


def setup_logging(log_level: str = "INFO", service: str = "noon") -> None:
    """Send every log record to stdout as one JSON object per line.

    Records carry ``service`` so crawler output can be told apart from the
    ASGI server's in a shared log stream.
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    formatter = JsonFormatter(
        "{asctime}{levelname}{name}{message}",
        style="{",
        rename_fields={"asctime": "timestamp", "levelname": "level", "name": "logger"},
        static_fields={"service": service},
        datefmt="%Y-%m-%dT%H:%M:%S%z",
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    root.addHandler(handler)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    # uvicorn installs its own handlers; route them through ours
    for name in ("uvicorn", "uvicorn.access", "uvicorn.error"):
        uv_logger = logging.getLogger(name)
        uv_logger.handlers.clear()
        uv_logger.addHandler(handler)
        uv_logger.propagate = False
