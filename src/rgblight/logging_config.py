"""
RGB Light Controller Logging Configuration

structlog renders through the standard library: colored console output while
developing, one JSON object per line in production. An optional log file
always gets JSON lines via python-json-logger.
"""
import logging
import sys
from typing import List, Optional

import structlog
from pythonjsonlogger import jsonlogger

# Third-party loggers that are too chatty below WARNING
QUIET_LOGGERS = ("aiomqtt", "asyncio")


def _shared_processors() -> List:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]


def setup_logging(
    log_level: str = "INFO",
    json_logs: bool = False,
    log_file: Optional[str] = None,
) -> None:
    """
    Configure application logging

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_logs: If True, output JSON formatted logs. If False, use colored console output.
        log_file: Optional path of an additional JSON log file
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=numeric_level,
    )

    processors = _shared_processors()
    if json_logs:
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors += [
            structlog.processors.ExceptionRenderer(),
            structlog.dev.ConsoleRenderer(colors=True),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    if log_file:
        logging.getLogger().addHandler(get_file_handler(log_file, log_level))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_file_handler(log_file: str, log_level: str = "INFO") -> logging.FileHandler:
    """
    Create a JSON-lines file handler

    Args:
        log_file: Path to log file
        log_level: Minimum log level

    Returns:
        Configured file handler
    """
    handler = logging.FileHandler(log_file, encoding="utf-8")
    handler.setLevel(getattr(logging, log_level.upper(), logging.INFO))
    handler.setFormatter(
        jsonlogger.JsonFormatter(
            "%(asctime)s %(levelname)s %(name)s %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S",
        )
    )
    return handler
