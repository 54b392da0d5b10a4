"""Logging configuration for URL shortener.

Every module logs under the ``url_shortener`` logger tree. The leaf name of
the emitting logger doubles as the ``package`` label of remotely shipped
records, e.g. ``url_shortener.url_service`` ships as ``url-service``.
"""

import logging
import sys
from typing import List, Optional

from .log_sink import RemoteLogHandler, RemoteLogSink

ROOT_LOGGER_NAME = "url_shortener"

TEXT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s - %(message)s"
JSON_FORMAT = (
    '{"timestamp": "%(asctime)s", "level": "%(levelname)s", '
    '"logger": "%(name)s", "message": "%(message)s"}'
)


def _formatter(json_format: bool) -> logging.Formatter:
    if json_format:
        return logging.Formatter(JSON_FORMAT)
    return logging.Formatter(TEXT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")


def _local_handlers(level: int, log_file: Optional[str], production: bool) -> List[logging.Handler]:
    # Production consoles only see warnings and above
    console = logging.StreamHandler(sys.stdout)
    console.setLevel(max(level, logging.WARNING) if production else level)
    handlers: List[logging.Handler] = [console]

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(level)
        handlers.append(file_handler)

    return handlers


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    json_format: bool = False,
    environment: str = "development",
    remote_sink: Optional[RemoteLogSink] = None,
) -> logging.Logger:
    """(Re)configure the ``url_shortener`` logger.

    Calling it again replaces the previous handlers.

    Args:
        level: Logging level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional log file path
        json_format: Whether local output is one JSON object per line
        environment: Deployment environment name
        remote_sink: Optional sink shipping records to the log collector

    Returns:
        Configured logger
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(numeric_level)
    logger.handlers.clear()

    formatter = _formatter(json_format)
    for handler in _local_handlers(numeric_level, log_file, environment.lower() == "production"):
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    if remote_sink is not None and remote_sink.enabled:
        logger.addHandler(RemoteLogHandler(remote_sink, level=numeric_level))

    return logger
