import logging
from logging.handlers import RotatingFileHandler
from typing import Optional

import structlog
from structlog.stdlib import ProcessorFormatter, BoundLogger, add_logger_name
from structlog.processors import (
    JSONRenderer,
    TimeStamper,
    add_log_level,
    StackInfoRenderer,
    format_exc_info,
)
from rich.logging import RichHandler
from structlog.dev import ConsoleRenderer

from almost_fullscreen.shared.path_handler import PathHandler

LOGGER_NAME = None


def get_log_file_path() -> str:
    return PathHandler().get_state_path("almost-fullscreen.log")


class RepeatFilter(logging.Filter):
    """
    Drops an info or debug record identical to the previous one. Retry timers
    tend to log the same skip several times for one window. Warnings and
    errors always pass.
    """

    def __init__(self):
        super().__init__()
        self._last: Optional[tuple] = None

    def filter(self, record):
        if record.levelno >= logging.WARNING:
            self._last = None
            return True
        key = (record.name, record.levelno, record.getMessage())
        if key == self._last:
            return False
        self._last = key
        return True


def setup_logging(
    level: int = logging.DEBUG, log_file: Optional[str] = None
) -> BoundLogger:
    shared_processors = [
        add_log_level,
        TimeStamper(fmt="%Y-%m-%d %H:%M:%S", utc=False),
        StackInfoRenderer(),
        format_exc_info,
    ]

    structlog.configure(
        processors=shared_processors
        + [
            add_logger_name,
            ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    std_logger = logging.getLogger(LOGGER_NAME)
    std_logger.setLevel(level)
    for handler in std_logger.handlers[:]:
        std_logger.removeHandler(handler)
    file_handler = RotatingFileHandler(
        log_file or get_log_file_path(),
        maxBytes=1024 * 1024,
        backupCount=2,
        encoding="utf-8",
    )
    file_handler.setLevel(level)
    file_handler.addFilter(RepeatFilter())
    json_formatter = ProcessorFormatter(
        foreign_pre_chain=shared_processors + [add_logger_name],
        processor=JSONRenderer(),
    )
    file_handler.setFormatter(json_formatter)
    std_logger.addHandler(file_handler)
    console_handler = RichHandler(
        rich_tracebacks=True,
        markup=False,
        show_path=False,
        show_time=False,
    )
    console_handler.setLevel(level)
    console_handler.addFilter(RepeatFilter())
    console_formatter_final = ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processor=ConsoleRenderer(colors=False),
        fmt="%(message)s",
    )
    console_handler.setFormatter(console_formatter_final)
    std_logger.addHandler(console_handler)
    return structlog.get_logger(LOGGER_NAME)
