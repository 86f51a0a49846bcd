"""
Logging for riff-cli

riff prints its real output (generated files, function logs) on stdout, so
log records go to stderr and, when a log file is configured, to a file that
is rotated by size. Records are structured with structlog. The default
WARNING level keeps a normal run quiet; --debug shows every kubectl call.
"""

import logging
import os
import sys
import time
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, List, Optional

import structlog

SHARED_PROCESSORS = [
    structlog.stdlib.filter_by_level,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
    structlog.processors.UnicodeDecoder(),
]


def _level_number(level: str) -> int:
    number = logging.getLevelName(str(level).upper())
    return number if isinstance(number, int) else logging.WARNING


def _handlers(log_file: Optional[str], max_size_mb: int, backup_count: int) -> List[logging.Handler]:
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        path = Path(log_file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(RotatingFileHandler(
            filename=str(path),
            maxBytes=max_size_mb * 1024 * 1024,
            backupCount=backup_count,
            encoding="utf-8",
        ))
    return handlers


def configure_logging(
    level: str = "WARNING",
    log_file: Optional[str] = None,
    max_size_mb: int = 10,
    backup_count: int = 3,
) -> None:
    """Send riff's log records to stderr and the optional log file

    Args:
        level: Level name; unknown names mean WARNING
        log_file: File to log to as well as stderr
        max_size_mb: Size at which log_file is rotated
        backup_count: Rotated copies of log_file to keep
    """
    log_level = _level_number(level)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers = []
    for handler in _handlers(log_file, max_size_mb, backup_count):
        handler.setLevel(log_level)
        root_logger.addHandler(handler)

    if sys.stderr.isatty():
        renderer = structlog.dev.ConsoleRenderer(colors=True)
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=SHARED_PROCESSORS + [renderer],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


class PerformanceLogger:
    """Times the enclosed block, e.g. generating the files of one function"""

    def __init__(self, operation: str, logger: Optional[structlog.BoundLogger] = None):
        self.operation = operation
        self.logger = logger or structlog.get_logger("performance")
        self.started = 0.0

    def __enter__(self):
        self.started = time.perf_counter()
        self.logger.debug("Operation started", operation=self.operation)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        duration = round(time.perf_counter() - self.started, 3)
        if exc_type is None:
            self.logger.info("Operation completed", operation=self.operation, duration_seconds=duration)
        else:
            self.logger.info(
                "Operation failed",
                operation=self.operation,
                duration_seconds=duration,
                error=str(exc_val),
            )


def log_command_execution(command: str, args: Dict[str, Any]) -> None:
    """Record which riff command ran, with its parsed options"""
    structlog.get_logger("audit").info("Command executed", command=command, args=args, cwd=os.getcwd())


def log_error_with_context(error: Exception, context: Dict[str, Any]) -> None:
    """Record a failure the CLI is about to report

    The CLI prints the message for the user; this keeps the error type and
    context in the log file and in --debug output.
    """
    structlog.get_logger("error").info(
        "Error occurred",
        error_type=type(error).__name__,
        error_message=str(error),
        **context,
    )


def setup_logging_from_config(settings: Dict[str, Any], debug: bool = False) -> None:
    """Configure logging from Config.logging_settings()

    Args:
        settings: "level", "file", "max_size_mb" and "backup_count"
        debug: Log at DEBUG whatever the configured level
    """
    configure_logging(
        level="DEBUG" if debug else settings.get("level", "WARNING"),
        log_file=settings.get("file"),
        max_size_mb=settings.get("max_size_mb", 10),
        backup_count=settings.get("backup_count", 3),
    )
