from __future__ import annotations

import atexit
import datetime as dt
import logging
import logging.config
import os
import pathlib
from importlib import resources
from typing import Dict, Optional

from typing_extensions import override
from orjson import OPT_NON_STR_KEYS, OPT_UTC_Z, dumps
from yaml import safe_load


def add_custom_level(level_name: str, level_num: int, method_name: str = None):
    """
    Add a new logging level to the `logging` module and the Logger class.

    Args:
        level_name: The name of the new level (e.g., 'TRACE')
        level_num: The numeric value for the level (e.g., 5)
        method_name: The method name to add to Logger (defaults to level_name.lower())
    """
    if method_name is None:
        method_name = level_name.lower()

    logging.addLevelName(level_num, level_name)

    def log_for_level(self, message, *args, **kwargs):
        if self.isEnabledFor(level_num):
            self._log(level_num, message, args, **kwargs)

    def log_to_root(message, *args, **kwargs):
        logging.log(level_num, message, *args, **kwargs)

    setattr(logging.Logger, method_name, log_for_level)
    setattr(logging, method_name, log_to_root)


TRACE = 5  # Below DEBUG - wire-level detail of metadata requests
SUCCESS = 22  # Between INFO and WARNING - completed refresh cycles
NOTICE = 25  # Between INFO and WARNING - degraded but serving

add_custom_level("TRACE", TRACE)
add_custom_level("SUCCESS", SUCCESS)
add_custom_level("NOTICE", NOTICE)

LOG_RECORD_BUILTIN_ATTRS = {
    "args",
    "asctime",
    "created",
    "exc_info",
    "exc_text",
    "filename",
    "funcName",
    "levelname",
    "levelno",
    "lineno",
    "module",
    "msecs",
    "message",
    "msg",
    "name",
    "pathname",
    "process",
    "processName",
    "relativeCreated",
    "stack_info",
    "thread",
    "threadName",
    "taskName",
}

# ANSI colours per level for the console formatter
LEVEL_COLORS = {
    TRACE: "\033[38;5;147m",
    logging.DEBUG: "\033[38;5;153m",
    logging.INFO: "\033[38;5;111m",
    SUCCESS: "\033[38;5;151m",
    NOTICE: "\033[38;5;152m",
    logging.WARNING: "\033[38;5;215m",
    logging.ERROR: "\033[38;5;210m",
    logging.CRITICAL: "\033[38;5;203m",
}
TEXT_COLOR = "\033[38;5;188m"
RESET = "\033[0m"


def _extra_fields(record: logging.LogRecord) -> Dict[str, object]:
    return {
        key: val
        for key, val in record.__dict__.items()
        if key not in LOG_RECORD_BUILTIN_ATTRS
    }


class JSONFormatter(logging.Formatter):
    """Formats records as one JSON object per line, extras included."""

    def __init__(self, *, fmt_keys: Dict[str, str] = None):
        super().__init__()
        self.fmt_keys = fmt_keys if fmt_keys is not None else {}

    @override
    def format(self, record: logging.LogRecord) -> str:
        message = self._prepare_log_dict(record)
        return dumps(
            message,
            option=OPT_NON_STR_KEYS | OPT_UTC_Z,
            default=str,
        ).decode("utf-8")

    def _prepare_log_dict(self, record: logging.LogRecord):
        always_fields = {
            "message": record.getMessage(),
            "timestamp": dt.datetime.fromtimestamp(
                record.created, tz=dt.timezone.utc
            ).isoformat(),
        }
        if record.exc_info is not None:
            always_fields["exc_info"] = self.formatException(record.exc_info)

        if record.stack_info is not None:
            always_fields["stack_info"] = self.formatStack(record.stack_info)

        message = {
            key: msg_val
            if (msg_val := always_fields.pop(val, None)) is not None
            else getattr(record, val)
            for key, val in self.fmt_keys.items()
        }
        message.update(always_fields)
        message.update(_extra_fields(record))

        return message


class ConsoleFormatter(logging.Formatter):
    """Aligned single-line console output with ``key=value`` extras.

    Columns: ``[LEVEL   ][timestamp]: logger | message | key=value ...``
    """

    LEVEL_WIDTH = 8
    NAME_WIDTH = 28

    def __init__(self, fmt=None, datefmt=None, style="%", colors: bool = True):
        super().__init__(fmt=fmt, datefmt=datefmt, style=style)
        self.colors = colors

    def _paint(self, text: str, color: str) -> str:
        return f"{color}{text}{RESET}" if self.colors else text

    @override
    def format(self, record: logging.LogRecord) -> str:
        level_color = LEVEL_COLORS.get(record.levelno, TEXT_COLOR)

        level = f"[{record.levelname[: self.LEVEL_WIDTH]:<{self.LEVEL_WIDTH}}]"
        timestamp = f"[{self.formatTime(record, self.datefmt)}]"
        name = record.name
        if len(name) > self.NAME_WIDTH:
            name = "..." + name[-(self.NAME_WIDTH - 3) :]

        try:
            message = record.getMessage()
        except (TypeError, ValueError):
            message = str(getattr(record, "msg", "Unknown message"))

        line = (
            f"{self._paint(level, level_color)}{self._paint(timestamp, TEXT_COLOR)}: "
            f"{self._paint(f'{name:<{self.NAME_WIDTH}}', level_color)} | {message}"
        )

        extras = _extra_fields(record)
        if extras:
            pairs = " ".join(
                f"{self._paint(key, level_color)}={val}" for key, val in extras.items()
            )
            line = f"{line} | {pairs}"

        if record.exc_info:
            line = f"{line}\n{self._paint(self.formatException(record.exc_info), level_color)}"

        return line


class NonErrorFilter(logging.Filter):
    """Filter that only allows messages with level <= INFO."""

    @override
    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno <= logging.INFO


def get_dynamic_log_filename(
    app_name: Optional[str] = None,
    include_pid: bool = False,
    prefix: str = "rancher_inventory",
    log_dir: str = "logs",
) -> str:
    """Generate a timestamped JSON-lines log filename.

    Args:
        app_name: Optional application name to include in filename
        include_pid: Whether to include process ID in filename
        prefix: Default prefix if no app_name is provided
        log_dir: Directory the file is placed in, created if missing

    Returns:
        A string path to the log file
    """
    timestamp = dt.datetime.now().strftime("%Y%m%d_%H%M%S")
    components = [app_name if app_name else prefix, timestamp]

    if include_pid:
        components.append(f"pid{os.getpid()}")

    pathlib.Path(log_dir).mkdir(parents=True, exist_ok=True)

    return f"{log_dir}/{'_'.join(components)}.log.jsonl"


def load_config(theme: str = "console") -> dict:
    """Load one of the bundled dictConfig YAML files.

    Args:
        theme: "console" for stderr only, "json_file" to also write JSON lines
    """
    config_file = resources.files("rancher_inventory.log").joinpath(
        "config", f"{theme}.yml"
    )
    with config_file.open("r", encoding="utf-8") as f_in:
        return safe_load(f_in)


# Track configured loggers to prevent duplicate configuration
_CONFIGURED_LOGGERS = set()
_QUEUE_LISTENERS = {}


def setup_logging(
    logger_name: str = "rancher_inventory",
    theme: str = "console",
    level: str = "INFO",
    log_file: Optional[str] = None,
    app_name: Optional[str] = None,
    include_pid: bool = False,
) -> logging.Logger:
    """Set up logging from a bundled YAML configuration.

    Args:
        logger_name: Name of the logger to configure
        theme: Bundled configuration to use ("console" or "json_file")
        level: Level for the configured logger, e.g. "DEBUG" when debugging
        log_file: Custom log file path for file themes, generated if None
        app_name: Optional application name to include in the log filename
        include_pid: Whether to include process ID in the dynamic log filename

    Returns:
        Configured logger instance
    """
    global _CONFIGURED_LOGGERS, _QUEUE_LISTENERS

    if logger_name in _CONFIGURED_LOGGERS:
        return logging.getLogger(logger_name)

    config = load_config(theme)

    uses_file = any(
        handler.get("class") == "logging.handlers.RotatingFileHandler"
        for handler in config.get("handlers", {}).values()
    )
    if uses_file:
        if log_file is None:
            log_file = get_dynamic_log_filename(app_name, include_pid)
        for handler in config["handlers"].values():
            if handler.get("class") == "logging.handlers.RotatingFileHandler":
                handler["filename"] = log_file
                handler["encoding"] = "utf-8"

    config.setdefault("loggers", {})
    logger_config = config["loggers"].setdefault(logger_name, {})
    logger_config["level"] = level.upper()

    logging.config.dictConfig(config)

    # Start the queue listener if present and not already started
    queue_handler = logging.getHandlerByName("queue_handler")
    if queue_handler is not None and logger_name not in _QUEUE_LISTENERS:
        queue_handler.listener.start()
        _QUEUE_LISTENERS[logger_name] = queue_handler.listener
        atexit.register(queue_handler.listener.stop)

    _CONFIGURED_LOGGERS.add(logger_name)

    logger = logging.getLogger(logger_name)
    if log_file is not None:
        logger.info(f"Logging to file: {log_file}")
    return logger


__all__ = [
    "TRACE",
    "SUCCESS",
    "NOTICE",
    "JSONFormatter",
    "ConsoleFormatter",
    "NonErrorFilter",
    "add_custom_level",
    "get_dynamic_log_filename",
    "load_config",
    "setup_logging",
]
