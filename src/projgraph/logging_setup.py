# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Structured logging for projgraph.

Two outputs are configured on the root logger:
- a JSON-lines file under the log directory (one object per record)
- optionally a human-readable stream on stderr

stdout is left alone because the stdio MCP transport owns it.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, MutableMapping, Optional, Tuple, Union

DEFAULT_LOG_DIRNAME = ".projgraph_logs"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")

_CONSOLE_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


class StructuredFormatter(logging.Formatter):
    """Render a record as one JSON object.

    Keys: timestamp (UTC, ISO 8601), level, logger, message, and exception
    when the record carries one. Anything under the record's extra_fields
    attribute is merged in at the top level.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        extra_fields = getattr(record, "extra_fields", None)
        if extra_fields:
            entry.update(extra_fields)

        # Paths and other non-JSON values fall back to str()
        return json.dumps(entry, default=str)


class ProjectLogAdapter(logging.LoggerAdapter):
    """Tag every record with the project root being processed.

    Usage:
        log = ProjectLogAdapter(logger, root)
        log.warning("Skipping unreadable directory")
    """

    def __init__(self, logger: logging.Logger, root: Union[str, Path]) -> None:
        super().__init__(logger, {"root": str(root)})

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, Dict[str, Any]]:
        extra = dict(kwargs.get("extra") or {})
        fields = dict(self.extra or {})
        fields.update(extra.get("extra_fields") or {})
        extra["extra_fields"] = fields
        kwargs["extra"] = extra
        return msg, dict(kwargs)


def parse_log_level(name: str) -> int:
    """Map a level name such as "debug" or "INFO" to its logging constant.

    Raises:
        ValueError: If the name is not one of LOG_LEVELS.
    """
    upper = name.upper()
    if upper not in LOG_LEVELS:
        raise ValueError(f"Unknown log level '{name}', expected one of {', '.join(LOG_LEVELS)}")
    return int(getattr(logging, upper))


def _release_handlers(root_logger: logging.Logger) -> None:
    # Only files opened by an earlier setup are closed; stream handlers
    # installed by a host (e.g. a test runner) are detached untouched.
    for handler in list(root_logger.handlers):
        if isinstance(handler, logging.FileHandler):
            handler.close()
    root_logger.handlers.clear()


def setup_logging(
    log_dir: Optional[Path] = None,
    log_level: int = logging.INFO,
    console_output: bool = True,
) -> Path:
    """Configure the root logger; replaces any handlers set up before.

    Args:
        log_dir: Directory for log files. If None, uses ./.projgraph_logs/
        log_level: Logging level (default: INFO)
        console_output: Whether to also log to stderr (default: True)

    Returns:
        Path to the JSON log file (one file per UTC day).
    """
    if log_dir is None:
        log_dir = Path.cwd() / DEFAULT_LOG_DIRNAME
    log_dir.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    _release_handlers(root_logger)

    day = datetime.now(timezone.utc).strftime("%Y%m%d")
    log_file = log_dir / f"projgraph_{day}.log"
    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(log_level)
    file_handler.setFormatter(StructuredFormatter())
    root_logger.addHandler(file_handler)

    if console_output:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(log_level)
        console_handler.setFormatter(logging.Formatter(_CONSOLE_FORMAT, datefmt="%H:%M:%S"))
        root_logger.addHandler(console_handler)

    logging.getLogger(__name__).info(
        f"Logging initialized. Log file: {log_file}",
        extra={"extra_fields": {"log_level": logging.getLevelName(log_level)}},
    )
    return log_file
