# utils/logger.py
import logging
import logging.handlers
import os
import sys
from pathlib import Path
from typing import Optional

LOG_DIR_ENV = "AWS_INFRA_LOG_DIR"

_console_level = "INFO"


def setup_logger(
    name: str,
    log_file: Optional[str] = None,
    level: str = "INFO",
    enable_rotation: bool = True,
    max_bytes: int = 10 * 1024 * 1024,  # 10MB
    backup_count: int = 5,
) -> logging.Logger:
    """Setup logger with console and rotating file handlers"""
    logger = logging.getLogger(name)
    if _console_level == "DEBUG":
        logger.setLevel(logging.DEBUG)
    else:
        logger.setLevel(getattr(logging, level.upper()))

    # Prevent duplicate handlers
    if not logger.handlers:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

        # stdout is reserved for command output
        stream_handler = logging.StreamHandler(sys.stderr)
        stream_handler.setFormatter(formatter)
        stream_handler.setLevel(getattr(logging, _console_level))
        logger.addHandler(stream_handler)

        if log_file:
            logs_dir = Path(os.environ.get(LOG_DIR_ENV, "logs"))
            log_path = logs_dir / log_file

            try:
                logs_dir.mkdir(parents=True, exist_ok=True)
                if enable_rotation:
                    file_handler = logging.handlers.RotatingFileHandler(
                        log_path,
                        maxBytes=max_bytes,
                        backupCount=backup_count,
                        encoding="utf-8",
                    )
                else:
                    file_handler = logging.FileHandler(log_path, encoding="utf-8")

                file_handler.setFormatter(formatter)
                file_handler.setLevel(logging.DEBUG)  # All levels to file
                logger.addHandler(file_handler)

            except (OSError, PermissionError) as e:
                logger.warning(
                    f"Failed to create log file {log_path}: {e}. Logging to console only."
                )

        # Prevent propagation to root logger to avoid duplicate messages
        logger.propagate = False

    return logger


def set_console_level(level: str) -> None:
    """Set the console level for aws_infra loggers, existing and future."""
    global _console_level
    _console_level = level.upper()
    numeric = getattr(logging, _console_level)

    for name, candidate in list(logging.Logger.manager.loggerDict.items()):
        if not name.startswith("aws_infra") or not isinstance(candidate, logging.Logger):
            continue
        if numeric < candidate.level:
            candidate.setLevel(numeric)
        for handler in candidate.handlers:
            if not isinstance(handler, logging.FileHandler):
                handler.setLevel(numeric)
