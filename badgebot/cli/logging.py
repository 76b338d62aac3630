"""CLI logging configuration with file output.

Each task run logs at DEBUG level to a rotating file under
``~/.local/share/badgebot/logs/``, split by task and wiki::

    <command>_<wiki>.log   # e.g. update-badges_enwiki.log
    <command>.log          # fallback when no wiki is specified

Console output is the task's own leveled output, not log records.

Usage::

    from badgebot.cli.logging import configure_cli_logging

    configure_cli_logging("update-badges", wiki="enwiki")

Follow a running task with::

    tail -f ~/.local/share/badgebot/logs/update-badges_enwiki.log
"""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

# Standard log directory follows XDG convention
LOG_DIR = Path.home() / ".local" / "share" / "badgebot" / "logs"


def get_log_dir() -> Path:
    """Return the CLI log directory, creating it if needed."""
    LOG_DIR.mkdir(parents=True, exist_ok=True)
    return LOG_DIR


def get_log_file(command: str, wiki: str | None = None) -> Path:
    """Return the log file path for a task and wiki."""
    stem = f"{command}_{wiki}" if wiki else command
    return get_log_dir() / f"{stem}.log"


def configure_cli_logging(
    command: str,
    *,
    wiki: str | None = None,
    file_level: int = logging.DEBUG,
    max_bytes: int = 10 * 1024 * 1024,  # 10 MB
    backup_count: int = 3,
) -> Path:
    """Attach a rotating file handler to the ``badgebot`` logger.

    Args:
        command: Task name (e.g., "update-badges")
        wiki: Wiki id, splits the log file per wiki
        file_level: File log level (default: DEBUG)
        max_bytes: Max size per log file before rotation
        backup_count: Number of rotated backups to keep

    Returns:
        Path to the log file
    """
    log_file = get_log_file(command, wiki=wiki)

    root_logger = logging.getLogger("badgebot")

    # Remove existing file handlers to avoid duplicates on repeated calls
    for handler in root_logger.handlers[:]:
        if isinstance(handler, RotatingFileHandler | logging.FileHandler):
            root_logger.removeHandler(handler)
            handler.close()

    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8",
    )
    file_handler.setLevel(file_level)
    file_handler.setFormatter(
        logging.Formatter(
            "%(asctime)s %(levelname)-8s %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    root_logger.addHandler(file_handler)

    # NOTSET means "inherit from parent" (WARNING by default)
    if root_logger.level == logging.NOTSET or root_logger.level > file_level:
        root_logger.setLevel(file_level)

    return log_file
