from __future__ import annotations

import logging
import os
import sys
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def _resolve_log_dir(settings: object) -> Path | None:
    """Resolve the log directory, or None when file logging is disabled.

    Relative paths are taken relative to the current working directory.
    """

    raw = getattr(settings, "REDIS_CLEANUP_LOG_DIR", None)
    if raw is None or str(raw).strip() == "":
        return None
    p = raw if isinstance(raw, Path) else Path(str(raw))
    return p if p.is_absolute() else Path.cwd() / p


def setup_logging(settings: object, level: str | None = None) -> Path | None:
    """Configure Python logging for a CLI run.

    Returns the resolved log file path, or None when only stderr is used.

    Rotation:
      - Daily rotation at midnight.
      - Keep the last `REDIS_CLEANUP_LOG_BACKUP_COUNT` rotated files.

    Notes:
      - `level` overrides `REDIS_CLEANUP_LOG_LEVEL` (used for --log-level).
      - This function is safe to call multiple times (it resets handlers).
    """

    level_name = str(level or getattr(settings, "REDIS_CLEANUP_LOG_LEVEL", "INFO") or "INFO").upper().strip()
    lvl = getattr(logging, level_name, logging.INFO)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(lvl)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT))

    # Reset root handlers so repeated invocations (tests) don't duplicate logs.
    root = logging.getLogger()
    root.handlers = []
    root.setLevel(lvl)
    root.addHandler(console_handler)

    # redis-py is chatty at DEBUG.
    logging.getLogger("redis").setLevel(max(lvl, logging.INFO))

    log_file: Path | None = None
    log_dir = _resolve_log_dir(settings)
    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        log_file = log_dir / "redis_cleanup.log"
        file_handler = TimedRotatingFileHandler(
            filename=str(log_file),
            when="midnight",
            interval=1,
            backupCount=max(0, int(getattr(settings, "REDIS_CLEANUP_LOG_BACKUP_COUNT", 14) or 0)),
            encoding="utf-8",
            utc=False,
        )
        file_handler.setLevel(lvl)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(file_handler)

    logging.getLogger("redis_cleanup").debug(
        "logging enabled (file=%s, level=%s)",
        os.fspath(log_file) if log_file else "-",
        level_name,
    )

    return log_file
