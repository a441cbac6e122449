"""Logging for the games app process.

The app's own modules, uvicorn (started with ``log_config=None``) and httpx all
propagate to the root logger, so one set of handlers covers the whole process.
Per-logger levels come from ``logging.loggers`` in settings.
"""

import logging
import logging.handlers
from pathlib import Path
from typing import Any

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

logger = logging.getLogger(__name__)


def _level(name: Any, default: int = logging.INFO) -> int:
    """Level number for a name like "debug" or "WARNING"; default if unknown."""
    value = logging.getLevelName(str(name).upper())
    return value if isinstance(value, int) else default


def _log_path(project_root: Path, log_file: str) -> Path:
    path = Path(log_file)
    return path if path.is_absolute() else project_root / path


def _build_handlers(project_root: Path, cfg: dict[str, Any]) -> list[logging.Handler]:
    handlers: list[logging.Handler] = []
    log_file = cfg.get("file")
    if log_file:
        path = _log_path(project_root, log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            logging.handlers.RotatingFileHandler(
                path,
                maxBytes=int(cfg.get("max_bytes", 10 * 1024 * 1024)),
                backupCount=int(cfg.get("backup_count", 3)),
                encoding="utf-8",
            )
        )
    # Never leave the process silent: no file means console.
    if cfg.get("log_to_console", True) or not handlers:
        handlers.append(logging.StreamHandler())
    return handlers


def setup_logging(project_root: Path, settings: dict[str, Any]) -> list[logging.Handler]:
    """Replace the root handlers and apply per-logger levels. Returns the new handlers.

    ``logging.file`` is relative to project_root; empty disables the file handler.
    ``logging.level`` may be overridden with GAMESAPP_LOG_LEVEL.
    """
    cfg = settings.get("logging", {})
    level = _level(cfg.get("level", "INFO"))
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    root = logging.getLogger()
    root.setLevel(level)
    for h in root.handlers[:]:
        root.removeHandler(h)
    handlers = _build_handlers(project_root, cfg)
    for h in handlers:
        h.setLevel(level)
        h.setFormatter(formatter)
        root.addHandler(h)

    for name, logger_level in (cfg.get("loggers") or {}).items():
        logging.getLogger(name).setLevel(_level(logger_level, level))
    logger.debug(
        "logging at %s to %s",
        logging.getLevelName(level),
        ", ".join(type(h).__name__ for h in handlers),
    )
    return handlers
