"""
Library-friendly logging with:
- Rich console for humans (default).
- Optional rotating file logs.
- Optional JSON logs.
- QueueHandler/QueueListener so hashing threads never block on sinks.

The hashing modules only call `get_logger()`; nothing is emitted until an
application calls `init_logging()`.

Usage:
    from logs import init_logging, get_logger

    init_logging(level="DEBUG")
    log = get_logger("imghash.app")
    log.info("hello")

Env vars:
    IMGHASH_LOG_LEVEL   = DEBUG|INFO|WARNING|ERROR (default INFO)
    IMGHASH_LOG_JSON    = 0|1  (default 0)
    IMGHASH_LOG_TO_FILE = 0|1  (default 0)
    IMGHASH_LOG_FILE    = path to log file (default .imghash/logs/imghash.log)
"""

from __future__ import annotations

import atexit
import json
import logging
import os
import queue
import sys
from dataclasses import dataclass
from logging.handlers import QueueHandler, QueueListener, RotatingFileHandler
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler


# ------------ Config model ------------


@dataclass
class LogConfig:
    level: str = "INFO"
    json: bool = False
    to_file: bool = False
    file_path: Path = Path(".imghash/logs/imghash.log")
    max_bytes: int = 2 * 1024 * 1024  # 2 MB per file
    backup_count: int = 3


# ------------ Globals ------------

_CONSOLE = Console(stderr=True, highlight=False, soft_wrap=True)
_QUEUE: Optional[queue.Queue] = None
_LISTENER: Optional[QueueListener] = None
_INITIALIZED = False

# Library convention: silent unless the application configures logging.
logging.getLogger("imghash").addHandler(logging.NullHandler())


# ------------ Formatters ------------


class JsonFormatter(logging.Formatter):
    """Minimal JSON formatter (keeps keys stable for ingestion)."""

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        payload = {
            "level": record.levelname,
            "time": self.formatTime(record, datefmt="%Y-%m-%dT%H:%M:%S%z"),
            "logger": record.name,
            "msg": record.getMessage(),
            "thread": record.threadName,
            "file": record.filename,
            "line": record.lineno,
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def _env_flag(name: str) -> bool:
    return os.getenv(name, "0") == "1"


# ------------ Initialization ------------


def init_logging(
    level: Optional[str] = None,
    *,
    json: Optional[bool] = None,
    to_file: Optional[bool] = None,
    file_path: Optional[Path] = None,
) -> None:
    """
    Initialize process-wide logging. Safe to call multiple times (idempotent).

    - Installs a QueueHandler on root logger.
    - Starts a QueueListener with configured sinks (console/file).
    - Honors env vars when arguments are not provided.
    """
    global _INITIALIZED, _QUEUE, _LISTENER

    if _INITIALIZED:
        return

    cfg = LogConfig(
        level=(level or os.getenv("IMGHASH_LOG_LEVEL") or "INFO").upper(),
        json=(json if json is not None else _env_flag("IMGHASH_LOG_JSON")),
        to_file=(to_file if to_file is not None else _env_flag("IMGHASH_LOG_TO_FILE")),
        file_path=Path(
            os.getenv("IMGHASH_LOG_FILE") or (file_path or LogConfig.file_path)
        ),
    )

    root = logging.getLogger()
    root.setLevel(getattr(logging, cfg.level, logging.INFO))

    if not any(isinstance(h, QueueHandler) for h in root.handlers):
        _QUEUE = queue.Queue(-1)
        root.addHandler(QueueHandler(_QUEUE))

    handlers: list[logging.Handler] = []

    if cfg.json:
        console_handler = logging.StreamHandler(stream=sys.stderr)
        console_handler.setFormatter(JsonFormatter())
        handlers.append(console_handler)
    else:
        handlers.append(
            RichHandler(console=_CONSOLE, show_time=True, show_path=False, markup=True)
        )
        # RichHandler renders the record itself; plain message avoids double prefixes
        handlers[-1].setFormatter(logging.Formatter("%(message)s"))

    if cfg.to_file:
        try:
            cfg.file_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(
                cfg.file_path,
                maxBytes=cfg.max_bytes,
                backupCount=cfg.backup_count,
                encoding="utf-8",
            )
        except OSError as exc:
            # Console logging still works; report the broken sink there.
            _CONSOLE.print(f"[yellow]File logging disabled:[/] {exc}")
        else:
            file_handler.setFormatter(
                JsonFormatter()
                if cfg.json
                else logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
            )
            handlers.append(file_handler)

    if _QUEUE is not None:
        _LISTENER = QueueListener(_QUEUE, *handlers, respect_handler_level=True)
        _LISTENER.start()
        atexit.register(_stop_listener)

    logging.getLogger("PIL").setLevel(logging.WARNING)

    _INITIALIZED = True


def _stop_listener() -> None:
    global _LISTENER
    if _LISTENER:
        _LISTENER.stop()
        _LISTENER = None


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Get a namespaced logger under "imghash". Applications call `init_logging()`
    once to configure sinks/levels; this getter stays cheap.
    """
    if not name:
        return logging.getLogger("imghash")
    if name != "imghash" and not name.startswith("imghash."):
        name = f"imghash.{name}"
    return logging.getLogger(name)
