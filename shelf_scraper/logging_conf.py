"""structlog setup forwarding JSON events into stdlib handlers.

stdout carries exported entities only, so the console handler writes to
stderr. Besides the console there are three kinds of file:

* ``scraper.log``: every INFO+ event of every run
* ``error.log``: failed pages and rows across runs
* ``sources/<slug>.log``: one file per catalog source
"""

from __future__ import annotations

import logging
import logging.config
import os
import re
from collections import deque
from pathlib import Path
from typing import Any, Iterable

import structlog

ROOT_LOGGER = "shelf_scraper"
JSON_FORMAT = "%(asctime)s %(levelname)s %(name)s %(threadName)s %(message)s"
MAX_LOG_BYTES = 5 * 1024 * 1024

_configured = False
_source_handlers: dict[str, logging.Handler] = {}


def log_dir() -> Path:
    home = os.environ.get("SHELF_SCRAPER_HOME")
    if home:
        return Path(home).expanduser().resolve() / "logs"
    return Path(__file__).resolve().parents[1] / "logs"


def _rotating(path: Path, level: str) -> dict[str, Any]:
    return {
        "class": "logging.handlers.RotatingFileHandler",
        "level": level,
        "formatter": "json",
        "filename": str(path),
        "maxBytes": MAX_LOG_BYTES,
        "backupCount": 3,
        "encoding": "utf-8",
    }


def _dict_config(base: Path, level: str) -> dict[str, Any]:
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {"()": "pythonjsonlogger.jsonlogger.JsonFormatter", "fmt": JSON_FORMAT},
        },
        "handlers": {
            "stderr": {
                "class": "logging.StreamHandler",
                "stream": "ext://sys.stderr",
                "level": level,
                "formatter": "json",
            },
            "runs": _rotating(base / "scraper.log", "INFO"),
            "errors": _rotating(base / "error.log", "ERROR"),
        },
        "loggers": {
            ROOT_LOGGER: {
                "handlers": ["stderr", "runs", "errors"],
                "level": level,
                "propagate": False,
            },
        },
    }


def configure_logging(verbose: bool = False) -> structlog.BoundLogger:
    """Install handlers once per process and return the ``shelf_scraper`` logger."""

    global _configured
    if not _configured:
        base = log_dir()
        (base / "sources").mkdir(parents=True, exist_ok=True)
        logging.config.dictConfig(_dict_config(base, "DEBUG" if verbose else "INFO"))
        structlog.configure(
            processors=[
                structlog.contextvars.merge_contextvars,
                structlog.stdlib.add_log_level,
                structlog.processors.TimeStamper(fmt="iso", utc=True),
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
            ],
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=True,
        )
        _configured = True
    return structlog.get_logger(ROOT_LOGGER)


def _source_slug(source_name: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", source_name.lower()).strip("-") or "source"


def source_logger(source_name: str, verbose: bool = False) -> structlog.BoundLogger:
    """Logger bound to ``source=<name>`` that also writes ``sources/<slug>.log``."""

    configure_logging(verbose)
    slug = _source_slug(source_name)
    name = f"{ROOT_LOGGER}.source.{slug}"
    if slug not in _source_handlers:
        path = log_dir() / "sources" / f"{slug}.log"
        path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(path, encoding="utf-8")
        handler.setLevel(logging.INFO)
        parent = logging.getLogger(ROOT_LOGGER)
        if parent.handlers:
            handler.setFormatter(parent.handlers[0].formatter)
        logging.getLogger(name).addHandler(handler)
        _source_handlers[slug] = handler
    return structlog.get_logger(name).bind(source=source_name)


def resolve_log(name: str) -> Path:
    """Map ``scraper``, ``error`` or a source name onto its log file."""

    base = log_dir()
    if (base / f"{name}.log").exists():
        return base / f"{name}.log"
    return base / "sources" / f"{_source_slug(name)}.log"


def tail_log(path: Path, line_count: int = 100) -> list[str]:
    if not path.exists():
        return []
    with path.open("r", encoding="utf-8", errors="ignore") as stream:
        return list(deque(stream, maxlen=line_count))


def available_logs() -> Iterable[Path]:
    base = log_dir()
    if not base.exists():
        return []
    return sorted(base.glob("*.log")) + sorted((base / "sources").glob("*.log"))


__all__ = [
    "available_logs",
    "configure_logging",
    "log_dir",
    "resolve_log",
    "source_logger",
    "tail_log",
]
