"""
Logging setup shared by the Nautic API server and its command-line tools.

Entrypoints call ``setup_logging`` once:

    from utils.logging_utils import setup_logging

    setup_logging(level="INFO", job_name="nautic_api")

Modules ask for a tagged adapter:

    from utils.logging_utils import get_tagged_logger

    logger = get_tagged_logger(__name__, tag="open_meteo_client")
    logger.info("Fetching marine forecast", extra={"spot": "Pinamar"})

Every record carries ``job_name`` and ``tag`` so that log lines from the
per-spot fetch workers can be told apart from request handlers.
"""

from __future__ import annotations

import logging
import logging.config
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple


# Records emitted before setup_logging() runs (e.g. at import time while the
# settings object is built) still get a timestamp and level.
BOOTSTRAP_FORMAT = "%(asctime)s | %(levelname)s | %(message)s"
BOOTSTRAP_DATEFMT = "%Y-%m-%d %H:%M:%S"

logging.basicConfig(
    level=logging.INFO,
    format=BOOTSTRAP_FORMAT,
    datefmt=BOOTSTRAP_DATEFMT,
)

DEFAULT_LOG_FORMAT = (
    "%(asctime)s | %(levelname)s | %(job_name)s | %(tag)s | %(name)s | %(message)s"
)
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_CONFIGURED: bool = False

# Held at WARNING: at DEBUG they log every connection and cache lookup of the
# per-spot fetch fan-out.
NOISY_LOGGERS: Tuple[str, ...] = (
    "urllib3",
    "requests_cache",
    "sqlalchemy.engine",
)
NOISY_LOGGER_LEVEL = "WARNING"

# uvicorn installs its own handlers unless told otherwise; route them through ours.
UVICORN_LOGGERS: Tuple[str, ...] = ("uvicorn", "uvicorn.error", "uvicorn.access")


class MaxLevelFilter(logging.Filter):
    """Pass records at or below ``max_level`` (keeps WARNING+ off stdout)."""

    def __init__(self, max_level: int) -> None:
        super().__init__()
        self.max_level = max_level

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        return record.levelno <= self.max_level


class EnsureTagFilter(logging.Filter):
    """
    Give every record a ``tag``.

    Records coming through ``get_tagged_logger`` already have one; anything
    else (uvicorn, sqlalchemy, urllib3) is tagged with the last segment of its
    logger name, e.g. ``sqlalchemy.engine.Engine`` -> ``Engine``.
    """

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        if not hasattr(record, "tag"):
            logger_name = getattr(record, "name", "")
            record.tag = logger_name.split(".")[-1] if logger_name else "-"
        return True


class JobNameFilter(logging.Filter):
    """Stamp the process-wide job name (``-`` when unset) on every record."""

    def __init__(self, job_name: Optional[str] = None) -> None:
        super().__init__()
        self._job_name = job_name or "-"

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        if not hasattr(record, "job_name"):
            record.job_name = self._job_name
        return True


def build_logging_config(
    *,
    level: str | int = "INFO",
    log_format: str = DEFAULT_LOG_FORMAT,
    date_format: str = DEFAULT_DATE_FORMAT,
    job_name: Optional[str] = None,
    quiet_loggers: Sequence[str] = NOISY_LOGGERS,
) -> Mapping[str, Any]:
    """
    Return a ``dictConfig`` mapping for the service.

    DEBUG/INFO go to stdout, WARNING and above go to stderr; both handlers
    share the tag and job-name filters. ``quiet_loggers`` are held at
    WARNING; uvicorn loggers lose their own handlers and propagate to root.
    """
    loggers: Dict[str, Dict[str, Any]] = {
        name: {"level": NOISY_LOGGER_LEVEL} for name in quiet_loggers
    }
    for name in UVICORN_LOGGERS:
        loggers[name] = {"handlers": [], "propagate": True}

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "ensure_tag": {"()": EnsureTagFilter},
            "job_name": {"()": JobNameFilter, "job_name": job_name},
            "stdout_max_info": {
                "()": MaxLevelFilter,
                "max_level": logging.INFO,
            },
        },
        "formatters": {
            "standard": {
                "format": log_format,
                "datefmt": date_format,
            },
        },
        "handlers": {
            "stdout": {
                "class": "logging.StreamHandler",
                "formatter": "standard",
                "filters": ["ensure_tag", "job_name", "stdout_max_info"],
                "level": "DEBUG",
                "stream": "ext://sys.stdout",
            },
            "stderr": {
                "class": "logging.StreamHandler",
                "formatter": "standard",
                "filters": ["ensure_tag", "job_name"],
                "level": "WARNING",
                "stream": "ext://sys.stderr",
            },
        },
        "loggers": loggers,
        "root": {
            "level": level,
            "handlers": ["stdout", "stderr"],
        },
    }


def setup_logging(
    *,
    level: str | int = "INFO",
    log_format: str = DEFAULT_LOG_FORMAT,
    date_format: str = DEFAULT_DATE_FORMAT,
    job_name: Optional[str] = None,
    quiet_loggers: Sequence[str] = NOISY_LOGGERS,
    override_existing: bool = False,
) -> None:
    """
    Apply the logging configuration once per process.

    Repeated calls are ignored unless ``override_existing`` is set, so both
    ``run_server.py`` and ``nautic.seed`` can call this unconditionally.
    """
    global _CONFIGURED

    if _CONFIGURED and not override_existing:
        return

    logging.config.dictConfig(
        build_logging_config(
            level=level,
            log_format=log_format,
            date_format=date_format,
            job_name=job_name,
            quiet_loggers=quiet_loggers,
        )
    )
    _CONFIGURED = True


def get_tagged_logger(
    name: str,
    *,
    tag: Optional[str] = None,
) -> logging.LoggerAdapter:
    """Return a ``LoggerAdapter`` that adds ``tag`` (default: last name segment)."""
    base_logger = logging.getLogger(name)
    if tag is None:
        tag = name.split(".")[-1]
    return logging.LoggerAdapter(base_logger, {"tag": tag})


def mask_db_url(url: str) -> str:
    """Mask credentials in a database URL before it is logged.

    Examples
    --------
    - postgresql://nautic:secret@db:5432/nautic -> postgresql://***:***@db:5432/nautic
    - sqlite:///./nautic.db -> unchanged
    """
    from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

    try:
        parsed = urlparse(url)
    except Exception:
        return url

    masked_query_pairs = []
    for key, value in parse_qsl(parsed.query, keep_blank_values=True):
        if any(token in key.lower() for token in ("pass", "pwd", "secret", "token", "key")):
            masked_query_pairs.append((key, "***"))
        else:
            masked_query_pairs.append((key, value))
    masked_query = urlencode(masked_query_pairs)

    netloc = ""
    if parsed.username:
        netloc += "***"
        if parsed.password is not None:
            netloc += ":***"
        netloc += "@"
    if parsed.hostname:
        netloc += parsed.hostname
    if parsed.port:
        netloc += f":{parsed.port}"

    # sqlite:///path and file:///path have an empty netloc
    if not netloc and parsed.netloc == "" and (parsed.path or "").startswith("/"):
        base = f"{parsed.scheme}:///{(parsed.path or '').lstrip('/')}"
        if masked_query:
            base = f"{base}?{masked_query}"
        if parsed.fragment:
            base = f"{base}#{parsed.fragment}"
        return base

    return urlunparse(
        (parsed.scheme, netloc, parsed.path or "", parsed.params or "", masked_query, parsed.fragment or "")
    )
