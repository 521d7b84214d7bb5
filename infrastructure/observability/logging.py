"""
Logging setup with contextvars-based metadata injection.

- Adds op (operation tag) and item (batch item name) into every log line (via contextvars).
- Supports console-only logging OR console + rotating file logs.
"""

import contextvars
import hashlib
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from logging.handlers import RotatingFileHandler
from pathlib import Path

# Context variables for dynamic log metadata
cv_op_tag = contextvars.ContextVar("op_tag", default="-")
cv_item = contextvars.ContextVar("item", default="-")

# Optional: keep full values in context for metadata (not printed every line)
cv_op_name = contextvars.ContextVar("op_name", default="-")
cv_op_id_full = contextvars.ContextVar("op_id_full", default="-")


def make_op_tag(op_id_full: str, length: int = 8) -> str:
    """
    Stable short tag derived from the full operation id.
    Uses BLAKE2s for collision resistance.
    """
    h = hashlib.blake2s(op_id_full.encode("utf-8"), digest_size=8).hexdigest()
    return h[:length]


class ContextInjectFilter(logging.Filter):
    """Inject context variables into log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.op = cv_op_tag.get() or "-"
        record.item = cv_item.get() or "-"
        return True


def set_log_context(
    *,
    op_id_full: str | None = None,
    op_name: str | None = None,
    item: str | None = None,
) -> None:
    """Update logging context (thread-safe via contextvars)."""
    if op_id_full is not None:
        cv_op_id_full.set(str(op_id_full))
        cv_op_tag.set(make_op_tag(str(op_id_full)))

    if op_name is not None:
        cv_op_name.set(str(op_name))

    if item is not None:
        cv_item.set(str(item))


def get_log_context() -> dict[str, str]:
    """Return the current context in a convenient dict form."""
    return {
        "op_tag": str(cv_op_tag.get() or "-"),
        "op_id_full": str(cv_op_id_full.get() or "-"),
        "op_name": str(cv_op_name.get() or "-"),
        "item": str(cv_item.get() or "-"),
    }


@contextmanager
def item_context(item: object) -> Iterator[None]:
    """Tag log lines emitted while processing one batch item."""
    token = cv_item.set(str(item) if item is not None else "-")
    try:
        yield
    finally:
        cv_item.reset(token)


def configure_logging(
    *,
    log_file: Path | None = None,
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
    max_bytes: int = 10_000_000,  # 10MB
    backup_count: int = 5,
) -> None:
    """
    Configure application logging with contextvars support.

    Args:
        log_file: Path to log file
        console_level: Minimum level for console output (default: INFO)
        file_level: Minimum level for file output (default: DEBUG)
        max_bytes: Max log file size before rotation
        backup_count: Number of backup files to keep
    """
    # Clear existing handlers to avoid duplicate logs if called multiple times
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(logging.DEBUG)  # keep root permissive; handlers enforce levels

    # Formatter includes context fields injected by ContextInjectFilter
    console_fmt = "%(asctime)s [%(levelname)s] op=%(op)s item=%(item)s | %(message)s"
    file_fmt = "%(asctime)s [%(levelname)s] %(name)s | op=%(op)s item=%(item)s | %(message)s"

    console_formatter = logging.Formatter(console_fmt, datefmt="%H:%M:%S")
    file_formatter = logging.Formatter(file_fmt, datefmt="%Y-%m-%d %H:%M:%S")

    ctx_filter = ContextInjectFilter()

    # Console handler (human-readable, INFO+); stderr so stdout stays clean JSON
    ch = logging.StreamHandler()
    ch.setLevel(console_level)
    ch.setFormatter(console_formatter)
    ch.addFilter(ctx_filter)
    root.addHandler(ch)

    # File handler (detailed, DEBUG+, with rotation)
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        fh = RotatingFileHandler(
            log_file,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        fh.setLevel(file_level)
        fh.setFormatter(file_formatter)
        fh.addFilter(ctx_filter)
        root.addHandler(fh)

    logging.getLogger(__name__).info(
        "Logging configured (console_level=%s, file=%s)",
        logging.getLevelName(console_level),
        str(log_file) if log_file is not None else "None",
    )
