"""
Observability: structured logging and context management.

Provides:
- Contextual logging with operation tags and batch item names
- Log rotation and file management
"""

from infrastructure.observability.logging import (
    configure_logging,
    get_log_context,
    item_context,
    make_op_tag,
    set_log_context,
)

__all__ = [
    "configure_logging",
    "set_log_context",
    "get_log_context",
    "item_context",
    "make_op_tag",
]
