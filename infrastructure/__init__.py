"""
Infrastructure layer: External dependencies and I/O boundaries.

Contains adapters for:
- Category stores (JSON file, in-memory)
- Configuration loading (YAML, environment)
- Tabular and JSON file I/O
- Observability (logging)

This is the only layer that performs I/O operations.
"""

# Most commonly used - exposed at top level for convenience
from infrastructure.config import AppSettings, load_settings
from infrastructure.store import CategoryStore, make_store

__all__ = [
    # Stores (most commonly used)
    "make_store",
    "CategoryStore",
    # Configuration (most commonly used)
    "load_settings",
    "AppSettings",
]
