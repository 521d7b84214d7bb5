"""
Category store adapters.

Implements the store interface the tree core depends on:
- InMemoryCategoryStore (tests, dry runs)
- JsonFileCategoryStore (CLI)

All stores implement the CategoryStore interface.
"""

from infrastructure.store.base import CategoryStore
from infrastructure.store.factory import make_store
from infrastructure.store.json_file import JsonFileCategoryStore
from infrastructure.store.memory import InMemoryCategoryStore

__all__ = [
    # Abstract base
    "CategoryStore",
    # Concrete implementations
    "InMemoryCategoryStore",
    "JsonFileCategoryStore",
    # Factory (most commonly used)
    "make_store",
]
