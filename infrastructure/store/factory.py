"""Factory for creating category stores."""

import logging

from infrastructure.config.models import AppSettings

from .base import CategoryStore
from .json_file import JsonFileCategoryStore
from .memory import InMemoryCategoryStore

logger = logging.getLogger(__name__)


def make_store(settings: AppSettings, *, in_memory: bool = False) -> CategoryStore:
    """
    Create the store described by settings.

    Args:
        settings: resolved application settings
        in_memory: if True, ignore store_path and use an empty in-memory store
    """
    if in_memory:
        logger.info("Using in-memory category store (nothing is persisted)")
        return InMemoryCategoryStore(max_depth=settings.max_tree_depth)

    logger.info("Using JSON file category store at %s", settings.store_path)
    return JsonFileCategoryStore(settings.store_path, max_depth=settings.max_tree_depth)
