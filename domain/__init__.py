"""
Domain layer: Business logic with minimal external dependencies.

Contains:
- schemas: Pydantic models for category nodes, payloads and AI config
- tree: Lookup, flattening, config inheritance and reconciliation
- grid: Filter/sort/paginate engine over flattened rows
- errors: Error taxonomy shared with the application layer
"""

from domain.errors import (
    BadInputError,
    CategoryError,
    ConflictError,
    NotFoundError,
    StoreError,
    TreeStructureError,
)
from domain.schemas import AiConfig, CategoryNode, CategoryPayload, CategoryTranslations

__all__ = [
    "AiConfig",
    "CategoryNode",
    "CategoryPayload",
    "CategoryTranslations",
    "CategoryError",
    "NotFoundError",
    "BadInputError",
    "TreeStructureError",
    "ConflictError",
    "StoreError",
]
