"""
Application layer: Use cases and workflow orchestration.

This layer coordinates between the pure tree core and the category store,
implementing single-item edits, batch import/sync and grid queries.
"""

from application.categories import CategoryService, translate_names
from application.results import BatchItemError, BatchResult, EnsureResult
from application.sync import SyncCoordinator, coerce_batch
from application.tabular import descriptors_from_table, rows_to_frame

__all__ = [
    # Main workflows
    "CategoryService",
    "SyncCoordinator",
    # Results
    "BatchResult",
    "BatchItemError",
    "EnsureResult",
    # Data utilities
    "coerce_batch",
    "translate_names",
    "descriptors_from_table",
    "rows_to_frame",
]
