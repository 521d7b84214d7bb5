"""Grid query engine over flattened category rows."""

from domain.grid.filters import apply_filters, parse_filter, parse_filter_model
from domain.grid.query import (
    GridRequest,
    GridResult,
    SortModelItem,
    paginate,
    run_grid_query,
    search_rows,
    sort_rows,
)

__all__ = [
    "GridRequest",
    "GridResult",
    "SortModelItem",
    "run_grid_query",
    "search_rows",
    "sort_rows",
    "paginate",
    "apply_filters",
    "parse_filter",
    "parse_filter_model",
]
