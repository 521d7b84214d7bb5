"""Server-side grid query: filter, then stable multi-key sort, then paginate."""

import logging
import math
from collections.abc import Sequence
from datetime import date, datetime
from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, ValidationInfo, field_validator

from domain.errors import BadInputError
from domain.grid.filters import apply_filters, parse_filter_model

logger = logging.getLogger(__name__)

DEFAULT_START_ROW = 0
DEFAULT_END_ROW = 100
DEFAULT_SEARCH_MIN_LENGTH = 2


class SortModelItem(BaseModel):
    """One sort key. Accepts ag-Grid's {colId, sort} as well as {field, direction}."""

    model_config = ConfigDict(populate_by_name=True)

    field: str = Field(validation_alias=AliasChoices("colId", "field"))
    direction: Literal["asc", "desc"] = Field(default="asc", validation_alias=AliasChoices("sort", "direction"))

    @field_validator("direction", mode="before")
    @classmethod
    def _default_direction(cls, v: Any) -> Any:
        return "asc" if v is None else str(v).lower()


class GridRequest(BaseModel):
    """Half-open row window [startRow, endRow) plus sort and filter models."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    start_row: int | None = Field(default=None, validation_alias=AliasChoices("startRow", "start_row"))
    end_row: int | None = Field(default=None, validation_alias=AliasChoices("endRow", "end_row"))
    sort_model: list[SortModelItem] = Field(
        default_factory=list, validation_alias=AliasChoices("sortModel", "sort_model")
    )
    filter_model: dict[str, Any] = Field(
        default_factory=dict, validation_alias=AliasChoices("filterModel", "filter_model")
    )

    @field_validator("sort_model", "filter_model", mode="before")
    @classmethod
    def _none_to_empty(cls, v: Any, info: ValidationInfo) -> Any:
        if v is None:
            return [] if info.field_name == "sort_model" else {}
        return v

    @classmethod
    def parse(cls, params: Any) -> "GridRequest":
        """Validate raw request params, reporting failures as BadInputError."""
        if isinstance(params, GridRequest):
            return params
        try:
            return cls.model_validate(params or {})
        except ValidationError as err:
            raise BadInputError(f"Invalid grid request: {err}", field="params") from err


class GridResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    rows: list[dict[str, Any]]
    last_row: int = Field(serialization_alias="lastRow")


def _sort_key(value: Any) -> tuple[int, Any]:
    """Total order over mixed cell values: missing < numbers < text < dates < anything else."""
    if value is None:
        return (0, 0)
    if isinstance(value, (bool, int, float)):
        if isinstance(value, float) and math.isnan(value):
            return (0, 0)
        return (1, float(value))
    if isinstance(value, str):
        return (2, value)
    if isinstance(value, datetime):
        return (3, value.isoformat())
    if isinstance(value, date):
        return (3, value.isoformat())
    return (4, str(value))


def sort_rows(rows: Sequence[dict[str, Any]], sort_model: Sequence[SortModelItem]) -> list[dict[str, Any]]:
    """
    Stable multi-key sort; earlier keys take precedence, ties fall through to later ones.

    Implemented as successive stable sorts from the last key to the first.
    """
    result = list(rows)
    for item in reversed(list(sort_model)):
        result.sort(key=lambda row, f=item.field: _sort_key(row.get(f)), reverse=item.direction == "desc")
    return result


def paginate(rows: Sequence[dict[str, Any]], start_row: int, end_row: int) -> list[dict[str, Any]]:
    """Slice [start_row, end_row); out-of-range windows give an empty list."""
    start = max(int(start_row), 0)
    end = max(int(end_row), 0)
    if start >= len(rows) or end <= start:
        return []
    return list(rows[start:end])


def run_grid_query(
    rows: Sequence[dict[str, Any]],
    params: GridRequest | dict[str, Any] | None,
    *,
    default_start_row: int = DEFAULT_START_ROW,
    default_end_row: int = DEFAULT_END_ROW,
) -> GridResult:
    """
    Filter -> sort -> paginate already-flattened rows.

    `lastRow` is the number of rows that passed the filters, independent of the window.
    """
    request = GridRequest.parse(params)
    filters = parse_filter_model(request.filter_model)

    filtered = apply_filters(list(rows), filters)
    ordered = sort_rows(filtered, request.sort_model) if request.sort_model else filtered

    start = default_start_row if request.start_row is None else request.start_row
    end = default_end_row if request.end_row is None else request.end_row
    page = paginate(ordered, start, end)

    logger.debug(
        "Grid query: %d rows in, %d after filters (%d filters, %d sort keys), returning [%d, %d) -> %d rows",
        len(rows),
        len(ordered),
        len(filters),
        len(request.sort_model),
        start,
        end,
        len(page),
    )
    return GridResult(rows=page, last_row=len(ordered))


def search_rows(
    rows: Sequence[dict[str, Any]],
    term: str | None,
    *,
    min_length: int = DEFAULT_SEARCH_MIN_LENGTH,
) -> list[dict[str, Any]]:
    """
    Case-insensitive substring match on `name`.

    Raises:
        BadInputError: term is missing or shorter than min_length.
    """
    if term is None or len(term) < min_length:
        raise BadInputError(
            f"Search term must be at least {min_length} characters",
            field="search",
            value=term,
        )
    needle = term.lower()
    return [row for row in rows if needle in str(row.get("name") or "").lower()]
