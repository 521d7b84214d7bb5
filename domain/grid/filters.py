"""
Grid column filters (ag-Grid filter model shape).

Each filter type is a small pydantic model with a `matches(value)` predicate. A filter
model is a mapping column -> filter definition; all columns are ANDed.
"""

import math
from collections.abc import Mapping
from datetime import date, datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from domain.errors import BadInputError

TextOperator = Literal["equals", "notEqual", "contains", "notContains", "startsWith", "endsWith", "blank", "notBlank"]
NumberOperator = Literal[
    "equals", "notEqual", "greaterThan", "greaterThanOrEqual", "lessThan", "lessThanOrEqual", "inRange"
]
DateOperator = NumberOperator


def as_text(value: Any) -> str:
    """String coercion used by text and set filters; missing values become ''."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def as_number(value: Any) -> float:
    """Numeric coercion; anything non-numeric (including missing) becomes NaN."""
    if value is None:
        return math.nan
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return math.nan
    try:
        return float(value)
    except (TypeError, ValueError):
        return math.nan


def as_date(value: Any) -> date | None:
    """Calendar day of a datetime/date/ISO string, or None when unparseable."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    s = str(value).strip()
    if not s:
        return None
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(s).date()
    except ValueError:
        return None


class _FilterModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class TextFilter(_FilterModel):
    """Case-insensitive, string-coerced comparison."""

    filter_type: Literal["text"] = Field(default="text", alias="filterType")
    type: TextOperator = "contains"
    filter: Any = None

    def matches(self, value: Any) -> bool:
        field_value = as_text(value).lower()
        needle = as_text(self.filter).lower()

        if self.type == "equals":
            return field_value == needle
        if self.type == "notEqual":
            return field_value != needle
        if self.type == "contains":
            return needle in field_value
        if self.type == "notContains":
            return needle not in field_value
        if self.type == "startsWith":
            return field_value.startswith(needle)
        if self.type == "endsWith":
            return field_value.endswith(needle)
        if self.type == "blank":
            return not field_value.strip()
        return bool(field_value.strip())  # notBlank


class NumberFilter(_FilterModel):
    """
    Numeric comparison. Non-numeric row or filter values are NaN, which fails every
    operator except notEqual (NaN is unequal to everything). Missing values are NaN
    rather than 0, so `equals 0` does not match rows without a value.
    """

    filter_type: Literal["number"] = Field(default="number", alias="filterType")
    type: NumberOperator = "equals"
    filter: Any = None
    filter_to: Any = Field(default=None, alias="filterTo")

    def matches(self, value: Any) -> bool:
        v = as_number(value)
        f = as_number(self.filter)

        if self.type == "equals":
            return v == f
        if self.type == "notEqual":
            return v != f
        if self.type == "greaterThan":
            return v > f
        if self.type == "greaterThanOrEqual":
            return v >= f
        if self.type == "lessThan":
            return v < f
        if self.type == "lessThanOrEqual":
            return v <= f
        return f <= v <= as_number(self.filter_to)  # inRange, inclusive


class DateFilter(_FilterModel):
    """Day-granularity date comparison against `dateFrom` (and `dateTo` for inRange)."""

    filter_type: Literal["date"] = Field(default="date", alias="filterType")
    type: DateOperator = "equals"
    date_from: Any = Field(default=None, alias="dateFrom")
    date_to: Any = Field(default=None, alias="dateTo")

    def matches(self, value: Any) -> bool:
        v = as_date(value)
        start = as_date(self.date_from)

        if self.type == "notEqual":
            return v is None or start is None or v != start
        if v is None or start is None:
            return False
        if self.type == "equals":
            return v == start
        if self.type == "greaterThan":
            return v > start
        if self.type == "greaterThanOrEqual":
            return v >= start
        if self.type == "lessThan":
            return v < start
        if self.type == "lessThanOrEqual":
            return v <= start
        end = as_date(self.date_to)
        return end is not None and start <= v <= end  # inRange


class BooleanFilter(_FilterModel):
    filter_type: Literal["boolean"] = Field(default="boolean", alias="filterType")
    type: Literal["equals", "notEqual"] = "equals"
    filter: Any = None

    def matches(self, value: Any) -> bool:
        wanted = as_text(self.filter).lower() == "true"
        actual = as_text(value).lower() == "true"
        return actual == wanted if self.type == "equals" else actual != wanted


class SetFilter(_FilterModel):
    """Value must be one of `values`; an empty list matches everything."""

    filter_type: Literal["set"] = Field(default="set", alias="filterType")
    values: list[Any] = Field(default_factory=list)

    def matches(self, value: Any) -> bool:
        if not self.values:
            return True
        allowed = {as_text(v) for v in self.values}
        return as_text(value) in allowed


ConditionFilter = TextFilter | NumberFilter | DateFilter


class CombinedFilter(_FilterModel):
    """Two conditions of the same type joined by AND/OR."""

    filter_type: Literal["text", "number", "date"] = Field(alias="filterType")
    operator: Literal["AND", "OR"]
    condition1: ConditionFilter
    condition2: ConditionFilter

    def matches(self, value: Any) -> bool:
        if self.operator == "AND":
            return self.condition1.matches(value) and self.condition2.matches(value)
        return self.condition1.matches(value) or self.condition2.matches(value)


GridFilter = TextFilter | NumberFilter | DateFilter | BooleanFilter | SetFilter | CombinedFilter

_FILTERS_BY_TYPE: dict[str, type[_FilterModel]] = {
    "text": TextFilter,
    "number": NumberFilter,
    "date": DateFilter,
    "boolean": BooleanFilter,
    "set": SetFilter,
}


def parse_filter(column: str, definition: Mapping[str, Any] | GridFilter) -> GridFilter:
    """
    Parse one column's filter definition.

    Raises:
        BadInputError: unknown filterType/operator or malformed definition; `field` names the column.
    """
    if isinstance(definition, _FilterModel):
        return definition  # type: ignore[return-value]
    if not isinstance(definition, Mapping):
        raise BadInputError(f"Filter for column '{column}' must be an object", field=column, value=definition)

    filter_type = definition.get("filterType")
    model_cls = _FILTERS_BY_TYPE.get(str(filter_type)) if filter_type is not None else None
    if model_cls is None:
        raise BadInputError(
            f"Unknown filterType {filter_type!r} for column '{column}'", field=column, value=filter_type
        )

    try:
        if "operator" in definition and filter_type in ("text", "number", "date"):
            conditions = {
                key: model_cls.model_validate({"filterType": filter_type, **(definition.get(key) or {})})
                for key in ("condition1", "condition2")
            }
            return CombinedFilter.model_validate(
                {"filterType": filter_type, "operator": definition["operator"], **conditions}
            )
        return model_cls.model_validate(definition)  # type: ignore[return-value]
    except (ValidationError, TypeError) as err:
        raise BadInputError(f"Invalid {filter_type} filter for column '{column}': {err}", field=column) from err


def parse_filter_model(filter_model: Mapping[str, Any] | None) -> dict[str, GridFilter]:
    if not filter_model:
        return {}
    if not isinstance(filter_model, Mapping):
        raise BadInputError("filterModel must be an object keyed by column", field="filterModel")
    return {str(column): parse_filter(str(column), definition) for column, definition in filter_model.items()}


def apply_filters(rows: list[dict[str, Any]], filters: Mapping[str, GridFilter]) -> list[dict[str, Any]]:
    """Rows matching every column filter. Missing row fields are treated as None."""
    if not filters:
        return list(rows)
    return [row for row in rows if all(f.matches(row.get(column)) for column, f in filters.items())]
