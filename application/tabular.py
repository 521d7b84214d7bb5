"""Tabular import/export: breadcrumb tables -> nested descriptors, grid rows -> DataFrame."""

import logging
from collections.abc import Iterable, Sequence
from typing import Any

import pandas as pd

from application.constants import GRID_EXPORT_COLUMNS, PATH_COLUMN, TABLE_DESCRIPTOR_COLUMNS
from domain.errors import BadInputError
from domain.tree.flatten import BREADCRUMB_SEPARATOR

logger = logging.getLogger(__name__)


def _cell(value: Any) -> Any:
    """Table cell as a plain Python value; NaN/NA become None."""
    if value is None:
        return None
    if not isinstance(value, (list, dict)) and pd.isna(value):
        return None
    if hasattr(value, "item"):
        return value.item()  # numpy scalar
    return value


def _as_bool(value: Any) -> bool | None:
    if value is None or isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    s = str(value).strip().lower()
    if s in ("true", "1", "yes", "y"):
        return True
    if s in ("false", "0", "no", "n"):
        return False
    return None


def descriptors_from_table(
    df: pd.DataFrame,
    path_col: str = PATH_COLUMN,
    separator: str = BREADCRUMB_SEPARATOR,
) -> list[dict[str, Any]]:
    """
    Build nested category descriptors from one row per breadcrumb path.

    Rows sharing a prefix share the same nodes, so both of these:

        Sicilian
        Sicilian > Dragon

    produce a single "Sicilian" root with one "Dragon" child. Intermediate nodes
    that have no row of their own are created with only a name. Optional columns
    createUuid, active and isActive are copied onto the node the row ends at.

    Raises:
        BadInputError: path_col missing from the table
    """
    if path_col not in df.columns:
        raise BadInputError(
            f"Column '{path_col}' not found in table columns: {list(df.columns)}",
            field=path_col,
        )

    roots: list[dict[str, Any]] = []
    by_path: dict[tuple[str, ...], dict[str, Any]] = {}
    skipped = 0

    for record in df.to_dict(orient="records"):
        raw_path = _cell(record.get(path_col))
        parts = tuple(p.strip() for p in str(raw_path).split(separator)) if raw_path is not None else ()
        parts = tuple(p for p in parts if p)
        if not parts:
            skipped += 1
            continue

        node: dict[str, Any] | None = None
        for depth in range(1, len(parts) + 1):
            key = parts[:depth]
            node = by_path.get(key)
            if node is None:
                node = {"name": parts[depth - 1], "children": []}
                by_path[key] = node
                siblings = roots if depth == 1 else by_path[parts[: depth - 1]]["children"]
                siblings.append(node)

        for col in TABLE_DESCRIPTOR_COLUMNS:
            if col not in df.columns:
                continue
            value = _cell(record.get(col))
            if col != "createUuid":
                value = _as_bool(value)
            if value is not None:
                node[col] = str(value) if col == "createUuid" else value  # type: ignore[index]

    if skipped:
        logger.warning("Skipped %d rows with an empty '%s' value", skipped, path_col)
    logger.info("Built %d root descriptors from %d table rows", len(roots), len(df))
    return roots


def rows_to_frame(rows: Iterable[dict[str, Any]], columns: Sequence[str] | None = None) -> pd.DataFrame:
    """Grid rows as a DataFrame limited to `columns` (missing ones come out empty)."""
    cols = list(columns) if columns is not None else list(GRID_EXPORT_COLUMNS)
    return pd.DataFrame([{c: row.get(c) for c in cols} for row in rows], columns=cols)
