"""Tree -> grid rows, and small read-side tree transforms."""

from collections.abc import Iterable
from typing import Any

from domain.schemas import CategoryNode
from domain.tree.locator import DEFAULT_MAX_DEPTH, iter_nodes

BREADCRUMB_SEPARATOR = " > "

# Row keys added on top of the node's own fields
DEPTH_KEY = "depth"
BREADCRUMB_KEY = "breadcrumb"


def build_breadcrumb(name: str, parent_breadcrumb: str | None = None) -> str:
    return f"{parent_breadcrumb}{BREADCRUMB_SEPARATOR}{name}" if parent_breadcrumb else name


def flatten_forest(roots: Iterable[CategoryNode], *, max_depth: int = DEFAULT_MAX_DEPTH) -> list[dict[str, Any]]:
    """
    Flatten a forest into pre-order rows.

    Each row holds every node field under its wire name plus `depth` (0 for roots)
    and `breadcrumb` ("Root > ... > Node"). Input nodes are not modified.

    Example:
        >>> rows = flatten_forest([CategoryNode(name="Sicilian", children=[CategoryNode(name="Dragon")])])
        >>> [(r["name"], r["depth"], r["breadcrumb"]) for r in rows]
        [('Sicilian', 0, 'Sicilian'), ('Dragon', 1, 'Sicilian > Dragon')]
    """
    rows: list[dict[str, Any]] = []
    crumbs: dict[int, str] = {}

    for node, depth, parent in iter_nodes(roots, max_depth=max_depth):
        breadcrumb = build_breadcrumb(node.name, crumbs[id(parent)] if parent is not None else None)
        crumbs[id(node)] = breadcrumb

        row = node.model_dump(by_alias=True)
        row[DEPTH_KEY] = depth
        row[BREADCRUMB_KEY] = breadcrumb
        rows.append(row)

    return rows


def prune_inactive(node: CategoryNode) -> CategoryNode:
    """Copy of node with every descendant flagged active=False removed."""
    kept = [prune_inactive(c) for c in node.children if c.active is not False]
    return node.model_copy(update={"children": kept})


def shallow_summary(node: CategoryNode) -> dict[str, Any]:
    """Navigation tile for lazy drill-down: no grandchildren."""
    return {
        "id": node.id,
        "name": node.name,
        "isActive": node.is_active,
        "childrenCount": len(node.children),
    }
