"""Depth-first lookup over a forest of category nodes, plus an id-keyed index of the forest."""

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import Any

from domain.errors import TreeStructureError
from domain.schemas import CategoryNode

DEFAULT_MAX_DEPTH = 64


def normalize_id(value: Any) -> str:
    """Compare identifiers as strings so differing encodings (int, ObjectId, str) still match."""
    return str(value).strip()


def iter_nodes(
    roots: Iterable[CategoryNode],
    *,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> Iterator[tuple[CategoryNode, int, CategoryNode | None]]:
    """
    Yield (node, depth, parent) in pre-order; each node precedes its whole subtree.

    Raises:
        TreeStructureError: a node sits deeper than max_depth, or the same node
            object is reached twice (cycle or shared child).
    """
    stack: list[tuple[CategoryNode, int, CategoryNode | None]] = [(r, 0, None) for r in reversed(list(roots))]
    seen: set[int] = set()

    while stack:
        node, depth, parent = stack.pop()
        if depth > max_depth:
            raise TreeStructureError(
                f"Tree exceeds maximum depth {max_depth} at node {node.id!r}",
                field="children",
                value=node.id,
            )
        if id(node) in seen:
            raise TreeStructureError(
                f"Cycle or shared child detected at node {node.id!r}", field="children", value=node.id
            )
        seen.add(id(node))

        yield node, depth, parent

        for child in reversed(node.children):
            stack.append((child, depth + 1, node))


def find_by_id(
    roots: Iterable[CategoryNode],
    target_id: Any,
    *,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> CategoryNode | None:
    """Return the first node (pre-order) whose id matches target_id, or None."""
    if target_id is None:
        return None
    wanted = normalize_id(target_id)
    for node, _, _ in iter_nodes(roots, max_depth=max_depth):
        if node.id is not None and normalize_id(node.id) == wanted:
            return node
    return None


@dataclass
class TreeIndex:
    """
    Arena view of a forest: nodes keyed by id, each with its ordered child ids.

    Built once per operation; gives O(1) lookups for parent walks and for finding
    which root document owns a nested node. First occurrence of an id wins,
    matching find_by_id.
    """

    nodes: dict[str, CategoryNode] = field(default_factory=dict)
    child_ids: dict[str, list[str]] = field(default_factory=dict)
    parent_ids: dict[str, str | None] = field(default_factory=dict)
    root_ids: dict[str, str] = field(default_factory=dict)

    @classmethod
    def build(cls, roots: Iterable[CategoryNode], *, max_depth: int = DEFAULT_MAX_DEPTH) -> "TreeIndex":
        index = cls()
        owner: dict[int, str | None] = {}
        for node, _, parent in iter_nodes(roots, max_depth=max_depth):
            node_id = normalize_id(node.id) if node.id is not None else None
            root_id = owner[id(parent)] if parent is not None else node_id
            owner[id(node)] = root_id
            if node_id is None or node_id in index.nodes:
                continue
            parent_id = normalize_id(parent.id) if parent is not None and parent.id is not None else None
            index.nodes[node_id] = node
            index.parent_ids[node_id] = parent_id
            index.child_ids[node_id] = [normalize_id(c.id) for c in node.children if c.id is not None]
            if root_id is not None:
                index.root_ids[node_id] = root_id
        return index

    def get(self, node_id: Any) -> CategoryNode | None:
        if node_id is None:
            return None
        return self.nodes.get(normalize_id(node_id))

    def root_of(self, node_id: Any) -> str | None:
        """Id of the root document that contains node_id."""
        if node_id is None:
            return None
        return self.root_ids.get(normalize_id(node_id))

    def children_of(self, node_id: Any) -> list[CategoryNode]:
        ids = self.child_ids.get(normalize_id(node_id), [])
        return [self.nodes[i] for i in ids if i in self.nodes]

    def __contains__(self, node_id: object) -> bool:
        return node_id is not None and normalize_id(node_id) in self.nodes

    def __len__(self) -> int:
        return len(self.nodes)
