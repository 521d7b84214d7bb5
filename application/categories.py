"""Single-item category use cases layered on the tree core and the store."""

import logging
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from application.constants import RESOLVED_AI_CONFIG_KEY, SOURCE_LANGUAGES
from domain.errors import BadInputError, NotFoundError
from domain.grid import GridResult, run_grid_query, search_rows
from domain.grid.query import DEFAULT_END_ROW, DEFAULT_SEARCH_MIN_LENGTH, DEFAULT_START_ROW
from domain.schemas import CategoryNode, CategoryPayload
from domain.tree import (
    DEFAULT_MAX_DEPTH,
    TreeIndex,
    TreeReconciler,
    find_by_id,
    flatten_forest,
    normalize_id,
    prune_inactive,
    resolve_ai_config,
    shallow_summary,
)
from infrastructure.store import CategoryStore

logger = logging.getLogger(__name__)


def _require_payload(body: Any) -> CategoryPayload:
    if not isinstance(body, Mapping):
        raise BadInputError("Category body must be an object", field="body")
    try:
        return CategoryPayload.model_validate(body)
    except ValidationError as e:
        raise BadInputError(f"Invalid category body: {e}", field="body") from e


def translate_names(node: CategoryNode, lang: str) -> CategoryNode:
    """Copy of node whose names (recursively) are replaced by translations[lang] where present."""
    translated = node.translations.get(lang) if node.translations is not None else None
    return node.model_copy(
        update={
            "name": translated or node.name,
            "children": [translate_names(c, lang) for c in node.children],
        }
    )


class CategoryService:
    """
    Category use cases: lookups, point creates/updates, AI config, grid and search.

    Every operation reloads the forest from the store, computes, and writes back
    only the affected root document.
    """

    def __init__(
        self,
        store: CategoryStore,
        reconciler: TreeReconciler | None = None,
        *,
        max_depth: int = DEFAULT_MAX_DEPTH,
        default_start_row: int = DEFAULT_START_ROW,
        default_end_row: int = DEFAULT_END_ROW,
        search_min_length: int = DEFAULT_SEARCH_MIN_LENGTH,
    ) -> None:
        self.store = store
        self.max_depth = max_depth
        self.reconciler = reconciler or TreeReconciler(max_depth=max_depth)
        self.default_start_row = default_start_row
        self.default_end_row = default_end_row
        self.search_min_length = search_min_length

    # ------------------------------------------------------------------ reads

    def list_all(self) -> dict[str, Any]:
        """Root categories without their children."""
        roots = [r.model_dump(by_alias=True, mode="json", exclude={"children"}) for r in self.store.load_forest()]
        return {"result": roots, "count": len(roots)}

    def get_main_categories(self) -> dict[str, Any]:
        """Roots that have children, with children reduced to navigation summaries."""
        result = []
        for root in self.store.load_forest():
            if not root.children:
                continue
            doc = root.model_dump(by_alias=True, mode="json", exclude={"children"})
            doc["children"] = [shallow_summary(c) for c in root.children]
            result.append(doc)
        return {"result": result, "count": len(result)}

    def get_shallow_children(self, category_id: Any) -> dict[str, Any]:
        """Immediate children of any node, without grandchildren."""
        logger.info("Getting shallow children for category: %s", category_id)
        index = TreeIndex.build(self.store.load_forest(), max_depth=self.max_depth)
        found = index.get(category_id)
        if found is None:
            raise NotFoundError(f"Category with ID {category_id} not found", field="id", value=category_id)
        return {"result": [shallow_summary(c) for c in found.children], "parentName": found.name}

    def find_category(self, category_id: Any) -> CategoryNode:
        if category_id is None or not str(category_id).strip():
            raise BadInputError("Category ID is required", field="id")
        found = find_by_id(self.store.load_forest(), category_id, max_depth=self.max_depth)
        if found is None:
            raise NotFoundError(f"Category with ID {category_id} not found in tree", field="id", value=category_id)
        return found

    def find_active_category(self, category_id: Any) -> CategoryNode:
        """Like find_category, with inactive descendants pruned."""
        return prune_inactive(self.find_category(category_id))

    def get_with_resolved_ai_config(self, category_id: Any) -> dict[str, Any]:
        forest = self.store.load_forest()
        index = TreeIndex.build(forest, max_depth=self.max_depth)
        found = index.get(category_id)
        if found is None:
            raise NotFoundError(f"Category with ID {category_id} not found", field="id", value=category_id)

        doc = found.document()
        doc[RESOLVED_AI_CONFIG_KEY] = resolve_ai_config(index, found, max_depth=self.max_depth)
        return doc

    def export_tree(self) -> dict[str, Any]:
        forest = self.store.load_forest()
        return {"success": True, "count": len(forest), "categories": [r.document() for r in forest]}

    def list_translated(self, lang: str | None) -> dict[str, Any]:
        forest = self.store.load_forest()
        if not lang or lang in SOURCE_LANGUAGES:
            result = [r.document() for r in forest]
        else:
            result = [translate_names(r, lang).document() for r in forest]
        return {"result": result, "count": len(result)}

    def grid(self, params: Mapping[str, Any] | None) -> GridResult:
        rows = flatten_forest(self.store.load_forest(), max_depth=self.max_depth)
        return run_grid_query(
            rows,
            params,
            default_start_row=self.default_start_row,
            default_end_row=self.default_end_row,
        )

    def search(self, term: str | None) -> dict[str, Any]:
        rows = flatten_forest(self.store.load_forest(), max_depth=self.max_depth)
        matches = search_rows(rows, term, min_length=self.search_min_length)
        return {"result": matches, "count": len(matches)}

    # ----------------------------------------------------------------- writes

    def create_category(self, body: Mapping[str, Any]) -> CategoryNode:
        """
        Create a root category, or a child when body names a `parent`.

        `parent` is only used to look the parent up; the stored back-reference is
        set from the node actually found. An unknown parent creates a root.
        """
        payload = _require_payload(body)
        parent_id = body.get("parent")
        logger.info("Creating category: %s", payload.name)

        if parent_id:
            parent = find_by_id(self.store.load_forest(), parent_id, max_depth=self.max_depth)
            if parent is not None:
                child = self.reconciler.create_fresh(payload, parent_id=parent.id)
                return self.store.append_child(parent.id, child)
            logger.warning("Parent %s not found, creating as root", parent_id)

        node = self.reconciler.create_fresh(payload)
        return self.store.persist_subtree(node.id, fields=node, children=node.children, expected_revision=0)

    def update_category(self, category_id: Any, body: Mapping[str, Any]) -> CategoryNode:
        """
        Update a category anywhere in the forest.

        Root: full reconciliation of body (including its children) into the root.
        Nested: only the node's non-structural fields change; its children, id,
        parent and provenance are preserved.

        Returns the updated root document.
        """
        payload = _require_payload(body)
        forest = self.store.load_forest()
        wanted = normalize_id(category_id)

        root = next((r for r in forest if r.id is not None and normalize_id(r.id) == wanted), None)
        if root is not None:
            logger.info("Found category at root level: %s", root.name)
            merged = self.reconciler.merge(root, payload)
            return self.store.persist_subtree(
                root.id,
                fields=merged,
                children=merged.children,
                expected_revision=root.revision or 0,
            )

        index = TreeIndex.build(forest, max_depth=self.max_depth)
        root_id = index.root_of(category_id)
        if root_id is None:
            raise NotFoundError(f"Category with ID {category_id} not found", field="id", value=category_id)

        owner = index.get(root_id)
        logger.info("Found category %s nested inside root: %s (%s)", category_id, owner.name, owner.id)
        patched = self.reconciler.patch_node(owner, category_id, payload)
        return self.store.persist_subtree(
            owner.id,
            fields={"modifiedDate": self.reconciler.clock()},
            children=patched.children,
            expected_revision=owner.revision or 0,
        )

    def update_ai_config(self, category_id: Any, ai_config: Mapping[str, Any] | None) -> CategoryNode:
        """Replace one node's own aiConfig (inherited values are not touched)."""
        forest = self.store.load_forest()
        index = TreeIndex.build(forest, max_depth=self.max_depth)
        root_id = index.root_of(category_id)
        if root_id is None:
            raise NotFoundError(f"Category with ID {category_id} not found", field="id", value=category_id)

        owner = index.get(root_id)
        patched = self.reconciler.patch_node(owner, category_id, {"aiConfig": ai_config})
        return self.store.persist_subtree(
            owner.id,
            fields=patched,
            children=patched.children,
            expected_revision=owner.revision or 0,
        )
