"""
Batch synchronization of externally supplied category trees.

Descriptors are processed strictly one after another; a failing descriptor is
recorded (by name) and the batch continues. Writes already made are not rolled back.
"""

import logging
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from application.constants import CATEGORIES_KEY, EXISTED_KEY
from application.results import BatchResult, EnsureResult
from domain.errors import BadInputError, NotFoundError
from domain.schemas import CategoryNode, CategoryPayload
from domain.tree import DEFAULT_MAX_DEPTH, TreeReconciler, find_by_id
from infrastructure.observability import item_context
from infrastructure.store import CategoryStore

logger = logging.getLogger(__name__)


def coerce_batch(payload: Any) -> list[Any]:
    """
    Accept a list of descriptors or an object wrapping it under "categories".

    Raises:
        BadInputError: payload is not (or does not wrap) a list
    """
    items = payload.get(CATEGORIES_KEY) if isinstance(payload, Mapping) else payload
    if not isinstance(items, list):
        raise BadInputError("Categories payload must be an array of categories", field=CATEGORIES_KEY)
    return items


def descriptor_name(raw: Any) -> str | None:
    if isinstance(raw, Mapping) and raw.get("name") is not None:
        return str(raw["name"])
    return None


def _parse_descriptor(raw: Any) -> CategoryPayload:
    if not isinstance(raw, Mapping):
        raise BadInputError(f"Category descriptor must be an object, got {type(raw).__name__}", field="category")
    try:
        return CategoryPayload.model_validate(raw)
    except ValidationError as e:
        raise BadInputError(f"Invalid category descriptor: {e}", field="category") from e


class SyncCoordinator:
    """Drives TreeReconciler and the store over batches of top-level descriptors."""

    def __init__(
        self,
        store: CategoryStore,
        reconciler: TreeReconciler | None = None,
        *,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ) -> None:
        self.store = store
        self.max_depth = max_depth
        self.reconciler = reconciler or TreeReconciler(max_depth=max_depth)

    def _create_root(self, payload: CategoryPayload) -> CategoryNode:
        node = self.reconciler.create_fresh(payload)
        return self.store.persist_subtree(
            node.id,
            fields=node,
            children=node.children,
            expected_revision=0,
        )

    def import_tree(self, payload: Any) -> BatchResult:
        """Bulk import: every descriptor (with its nested children) becomes a new root."""
        items = coerce_batch(payload)
        result = BatchResult()
        logger.info("Importing %d categories", len(items))

        for raw in items:
            name = descriptor_name(raw)
            with item_context(name):
                try:
                    created = self._create_root(_parse_descriptor(raw))
                except Exception as e:
                    logger.warning("Import failed for %r: %s", name, e)
                    result.add_error(name, e)
                    continue
                result.results.append(created.document())
                result.processed += 1

        logger.info("Import finished: %d imported, %d failed", result.processed, len(result.errors))
        return result

    def sync_create(self, payload: Any) -> BatchResult:
        """
        Create roots that do not exist yet, matching by name.

        Existing roots are reported with existed=True and left untouched.
        """
        items = coerce_batch(payload)
        result = BatchResult()

        for raw in items:
            name = descriptor_name(raw)
            with item_context(name):
                try:
                    descriptor = _parse_descriptor(raw)
                    forest = self.store.load_forest()
                    existing = next((r for r in forest if r.name == descriptor.name), None)
                    if existing is not None:
                        logger.info("Category %r already exists (%s); skipping", name, existing.id)
                        record = {**existing.document(), EXISTED_KEY: True}
                    else:
                        created = self._create_root(descriptor)
                        logger.info("Created category %r (%s)", name, created.id)
                        record = {**created.document(), EXISTED_KEY: False}
                except Exception as e:
                    logger.warning("Sync-create failed for %r: %s", name, e)
                    result.add_error(name, e)
                    continue
                result.results.append(record)
                result.processed += 1

        return result

    def sync_tree(self, payload: Any, *, deactivate_missing: bool = True) -> BatchResult:
        """
        Structural sync of whole root trees, matching roots by createUuid.

        - matched root: reconciled with TreeReconciler.merge and written back
        - unmatched descriptor: created as a fresh root
        - existing root absent from the payload: deactivated (if deactivate_missing)
        - a createUuid repeated within the batch: that item fails with BadInputError
        """
        items = coerce_batch(payload)
        result = BatchResult()
        remaining = {id(r): r for r in self.store.load_forest()}
        logger.info("Syncing %d categories against %d stored roots", len(items), len(remaining))
        seen: set[str] = set()

        for raw in items:
            name = descriptor_name(raw)
            with item_context(name):
                try:
                    descriptor = _parse_descriptor(raw)
                    match = None
                    if descriptor.create_uuid is not None:
                        if descriptor.create_uuid in seen:
                            raise BadInputError(
                                f"Duplicate createUuid {descriptor.create_uuid!r} in sync batch",
                                field="createUuid",
                                value=descriptor.create_uuid,
                            )
                        seen.add(descriptor.create_uuid)
                        match = next((r for r in remaining.values() if r.create_uuid == descriptor.create_uuid), None)

                    if match is not None:
                        merged = self.reconciler.merge(match, descriptor)
                        stored = self.store.persist_subtree(
                            match.id,
                            fields=merged,
                            children=merged.children,
                            expected_revision=match.revision or 0,
                        )
                        del remaining[id(match)]
                        logger.info("Updated category %r (%s)", name, stored.id)
                    else:
                        stored = self._create_root(descriptor)
                        logger.info("Created category %r (%s)", name, stored.id)
                except Exception as e:
                    logger.warning("Sync failed for %r: %s", name, e)
                    result.add_error(name, e)
                    continue
                result.results.append(stored.document())
                result.processed += 1

        if deactivate_missing:
            for root in remaining.values():
                if root.active is False:
                    continue
                with item_context(root.name):
                    try:
                        self.store.persist_subtree(
                            root.id,
                            fields={"active": False, "modifiedDate": self.reconciler.clock()},
                            expected_revision=root.revision or 0,
                        )
                        logger.info("Deactivated category %r (%s): absent from sync payload", root.name, root.id)
                    except Exception as e:
                        logger.warning("Deactivation failed for %r: %s", root.name, e)
                        result.add_error(root.name, e)

        return result

    def ensure_subcategory(self, parent_id: Any, name: Any, **fields: Any) -> EnsureResult:
        """
        Idempotent point-create of a named child under parent_id.

        Returns the existing same-named child if there is one; otherwise appends a
        single freshly materialized child through the store's append primitive.

        Raises:
            BadInputError: parent_id or name missing
            NotFoundError: parent not in the forest
        """
        if not parent_id:
            raise BadInputError("parentId and name are required", field="parentId")
        if not name:
            raise BadInputError("parentId and name are required", field="name")

        forest = self.store.load_forest()
        parent = find_by_id(forest, parent_id, max_depth=self.max_depth)
        if parent is None:
            raise NotFoundError(f"Parent category {parent_id} not found", field="parentId", value=parent_id)

        existing = next((c for c in parent.children if c.name == name), None)
        if existing is not None:
            logger.debug("Subcategory %r already exists under %s", name, parent.id)
            return EnsureResult(existed=True, category=existing.document())

        child = self.reconciler.create_fresh({**fields, "name": name}, parent_id=parent.id)
        stored = self.store.append_child(parent.id, child)
        logger.info("Created subcategory %r (%s) under %s", name, stored.id, parent.id)
        return EnsureResult(existed=False, category=stored.document())
