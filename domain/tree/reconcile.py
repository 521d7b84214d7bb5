"""
Identity-preserving reconciliation of an existing subtree against an incoming one.

Children are matched by `createUuid`, never by position or `id`. Matched pairs merge
recursively, unmatched incoming children become fresh nodes, and unmatched existing
children are kept with active=False so external references by id stay valid.
`parent` is always recomputed from the structure being built.
"""

import logging
import uuid
from collections.abc import Callable, Mapping, Sequence
from datetime import datetime, timezone
from typing import Any

from domain.errors import BadInputError, NotFoundError, TreeStructureError
from domain.schemas import CategoryNode, CategoryPayload, as_payload
from domain.tree.locator import DEFAULT_MAX_DEPTH, normalize_id

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]
IdFactory = Callable[[], str]

Incoming = CategoryPayload | CategoryNode | Mapping[str, Any]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


def _rebuild(node: CategoryNode, **updates: Any) -> CategoryNode:
    """New node from an existing one; `children` must be passed explicitly when it changes."""
    data = node.model_dump(exclude={"children"})
    data["children"] = list(node.children)
    data.update(updates)
    return CategoryNode(**data)


class TreeReconciler:
    """
    Merges incoming (possibly partial) nodes into existing ones.

    Clock and id factory are injectable so that tests can pin timestamps and ids.
    """

    def __init__(
        self,
        *,
        clock: Clock | None = None,
        id_factory: IdFactory | None = None,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ) -> None:
        self.clock = clock or utcnow
        self.id_factory = id_factory or new_id
        self.max_depth = max_depth

    # ------------------------------------------------------------------ public

    def merge(self, existing: CategoryNode, incoming: Incoming) -> CategoryNode:
        """
        Reconcile `incoming` into `existing` and return a new merged node.

        - id, createdDate, createCreatedDate always come from `existing`
        - createUuid comes from `existing` when set, else from `incoming`
        - other fields come from `incoming` where supplied, else stay as they were
        - children are matched by createUuid (see module docstring); if `incoming`
          omits children entirely, the existing children are kept

        The merged node keeps its own `parent`; every descendant's `parent` is reset
        to its structural owner. Neither argument is modified.
        """
        payload = as_payload(incoming)
        return self._merge(existing, payload, parent_id=existing.parent, now=self.clock(), depth=0)

    def create_fresh(self, descriptor: Incoming, parent_id: str | None = None) -> CategoryNode:
        """
        Materialize a brand-new node (and its children) from a descriptor.

        Generates id/createUuid when absent, stamps creation and modification dates
        (creation dates are kept when the descriptor carries both an id and dates),
        defaults active/isActive to True unless the descriptor sets them.
        """
        payload = as_payload(descriptor)
        return self._materialize(payload, parent_id=parent_id, now=self.clock(), depth=0)

    def patch_node(self, root: CategoryNode, target_id: Any, incoming: Incoming) -> CategoryNode:
        """
        Update the non-structural fields of one node inside `root`'s subtree.

        The target keeps its id, parent, children, createUuid and creation dates.
        Returns a new root; raises NotFoundError if target_id is not in the subtree.
        """
        payload = as_payload(incoming)
        updates = payload.supplied_fields()
        updates["modified_date"] = self.clock()
        wanted = normalize_id(target_id)

        def _walk(node: CategoryNode, depth: int) -> CategoryNode | None:
            if depth > self.max_depth:
                raise TreeStructureError(
                    f"Tree exceeds maximum depth {self.max_depth}", field="children", value=node.id
                )
            if node.id is not None and normalize_id(node.id) == wanted:
                return _rebuild(node, **updates)
            for i, child in enumerate(node.children):
                replaced = _walk(child, depth + 1)
                if replaced is not None:
                    children = list(node.children)
                    children[i] = replaced
                    return _rebuild(node, children=children)
            return None

        patched = _walk(root, 0)
        if patched is None:
            raise NotFoundError(
                f"Category with ID {target_id} not found under root {root.id}", field="id", value=target_id
            )
        return patched

    # ----------------------------------------------------------------- helpers

    def _check_depth(self, depth: int, node_id: Any) -> None:
        if depth > self.max_depth:
            raise TreeStructureError(
                f"Tree exceeds maximum depth {self.max_depth} at node {node_id!r}",
                field="children",
                value=node_id,
            )

    def _merge(
        self,
        existing: CategoryNode,
        payload: CategoryPayload,
        *,
        parent_id: str | None,
        now: datetime,
        depth: int,
    ) -> CategoryNode:
        self._check_depth(depth, existing.id)

        data = existing.model_dump(exclude={"children"})
        data.update(payload.supplied_fields())

        # Identity and provenance are never taken from the payload
        data["id"] = existing.id
        data["created_date"] = existing.created_date
        data["create_created_date"] = existing.create_created_date
        data["create_uuid"] = existing.create_uuid or payload.create_uuid
        data["parent"] = parent_id
        data["modified_date"] = now

        if payload.children is None:
            data["children"] = [self._restamp(c, existing.id, depth + 1) for c in existing.children]
        else:
            data["children"] = self._merge_children(
                existing.children,
                payload.children,
                parent_id=existing.id,
                now=now,
                depth=depth + 1,
            )

        return CategoryNode(**data)

    def _merge_children(
        self,
        existing_children: Sequence[CategoryNode],
        incoming_children: Sequence[CategoryPayload],
        *,
        parent_id: str | None,
        now: datetime,
        depth: int,
    ) -> list[CategoryNode]:
        self._check_unique_create_uuids(incoming_children, parent_id)

        by_uuid: dict[str, CategoryNode] = {}
        for child in existing_children:
            if child.create_uuid is not None:
                by_uuid.setdefault(child.create_uuid, child)

        merged: list[CategoryNode] = []
        matched: set[int] = set()

        for inc in incoming_children:
            match = by_uuid.get(inc.create_uuid) if inc.create_uuid is not None else None
            if match is not None:
                matched.add(id(match))
                merged.append(self._merge(match, inc, parent_id=parent_id, now=now, depth=depth))
            else:
                merged.append(self._materialize(inc, parent_id=parent_id, now=now, depth=depth))

        orphans = [c for c in existing_children if id(c) not in matched]
        if orphans:
            logger.debug("Deactivating %d orphaned children under %s", len(orphans), parent_id)
        for orphan in orphans:
            merged.append(self._deactivate(orphan, parent_id, now, depth))

        return merged

    def _check_unique_create_uuids(self, incoming_children: Sequence[CategoryPayload], parent_id: str | None) -> None:
        seen: set[str] = set()
        for inc in incoming_children:
            if inc.create_uuid is None:
                continue
            if inc.create_uuid in seen:
                raise BadInputError(
                    f"Duplicate createUuid {inc.create_uuid!r} among children of {parent_id!r}",
                    field="createUuid",
                    value=inc.create_uuid,
                )
            seen.add(inc.create_uuid)

    def _materialize(
        self,
        payload: CategoryPayload,
        *,
        parent_id: str | None,
        now: datetime,
        depth: int,
    ) -> CategoryNode:
        node_id = payload.id or self.id_factory()
        self._check_depth(depth, node_id)

        data = payload.supplied_fields()
        data["id"] = node_id
        data["create_uuid"] = payload.create_uuid or self.id_factory()
        # A node that already has an id (e.g. a previous merge result) keeps its creation dates
        keep_dates = payload.id is not None
        data["created_date"] = (keep_dates and payload.created_date) or now
        data["create_created_date"] = (keep_dates and payload.create_created_date) or now
        data["modified_date"] = now
        data["parent"] = parent_id
        data.setdefault("active", True)
        data.setdefault("is_active", True)
        self._check_unique_create_uuids(payload.children or [], node_id)
        data["children"] = [
            self._materialize(c, parent_id=node_id, now=now, depth=depth + 1) for c in (payload.children or [])
        ]
        return CategoryNode(**data)

    def _restamp(self, node: CategoryNode, parent_id: str | None, depth: int) -> CategoryNode:
        """Copy of an untouched subtree with every `parent` recomputed structurally."""
        self._check_depth(depth, node.id)
        return _rebuild(
            node,
            parent=parent_id,
            children=[self._restamp(c, node.id, depth + 1) for c in node.children],
        )

    def _deactivate(self, node: CategoryNode, parent_id: str | None, now: datetime, depth: int) -> CategoryNode:
        restamped = self._restamp(node, parent_id, depth)
        if restamped.active is False:
            return restamped
        return _rebuild(restamped, active=False, modified_date=now)
