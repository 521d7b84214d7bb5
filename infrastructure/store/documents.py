"""Shared logic for stores that keep each root category as one JSON document."""

import logging
from abc import abstractmethod
from collections.abc import Mapping, Sequence
from typing import Any

from pydantic import ValidationError
from pydantic_core import to_jsonable_python

from domain.errors import BadInputError, ConflictError, NotFoundError, StoreError, TreeStructureError
from domain.schemas import CategoryNode
from domain.tree.locator import DEFAULT_MAX_DEPTH, normalize_id

from .base import CategoryStore

logger = logging.getLogger(__name__)

Document = dict[str, Any]

_NON_FIELD_KEYS = ("id", "_id", "children", "revision", "__v")


def to_document(node: CategoryNode | Mapping[str, Any]) -> Document:
    """JSON-ready document for a node given as a model or a mapping."""
    if isinstance(node, CategoryNode):
        return node.document()
    return to_jsonable_python(dict(node))


def _fields_document(fields: CategoryNode | Mapping[str, Any]) -> Document:
    doc = fields.document_fields() if isinstance(fields, CategoryNode) else to_jsonable_python(dict(fields))
    return {k: v for k, v in doc.items() if k not in _NON_FIELD_KEYS}


def _doc_id(doc: Mapping[str, Any]) -> str | None:
    raw = doc.get("id", doc.get("_id"))
    return normalize_id(raw) if raw is not None else None


def _revision(doc: Mapping[str, Any] | None) -> int:
    if doc is None:
        return 0
    return int(doc.get("revision") or doc.get("__v") or 0)


class DocumentCategoryStore(CategoryStore):
    """
    CategoryStore over a list of root documents.

    Subclasses only provide raw read/write of the whole document list; every
    public operation reads fresh, mutates a copy and writes back.
    """

    def __init__(self, *, max_depth: int = DEFAULT_MAX_DEPTH) -> None:
        self.max_depth = max_depth

    @abstractmethod
    def _read_documents(self) -> list[Document]:
        """Return a private (mutable) copy of all root documents."""
        raise NotImplementedError

    @abstractmethod
    def _write_documents(self, docs: list[Document]) -> None:
        raise NotImplementedError

    def load_forest(self) -> list[CategoryNode]:
        docs = self._read_documents()
        try:
            return [CategoryNode.model_validate(doc) for doc in docs]
        except ValidationError as e:
            raise StoreError(f"Stored category document is malformed: {e}") from e

    def persist_subtree(
        self,
        root_id: Any,
        *,
        fields: CategoryNode | Mapping[str, Any] | None = None,
        children: Sequence[CategoryNode | Mapping[str, Any]] | None = None,
        expected_revision: int | None = None,
    ) -> CategoryNode:
        if root_id is None:
            raise BadInputError("root_id is required", field="id")
        if fields is None and children is None:
            raise BadInputError("Nothing to persist: pass fields and/or children", field="fields", value=root_id)

        key = normalize_id(root_id)
        docs = self._read_documents()
        pos = next((i for i, d in enumerate(docs) if _doc_id(d) == key), None)
        current = docs[pos] if pos is not None else None

        current_rev = _revision(current)
        if expected_revision is not None and expected_revision != current_rev:
            raise ConflictError(
                f"Root {key} changed concurrently (expected revision {expected_revision}, found {current_rev})",
                field="revision",
                value=key,
            )

        doc: Document = dict(current) if current is not None else {"children": []}
        if fields is not None:
            doc.update(_fields_document(fields))
        if children is not None:
            doc["children"] = [to_document(c) for c in children]
        doc.pop("_id", None)
        doc.pop("__v", None)
        doc["id"] = key
        doc["revision"] = current_rev + 1

        if pos is None:
            docs.append(doc)
            logger.debug("Created root document %s", key)
        else:
            docs[pos] = doc
            logger.debug("Updated root document %s (revision %d)", key, doc["revision"])

        self._write_documents(docs)
        return CategoryNode.model_validate(doc)

    def append_child(self, parent_id: Any, child: CategoryNode | Mapping[str, Any]) -> CategoryNode:
        if parent_id is None:
            raise BadInputError("parent_id is required", field="parentId")

        key = normalize_id(parent_id)
        child_doc = to_document(child)
        docs = self._read_documents()

        for root in docs:
            target = self._find_in_document(root, key)
            if target is None:
                continue
            if not isinstance(target.get("children"), list):
                target["children"] = []
            target["children"].append(child_doc)
            root["revision"] = _revision(root) + 1
            self._write_documents(docs)
            logger.debug("Appended child %s under %s (root %s)", child_doc.get("id"), key, _doc_id(root))
            return CategoryNode.model_validate(child_doc)

        raise NotFoundError(f"Parent category {key} not found", field="parentId", value=key)

    def _find_in_document(self, root: Document, key: str) -> Document | None:
        """Pre-order search of one root document for the node with id == key."""
        stack: list[tuple[Document, int]] = [(root, 0)]
        while stack:
            doc, depth = stack.pop()
            if depth > self.max_depth:
                raise TreeStructureError(
                    f"Stored tree exceeds maximum depth {self.max_depth}", field="children", value=_doc_id(root)
                )
            if _doc_id(doc) == key:
                return doc
            children = doc.get("children") or []
            for c in reversed(children):
                if isinstance(c, dict):
                    stack.append((c, depth + 1))
        return None
