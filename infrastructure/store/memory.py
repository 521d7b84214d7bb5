"""In-process store, used by tests and dry runs."""

import copy
from collections.abc import Iterable, Mapping
from typing import Any

from domain.schemas import CategoryNode
from domain.tree.locator import DEFAULT_MAX_DEPTH

from .documents import Document, DocumentCategoryStore, to_document


class InMemoryCategoryStore(DocumentCategoryStore):
    """Keeps root documents in a list; reads and writes are deep copies."""

    def __init__(
        self,
        roots: Iterable[CategoryNode | Mapping[str, Any]] | None = None,
        *,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ) -> None:
        super().__init__(max_depth=max_depth)
        self._docs: list[Document] = [to_document(r) for r in (roots or [])]
        self.write_count = 0

    def _read_documents(self) -> list[Document]:
        return copy.deepcopy(self._docs)

    def _write_documents(self, docs: list[Document]) -> None:
        self._docs = copy.deepcopy(docs)
        self.write_count += 1
