"""Base store interface consumed by the application layer."""

import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from typing import Any

from domain.schemas import CategoryNode

logger = logging.getLogger(__name__)


class CategoryStore(ABC):
    """
    Abstract base class for category stores.

    The tree core never talks to a database directly; it only needs:
    - load_forest(): every root document with children fully populated
    - persist_subtree(): write back one root document's scalar fields and/or children
    - append_child(): add exactly one child under a node without rewriting the subtree
    """

    @abstractmethod
    def load_forest(self) -> list[CategoryNode]:
        """Return all root nodes, nested children included, in stored order."""
        raise NotImplementedError

    @abstractmethod
    def persist_subtree(
        self,
        root_id: Any,
        *,
        fields: CategoryNode | Mapping[str, Any] | None = None,
        children: Sequence[CategoryNode | Mapping[str, Any]] | None = None,
        expected_revision: int | None = None,
    ) -> CategoryNode:
        """Write one root document, creating it if absent; returns the stored root.

        Args:
            root_id: id of the root document
            fields: scalar fields to set (children/id/revision keys are ignored)
            children: replacement children array
            expected_revision: when given, the write only succeeds if the stored
                revision still equals it (0 means "must not exist yet")

        Raises:
            ConflictError: stored revision differs from expected_revision
            StoreError: the backend failed
        """
        raise NotImplementedError

    @abstractmethod
    def append_child(self, parent_id: Any, child: CategoryNode | Mapping[str, Any]) -> CategoryNode:
        """Append one child under parent_id (at any depth); returns the stored child.

        Raises:
            NotFoundError: parent_id is not in any root document
        """
        raise NotImplementedError
