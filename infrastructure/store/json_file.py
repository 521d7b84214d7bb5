"""Store backed by a single JSON file holding the list of root documents."""

import json
import logging
from pathlib import Path
from typing import Any

from domain.errors import StoreError
from domain.tree.locator import DEFAULT_MAX_DEPTH
from infrastructure.io import read_json, write_json_atomic

from .documents import Document, DocumentCategoryStore

logger = logging.getLogger(__name__)


class JsonFileCategoryStore(DocumentCategoryStore):
    """
    File layout: a JSON array of root documents (an export object
    `{"categories": [...]}` is accepted on read). A missing file is an empty forest.
    """

    def __init__(self, path: Path, *, max_depth: int = DEFAULT_MAX_DEPTH) -> None:
        super().__init__(max_depth=max_depth)
        self.path = Path(path)

    def _read_documents(self) -> list[Document]:
        if not self.path.exists():
            logger.debug("Store file %s does not exist yet; starting with an empty forest", self.path)
            return []
        try:
            data: Any = read_json(self.path)
        except (OSError, json.JSONDecodeError) as e:
            raise StoreError(f"Cannot read category store {self.path}: {e}") from e

        if isinstance(data, dict) and "categories" in data:
            data = data["categories"]
        if not isinstance(data, list):
            raise StoreError(f"Category store {self.path} must contain a JSON array, got {type(data).__name__}")
        return [d for d in data if isinstance(d, dict)]

    def _write_documents(self, docs: list[Document]) -> None:
        try:
            write_json_atomic(self.path, docs)
        except OSError as e:
            raise StoreError(f"Cannot write category store {self.path}: {e}") from e
