"""Error taxonomy shared by the tree core, the grid engine and the store adapters."""

from typing import Any


class CategoryError(Exception):
    """Base error. Carries the offending field/value so callers can report a structured failure."""

    kind: str = "error"

    def __init__(self, message: str, *, field: str | None = None, value: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.field = field
        self.value = value

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"error": self.kind, "message": self.message}
        if self.field is not None:
            out["field"] = self.field
        if self.value is not None:
            out["value"] = str(self.value)
        return out


class NotFoundError(CategoryError):
    """Target identity absent from the forest or from a direct lookup."""

    kind = "not_found"


class BadInputError(CategoryError):
    """Missing or malformed identifying input (ids, names, batch payload shape, grid params)."""

    kind = "bad_input"


class TreeStructureError(BadInputError):
    """Tree is deeper than the configured limit or contains a cycle."""

    kind = "tree_structure"


class ConflictError(CategoryError):
    """Root document revision changed between load and write."""

    kind = "conflict"


class StoreError(CategoryError):
    """Store collaborator failed (I/O, decoding). Only the message text is surfaced."""

    kind = "store"
