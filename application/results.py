"""Result payloads returned by application services."""

from typing import Any

from pydantic import BaseModel, Field


class BatchItemError(BaseModel):
    """One failed batch item, keyed by the item's name."""

    name: str | None = None
    error: str
    field: str | None = None


class BatchResult(BaseModel):
    """
    Outcome of a batch operation.

    Items are processed independently: `results` holds every item that succeeded,
    `errors` every item that failed. `success` is False when any item failed.
    """

    success: bool = True
    processed: int = 0
    results: list[dict[str, Any]] = Field(default_factory=list)
    errors: list[BatchItemError] = Field(default_factory=list)

    def add_error(self, name: str | None, exc: Exception) -> None:
        self.errors.append(BatchItemError(name=name, error=str(exc), field=getattr(exc, "field", None)))
        self.success = False


class EnsureResult(BaseModel):
    success: bool = True
    existed: bool
    category: dict[str, Any]
