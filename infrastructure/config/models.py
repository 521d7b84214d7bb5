"""Configuration models (Pydantic classes)."""

import logging
from pathlib import Path

from pydantic import BaseModel, Field, field_validator, model_validator

from domain.grid.query import DEFAULT_END_ROW, DEFAULT_SEARCH_MIN_LENGTH, DEFAULT_START_ROW
from domain.tree.locator import DEFAULT_MAX_DEPTH
from infrastructure.constants import STORE_FILE

_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class GridSettings(BaseModel):
    """Row window used when a grid request omits startRow/endRow."""

    default_start_row: int = Field(default=DEFAULT_START_ROW, ge=0)
    default_end_row: int = Field(default=DEFAULT_END_ROW, ge=0)


class SearchSettings(BaseModel):
    min_length: int = Field(default=DEFAULT_SEARCH_MIN_LENGTH, ge=1)


class LoggingSettings(BaseModel):
    console_level: str = "INFO"
    file_level: str = "DEBUG"
    log_file: Path | None = None

    @field_validator("console_level", "file_level", mode="before")
    @classmethod
    def _upper(cls, v: object) -> str:
        level = str(v).strip().upper()
        if level not in _LEVELS:
            raise ValueError(f"Unknown log level {v!r}; expected one of {list(_LEVELS)}")
        return level

    def level(self, name: str) -> int:
        return getattr(logging, getattr(self, name))


class AppSettings(BaseModel):
    """
    Runtime configuration.
    - Loaded from settings.yaml
    - Environment variables override selected fields (see loader)
    - Consumed by the CLI, the store factory and the application services
    """

    store_path: Path = Field(default_factory=lambda: STORE_FILE, description="JSON file backing the category store.")
    max_tree_depth: int = Field(
        default=DEFAULT_MAX_DEPTH,
        ge=1,
        description="Deepest nesting accepted by traversal, reconciliation and config resolution.",
    )
    grid: GridSettings = Field(default_factory=GridSettings)
    search: SearchSettings = Field(default_factory=SearchSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @model_validator(mode="after")
    def _validate(self) -> "AppSettings":
        if self.grid.default_end_row < self.grid.default_start_row:
            raise ValueError("grid.default_end_row must be >= grid.default_start_row")
        return self
