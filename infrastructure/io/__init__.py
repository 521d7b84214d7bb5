"""I/O utilities: filesystem operations and tabular file loading."""

from infrastructure.io.datasets import read_table, write_table
from infrastructure.io.fs import ensure_exists, read_json, write_json_atomic

__all__ = [
    "ensure_exists",
    "read_json",
    "write_json_atomic",
    "read_table",
    "write_table",
]
