"""
CLI entrypoint for the category tree.

This script performs the following steps:
- loads .env (if present) and configs/settings.yaml
- configures logging (console + optional rotating file)
- opens the JSON file category store
- runs one command (import, sync, grid query, ...) against it
- prints the JSON result to stdout; failures print a structured error and exit non-zero
"""

import argparse
import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from pydantic import BaseModel

from application import CategoryService, SyncCoordinator, descriptors_from_table, rows_to_frame
from domain.errors import CategoryError
from domain.tree import TreeReconciler
from infrastructure.config import AppSettings, load_settings
from infrastructure.constants import SETTINGS_FILE
from infrastructure.io import ensure_exists, read_json, read_table, write_table
from infrastructure.observability import configure_logging, make_op_tag, set_log_context
from infrastructure.store import make_store

logger = logging.getLogger(__name__)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Manage the category tree store")
    p.add_argument(
        "--settings",
        type=str,
        default=str(SETTINGS_FILE),
        help="Path to settings.yaml (default: configs/settings.yaml; skipped if missing)",
    )
    p.add_argument(
        "--env",
        type=str,
        default=".env",
        help="Path to .env file (default: .env; skipped if missing)",
    )
    p.add_argument(
        "--store",
        type=str,
        default=None,
        help="Override the JSON store file from settings",
    )
    p.add_argument(
        "--console-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Console log level (default: from settings)",
    )

    sub = p.add_subparsers(dest="command", required=True)

    s = sub.add_parser("import", help="Create every category in a JSON file as a new root")
    s.add_argument("file", type=str, help="JSON array of category trees (or {\"categories\": [...]})")

    s = sub.add_parser("import-table", help="Create roots from a CSV/Excel table of breadcrumb paths")
    s.add_argument("file", type=str, help="CSV or Excel file")
    s.add_argument("--path-col", type=str, default="breadcrumb", help="Column holding 'A > B > C' paths")

    s = sub.add_parser("sync", help="Reconcile stored roots with a JSON file, matching by createUuid")
    s.add_argument("file", type=str)
    s.add_argument(
        "--keep-missing",
        action="store_true",
        help="Do not deactivate stored roots that are absent from the file",
    )

    s = sub.add_parser("sync-create", help="Create roots from a JSON file unless one with the same name exists")
    s.add_argument("file", type=str)

    s = sub.add_parser("ensure", help="Create a named subcategory unless it already exists")
    s.add_argument("parent_id", type=str)
    s.add_argument("name", type=str)

    s = sub.add_parser("grid", help="Run a grid query (filter/sort/paginate) over the flattened tree")
    s.add_argument("--params", type=str, default=None, help="JSON file with startRow/endRow/sortModel/filterModel")
    s.add_argument("--out", type=str, default=None, help="Also write the page of rows to CSV/Excel")

    s = sub.add_parser("search", help="Case-insensitive name search across the tree")
    s.add_argument("term", type=str)

    s = sub.add_parser("resolve-config", help="Show a category with its inherited aiConfig")
    s.add_argument("category_id", type=str)

    s = sub.add_parser("export", help="Dump the whole forest")
    s.add_argument("--lang", type=str, default=None, help="Replace names with this translation where present")

    return p.parse_args(argv)


def _read_payload(path: str) -> Any:
    file = Path(path)
    ensure_exists(file, "input JSON file")
    return read_json(file)


def _to_jsonable(result: Any) -> Any:
    if isinstance(result, BaseModel):
        return result.model_dump(by_alias=True, mode="json")
    return result


def run_command(args: argparse.Namespace, settings: AppSettings) -> Any:
    """Dispatch one parsed command; returns a JSON-ready result."""
    store = make_store(settings)
    reconciler = TreeReconciler(max_depth=settings.max_tree_depth)
    sync = SyncCoordinator(store, reconciler, max_depth=settings.max_tree_depth)
    service = CategoryService(
        store,
        reconciler,
        max_depth=settings.max_tree_depth,
        default_start_row=settings.grid.default_start_row,
        default_end_row=settings.grid.default_end_row,
        search_min_length=settings.search.min_length,
    )

    if args.command == "import":
        return sync.import_tree(_read_payload(args.file))

    if args.command == "import-table":
        table_path = Path(args.file)
        logger.info("Loading category table from %s...", table_path)
        df = read_table(table_path)
        logger.info("Table loaded: %d rows, %d columns", df.shape[0], df.shape[1])
        return sync.import_tree(descriptors_from_table(df, path_col=args.path_col))

    if args.command == "sync":
        return sync.sync_tree(_read_payload(args.file), deactivate_missing=not args.keep_missing)

    if args.command == "sync-create":
        return sync.sync_create(_read_payload(args.file))

    if args.command == "ensure":
        return sync.ensure_subcategory(args.parent_id, args.name)

    if args.command == "grid":
        params = _read_payload(args.params) if args.params else {}
        result = service.grid(params)
        if args.out:
            out_path = write_table(rows_to_frame(result.rows), Path(args.out))
            logger.info("Saved %d grid rows to %s", len(result.rows), out_path)
        return result

    if args.command == "search":
        return service.search(args.term)

    if args.command == "resolve-config":
        return service.get_with_resolved_ai_config(args.category_id)

    if args.command == "export":
        if args.lang:
            return service.list_translated(args.lang)
        return service.export_tree()

    raise ValueError(f"Unknown command: {args.command}")


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)

    env_file = Path(args.env)
    if env_file.exists():
        load_dotenv(env_file, override=True)

    settings_path = Path(args.settings)
    settings = load_settings(settings_path if settings_path.exists() else None)
    if args.store:
        settings = settings.model_copy(update={"store_path": Path(args.store)})

    if args.console_level:
        console_level = getattr(logging, args.console_level)
    else:
        console_level = settings.logging.level("console_level")
    configure_logging(
        log_file=settings.logging.log_file,
        console_level=console_level,
        file_level=settings.logging.level("file_level"),
    )

    op_id = f"{datetime.now().strftime('%Y%m%d_%H%M%S')}_{args.command}"
    set_log_context(op_id_full=op_id, op_name=args.command)
    logger.info("Starting %s (op=%s, store=%s)", args.command, make_op_tag(op_id), settings.store_path)

    try:
        result = run_command(args, settings)
    except CategoryError as e:
        logger.error("%s failed: %s", args.command, e)
        print(json.dumps(e.to_dict(), ensure_ascii=False, indent=2))
        return 1

    print(json.dumps(_to_jsonable(result), ensure_ascii=False, indent=2, default=str))
    if isinstance(result, BaseModel) and getattr(result, "success", True) is False:
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
