"""Configuration loading from YAML files and environment overrides."""

import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from infrastructure.config.models import AppSettings
from infrastructure.constants import ENV_LOG_FILE, ENV_MAX_TREE_DEPTH, ENV_STORE_PATH

logger = logging.getLogger(__name__)


def _load_yaml(path: Path) -> dict[str, Any]:
    """Load YAML file and return as dict."""
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Expected YAML dict in {path}, got {type(data)}")

    return data


def _apply_env_overrides(data: dict[str, Any], env: Mapping[str, str]) -> dict[str, Any]:
    """Environment wins over YAML for the few deployment-specific keys."""
    out = dict(data)

    store_path = env.get(ENV_STORE_PATH)
    if store_path:
        out["store_path"] = store_path

    max_depth = env.get(ENV_MAX_TREE_DEPTH)
    if max_depth:
        try:
            out["max_tree_depth"] = int(max_depth)
        except ValueError as e:
            raise ValueError(f"{ENV_MAX_TREE_DEPTH} must be an integer, got {max_depth!r}") from e

    log_file = env.get(ENV_LOG_FILE)
    if log_file:
        out["logging"] = {**(out.get("logging") or {}), "log_file": log_file}

    return out


def load_settings(path: Path | None = None, *, env: Mapping[str, str] | None = None) -> AppSettings:
    """
    Load settings.yaml (when given) and apply environment overrides.

    Args:
        path: settings YAML; None means defaults only
        env: environment mapping (defaults to os.environ)

    Returns:
        Validated AppSettings

    Raises:
        FileNotFoundError: path given but missing
        ValueError: malformed YAML or invalid values
    """
    data = _load_yaml(path) if path is not None else {}
    data = _apply_env_overrides(data, os.environ if env is None else env)

    settings = AppSettings.model_validate(data)
    logger.debug("Settings loaded (store=%s, max_tree_depth=%d)", settings.store_path, settings.max_tree_depth)
    return settings
