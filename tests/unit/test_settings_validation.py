import logging
from pathlib import Path

import pytest
from pydantic import ValidationError

from infrastructure.config import load_settings
from infrastructure.config.models import AppSettings, GridSettings, LoggingSettings
from infrastructure.store import InMemoryCategoryStore, JsonFileCategoryStore, make_store


def test_defaults_without_settings_file() -> None:
    settings = load_settings(None, env={})

    assert settings.store_path == Path("data/categories.json")
    assert settings.max_tree_depth == 64
    assert (settings.grid.default_start_row, settings.grid.default_end_row) == (0, 100)
    assert settings.search.min_length == 2
    assert settings.logging.log_file is None


def test_yaml_values_and_env_overrides(tmp_path) -> None:
    cfg = tmp_path / "settings.yaml"
    cfg.write_text(
        "store_path: from_yaml.json\n"
        "max_tree_depth: 10\n"
        "grid:\n  default_end_row: 25\n"
        "logging:\n  console_level: warning\n",
        encoding="utf-8",
    )

    settings = load_settings(cfg, env={"TAXONOMY_STORE_PATH": "from_env.json", "TAXONOMY_LOG_FILE": "x.log"})

    assert settings.store_path == Path("from_env.json")
    assert settings.max_tree_depth == 10
    assert settings.grid.default_end_row == 25
    assert settings.logging.console_level == "WARNING"
    assert settings.logging.level("console_level") == logging.WARNING
    assert settings.logging.log_file == Path("x.log")


def test_env_depth_must_be_an_integer(tmp_path) -> None:
    with pytest.raises(ValueError):
        load_settings(None, env={"TAXONOMY_MAX_TREE_DEPTH": "deep"})

    assert load_settings(None, env={"TAXONOMY_MAX_TREE_DEPTH": "8"}).max_tree_depth == 8


def test_missing_settings_file_is_an_error(tmp_path) -> None:
    with pytest.raises(FileNotFoundError):
        load_settings(tmp_path / "nope.yaml", env={})


def test_empty_settings_file_gives_defaults(tmp_path) -> None:
    cfg = tmp_path / "settings.yaml"
    cfg.write_text("", encoding="utf-8")
    assert load_settings(cfg, env={}).max_tree_depth == 64


def test_invalid_values_are_rejected() -> None:
    with pytest.raises(ValidationError):
        AppSettings(max_tree_depth=0)
    with pytest.raises(ValidationError):
        AppSettings(grid=GridSettings(default_start_row=10, default_end_row=5))
    with pytest.raises(ValidationError):
        LoggingSettings(console_level="chatty")


def test_store_factory_follows_settings(tmp_path) -> None:
    settings = AppSettings(store_path=tmp_path / "c.json", max_tree_depth=7)

    store = make_store(settings)
    assert isinstance(store, JsonFileCategoryStore)
    assert store.path == tmp_path / "c.json"
    assert store.max_depth == 7
    assert isinstance(make_store(settings, in_memory=True), InMemoryCategoryStore)
