from pathlib import Path

# Repo-root conventional directories/files (overrideable via settings.yaml / environment)
CONFIG_DIR = Path("configs")
SETTINGS_FILE = CONFIG_DIR / "settings.yaml"

DATA_DIR = Path("data")
STORE_FILE = DATA_DIR / "categories.json"

# Environment overrides (loaded from .env by the CLI)
ENV_STORE_PATH = "TAXONOMY_STORE_PATH"
ENV_MAX_TREE_DEPTH = "TAXONOMY_MAX_TREE_DEPTH"
ENV_LOG_FILE = "TAXONOMY_LOG_FILE"
