"""Application-level constants."""

# Batch payload keys
CATEGORIES_KEY = "categories"

# Keys added to result records
EXISTED_KEY = "existed"
RESOLVED_AI_CONFIG_KEY = "resolvedAiConfig"

# Languages whose names are stored untranslated
SOURCE_LANGUAGES = ("", "en")

# Tabular import/export
PATH_COLUMN = "breadcrumb"
TABLE_DESCRIPTOR_COLUMNS = ("createUuid", "active", "isActive")
GRID_EXPORT_COLUMNS = ["id", "name", "breadcrumb", "depth", "active", "isActive", "createUuid", "parent"]
