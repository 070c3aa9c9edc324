APP_NAME = "CreatorTank"

SCHEMA_VERSION = "4"

BACKUP_TYPE = "CreatorTank_Backup"
BACKUP_PREFIX = "CreatorTank_Backup"

DB_FILENAME = "database.sqlite"
ASSETS_DIRNAME = "assets"
BACKUP_METADATA_FILENAME = "metadata.json"

DEFAULT_SETTINGS = (
    ("shortcut_search", "Ctrl+K"),
    ("shortcut_sidebar", "Ctrl+B"),
    ("shortcut_schedule", "Alt+S"),
    ("theme_mode", "system"),
)

DEFAULT_PLATFORM = "Custom"

PRIORITIES = ("low", "medium", "high")

WORKFLOW_STAGES = ("idea", "writing", "recording", "editing", "ready", "published")

ASSET_TYPES = ("image", "file", "link")

IMAGE_EXTENSIONS = {"jpg", "jpeg", "png", "gif", "webp"}

SCRIPT_EXPORT_FORMATS = ("txt", "md")
METADATA_EXPORT_FORMATS = ("json", "csv")

SEARCH_LIMIT = 50
