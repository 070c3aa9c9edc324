"""DDL for the CreatorTank database image.

Tables are listed in dependency order. Each carries its ``CREATE TABLE IF NOT
EXISTS`` statement and the columns added after the table first shipped; the
schema manager probes those columns and patches any that are missing.
"""

from collections import namedtuple

from .constants import DEFAULT_SETTINGS

# ``patch`` holds one or more statements that add the column to an older image.
ColumnMigration = namedtuple("ColumnMigration", ["column", "patch"])
TableSpec = namedtuple("TableSpec", ["name", "create_sql", "migrations"])


PROJECTS_SQL = r"""
CREATE TABLE IF NOT EXISTS projects (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  name TEXT NOT NULL,
  platform TEXT DEFAULT 'Custom',
  scheduled_date TEXT,
  scheduled_time TEXT,
  created_at DATETIME DEFAULT CURRENT_TIMESTAMP
)
"""

IDEAS_SQL = r"""
CREATE TABLE IF NOT EXISTS ideas (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  project_id INTEGER NOT NULL,
  title TEXT NOT NULL,
  description TEXT,
  status TEXT DEFAULT 'idea',
  priority TEXT DEFAULT 'medium',
  workflow_stage TEXT DEFAULT 'idea',
  scheduled_date TEXT,
  scheduled_time TEXT,
  output_path TEXT,
  created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
  updated_at DATETIME DEFAULT CURRENT_TIMESTAMP,
  FOREIGN KEY (project_id) REFERENCES projects (id) ON DELETE CASCADE
)
"""

SCRIPTS_SQL = r"""
CREATE TABLE IF NOT EXISTS scripts (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  idea_id INTEGER NOT NULL UNIQUE,
  content TEXT,
  notes TEXT,
  word_count INTEGER DEFAULT 0,
  updated_at DATETIME DEFAULT CURRENT_TIMESTAMP,
  FOREIGN KEY (idea_id) REFERENCES ideas (id) ON DELETE CASCADE
)
"""

ASSETS_SQL = r"""
CREATE TABLE IF NOT EXISTS assets (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  idea_id INTEGER NOT NULL,
  type TEXT NOT NULL CHECK(type IN ('image', 'file', 'link')),
  label TEXT,
  path_or_url TEXT NOT NULL,
  created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
  FOREIGN KEY (idea_id) REFERENCES ideas (id) ON DELETE CASCADE
)
"""

SETTINGS_SQL = r"""
CREATE TABLE IF NOT EXISTS settings (
  key TEXT PRIMARY KEY,
  value TEXT NOT NULL
)
"""

TABLES = (
    TableSpec(
        "projects",
        PROJECTS_SQL,
        (
            ColumnMigration("platform", ("ALTER TABLE projects ADD COLUMN platform TEXT DEFAULT 'Custom'",)),
            ColumnMigration("scheduled_date", ("ALTER TABLE projects ADD COLUMN scheduled_date TEXT",)),
            ColumnMigration("scheduled_time", ("ALTER TABLE projects ADD COLUMN scheduled_time TEXT",)),
        ),
    ),
    TableSpec(
        "ideas",
        IDEAS_SQL,
        (
            ColumnMigration("workflow_stage", ("ALTER TABLE ideas ADD COLUMN workflow_stage TEXT DEFAULT 'idea'",)),
            ColumnMigration("scheduled_date", ("ALTER TABLE ideas ADD COLUMN scheduled_date TEXT",)),
            ColumnMigration("scheduled_time", ("ALTER TABLE ideas ADD COLUMN scheduled_time TEXT",)),
            # SQLite rejects ADD COLUMN with a non-constant default, so backfill instead.
            ColumnMigration(
                "updated_at",
                (
                    "ALTER TABLE ideas ADD COLUMN updated_at DATETIME",
                    "UPDATE ideas SET updated_at = COALESCE(created_at, CURRENT_TIMESTAMP) WHERE updated_at IS NULL",
                ),
            ),
            ColumnMigration("output_path", ("ALTER TABLE ideas ADD COLUMN output_path TEXT",)),
        ),
    ),
    TableSpec(
        "scripts",
        SCRIPTS_SQL,
        (ColumnMigration("notes", ("ALTER TABLE scripts ADD COLUMN notes TEXT",)),),
    ),
    TableSpec("assets", ASSETS_SQL, ()),
    TableSpec("settings", SETTINGS_SQL, ()),
)

SEED_SETTING_SQL = "INSERT OR IGNORE INTO settings(key, value) VALUES(?, ?)"

SEED_SETTINGS = DEFAULT_SETTINGS


# -- Full-text search ------------------------------------------------------

SEARCH_INDEX_SQL = r"""
CREATE VIRTUAL TABLE IF NOT EXISTS search_index USING fts5(
  item_type UNINDEXED,
  item_id UNINDEXED,
  project_id UNINDEXED,
  idea_id UNINDEXED,
  title,
  content,
  tokenize = 'unicode61'
)
"""

# Shared between triggers and rebuild so both produce identical rows.
SCRIPT_CONTENT_EXPR = "(COALESCE({s}.content, '') || ' ' || COALESCE({s}.notes, ''))"

_INSERT_PROJECT = """
  INSERT INTO search_index(item_type, item_id, project_id, title, content)
  VALUES ('project', new.id, new.id, new.name, new.platform);"""

_INSERT_IDEA = """
  INSERT INTO search_index(item_type, item_id, project_id, idea_id, title, content)
  VALUES ('idea', new.id, new.project_id, new.id, new.title, new.description);"""

_INSERT_SCRIPT = f"""
  INSERT INTO search_index(item_type, item_id, project_id, idea_id, title, content)
  SELECT 'script', new.id, i.project_id, new.idea_id, i.title, {SCRIPT_CONTENT_EXPR.format(s="new")}
  FROM ideas i WHERE i.id = new.idea_id;"""

# An idea's title and project_id are denormalised into its script's entry.
_REFRESH_IDEA_SCRIPTS = f"""
  DELETE FROM search_index WHERE item_type = 'script' AND idea_id = old.id;
  INSERT INTO search_index(item_type, item_id, project_id, idea_id, title, content)
  SELECT 'script', s.id, new.project_id, s.idea_id, new.title, {SCRIPT_CONTENT_EXPR.format(s="s")}
  FROM scripts s WHERE s.idea_id = new.id;"""

SEARCH_TRIGGERS = (
    "CREATE TRIGGER IF NOT EXISTS projects_ai AFTER INSERT ON projects BEGIN" + _INSERT_PROJECT + "\nEND",
    "CREATE TRIGGER IF NOT EXISTS projects_au AFTER UPDATE ON projects BEGIN\n"
    "  DELETE FROM search_index WHERE item_type = 'project' AND item_id = old.id;" + _INSERT_PROJECT + "\nEND",
    "CREATE TRIGGER IF NOT EXISTS projects_ad AFTER DELETE ON projects BEGIN\n"
    "  DELETE FROM search_index WHERE item_type = 'project' AND item_id = old.id;\n"
    "  DELETE FROM search_index WHERE item_type != 'project' AND project_id = old.id;\nEND",
    "CREATE TRIGGER IF NOT EXISTS ideas_ai AFTER INSERT ON ideas BEGIN" + _INSERT_IDEA + "\nEND",
    "CREATE TRIGGER IF NOT EXISTS ideas_au AFTER UPDATE ON ideas BEGIN\n"
    "  DELETE FROM search_index WHERE item_type = 'idea' AND item_id = old.id;"
    + _INSERT_IDEA
    + _REFRESH_IDEA_SCRIPTS
    + "\nEND",
    "CREATE TRIGGER IF NOT EXISTS ideas_ad AFTER DELETE ON ideas BEGIN\n"
    "  DELETE FROM search_index WHERE item_type = 'idea' AND item_id = old.id;\n"
    "  DELETE FROM search_index WHERE item_type = 'script' AND idea_id = old.id;\nEND",
    "CREATE TRIGGER IF NOT EXISTS scripts_ai AFTER INSERT ON scripts BEGIN" + _INSERT_SCRIPT + "\nEND",
    "CREATE TRIGGER IF NOT EXISTS scripts_au AFTER UPDATE ON scripts BEGIN\n"
    "  DELETE FROM search_index WHERE item_type = 'script' AND item_id = old.id;" + _INSERT_SCRIPT + "\nEND",
    "CREATE TRIGGER IF NOT EXISTS scripts_ad AFTER DELETE ON scripts BEGIN\n"
    "  DELETE FROM search_index WHERE item_type = 'script' AND item_id = old.id;\nEND",
)

REBUILD_SQL = (
    "DELETE FROM search_index",
    """
    INSERT INTO search_index(item_type, item_id, project_id, title, content)
    SELECT 'project', id, id, name, platform FROM projects
    """,
    """
    INSERT INTO search_index(item_type, item_id, project_id, idea_id, title, content)
    SELECT 'idea', id, project_id, id, title, description FROM ideas
    """,
    f"""
    INSERT INTO search_index(item_type, item_id, project_id, idea_id, title, content)
    SELECT 'script', s.id, i.project_id, s.idea_id, i.title, {SCRIPT_CONTENT_EXPR.format(s="s")}
    FROM scripts s JOIN ideas i ON s.idea_id = i.id
    """,
)
