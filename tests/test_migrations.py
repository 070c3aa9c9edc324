import sqlite3
import tempfile
import unittest
from pathlib import Path

from creatortank.db import open_store
from creatortank.migrations import SchemaManager

LEGACY_SCHEMA = """
CREATE TABLE projects (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  name TEXT NOT NULL,
  created_at DATETIME DEFAULT CURRENT_TIMESTAMP
);
CREATE TABLE ideas (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  project_id INTEGER NOT NULL,
  title TEXT NOT NULL,
  description TEXT,
  status TEXT DEFAULT 'idea',
  priority TEXT DEFAULT 'medium',
  created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
  FOREIGN KEY (project_id) REFERENCES projects (id) ON DELETE CASCADE
);
CREATE TABLE scripts (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  idea_id INTEGER NOT NULL UNIQUE,
  content TEXT,
  word_count INTEGER DEFAULT 0,
  updated_at DATETIME DEFAULT CURRENT_TIMESTAMP,
  FOREIGN KEY (idea_id) REFERENCES ideas (id) ON DELETE CASCADE
);
INSERT INTO projects (name, created_at) VALUES ('Old Show', '2023-05-01 09:00:00');
INSERT INTO ideas (project_id, title, description, created_at)
  VALUES (1, 'Legacy Idea', 'an episode about volcanoes', '2023-05-02 09:00:00');
INSERT INTO scripts (idea_id, content, word_count) VALUES (1, 'lava flows downhill', 3);
"""


def _schema_snapshot(db_path):
    conn = sqlite3.connect(db_path)
    try:
        return conn.execute("SELECT type, name, sql FROM sqlite_master ORDER BY type, name").fetchall()
    finally:
        conn.close()


class SchemaMigrationTests(unittest.TestCase):
    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.addCleanup(self.temp_dir.cleanup)
        self.data_dir = self.temp_dir.name
        self.db_path = str(Path(self.data_dir) / "database.sqlite")

    def test_fresh_database_gets_every_table_and_default_settings(self):
        store = open_store(self.data_dir)
        self.addCleanup(store.close)

        names = {
            row["name"]
            for row in store.engine.query_all("SELECT name FROM sqlite_master WHERE type IN ('table', 'trigger')")
        }
        for name in ("projects", "ideas", "scripts", "assets", "settings", "search_index", "ideas_au"):
            self.assertIn(name, names)
        self.assertEqual(
            store.get_settings(),
            {
                "shortcut_search": "Ctrl+K",
                "shortcut_sidebar": "Ctrl+B",
                "shortcut_schedule": "Alt+S",
                "theme_mode": "system",
            },
        )

    def test_running_setup_twice_is_a_no_op(self):
        store = open_store(self.data_dir)
        store.close()
        first = _schema_snapshot(self.db_path)

        store = open_store(self.data_dir)
        self.addCleanup(store.close)
        applied = SchemaManager(store.engine).migrate()
        store.engine.persist()

        self.assertEqual(applied, [])
        self.assertEqual(_schema_snapshot(self.db_path), first)

    def test_legacy_image_is_upgraded_without_data_loss(self):
        conn = sqlite3.connect(self.db_path)
        conn.executescript(LEGACY_SCHEMA)
        conn.commit()
        conn.close()

        store = open_store(self.data_dir)
        self.addCleanup(store.close)

        project = store.get_project(1)
        self.assertEqual(project["name"], "Old Show")
        self.assertEqual(project["platform"], "Custom")
        self.assertIsNone(project["scheduled_date"])

        idea = store.get_idea(1)
        self.assertEqual(idea["title"], "Legacy Idea")
        self.assertEqual(idea["workflow_stage"], "idea")
        self.assertEqual(idea["updated_at"], "2023-05-02 09:00:00")
        self.assertIsNone(idea["output_path"])

        script = store.get_script(1)
        self.assertEqual(script["content"], "lava flows downhill")
        self.assertIsNone(script["notes"])

    def test_legacy_rows_are_indexed_on_first_start(self):
        conn = sqlite3.connect(self.db_path)
        conn.executescript(LEGACY_SCHEMA)
        conn.commit()
        conn.close()

        store = open_store(self.data_dir)
        self.addCleanup(store.close)

        self.assertEqual(store.index.count(), 3)
        results = store.search("volcano")
        self.assertEqual([(r["item_type"], r["item_id"]) for r in results], [("idea", 1)])

    def test_existing_settings_are_never_overwritten(self):
        store = open_store(self.data_dir)
        store.update_setting("theme_mode", "dark")
        store.engine.execute("DELETE FROM settings WHERE key = 'shortcut_sidebar'")
        store.engine.persist()
        store.close()

        store = open_store(self.data_dir)
        self.addCleanup(store.close)
        settings = store.get_settings()

        self.assertEqual(settings["theme_mode"], "dark")
        self.assertEqual(settings["shortcut_sidebar"], "Ctrl+B")


if __name__ == "__main__":
    unittest.main()
