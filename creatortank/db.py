import logging
import os

from .constants import ASSET_TYPES, DEFAULT_PLATFORM, PRIORITIES, WORKFLOW_STAGES
from .engine import StorageEngine
from .facade import QueryFacade
from .migrations import SchemaManager
from .paths import get_assets_dir, get_data_dir, get_db_path
from .search import SearchIndex, SearchPlanner
from .utils import count_words, normalize_text

logger = logging.getLogger("CreatorTank")

PROJECT_UPDATE_FIELDS = ("name", "platform", "scheduled_date", "scheduled_time")
IDEA_UPDATE_FIELDS = (
    "project_id",
    "title",
    "description",
    "status",
    "priority",
    "workflow_stage",
    "scheduled_date",
    "scheduled_time",
    "output_path",
)


def open_store(data_dir=None):
    """Load (or create) the database image under ``data_dir`` and bring it up to date.

    Any failure here is fatal for the caller: the store must not serve requests
    against a half-initialised image.
    """
    data_dir = data_dir or get_data_dir()
    engine = StorageEngine(get_db_path(data_dir))
    try:
        engine.open()
        applied = SchemaManager(engine).migrate()
        if applied:
            logger.info("Applied column migrations: %s", ", ".join(applied))
        index = SearchIndex(engine)
        index.setup()
        engine.persist()
    except Exception:
        logger.exception("Failed to initialize database")
        engine.close()
        raise
    logger.info("Database initialized and schema updated.")
    return CreatorTankStore(engine, index=index, assets_dir=get_assets_dir(data_dir))


class CreatorTankStore:
    def __init__(self, engine, index=None, assets_dir=None):
        self.engine = engine
        self.db = QueryFacade(engine)
        self.index = index or SearchIndex(engine)
        self.planner = SearchPlanner(engine, index=self.index)
        self.assets_dir = assets_dir or os.path.join(os.path.dirname(engine.path), "assets")

    @property
    def db_path(self):
        return self.engine.path

    @property
    def data_dir(self):
        return os.path.dirname(self.engine.path)

    def close(self):
        self.engine.close()

    # -- projects ---------------------------------------------------------

    def create_project(self, name, platform=None):
        name = normalize_text(name)
        if not name:
            raise ValueError("project name is required")
        result = self.db.run(
            "INSERT INTO projects (name, platform) VALUES (?, ?)",
            (name, normalize_text(platform) or DEFAULT_PLATFORM),
        )
        return result["id"]

    def get_project(self, project_id):
        return self.db.get("SELECT * FROM projects WHERE id = ?", (project_id,))

    def list_projects(self):
        rows = self.db.all(
            """
            SELECT p.*,
              (SELECT COUNT(*) FROM ideas i WHERE i.project_id = p.id) AS idea_count,
              (SELECT MAX(COALESCE(s.updated_at, i.created_at, p.created_at))
                 FROM ideas i
                 LEFT JOIN scripts s ON s.idea_id = i.id
                 WHERE i.project_id = p.id) AS last_activity
            FROM projects p
            ORDER BY p.created_at DESC, p.id DESC
            """
        )
        for row in rows:
            row["last_activity"] = row["last_activity"] or row["created_at"]
        return rows

    def update_project(self, project_id, fields):
        updates = self._pick_fields(fields, PROJECT_UPDATE_FIELDS, "project")
        if "name" in updates and not normalize_text(updates["name"]):
            raise ValueError("project name is required")
        if not updates:
            return {"id": project_id, "changes": 0}
        set_clause = ", ".join(f"{key} = ?" for key in updates)
        return self.db.run(
            f"UPDATE projects SET {set_clause} WHERE id = ?",
            list(updates.values()) + [project_id],
        )

    def delete_project(self, project_id):
        return self.db.run("DELETE FROM projects WHERE id = ?", (project_id,))

    # -- ideas ------------------------------------------------------------

    def create_idea(self, project_id, title, description=None, priority=None):
        title = normalize_text(title)
        if not title:
            raise ValueError("idea title is required")
        priority = priority or "medium"
        self._check_choice("priority", priority, PRIORITIES)
        result = self.db.run(
            "INSERT INTO ideas (project_id, title, description, priority) VALUES (?, ?, ?, ?)",
            (project_id, title, description, priority),
        )
        return result["id"]

    def list_ideas(self, project_id):
        return self.db.all(
            "SELECT * FROM ideas WHERE project_id = ? ORDER BY created_at DESC, id DESC",
            (project_id,),
        )

    def get_idea(self, idea_id):
        return self.db.get("SELECT * FROM ideas WHERE id = ?", (idea_id,))

    def update_idea(self, idea_id, fields):
        updates = self._pick_fields(fields, IDEA_UPDATE_FIELDS, "idea")
        if "title" in updates and not normalize_text(updates["title"]):
            raise ValueError("idea title is required")
        if "priority" in updates:
            self._check_choice("priority", updates["priority"], PRIORITIES)
        if "workflow_stage" in updates:
            self._check_choice("workflow_stage", updates["workflow_stage"], WORKFLOW_STAGES)
        if not updates:
            return {"id": idea_id, "changes": 0}
        set_clause = ", ".join(f"{key} = ?" for key in updates)
        return self.db.run(
            f"UPDATE ideas SET {set_clause}, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
            list(updates.values()) + [idea_id],
        )

    def delete_idea(self, idea_id):
        return self.db.run("DELETE FROM ideas WHERE id = ?", (idea_id,))

    def list_scheduled(self):
        return self.db.all(
            """
            SELECT 'idea' AS type, i.id, i.project_id, i.title,
                   i.scheduled_date, i.scheduled_time, i.workflow_stage,
                   p.name AS project_name, p.platform AS project_platform
            FROM ideas i
            JOIN projects p ON i.project_id = p.id
            WHERE i.scheduled_date IS NOT NULL

            UNION ALL

            SELECT 'project' AS type, p.id, p.id AS project_id, p.name AS title,
                   p.scheduled_date, p.scheduled_time, 'project' AS workflow_stage,
                   p.name AS project_name, p.platform AS project_platform
            FROM projects p
            WHERE p.scheduled_date IS NOT NULL

            ORDER BY scheduled_date ASC, scheduled_time ASC
            """
        )

    # -- scripts ----------------------------------------------------------

    def get_script(self, idea_id):
        return self.db.get("SELECT * FROM scripts WHERE idea_id = ?", (idea_id,))

    def save_script(self, idea_id, content, notes=None, word_count=None):
        """Upsert the idea's single script. ``word_count`` is always recomputed from ``content``."""
        if word_count is not None and word_count != count_words(content):
            logger.debug("Ignoring caller word_count=%r for idea %s", word_count, idea_id)
        self.db.run(
            """
            INSERT INTO scripts (idea_id, content, notes, word_count, updated_at)
            VALUES (?, ?, ?, ?, CURRENT_TIMESTAMP)
            ON CONFLICT(idea_id) DO UPDATE SET
              content = excluded.content,
              notes = excluded.notes,
              word_count = excluded.word_count,
              updated_at = CURRENT_TIMESTAMP
            """,
            (idea_id, content, notes, count_words(content)),
        )
        return self.get_script(idea_id)

    # -- assets -----------------------------------------------------------

    def add_asset(self, idea_id, asset_type, label, path_or_url):
        self._check_choice("asset type", asset_type, ASSET_TYPES)
        if not path_or_url:
            raise ValueError("asset path or url is required")
        result = self.db.run(
            "INSERT INTO assets (idea_id, type, label, path_or_url) VALUES (?, ?, ?, ?)",
            (idea_id, asset_type, label, path_or_url),
        )
        return result["id"]

    def list_assets(self, idea_id):
        rows = self.db.all(
            "SELECT * FROM assets WHERE idea_id = ? ORDER BY created_at DESC, id DESC",
            (idea_id,),
        )
        for row in rows:
            if row["type"] == "link":
                row["url"] = row["path_or_url"]
            else:
                row["url"] = "file://" + row["path_or_url"].replace("\\", "/")
        return rows

    def delete_asset(self, asset_id):
        return self.db.run("DELETE FROM assets WHERE id = ?", (asset_id,))

    # -- settings ---------------------------------------------------------

    def get_settings(self):
        return {row["key"]: row["value"] for row in self.db.all("SELECT key, value FROM settings")}

    def update_setting(self, key, value):
        key = normalize_text(key)
        if not key:
            raise ValueError("setting key is required")
        return self.db.run(
            """
            INSERT INTO settings(key, value) VALUES(?, ?)
            ON CONFLICT(key) DO UPDATE SET value = excluded.value
            """,
            (key, "" if value is None else str(value)),
        )

    # -- search -----------------------------------------------------------

    def search(self, text):
        return self.planner.search(text)

    def rebuild_index(self):
        if not self.index.available:
            raise RuntimeError("full-text search index is not available")
        self.index.rebuild()
        self.engine.persist()
        return self.index.count()

    # -- helpers ----------------------------------------------------------

    @staticmethod
    def _pick_fields(fields, allowed, entity):
        fields = dict(fields or {})
        fields.pop("id", None)
        unknown = sorted(set(fields) - set(allowed))
        if unknown:
            raise ValueError(f"unknown {entity} field(s): {', '.join(unknown)}")
        return {key: fields[key] for key in allowed if key in fields}

    @staticmethod
    def _check_choice(name, value, choices):
        if value not in choices:
            raise ValueError(f"invalid {name}: {value!r} (expected one of {', '.join(choices)})")
