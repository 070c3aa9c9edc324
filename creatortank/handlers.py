"""Operation catalog exposed to the desktop shell.

Every operation returns ``{"success": True, "data": ...}``,
``{"success": False, "error": "..."}`` or, when the user dismissed a picker
or confirmation, ``{"success": False, "canceled": True}``. Nothing raises.
"""

import functools
import logging
import os

from . import VERSION
from .assets import import_asset_file, remove_asset
from .backup import create_backup, restore_backup, validate_backup
from .export import metadata_filename, render_metadata, script_filename, write_text

logger = logging.getLogger("CreatorTank")


class Shell:
    """Desktop-shell primitives. Pickers return a path, or None when canceled."""

    def pick_file(self, title=None):
        return None

    def pick_directory(self, title=None, create=False):
        return None

    def save_file(self, default_name, extension):
        return None

    def confirm(self, message, detail=""):
        return False

    def restart(self):
        logger.warning("Restart requested but the shell provides no restart hook")


def ok(data=None):
    return {"success": True, "data": data}


def canceled():
    return {"success": False, "canceled": True}


def failed(error):
    return {"success": False, "error": str(error)}


def operation(action):
    def decorator(fn):
        @functools.wraps(fn)
        def wrapper(self, *args, **kwargs):
            try:
                return fn(self, *args, **kwargs)
            except Exception as exc:
                logger.exception("Failed to %s", action)
                return failed(exc)

        return wrapper

    return decorator


class Handlers:
    def __init__(self, store, shell=None):
        self.store = store
        self.shell = shell or Shell()

    # -- projects ---------------------------------------------------------

    @operation("create project")
    def create_project(self, name, platform=None):
        return ok({"id": self.store.create_project(name, platform)})

    @operation("get projects")
    def list_projects(self):
        return ok(self.store.list_projects())

    @operation("update project")
    def update_project(self, project_id, fields):
        self.store.update_project(project_id, fields)
        return ok()

    @operation("delete project")
    def delete_project(self, project_id):
        self.store.delete_project(project_id)
        return ok()

    # -- ideas ------------------------------------------------------------

    @operation("create idea")
    def create_idea(self, project_id, title, description=None, priority=None):
        return ok({"id": self.store.create_idea(project_id, title, description, priority)})

    @operation("get ideas")
    def list_ideas(self, project_id):
        return ok(self.store.list_ideas(project_id))

    @operation("get idea")
    def get_idea(self, idea_id):
        return ok(self.store.get_idea(idea_id))

    @operation("update idea")
    def update_idea(self, idea_id, fields):
        self.store.update_idea(idea_id, fields)
        return ok()

    @operation("delete idea")
    def delete_idea(self, idea_id):
        self.store.delete_idea(idea_id)
        return ok()

    @operation("get scheduled items")
    def list_scheduled(self):
        return ok(self.store.list_scheduled())

    @operation("pick output path")
    def pick_output_path(self):
        path = self.shell.pick_file("Select Final Output File")
        if not path:
            return canceled()
        return ok({"path": path})

    # -- scripts ----------------------------------------------------------

    @operation("get script")
    def get_script(self, idea_id):
        return ok(self.store.get_script(idea_id))

    @operation("save script")
    def save_script(self, idea_id, content, notes=None, word_count=None):
        return ok(self.store.save_script(idea_id, content, notes, word_count))

    # -- assets -----------------------------------------------------------

    @operation("add file asset")
    def add_asset_file(self, idea_id):
        source = self.shell.pick_file()
        if not source:
            return canceled()
        return ok(import_asset_file(self.store, idea_id, source))

    @operation("add link asset")
    def add_asset_link(self, idea_id, label, url):
        return ok({"id": self.store.add_asset(idea_id, "link", label, url)})

    @operation("get assets")
    def list_assets(self, idea_id):
        return ok(self.store.list_assets(idea_id))

    @operation("delete asset")
    def delete_asset(self, asset_id, path=None, asset_type=None):
        remove_asset(self.store, asset_id, path, asset_type)
        return ok()

    # -- search -----------------------------------------------------------

    @operation("search")
    def search(self, query):
        return ok(self.store.search(query))

    @operation("rebuild search index")
    def rebuild_index(self):
        return ok({"count": self.store.rebuild_index()})

    # -- backup -----------------------------------------------------------

    @operation("create backup")
    def create_backup(self):
        base_dir = self.shell.pick_directory("Select Backup Location", create=True)
        if not base_dir:
            return canceled()
        path = create_backup(self.store.db_path, self.store.assets_dir, base_dir, VERSION)
        return ok({"path": path})

    @operation("restore backup")
    def restore_backup(self):
        backup_path = self.shell.pick_directory("Select Backup Folder to Restore from")
        if not backup_path:
            return canceled()
        validate_backup(backup_path)
        if not self.shell.confirm(
            "This will OVERWRITE all current data. Are you sure?",
            "The application will restart after restoration.",
        ):
            return canceled()

        # The live image must not persist over the restored file.
        self.store.close()
        try:
            restore_backup(backup_path, self.store.db_path, self.store.assets_dir)
        except Exception:
            self.store.engine.open()
            raise
        self.shell.restart()
        return ok({"path": backup_path})

    # -- export -----------------------------------------------------------

    @operation("export script")
    def export_script(self, title, content, fmt):
        default_name = script_filename(title, fmt)
        path = self.shell.save_file(default_name, os.path.splitext(default_name)[1].lstrip("."))
        if not path:
            return canceled()
        return ok({"path": write_text(path, content)})

    @operation("export metadata")
    def export_metadata(self, rows, fmt, filename):
        default_name = metadata_filename(filename, fmt)
        text = render_metadata(rows, fmt)
        path = self.shell.save_file(default_name, os.path.splitext(default_name)[1].lstrip("."))
        if not path:
            return canceled()
        return ok({"path": write_text(path, text)})

    # -- settings ---------------------------------------------------------

    @operation("get settings")
    def get_settings(self):
        return ok(self.store.get_settings())

    @operation("update setting")
    def update_setting(self, key, value):
        self.store.update_setting(key, value)
        return ok()
