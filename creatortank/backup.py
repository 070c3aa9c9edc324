import logging
import os
import shutil
import time
from datetime import datetime, timezone

from .constants import ASSETS_DIRNAME, BACKUP_METADATA_FILENAME, BACKUP_PREFIX, BACKUP_TYPE, DB_FILENAME
from .utils import json_dumps, now_iso

logger = logging.getLogger("CreatorTank")


def copy_tree(src, dst):
    """Recursive copy that merges into ``dst`` and overwrites existing files."""
    if not os.path.exists(src):
        return
    shutil.copytree(src, dst, dirs_exist_ok=True)


def backup_folder_name(now=None):
    now = now or datetime.now(timezone.utc)
    return f"{BACKUP_PREFIX}_{now.strftime('%Y-%m-%d')}_{int(now.timestamp() * 1000)}"


def create_backup(db_path, assets_dir, base_dir, version):
    backup_path = os.path.join(base_dir, backup_folder_name())
    os.makedirs(backup_path, exist_ok=True)

    if os.path.exists(db_path):
        shutil.copyfile(db_path, os.path.join(backup_path, DB_FILENAME))
    copy_tree(assets_dir, os.path.join(backup_path, ASSETS_DIRNAME))

    meta = {"version": version, "timestamp": now_iso(), "type": BACKUP_TYPE}
    with open(os.path.join(backup_path, BACKUP_METADATA_FILENAME), "w", encoding="utf-8") as f:
        f.write(json_dumps(meta))
    logger.info("Backup written to %s", backup_path)
    return backup_path


def validate_backup(backup_path):
    if not os.path.isfile(os.path.join(backup_path, DB_FILENAME)):
        raise FileNotFoundError(f"Invalid backup folder: {DB_FILENAME} not found.")


def restore_backup(backup_path, db_path, assets_dir):
    """Overwrite the live database file and merge the backed-up asset tree.

    The caller must have closed the live store first and must restart the
    process afterwards; the in-memory image is never reconciled.
    """
    validate_backup(backup_path)
    started = time.monotonic()
    tmp_path = db_path + ".restore"
    shutil.copyfile(os.path.join(backup_path, DB_FILENAME), tmp_path)
    os.replace(tmp_path, db_path)
    copy_tree(os.path.join(backup_path, ASSETS_DIRNAME), assets_dir)
    logger.info("Restored backup from %s in %.2fs", backup_path, time.monotonic() - started)
