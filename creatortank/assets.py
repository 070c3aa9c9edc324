import logging
import os
import shutil

from PIL import Image

from .constants import IMAGE_EXTENSIONS

logger = logging.getLogger("CreatorTank")


def ensure_asset_dir(assets_root, idea_id):
    idea_dir = os.path.join(assets_root, str(int(idea_id)))
    os.makedirs(idea_dir, exist_ok=True)
    return idea_dir


def classify_asset(filename):
    ext = os.path.splitext(filename)[1].lstrip(".").lower()
    return "image" if ext in IMAGE_EXTENSIONS else "file"


def image_size(path):
    """Pixel size of an image file, or None when Pillow cannot read it."""
    try:
        with Image.open(path) as img:
            return img.size
    except Exception as exc:
        logger.debug("Could not read image size for %s: %s", path, exc)
        return None


def import_asset_file(store, idea_id, source_path):
    """Copy ``source_path`` into the idea's asset folder and catalogue it.

    Same-named files overwrite the previous copy.
    """
    if store.get_idea(idea_id) is None:
        raise KeyError(f"idea {idea_id} not found")
    file_name = os.path.basename(source_path)
    dest_path = os.path.join(ensure_asset_dir(store.assets_dir, idea_id), file_name)
    shutil.copyfile(source_path, dest_path)

    asset_type = classify_asset(file_name)
    asset_id = store.add_asset(idea_id, asset_type, file_name, dest_path)
    result = {"id": asset_id, "path": dest_path, "type": asset_type}
    if asset_type == "image":
        size = image_size(dest_path)
        if size:
            result["width"], result["height"] = size
    return result


def _local_path(path):
    if path.startswith("file://"):
        return path[len("file://"):]
    return path


def _is_managed(assets_root, path):
    root = os.path.realpath(assets_root)
    target = os.path.realpath(path)
    try:
        return os.path.commonpath([root, target]) == root and target != root
    except ValueError:
        return False


def remove_asset(store, asset_id, path=None, asset_type=None):
    """Delete the catalogue row, then the backing file for non-link assets.

    Only files inside the assets folder are ever removed. A failed file
    removal is logged and otherwise ignored: the row is already gone and the
    file is left behind.
    """
    store.delete_asset(asset_id)
    if asset_type == "link" or not path:
        return False
    local = _local_path(path)
    if not _is_managed(store.assets_dir, local):
        logger.warning("Refusing to delete file outside the assets folder: %s", local)
        return False
    try:
        if os.path.exists(local):
            os.remove(local)
            return True
    except OSError as exc:
        logger.warning("Could not delete file %s: %s", local, exc)
    return False
