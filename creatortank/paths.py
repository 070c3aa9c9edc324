import os
import sys

from .constants import APP_NAME, ASSETS_DIRNAME, DB_FILENAME


def _user_data_root():
    if sys.platform.startswith("win"):
        base = os.environ.get("APPDATA") or os.path.join(os.path.expanduser("~"), "AppData", "Roaming")
    elif sys.platform == "darwin":
        base = os.path.join(os.path.expanduser("~"), "Library", "Application Support")
    else:
        base = os.environ.get("XDG_DATA_HOME") or os.path.join(os.path.expanduser("~"), ".local", "share")
    return os.path.join(base, APP_NAME)


def get_data_dir():
    # CREATORTANK_HOME wins so tests and portable installs can relocate everything.
    data_dir = os.environ.get("CREATORTANK_HOME") or _user_data_root()
    os.makedirs(data_dir, exist_ok=True)
    return data_dir


def get_db_path(data_dir=None):
    return os.path.join(data_dir or get_data_dir(), DB_FILENAME)


def get_assets_dir(data_dir=None):
    return os.path.join(data_dir or get_data_dir(), ASSETS_DIRNAME)
