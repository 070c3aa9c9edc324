import json
import re
from datetime import datetime, timezone


def now_iso():
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()


_ws_re = re.compile(r"\s+")
_unsafe_name_re = re.compile(r"[^a-z0-9]", re.IGNORECASE)


def normalize_text(s):
    if s is None:
        return ""
    s = str(s).strip()
    s = _ws_re.sub(" ", s)
    return s


def count_words(content):
    """Number of whitespace-delimited, non-empty tokens in ``content``."""
    if not content:
        return 0
    return len(str(content).split())


def safe_file_stem(title):
    return _unsafe_name_re.sub("_", str(title or "")).lower()


def json_dumps(obj):
    """Pretty-printed (2-space) JSON, non-ASCII kept as-is."""
    return json.dumps(obj, ensure_ascii=False, indent=2)
