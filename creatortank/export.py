import csv
import io

from .constants import METADATA_EXPORT_FORMATS, SCRIPT_EXPORT_FORMATS
from .utils import json_dumps, safe_file_stem


def _check_format(fmt, allowed):
    fmt = str(fmt or "").strip().lower()
    if fmt not in allowed:
        raise ValueError(f"unsupported export format: {fmt!r} (expected one of {', '.join(allowed)})")
    return fmt


def script_filename(title, fmt):
    fmt = _check_format(fmt, SCRIPT_EXPORT_FORMATS)
    return f"{safe_file_stem(title)}.{fmt}"


def metadata_filename(filename, fmt):
    fmt = _check_format(fmt, METADATA_EXPORT_FORMATS)
    return f"{filename}.{fmt}"


def render_metadata_csv(rows):
    """CSV with the first row's keys as a bare header; every value quoted, quotes doubled."""
    rows = list(rows or [])
    if not rows:
        return ""
    fields = list(rows[0].keys())
    buf = io.StringIO()
    buf.write(",".join(fields) + "\n")
    writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")
    for row in rows:
        writer.writerow(["" if row.get(k) is None else row.get(k) for k in fields])
    return buf.getvalue().rstrip("\n")


def render_metadata(rows, fmt):
    fmt = _check_format(fmt, METADATA_EXPORT_FORMATS)
    if fmt == "json":
        return json_dumps(list(rows or []))
    return render_metadata_csv(rows)


def write_text(path, text):
    with open(path, "w", encoding="utf-8", newline="") as f:
        f.write(text or "")
    return path
