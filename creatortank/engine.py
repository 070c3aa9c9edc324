"""In-memory SQLite image backed by a single file.

The whole database lives in an in-memory connection. ``open()`` loads it from
``path`` (or starts empty) and ``persist()`` writes a full snapshot back. The
snapshot goes to a sibling temp file first and is swapped in with
``os.replace`` so an interrupted write never leaves a half-written image.
"""

import logging
import os
import sqlite3

logger = logging.getLogger("CreatorTank")


class StorageEngine:
    def __init__(self, path):
        self.path = str(path)
        self._conn = None

    @property
    def is_open(self):
        return self._conn is not None

    def open(self):
        if self._conn is not None:
            return
        os.makedirs(os.path.dirname(os.path.abspath(self.path)), exist_ok=True)

        # Autocommit: every statement commits on its own.
        conn = sqlite3.connect(":memory:", isolation_level=None, check_same_thread=False)
        try:
            if os.path.exists(self.path):
                source = sqlite3.connect(self.path)
                try:
                    source.backup(conn)
                finally:
                    source.close()
                # backup() succeeds on garbage files; force a read so they fail here.
                conn.execute("SELECT count(*) FROM sqlite_master").fetchone()
                logger.info("Database loaded from file: %s", self.path)
            else:
                logger.info("Created new database in memory (will persist to %s)", self.path)
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA foreign_keys = ON")
        except Exception:
            conn.close()
            raise
        self._conn = conn

    def close(self):
        if self._conn is None:
            return
        self._conn.close()
        self._conn = None

    def _require(self):
        if self._conn is None:
            raise RuntimeError("Database not initialized")
        return self._conn

    def execute(self, sql, params=()):
        self._require().execute(sql, tuple(params))

    def query_all(self, sql, params=()):
        cur = self._require().execute(sql, tuple(params))
        try:
            return [dict(row) for row in cur.fetchall()]
        finally:
            cur.close()

    def query_one(self, sql, params=()):
        rows = self.query_all(sql, params)
        return rows[0] if rows else None

    def last_insert_id(self):
        row = self._require().execute("SELECT last_insert_rowid()").fetchone()
        return int(row[0]) if row else 0

    def persist(self):
        """Write the current image to ``path``. Returns False (and logs) on failure."""
        conn = self._require()
        tmp_path = self.path + ".tmp"
        try:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            target = sqlite3.connect(tmp_path)
            try:
                conn.backup(target)
            finally:
                target.close()
            os.replace(tmp_path, self.path)
        except (OSError, sqlite3.Error):
            logger.exception("Failed to save DB: %s", self.path)
            return False
        return True
