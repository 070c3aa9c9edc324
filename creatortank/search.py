import logging
import sqlite3

from .constants import SEARCH_LIMIT
from .schema import REBUILD_SQL, SEARCH_INDEX_SQL, SEARCH_TRIGGERS

logger = logging.getLogger("CreatorTank")

_SEARCH_FIELDS = "item_type, item_id, project_id, idea_id, title, content"


class SearchIndex:
    """FTS5 mirror of projects, ideas and scripts, kept in sync by triggers."""

    def __init__(self, engine):
        self.engine = engine
        self.available = False

    def setup(self):
        try:
            self.engine.execute(SEARCH_INDEX_SQL)
            for stmt in SEARCH_TRIGGERS:
                self.engine.execute(stmt)
            # An existing index table still fails here when the FTS5 module is missing.
            if self.count() == 0:
                logger.info("Populating initial search index...")
                self.rebuild()
        except sqlite3.Error as exc:
            logger.warning("FTS5 search index unavailable, full-text search disabled: %s", exc)
            self.available = False
            return False

        self.available = True
        return True

    def count(self):
        row = self.engine.query_one("SELECT count(*) AS count FROM search_index")
        return int(row["count"]) if row else 0

    def rebuild(self):
        logger.info("Rebuilding search index...")
        for stmt in REBUILD_SQL:
            self.engine.execute(stmt)

    def entries(self):
        return self.engine.query_all(
            f"SELECT {_SEARCH_FIELDS} FROM search_index ORDER BY item_type, item_id"
        )


def build_match_query(text):
    """Prefix-matching conjunction: ``foo "bar`` -> ``foo* AND ""bar*``."""
    escaped = text.replace('"', '""')
    return " AND ".join(f"{token}*" for token in escaped.split())


class SearchPlanner:
    def __init__(self, engine, index=None, limit=SEARCH_LIMIT):
        self.engine = engine
        self.index = index
        self.limit = limit

    def search(self, text):
        q = (text or "").strip()
        if not q:
            return []

        if self.index is not None and not self.index.available:
            return self._search_like(q)

        fts_q = build_match_query(q)
        try:
            rows = self._search_match(fts_q)
        except sqlite3.Error as exc:
            logger.warning("FTS search error, falling back to LIKE: %s", exc)
            return self._search_like(q)
        logger.debug("FTS rows=%d q=%r", len(rows), fts_q)
        return rows

    def _search_match(self, fts_q):
        return self.engine.query_all(
            f"""
            SELECT {_SEARCH_FIELDS}
            FROM search_index
            WHERE search_index MATCH ?
            ORDER BY rank
            LIMIT ?
            """,
            (fts_q, int(self.limit)),
        )

    def _search_like(self, q):
        like_q = f"%{q}%"
        try:
            rows = self.engine.query_all(
                f"""
                SELECT {_SEARCH_FIELDS}
                FROM search_index
                WHERE title LIKE ? OR content LIKE ?
                LIMIT ?
                """,
                (like_q, like_q, int(self.limit)),
            )
        except sqlite3.OperationalError as exc:
            logger.warning("LIKE search failed, no search index present: %s", exc)
            return []
        logger.debug("LIKE rows=%d", len(rows))
        return rows
