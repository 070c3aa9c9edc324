import logging
import sqlite3

from .schema import SEED_SETTING_SQL, SEED_SETTINGS, TABLES

logger = logging.getLogger("CreatorTank")


class SchemaManager:
    """Brings any historical database image up to the current schema.

    There is no version table: each table is created if absent, then every
    later column is probed with a narrow SELECT and added when the probe
    fails. Running it against an already-current image changes nothing.
    """

    def __init__(self, engine, tables=TABLES):
        self.engine = engine
        self.tables = tables

    def migrate(self):
        applied = []
        for table in self.tables:
            self.engine.execute(table.create_sql)
            for migration in table.migrations:
                if self._has_column(table.name, migration.column):
                    continue
                logger.info("Migrating %s table: adding %s column", table.name, migration.column)
                for stmt in migration.patch:
                    self.engine.execute(stmt)
                applied.append(f"{table.name}.{migration.column}")
        self.seed_settings()
        return applied

    def _has_column(self, table, column):
        try:
            self.engine.query_all(f"SELECT {column} FROM {table} LIMIT 1")
        except sqlite3.OperationalError:
            return False
        return True

    def seed_settings(self):
        # First-run-only per key: existing values are never overwritten.
        for key, value in SEED_SETTINGS:
            self.engine.execute(SEED_SETTING_SQL, (key, value))
