class QueryFacade:
    """Single read/write path over the storage engine.

    Every mutation is followed by a full snapshot persist; reads hit the live
    in-memory image and never persist.
    """

    def __init__(self, engine):
        self.engine = engine

    def run(self, sql, params=()):
        self.engine.execute(sql, params)
        last_id = self.engine.last_insert_id()
        self.engine.persist()
        # ``changes`` reports call success, not the affected row count.
        return {"id": last_id, "changes": 1}

    def all(self, sql, params=()):
        return self.engine.query_all(sql, params)

    def get(self, sql, params=()):
        rows = self.all(sql, params)
        return rows[0] if rows else None
