"""
PostGIS destination for city wall line strings

The table is dropped and recreated at the start of every run. All rows of a
run are inserted in one transaction that is committed once at the end, so a
failed run leaves the fresh, empty table behind.
"""

from contextlib import contextmanager
from typing import Iterator, Optional

import psycopg2
from loguru import logger

from .config import DatabaseConfig
from .errors import StoreError


PREPARED_INSERT = "cwall_insert"


class LoadTransaction:
    """Inserts rows through the prepared statement of an open transaction"""
    
    def __init__(self, cursor):
        self._cursor = cursor
        self.inserted = 0
    
    def insert(self, name: Optional[str], geometry_wkt: str):
        self._cursor.execute(f"EXECUTE {PREPARED_INSERT} (%s, %s)", (name, geometry_wkt))
        self.inserted += 1


class PostgisStore:
    """
    Destination table in a PostGIS database
    
    Usage:
        with PostgisStore(config.database) as store:
            store.reset_schema()
            with store.transaction() as tx:
                tx.insert("Stadtmauer", "LineString(7.0 50.0,7.1 50.1)")
    """
    
    def __init__(self, db_config: Optional[DatabaseConfig] = None):
        self.config = db_config or DatabaseConfig()
        self.table = self.config.table
        self._conn = None
    
    def connect(self):
        if self._conn is not None:
            return self._conn
        logger.info(f"Connecting to PostGIS at {self.config.host}:{self.config.port}/{self.config.dbname}")
        try:
            self._conn = psycopg2.connect(**self.config.dsn())
        except psycopg2.Error as e:
            raise StoreError(f"Could not connect to {self.config.dbname}: {e}") from e
        return self._conn
    
    def close(self):
        if self._conn is not None:
            self._conn.close()
            self._conn = None
    
    def __enter__(self):
        self.connect()
        return self
    
    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False
    
    def reset_schema(self):
        """Drop the destination table if it exists and create it again"""
        conn = self.connect()
        try:
            with conn.cursor() as cur:
                cur.execute(f"DROP TABLE IF EXISTS {self.table}")
                cur.execute(
                    f"""
                    CREATE TABLE {self.table} (
                        id SERIAL PRIMARY KEY,
                        name TEXT,
                        geo GEOMETRY NOT NULL
                    )
                    """
                )
                cur.execute(f"CREATE INDEX {self.table}_geo_idx ON {self.table} USING GIST (geo)")
            conn.commit()
        except psycopg2.Error as e:
            self._rollback()
            raise StoreError(f"Failed to recreate table {self.table}: {e}") from e
        logger.info(f"Recreated table {self.table}")
    
    @contextmanager
    def transaction(self) -> Iterator[LoadTransaction]:
        """
        Open the load transaction
        
        Commits once when the block exits normally. Any exception inside
        the block, or a failed commit, rolls everything back.
        
        Raises:
            StoreError: If a statement or the commit fails
        """
        conn = self.connect()
        cur = conn.cursor()
        try:
            cur.execute(
                f"PREPARE {PREPARED_INSERT} (text, text) AS "
                f"INSERT INTO {self.table} (name, geo) "
                f"VALUES ($1, ST_GeomFromText($2, {int(self.config.srid)}))"
            )
            tx = LoadTransaction(cur)
            yield tx
            conn.commit()
            logger.info(f"Committed {tx.inserted} rows to {self.table}")
        except psycopg2.Error as e:
            self._rollback()
            raise StoreError(f"Load into {self.table} failed, nothing committed: {e}") from e
        except BaseException:
            self._rollback()
            raise
        finally:
            cur.close()
    
    def _rollback(self):
        try:
            self._conn.rollback()
        except psycopg2.Error as e:
            logger.warning(f"Rollback failed: {e}")
