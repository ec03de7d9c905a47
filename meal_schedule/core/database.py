"""
Database connection and schema management
A single DuckDB file holds the stored schedules and the operation log.
"""

import duckdb
from pathlib import Path
import json
from datetime import datetime
from typing import Any, Dict, Optional, Generator
from contextlib import contextmanager
import threading

from .exceptions import DatabaseError, ConcurrencyError
from ..config.settings import settings

SCHEMA_SQL = r"""
CREATE TABLE IF NOT EXISTS schedules (
  residence_id TEXT PRIMARY KEY,
  graph_json JSON NOT NULL,
  version INTEGER NOT NULL DEFAULT 0,
  updated_by TEXT,
  updated_at TIMESTAMP DEFAULT now()
);

CREATE SEQUENCE IF NOT EXISTS logs_id_seq;
CREATE TABLE IF NOT EXISTS logs (
  log_id INTEGER DEFAULT nextval('logs_id_seq') PRIMARY KEY,
  residence_id TEXT,
  actor_id TEXT,
  action TEXT,
  detail_json JSON,
  created_at TIMESTAMP DEFAULT now()
);

CREATE INDEX IF NOT EXISTS idx_logs_residence ON logs(residence_id);
CREATE INDEX IF NOT EXISTS idx_logs_action ON logs(action);
"""


class DatabaseManager:
    """Database manager wrapping every DuckDB operation"""

    def __init__(self, db_path: Optional[str] = None):
        self._connection: Optional[duckdb.DuckDBPyConnection] = None
        self._lock = threading.RLock()
        self.db_path = db_path or self._get_db_path_from_settings()

    def _get_db_path_from_settings(self) -> str:
        """Resolve the database path from settings"""
        db_url = settings.database_url
        if db_url.startswith("duckdb://"):
            return db_url.replace("duckdb://", "")
        return db_url

    @property
    def connection(self) -> duckdb.DuckDBPyConnection:
        """Lazily opened connection"""
        if self._connection is None:
            if self.db_path != ":memory:":
                Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
            self._connection = duckdb.connect(self.db_path)
            self._init_schema()
        return self._connection

    def get_connection(self) -> duckdb.DuckDBPyConnection:
        return self.connection

    def _init_schema(self):
        """Create tables and indexes"""
        try:
            self._connection.execute(SCHEMA_SQL)
        except Exception as e:
            raise DatabaseError(f"Failed to initialize schema: {e}")

    @contextmanager
    def transaction(self) -> Generator[duckdb.DuckDBPyConnection, None, None]:
        """
        Transaction context manager

        Application errors raised inside the block roll back and propagate
        unchanged; anything else is wrapped in DatabaseError.
        """
        with self._lock:
            conn = self.connection
            try:
                conn.execute("BEGIN")
                yield conn
                conn.execute("COMMIT")
            except Exception as e:
                try:
                    conn.execute("ROLLBACK")
                except duckdb.Error:
                    pass  # nothing left to roll back

                if isinstance(e, ConcurrencyError):
                    raise
                if "conflict" in str(e).lower() or "serialization" in str(e).lower():
                    raise ConcurrencyError("Schedule is being modified concurrently, retry later")
                raise DatabaseError(f"Database operation failed: {e}")

    def init_database(self):
        """Initialize the database"""
        self.connection.execute(SCHEMA_SQL)

    def execute_query(self, query: str, params: list = None) -> list:
        """Run a query and return every row"""
        try:
            with self._lock:
                con = self.get_connection()
                if params:
                    return con.execute(query, params).fetchall()
                return con.execute(query).fetchall()
        except Exception as e:
            raise DatabaseError(f"Query execution failed: {e}")

    def execute_one(self, query: str, params: list = None) -> Optional[tuple]:
        """Run a query and return the first row"""
        try:
            with self._lock:
                con = self.get_connection()
                if params:
                    return con.execute(query, params).fetchone()
                return con.execute(query).fetchone()
        except Exception as e:
            raise DatabaseError(f"Query execution failed: {e}")

    def log_operation(
        self,
        action: str,
        residence_id: Optional[str] = None,
        actor_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        conn: Optional[duckdb.DuckDBPyConnection] = None,
    ):
        """Write one row to the operation log"""
        with self._lock:
            target = conn or self.get_connection()
            target.execute(
                """
                INSERT INTO logs (residence_id, actor_id, action, detail_json, created_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                [
                    residence_id,
                    actor_id,
                    action,
                    json.dumps(details or {}, ensure_ascii=False),
                    datetime.now().isoformat(),
                ]
            )

    def close(self):
        if self._connection is not None:
            self._connection.close()
            self._connection = None


# Global database manager instance
db_manager = DatabaseManager()
