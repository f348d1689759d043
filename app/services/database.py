"""SQLite storage for movies, directors, actors and their join rows."""

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS directors (
    id   INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL CHECK (length(name) <= 50)
);

CREATE TABLE IF NOT EXISTS actors (
    id   INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL CHECK (length(name) <= 50)
);

CREATE TABLE IF NOT EXISTS movies (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    name        TEXT NOT NULL UNIQUE CHECK (length(name) <= 50),
    director_id INTEGER NOT NULL
);

CREATE TABLE IF NOT EXISTS movie_actors (
    id       INTEGER PRIMARY KEY AUTOINCREMENT,
    movie_id INTEGER NOT NULL,
    actor_id INTEGER NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_movies_director     ON movies(director_id);
CREATE INDEX IF NOT EXISTS idx_movie_actors_movie  ON movie_actors(movie_id);
CREATE INDEX IF NOT EXISTS idx_movie_actors_actor  ON movie_actors(actor_id);
"""


def _casefold(value: str | None) -> str | None:
    return value.casefold() if value is not None else None


class DatabaseService:
    def __init__(self, db_path: Path):
        self._db_path = db_path
        logger.info("DatabaseService initialized with %s", db_path)

    @contextmanager
    def connect(self):
        # isolation_level=None: transactions are opened explicitly by transaction()
        conn = sqlite3.connect(self._db_path, isolation_level=None)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        conn.create_function("casefold", 1, _casefold, deterministic=True)
        try:
            yield conn
        finally:
            conn.close()

    @contextmanager
    def transaction(self):
        """Run a unit of work under BEGIN IMMEDIATE.

        Commits when the block exits normally and rolls back on any
        exception, cancellation included. The write lock is taken up front so
        reads made inside the block cannot be invalidated by another writer
        before the commit.
        """
        with self.connect() as conn:
            conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
            except BaseException:
                if conn.in_transaction:
                    conn.execute("ROLLBACK")
                logger.warning("Transaction rolled back")
                raise
            conn.execute("COMMIT")

    def initialise(self) -> None:
        with self.connect() as conn:
            conn.executescript(SCHEMA_SQL)
        logger.info("Schema ready at %s", self._db_path)

    def health_check(self) -> bool:
        try:
            with self.connect() as conn:
                conn.execute("SELECT 1 FROM movies LIMIT 1")
            return True
        except Exception:
            logger.exception("Database health check failed")
            return False
