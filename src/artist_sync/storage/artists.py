"""
Thread-safe SQLite store for the artist catalog.

One row per artist name. Rows are only ever inserted or updated; the
reconciliation run never deletes.
"""
import logging
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Generator, Optional

from ..core.exceptions import StoreError
from ..core.models import Artist

logger = logging.getLogger(__name__)


_SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS artists (
    id INTEGER PRIMARY KEY,
    name TEXT NOT NULL UNIQUE,
    playcount INTEGER NOT NULL,
    seed TEXT
)
"""

_UPSERT_SQL = """
INSERT INTO artists (name, playcount, seed) VALUES (?, ?, ?)
ON CONFLICT(name) DO UPDATE SET
    playcount = excluded.playcount,
    seed = excluded.seed
"""


class ArtistStore:
    """
    SQLite-backed artist table.

    Uses a single persistent connection; every public method holds
    self._lock while it talks to the database.
    """

    def __init__(self, db_path: Path) -> None:
        self.db_path = Path(db_path)
        self._lock = threading.Lock()
        self._conn: Optional[sqlite3.Connection] = None

        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StoreError(f"Cannot create database directory: {e}") from e

    @contextmanager
    def _get_connection(self) -> Generator[sqlite3.Connection, None, None]:
        if self._conn is None:
            self._conn = sqlite3.connect(
                str(self.db_path),
                timeout=30.0,
                check_same_thread=False,  # guarded by _lock
            )
            self._conn.row_factory = sqlite3.Row
        yield self._conn

    def close(self) -> None:
        """Close the database connection."""
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None

    def create_schema(self) -> None:
        """Create the artists table if it does not exist."""
        with self._lock:
            try:
                with self._get_connection() as conn:
                    conn.execute(_SCHEMA_SQL)
                    conn.commit()
            except sqlite3.Error as e:
                raise StoreError(f"Failed to create artist schema: {e}") from e
        logger.debug(f"Artist schema ready at {self.db_path}")

    def load_all(self) -> Dict[str, Artist]:
        """Load every stored artist keyed by name."""
        with self._lock:
            try:
                with self._get_connection() as conn:
                    rows = conn.execute(
                        "SELECT name, playcount, seed FROM artists"
                    ).fetchall()
            except sqlite3.Error as e:
                raise StoreError(f"Failed to load artists: {e}") from e

        return {
            row["name"]: Artist(
                name=row["name"], playcount=row["playcount"], seed=row["seed"] or ""
            )
            for row in rows
        }

    def upsert(self, name: str, playcount: int, seed: str) -> None:
        """Insert an artist or replace its playcount and seed."""
        with self._lock:
            try:
                with self._get_connection() as conn:
                    conn.execute(_UPSERT_SQL, (name, playcount, seed))
                    conn.commit()
            except (sqlite3.Error, OverflowError) as e:
                raise StoreError(f"Failed to upsert artist {name!r}: {e}") from e

    def get(self, name: str) -> Optional[Artist]:
        with self._lock:
            try:
                with self._get_connection() as conn:
                    row = conn.execute(
                        "SELECT name, playcount, seed FROM artists WHERE name = ?",
                        (name,),
                    ).fetchone()
            except sqlite3.Error as e:
                raise StoreError(f"Failed to read artist {name!r}: {e}") from e

        if row is None:
            return None
        return Artist(name=row["name"], playcount=row["playcount"], seed=row["seed"] or "")

    def count(self) -> int:
        with self._lock:
            try:
                with self._get_connection() as conn:
                    return conn.execute("SELECT COUNT(*) FROM artists").fetchone()[0]
            except sqlite3.Error as e:
                raise StoreError(f"Failed to count artists: {e}") from e
