"""
SQLite persistence for the song catalog and fingerprint occurrences.
"""

import logging
import sqlite3
import threading
from contextlib import contextmanager
from typing import Iterator, List, Optional, Sequence, Tuple

from .config import DB_PATH, INSERT_BATCH_SIZE, LOAD_BATCH_SIZE
from .errors import StoreUnavailableError

logger = logging.getLogger(__name__)

FingerprintRow = Tuple[int, int, int]  # (hash, song_id, time_offset)

_SCHEMA = (
    """CREATE TABLE IF NOT EXISTS songs (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL,
        path TEXT,
        added_on TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )""",
    """CREATE TABLE IF NOT EXISTS fingerprints (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        hash BIGINT NOT NULL,
        song_id INTEGER NOT NULL,
        time_offset INTEGER NOT NULL,
        FOREIGN KEY (song_id) REFERENCES songs(id)
    )""",
    "CREATE INDEX IF NOT EXISTS idx_fingerprints_hash ON fingerprints (hash)",
    # one catalog entry per name, also across processes sharing the file
    "CREATE UNIQUE INDEX IF NOT EXISTS idx_songs_name ON songs (name)",
)


class FingerprintStore:
    """
    Song catalog (id <-> name) and fingerprint occurrence table.

    One connection shared between threads, serialized by a lock.
    Any sqlite3 failure surfaces as StoreUnavailableError.
    """

    def __init__(self, path: str = DB_PATH):
        self.path = str(path)
        self._lock = threading.RLock()
        with self._guard("open database"):
            self._conn = sqlite3.connect(self.path, check_same_thread=False)
            for statement in _SCHEMA:
                self._conn.execute(statement)
            self._conn.commit()
        logger.debug("Opened fingerprint store at %s", self.path)

    @contextmanager
    def _guard(self, action: str):
        try:
            yield
        except sqlite3.Error as e:
            raise StoreUnavailableError(f"Could not {action} ({self.path}): {e}") from e

    def _insert_fingerprints(self, song_id: int, codes: Sequence[int]) -> None:
        # caller holds the lock and the open transaction
        rows = [(int(h), song_id, t) for t, h in enumerate(codes)]
        for i in range(0, len(rows), INSERT_BATCH_SIZE):
            self._conn.executemany(
                "INSERT INTO fingerprints (hash, song_id, time_offset) VALUES (?, ?, ?)",
                rows[i:i + INSERT_BATCH_SIZE],
            )

    def add_song(self, name: str, path: Optional[str] = None,
                 codes: Sequence[int] = ()) -> Optional[int]:
        """
        Insert a catalog entry together with its fingerprint codes.

        The song row and its codes are committed in one transaction: a failure
        leaves neither behind, so the call can simply be retried.

        Returns:
            The new song id, or None if `name` is already in the catalog
        """
        with self._lock, self._guard("add song"):
            try:
                # the connection context manager commits, or rolls back on error
                with self._conn:
                    cur = self._conn.execute(
                        "INSERT INTO songs (name, path) VALUES (?, ?)", (name, path))
                    song_id = int(cur.lastrowid)
                    self._insert_fingerprints(song_id, codes)
            except sqlite3.IntegrityError:
                logger.debug("Song '%s' is already in the catalog", name)
                return None
        logger.debug("Stored song %d with %d fingerprints", song_id, len(codes))
        return song_id

    def add_fingerprints(self, song_id: int, codes: Sequence[int]) -> None:
        """Persist codes for an existing song; offsets are positions in `codes`. All or nothing."""
        with self._lock, self._guard("add fingerprints"):
            with self._conn:
                self._insert_fingerprints(song_id, codes)
        logger.debug("Stored %d fingerprints for song %d", len(codes), song_id)

    def iter_fingerprints(self) -> Iterator[FingerprintRow]:
        """Stream the whole occurrence table."""
        with self._lock, self._guard("read fingerprints"):
            cur = self._conn.execute("SELECT hash, song_id, time_offset FROM fingerprints")
            while True:
                batch = cur.fetchmany(LOAD_BATCH_SIZE)
                if not batch:
                    break
                yield from batch

    def get_all_songs(self) -> List[Tuple[int, str]]:
        with self._lock, self._guard("list songs"):
            return [(int(i), n) for i, n in
                    self._conn.execute("SELECT id, name FROM songs ORDER BY id")]

    def get_song_name(self, song_id: int) -> Optional[str]:
        with self._lock, self._guard("read song"):
            row = self._conn.execute(
                "SELECT name FROM songs WHERE id = ?", (song_id,)).fetchone()
        return row[0] if row else None

    def get_song_id(self, name: str) -> Optional[int]:
        """Lowest id registered under `name`, or None."""
        with self._lock, self._guard("read song"):
            row = self._conn.execute(
                "SELECT id FROM songs WHERE name = ? ORDER BY id LIMIT 1", (name,)).fetchone()
        return int(row[0]) if row else None

    def count_songs(self) -> int:
        with self._lock, self._guard("count songs"):
            return int(self._conn.execute("SELECT COUNT(*) FROM songs").fetchone()[0])

    def close(self) -> None:
        with self._lock, self._guard("close database"):
            self._conn.close()

    def __enter__(self) -> "FingerprintStore":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
