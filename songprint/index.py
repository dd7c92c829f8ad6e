"""
In-memory fingerprint index: code -> occurrences (song_id, frame offset).

Mirrors the persistent store: bulk-loaded once at startup, written through on insert.
"""

import logging
import threading
from collections import defaultdict
from contextlib import contextmanager
from typing import TYPE_CHECKING, Dict, Iterable, Iterator, List, NamedTuple, Optional, Sequence, Set, Tuple

from tqdm import tqdm

if TYPE_CHECKING:
    from .db import FingerprintStore

logger = logging.getLogger(__name__)


class Occurrence(NamedTuple):
    song_id: int
    offset: int


class _ReadWriteLock:
    """
    Many concurrent readers or one writer.

    Writer-preferring: once a writer is waiting, new readers queue behind it,
    so a steady stream of queries cannot hold off an insert. Not reentrant.
    """

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @contextmanager
    def read(self):
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write(self):
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


class IndexView:
    """Lookups against the index while the caller holds its read lock."""

    def __init__(self, table: Dict[int, List[Occurrence]]):
        self._table = table

    def lookup(self, code: int) -> Tuple[Occurrence, ...]:
        occurrences = self._table.get(code)
        return tuple(occurrences) if occurrences else ()


class FingerprintIndex:
    """
    Content-addressed index of fingerprint codes.

    Colliding codes are expected; every occurrence is kept and the matcher sorts
    them out. Inserting the same song twice duplicates its occurrences.
    """

    def __init__(self, store: Optional["FingerprintStore"] = None):
        self.store = store
        self._table: Dict[int, List[Occurrence]] = defaultdict(list)
        self._songs: Set[int] = set()
        self._num_occurrences = 0
        self._lock = _ReadWriteLock()

    @contextmanager
    def read(self) -> Iterator[IndexView]:
        """
        Hold a consistent view across several lookups:

            with index.read() as view:
                view.lookup(code)

        Use the view, not index.lookup, inside the block.
        """
        with self._lock.read():
            yield IndexView(self._table)

    def lookup(self, code: int) -> Tuple[Occurrence, ...]:
        with self.read() as view:
            return view.lookup(code)

    def insert(self, song_id: int, codes: Sequence[int]) -> None:
        """
        Add one song's fingerprint sequence; offsets are positions in `codes`.

        Written to the store first (if any). Readers see either none or all of
        the song's occurrences.
        """
        if self.store is not None:
            self.store.add_fingerprints(song_id, codes)
        self._apply(song_id, codes)

    def add_song(self, name: str, codes: Sequence[int], path: Optional[str] = None) -> Optional[int]:
        """
        Register a new catalog entry and its codes in one store transaction,
        then index them.

        Returns:
            The new song id, or None if `name` is already in the catalog
        """
        if self.store is None:
            raise RuntimeError("FingerprintIndex has no store to register songs in")
        song_id = self.store.add_song(name, path, codes)
        if song_id is not None:
            self._apply(song_id, codes)
        return song_id

    def _apply(self, song_id: int, codes: Sequence[int]) -> None:
        grouped: Dict[int, List[Occurrence]] = defaultdict(list)
        for offset, code in enumerate(codes):
            grouped[int(code)].append(Occurrence(song_id, offset))

        with self._lock.write():
            for code, occurrences in grouped.items():
                self._table[code].extend(occurrences)
            self._songs.add(song_id)
            self._num_occurrences += len(codes)
        logger.debug("Indexed song %d: %d codes (%d distinct)", song_id, len(codes), len(grouped))

    def load(self, rows: Iterable[Tuple[int, int, int]], progress: bool = False) -> int:
        """
        Bulk load (code, song_id, offset) rows. Order does not matter.

        Returns:
            Number of rows loaded
        """
        count = 0
        with self._lock.write():
            for code, song_id, offset in tqdm(rows, desc="Loading fingerprints",
                                              unit="fp", disable=not progress):
                self._table[int(code)].append(Occurrence(int(song_id), int(offset)))
                self._songs.add(int(song_id))
                count += 1
            self._num_occurrences += count
        return count

    def load_from_store(self, progress: bool = False) -> int:
        if self.store is None:
            raise RuntimeError("FingerprintIndex has no store to load from")
        count = self.load(self.store.iter_fingerprints(), progress=progress)
        logger.info("Loaded %d fingerprints (%d songs) from %s", count, len(self._songs), self.store.path)
        return count

    def song_ids(self) -> Set[int]:
        with self._lock.read():
            return set(self._songs)

    @property
    def num_occurrences(self) -> int:
        return self._num_occurrences

    def __len__(self) -> int:
        return len(self._table)

    def __contains__(self, code: int) -> bool:
        return code in self._table
