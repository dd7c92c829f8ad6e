import dataclasses
import logging
import threading
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from tqdm import tqdm

from .audio import cut_audio, inject_noise, load_pcm
from .base import BaseSongRecognizer
from .config import CHUNK_SIZE, DB_PATH
from .db import FingerprintStore
from .errors import AudioDecodeError
from .hashing import Samples, extract_fingerprints
from .index import FingerprintIndex
from .matcher import Matched, Matcher, MatchResult

logger = logging.getLogger(__name__)


class Timer:
    """Context manager for timing code blocks, logged at debug level."""

    def __init__(self, debug: bool = False):
        self.debug = debug
        self.timings: Dict[str, float] = {}

    @contextmanager
    def measure(self, label: str):
        """Time a block of code and optionally log the result."""
        start = time.perf_counter()
        yield
        elapsed = time.perf_counter() - start
        self.timings[label] = elapsed
        if self.debug:
            logger.debug("%s: %.4fs", label, elapsed)

    def log(self, message: str):
        if self.debug:
            logger.debug(message)

    @property
    def total(self) -> float:
        return sum(self.timings.values())


class SongRecognizer(BaseSongRecognizer):
    """
    Frame-peak fingerprinting with offset-alignment voting.

    Owns the store (catalog + persisted fingerprints), the in-memory index that
    mirrors it and the matcher reading from that index.
    """

    def __init__(self, db_path: str = DB_PATH):
        """
        Args:
            db_path: Path to the SQLite database (":memory:" for a throwaway one)
        """
        self.db_path = str(db_path)
        self.store = FingerprintStore(self.db_path)
        self.index = FingerprintIndex(store=self.store)
        self.matcher = Matcher(self.index)
        self._loaded = False
        self._load_lock = threading.Lock()

    @property
    def name(self) -> str:
        return "songprint"

    @property
    def num_indexed_songs(self) -> int:
        return self.store.count_songs()

    def load(self, progress: bool = False) -> None:
        """Fill the in-memory index from the store. Only done once."""
        with self._load_lock:
            if self._loaded:
                return
            self.index.load_from_store(progress=progress)
            self._loaded = True

    def close(self) -> None:
        self.store.close()

    def __enter__(self) -> "SongRecognizer":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def list_songs(self) -> List[Tuple[int, str]]:
        return self.store.get_all_songs()

    def index_samples(self, name: str, samples: Samples, path: Optional[str] = None) -> Optional[int]:
        """
        Fingerprint raw PCM and register it under a new song id.

        The catalog entry and its fingerprints are stored together, so a failed
        call leaves nothing behind and can be retried.

        Returns:
            The new song id, or None if `name` is already in the catalog
        """
        fingerprints = extract_fingerprints(samples)
        # the index must mirror the store before we append to it
        self.load()
        song_id = self.index.add_song(name, fingerprints, path=path)
        if song_id is None:
            logger.debug("Song '%s' is already indexed, skipping", name)
            return None
        logger.info("Added song '%s' (id %d, %d fingerprints)", name, song_id, len(fingerprints))
        return song_id

    def index_song(self, audio_path: Path, name: Optional[str] = None) -> Optional[int]:
        """Add a single song to the database. Names already in the catalog are skipped."""
        audio_path = Path(audio_path)
        song_name = name or audio_path.stem
        # saves decoding; index_samples settles races on the name
        if self.store.get_song_id(song_name) is not None:
            logger.debug("Song '%s' is already indexed, skipping", song_name)
            return None

        samples = load_pcm(audio_path)
        return self.index_samples(song_name, samples, path=str(audio_path))

    def index_folder(self, folder: Path, pattern: str = "*.wav") -> int:
        """Index all songs in a folder. Files that fail to decode are logged and skipped."""
        audio_paths = sorted(Path(folder).glob(pattern))
        count = 0
        for audio_path in tqdm(audio_paths, desc="Indexing songs", unit="song"):
            try:
                if self.index_song(audio_path) is not None:
                    count += 1
            except AudioDecodeError as e:
                logger.warning("Skipping %s: %s", audio_path.name, e)
        return count

    def identify_samples(self, samples: Samples, debug: bool = False) -> MatchResult:
        """Match raw PCM against the index."""
        timer = Timer(debug=debug)
        self.load()

        with timer.measure("Extract fingerprints"):
            fingerprints = extract_fingerprints(samples)

        with timer.measure("Hash matching and voting"):
            result = self.matcher.match_codes(fingerprints)

        timer.log(f"  Query fingerprints: {len(fingerprints)}")

        if isinstance(result, Matched):
            with timer.measure("Lookup"):
                result = dataclasses.replace(
                    result, song_name=self.store.get_song_name(result.song_id))

        timer.log(f"Total recognition time: {timer.total:.4f}s")
        return result

    def recognize(
        self,
        query_path: Path,
        clip_length_sec: Optional[float] = None,
        snr_db: Optional[float] = None,
        debug: bool = False,
    ) -> MatchResult:
        """
        Recognize a song from an audio file.

        Args:
            query_path: Path to the audio file to recognize
            clip_length_sec: Optional clip length in seconds
            snr_db: Optional SNR for noise injection
            debug: If True, log timing information for each step
        """
        samples = load_pcm(query_path)

        if clip_length_sec is not None:
            samples = cut_audio(samples, clip_length_sec, align=CHUNK_SIZE)

        if snr_db is not None:
            samples = inject_noise(samples, snr_db)

        return self.identify_samples(samples, debug=debug)
