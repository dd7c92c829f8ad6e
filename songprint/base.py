"""
Base interface for song recognizers.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional, Tuple

from .matcher import MatchResult


class BaseSongRecognizer(ABC):
    """
    Abstract base class for song recognition systems.

    Front ends (HTTP app, CLI scripts) only talk to this interface.
    """

    @abstractmethod
    def index_song(self, audio_path: Path, name: Optional[str] = None) -> Optional[int]:
        """
        Add a single song to the catalog and index.

        Args:
            audio_path: Path to the audio file to index
            name: Display name (default: file name without extension)

        Returns:
            The new song id, or None if a song with that name is already indexed
        """
        pass

    @abstractmethod
    def index_folder(self, folder: Path, pattern: str = "*.wav") -> int:
        """
        Index all songs in a folder matching the given pattern.

        Returns:
            Number of songs successfully indexed
        """
        pass

    @abstractmethod
    def recognize(
        self,
        query_path: Path,
        clip_length_sec: Optional[float] = None,
        snr_db: Optional[float] = None,
    ) -> MatchResult:
        """
        Recognize a song from an audio query.

        Args:
            query_path: Path to the query audio file
            clip_length_sec: Optional clip length to use (for testing with shorter clips)
            snr_db: Optional SNR in dB for noise injection (for testing robustness)
        """
        pass

    @abstractmethod
    def load(self) -> None:
        """Load the index from persistent storage."""
        pass

    @abstractmethod
    def list_songs(self) -> List[Tuple[int, str]]:
        """Return (song_id, name) for every catalog entry."""
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the name of this recognition approach."""
        pass

    @property
    @abstractmethod
    def num_indexed_songs(self) -> int:
        """Return the number of songs currently indexed."""
        pass
