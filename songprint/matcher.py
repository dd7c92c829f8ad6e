"""
Offset-alignment voting.

A single shared hash is weak evidence: unrelated songs collide on codes all the
time. What they do not share is a consistent time shift. For every query hash
found in the index we vote for (song_id, stored_offset - query_offset); the
song/offset pair with the most votes wins.
"""

from collections import Counter, defaultdict
from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Sequence, Tuple, Union

from .config import CHUNK_SIZE, MATCH_THRESHOLD, SAMPLE_RATE
from .index import FingerprintIndex

Votes = Dict[int, Counter]


@dataclass(frozen=True)
class Matched:
    song_id: int
    confidence: int
    offset: int
    song_name: Optional[str] = None

    matched = True

    @property
    def offset_seconds(self) -> float:
        """Start of the query inside the song, in seconds."""
        return self.offset * CHUNK_SIZE / SAMPLE_RATE

    def __str__(self) -> str:
        label = self.song_name if self.song_name is not None else f"song {self.song_id}"
        return f"Match found: {label} with {self.confidence} matching points"


@dataclass(frozen=True)
class NoMatch:
    matched = False

    def __str__(self) -> str:
        return "No match found"


MatchResult = Union[Matched, NoMatch]


class Matcher:
    def __init__(self, index: FingerprintIndex, threshold: int = MATCH_THRESHOLD):
        self.index = index
        self.threshold = threshold

    def vote(self, query: Iterable[Tuple[int, int]]) -> Votes:
        """
        query:   (query_offset, code) pairs
        returns: song_id -> Counter(delta -> votes), delta = stored_offset - query_offset
        """
        votes: Votes = defaultdict(Counter)
        with self.index.read() as view:
            for query_offset, code in query:
                for song_id, stored_offset in view.lookup(code):
                    votes[song_id][stored_offset - query_offset] += 1
        return votes

    @staticmethod
    def best(votes: Votes) -> Tuple[Optional[int], int, int]:
        """
        Highest (song_id, delta) bin as (song_id, count, delta).
        Ties go to the lowest song id, then the lowest delta.
        """
        best_song, best_count, best_delta = None, 0, 0
        for song_id in sorted(votes):
            for delta, count in sorted(votes[song_id].items()):
                if count > best_count:
                    best_song, best_count, best_delta = song_id, count, delta
        return best_song, best_count, best_delta

    def match(self, query: Iterable[Tuple[int, int]]) -> MatchResult:
        song_id, count, delta = self.best(self.vote(query))
        if song_id is not None and count >= self.threshold:
            return Matched(song_id=song_id, confidence=count, offset=delta)
        return NoMatch()

    def match_codes(self, codes: Sequence[int]) -> MatchResult:
        """Match a plain code sequence; query offsets are positions in `codes`."""
        return self.match(enumerate(codes))
