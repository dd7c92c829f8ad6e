"""
songprint - audio content search

Identifies an unknown clip by comparing frame fingerprints against a catalog:
1. Split signed 8-bit mono PCM into 4096-sample frames
2. FFT every frame and pick the strongest bin in 4 frequency bands
3. Pack the quantized peaks into one code per frame
4. Vote on (song, time offset) pairs for every code found in the index
"""

from .base import BaseSongRecognizer
from .complex_number import Complex
from .config import CHUNK_SIZE, FUZ_FACTOR, MATCH_THRESHOLD, RANGE, SAMPLE_RATE
from .db import FingerprintStore
from .errors import AudioDecodeError, InvalidInputError, SongprintError, StoreUnavailableError
from .fft import fft, fft_array, ifft
from .hashing import extract_fingerprints, fingerprint_frame, hash_points
from .index import FingerprintIndex, Occurrence
from .matcher import Matched, Matcher, MatchResult, NoMatch
from .recognizer import SongRecognizer

__version__ = "0.1.0"

__all__ = [
    'BaseSongRecognizer', 'SongRecognizer',
    'Complex', 'fft', 'ifft', 'fft_array',
    'extract_fingerprints', 'fingerprint_frame', 'hash_points',
    'FingerprintIndex', 'Occurrence', 'FingerprintStore',
    'Matcher', 'Matched', 'NoMatch', 'MatchResult',
    'SongprintError', 'InvalidInputError', 'StoreUnavailableError', 'AudioDecodeError',
    'CHUNK_SIZE', 'FUZ_FACTOR', 'MATCH_THRESHOLD', 'RANGE', 'SAMPLE_RATE',
]
