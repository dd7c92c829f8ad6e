from array import array

import numpy as np
import pytest

from conftest import random_pcm, tone_frame
from songprint.config import CHUNK_SIZE
from songprint.errors import InvalidInputError
from songprint.hashing import (band_peaks, extract_fingerprints, fingerprint_frame,
                               hash_points, quantize)


def test_quantize_rounds_down_to_fuzz_multiple():
    assert quantize(43) == 42
    assert quantize(42) == 42
    assert quantize(81, fuzz=4) == 80


def test_hash_points_layout():
    # q3 * 10^8 + q2 * 10^5 + q1 * 10^2 + q0
    assert hash_points([42, 90, 130, 200]) == 20013009042
    assert hash_points([43, 91, 131, 201]) == 20013009042
    assert hash_points([0, 0, 0, 0]) == 0
    assert hash_points([1, 2, 3]) == 0


def test_band_peaks_ties_keep_lowest_bin():
    mags = [0.0] * CHUNK_SIZE
    mags[50] = mags[60] = 3.0
    mags[100] = 1.0
    mags[101] = 2.0
    assert band_peaks(mags) == [50, 101, 0, 0]


def test_fingerprint_of_tones():
    frame = tone_frame([42, 90, 130, 200])
    assert fingerprint_frame(frame) == 20013009042
    assert extract_fingerprints(frame) == [20013009042]


def test_silence_hashes_to_zero():
    assert extract_fingerprints(np.zeros(2 * CHUNK_SIZE, dtype=np.int8)) == [0, 0]


def test_quantization_invariance():
    a = tone_frame([42, 90, 130, 200])
    b = tone_frame([43, 91, 131, 201])
    assert extract_fingerprints(a) == extract_fingerprints(b)
    c = tone_frame([44, 90, 130, 200])
    assert extract_fingerprints(a) != extract_fingerprints(c)


@pytest.mark.parametrize("k, r", [(0, 0), (0, 4095), (1, 0), (3, 17), (5, 4095)])
def test_frame_count(k, r):
    assert len(extract_fingerprints(random_pcm(k, extra=r))) == k


def test_batched_path_matches_per_frame_path():
    pcm = random_pcm(3, seed=7)
    frames = pcm.reshape(3, CHUNK_SIZE)
    expected = [fingerprint_frame(f) for f in frames]
    assert extract_fingerprints(pcm) == expected
    # batch boundaries do not change the result
    assert extract_fingerprints(pcm, batch_frames=2) == expected


def test_deterministic_and_accepts_bytes():
    pcm = random_pcm(4, seed=3)
    first = extract_fingerprints(pcm)
    assert extract_fingerprints(pcm.copy()) == first
    assert extract_fingerprints(pcm.tobytes()) == first
    assert extract_fingerprints(bytearray(pcm.tobytes())) == first


def test_short_buffer_gives_no_fingerprints():
    assert extract_fingerprints(b"") == []
    assert extract_fingerprints(b"\x01" * (CHUNK_SIZE - 1)) == []


@pytest.mark.parametrize("bad", [
    np.zeros(CHUNK_SIZE, dtype=np.int16),
    np.zeros((2, CHUNK_SIZE), dtype=np.int8),
    [0] * CHUNK_SIZE,
    memoryview(array("h", [0] * CHUNK_SIZE)),
])
def test_rejects_other_layouts(bad):
    with pytest.raises(InvalidInputError):
        extract_fingerprints(bad)


def test_byte_sized_memoryview_is_accepted():
    pcm = random_pcm(3, seed=2)
    assert extract_fingerprints(memoryview(pcm.tobytes())) == extract_fingerprints(pcm)
