import math
from typing import List, Sequence, Union

import numpy as np

from .complex_number import Complex
from .config import CHUNK_SIZE, FRAME_BATCH, FUZ_FACTOR, RANGE
from .errors import InvalidInputError
from .fft import fft, fft_array

Samples = Union[bytes, bytearray, memoryview, np.ndarray]
KeyPoints = List[int]

N_BANDS = len(RANGE) - 1


def quantize(x: int, fuzz: int = FUZ_FACTOR) -> int:
    """Round down to nearest multiple of fuzz."""
    return x - (x % fuzz)


def hash_points(points: Sequence[int], fuzz: int = FUZ_FACTOR) -> int:
    """
    Pack 4 peak bins into one integer with decimal-weighted slots.

    Layout: q3 * 10^8 + q2 * 10^5 + q1 * 10^2 + q0
    where q0..q3 are the quantized peaks of bands 0..3.
    """
    if len(points) < 4:
        return 0
    p0, p1, p2, p3 = (quantize(int(p), fuzz) for p in points[:4])
    return p3 * 100000000 + p2 * 100000 + p1 * 100 + p0


def _band_of(i: int) -> int:
    for r in range(N_BANDS):
        if RANGE[r] <= i < RANGE[r + 1]:
            return r
    return 0


def band_peaks(magnitudes: Sequence[float], n_fft: int = CHUNK_SIZE) -> KeyPoints:
    """
    Pick the strongest bin of every band.

    magnitudes: log-compressed magnitude per bin for the whole spectrum
    Ties keep the lowest bin. A band with no bins, or only zero magnitudes,
    keeps the default peak 0.
    """
    key_points = [0] * N_BANDS
    max_mag = [0.0] * N_BANDS

    start = RANGE[0]
    end = min(RANGE[-1], n_fft // 2)
    for i in range(start, end):
        mag = magnitudes[i]
        r = _band_of(i)
        if mag > max_mag[r]:
            max_mag[r] = mag
            key_points[r] = i
    return key_points


def fingerprint_frame(frame: Sequence[int]) -> int:
    """Fingerprint a single frame of CHUNK_SIZE samples with the Complex FFT."""
    spectrum = fft([Complex(float(s)) for s in frame])
    end = min(RANGE[-1], len(spectrum) // 2)
    magnitudes = [0.0] * len(spectrum)
    for i in range(RANGE[0], end):
        magnitudes[i] = math.log(spectrum[i].abs() + 1)
    return hash_points(band_peaks(magnitudes, n_fft=len(spectrum)))


def as_pcm8(samples: Samples) -> np.ndarray:
    """View a PCM buffer as a 1-D int8 array without copying when possible."""
    if isinstance(samples, memoryview) and samples.itemsize != 1:
        raise InvalidInputError(
            f"expected signed 8-bit samples, got a buffer of {samples.itemsize}-byte items")
    if isinstance(samples, (bytes, bytearray, memoryview)):
        return np.frombuffer(samples, dtype=np.int8)
    if isinstance(samples, np.ndarray):
        if samples.dtype != np.int8:
            raise InvalidInputError(
                f"expected signed 8-bit samples, got dtype {samples.dtype}")
        if samples.ndim != 1:
            raise InvalidInputError(
                f"expected mono samples (1-D), got shape {samples.shape}")
        return samples
    raise InvalidInputError(f"unsupported sample buffer type: {type(samples).__name__}")


def _batch_peaks(frames: np.ndarray) -> np.ndarray:
    """frames: (n_frames, CHUNK_SIZE) -> (n_frames, N_BANDS) peak bins."""
    spectrum = fft_array(frames.astype(np.float64))
    start = RANGE[0]
    end = min(RANGE[-1], frames.shape[1] // 2)
    # np.abs on complex is hypot(re, im)
    mags = np.log(np.abs(spectrum[:, start:end]) + 1)

    peaks = np.zeros((frames.shape[0], N_BANDS), dtype=np.int64)
    for r in range(N_BANDS):
        lo, hi = RANGE[r], min(RANGE[r + 1], end)
        if lo >= hi:
            continue
        band = mags[:, lo - start:hi - start]
        # argmax returns the first maximum -> lowest bin wins ties
        local_idx = np.argmax(band, axis=1)
        best = band[np.arange(band.shape[0]), local_idx]
        peaks[:, r] = np.where(best > 0, lo + local_idx, 0)
    return peaks


def extract_fingerprints(samples: Samples, batch_frames: int = FRAME_BATCH) -> List[int]:
    """
    samples:  signed 8-bit mono PCM (bytes or 1-D int8 array)
    returns:  one fingerprint code per full CHUNK_SIZE frame, in frame order.
              The list index is the frame offset.
    """
    pcm = as_pcm8(samples)
    n_frames = len(pcm) // CHUNK_SIZE
    if n_frames == 0:
        return []

    frames = pcm[:n_frames * CHUNK_SIZE].reshape(n_frames, CHUNK_SIZE)
    codes: List[int] = []
    for lo in range(0, n_frames, batch_frames):
        peaks = _batch_peaks(frames[lo:lo + batch_frames])
        q = peaks - (peaks % FUZ_FACTOR)
        hashes = q[:, 3] * 100000000 + q[:, 2] * 100000 + q[:, 1] * 100 + q[:, 0]
        codes.extend(int(h) for h in hashes)
    return codes
