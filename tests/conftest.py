import numpy as np
import pytest

from songprint.config import CHUNK_SIZE, SAMPLE_RATE


def tone_frame(bins, amplitude=30.0, n=CHUNK_SIZE):
    """One frame holding a cosine exactly on each FFT bin in `bins`, as int8."""
    t = np.arange(n)
    signal = sum(amplitude * np.cos(2 * np.pi * b * t / n) for b in bins)
    return np.clip(np.round(signal), -128, 127).astype(np.int8)


def random_pcm(n_frames, seed=0, extra=0):
    rng = np.random.default_rng(seed)
    return rng.integers(-128, 128, size=n_frames * CHUNK_SIZE + extra).astype(np.int8)


@pytest.fixture
def store(tmp_path):
    from songprint.db import FingerprintStore

    with FingerprintStore(str(tmp_path / "fingerprints.db")) as s:
        yield s


@pytest.fixture
def write_wav(tmp_path):
    """Write int8 PCM as a 16-bit wav that decodes back to the exact same samples."""
    import soundfile as sf

    def _write(name, samples, sample_rate=SAMPLE_RATE):
        path = tmp_path / name
        sf.write(path, samples.astype(np.float64) / 128, sample_rate, subtype="PCM_16")
        return path

    return _write
