from pathlib import Path
from typing import Optional, Union

import librosa
import numpy as np
import soundfile as sf

from .config import SAMPLE_RATE
from .errors import AudioDecodeError


def to_pcm8(signal, sample_rate: int) -> np.ndarray:
    """
    Float signal in [-1, 1] (mono or (samples, channels)) -> signed 8-bit mono
    PCM at SAMPLE_RATE.
    """
    signal = np.asarray(signal, dtype=np.float64)
    if signal.ndim > 1:
        # signal is (num_samples, num_channels); librosa wants (channels, samples)
        signal = librosa.to_mono(signal.T)
    if sample_rate != SAMPLE_RATE:
        signal = librosa.resample(signal, orig_sr=sample_rate, target_sr=SAMPLE_RATE)
    return np.clip(np.round(signal * 128), -128, 127).astype(np.int8)


def load_pcm(path: Union[str, Path]) -> np.ndarray:
    """Decode an audio file into the PCM layout the fingerprinter expects."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Audio file not found: {path}")
    try:
        signal, sr = sf.read(path)
    except (sf.LibsndfileError, RuntimeError) as e:
        raise AudioDecodeError(f"Could not decode {path.name}: {e}") from e
    return to_pcm8(signal, sr)


def cut_audio(samples: np.ndarray, clip_length_sec: float, seed: Optional[int] = 42,
              align: int = 1) -> np.ndarray:
    """
    Random clip of clip_length_sec seconds (whole buffer if it is shorter).

    With align=CHUNK_SIZE the clip starts on a frame boundary of the original,
    so its frames line up with the indexed ones.
    """
    total_samples = len(samples)
    clip_samples = int(clip_length_sec * SAMPLE_RATE)
    if clip_samples >= total_samples:
        return samples
    rng = np.random.default_rng(seed)
    start = int(rng.integers(0, total_samples - clip_samples + 1))
    start -= start % align
    return samples[start:start + clip_samples]


def inject_noise(samples: np.ndarray, snr_db: float, seed: Optional[int] = None) -> np.ndarray:
    """
    Add white Gaussian noise to get the desired SNR in dB.
    Result is clipped back to signed 8-bit.
    """
    signal = samples.astype(np.float64)
    signal_power = np.mean(signal ** 2) if len(signal) else 0.0

    if signal_power == 0:
        # silent signal, nothing to scale the noise against
        return samples

    noise_power = signal_power / (10 ** (snr_db / 10))
    rng = np.random.default_rng(seed)
    noise = rng.normal(0.0, np.sqrt(noise_power), size=signal.shape)
    return np.clip(np.round(signal + noise), -128, 127).astype(np.int8)
