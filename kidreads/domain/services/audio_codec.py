"""PCM/WAV conversion and tempo change helpers."""

import base64
import io
import math

import librosa
import numpy as np
import soundfile as sf


def pcm16_to_wav(pcm_bytes: bytes, sample_rate: int) -> bytes:
    """Wrap raw 16-bit little-endian mono PCM into a WAV container."""
    samples = np.frombuffer(pcm_bytes, dtype="<i2")
    buffer = io.BytesIO()
    sf.write(buffer, samples, sample_rate, format="WAV", subtype="PCM_16")
    return buffer.getvalue()


def encode_wav(samples: np.ndarray, sample_rate: int) -> bytes:
    """Encode float samples in [-1, 1] as a 16-bit WAV file."""
    buffer = io.BytesIO()
    sf.write(buffer, samples, sample_rate, format="WAV", subtype="PCM_16")
    return buffer.getvalue()


def decode_wav(wav_bytes: bytes) -> tuple[np.ndarray, int]:
    """Decode WAV bytes to mono float32 samples."""
    samples, sample_rate = sf.read(io.BytesIO(wav_bytes), dtype="float32", always_2d=False)
    if samples.ndim > 1:
        samples = samples.mean(axis=1)
    return samples, sample_rate


def decode_base64_pcm(audio_content: str, sample_rate: int) -> tuple[np.ndarray, int]:
    """Decode a base64 PCM16 payload from the speech backend into float samples."""
    pcm_bytes = base64.b64decode(audio_content)
    if not pcm_bytes:
        raise ValueError("Empty audio payload")
    return decode_wav(pcm16_to_wav(pcm_bytes, sample_rate))


def pitch_correction_semitones(rate: float) -> float:
    """Semitone shift that cancels the pitch change of playing at ``rate``."""
    return -12 * math.log2(rate)


def change_tempo(samples: np.ndarray, sample_rate: int, rate: float) -> np.ndarray:
    """Play ``samples`` ``rate`` times faster while keeping the original pitch.

    Resampling changes tempo and pitch together (like a tape played faster);
    a pitch shift of ``-12 * log2(rate)`` semitones then restores the pitch.
    """
    if rate <= 0:
        raise ValueError(f"Playback rate must be positive, got {rate}")
    if rate == 1.0:
        return samples
    stretched = librosa.resample(
        samples, orig_sr=sample_rate, target_sr=int(round(sample_rate / rate))
    )
    return librosa.effects.pitch_shift(
        stretched, sr=sample_rate, n_steps=pitch_correction_semitones(rate)
    ).astype(np.float32)
