"""Tests for PCM/WAV conversion and tempo change."""

import base64

import numpy as np
import pytest

from kidreads.domain.services.audio_codec import (
    change_tempo,
    decode_base64_pcm,
    decode_wav,
    encode_wav,
    pcm16_to_wav,
    pitch_correction_semitones,
)


def _sine(seconds: float, sample_rate: int, freq: float = 440.0) -> np.ndarray:
    t = np.arange(int(seconds * sample_rate)) / sample_rate
    return (0.3 * np.sin(2 * np.pi * freq * t)).astype(np.float32)


def test_pcm16_to_wav_wraps_samples():
    pcm = (np.arange(100, dtype="<i2") * 100).tobytes()
    wav = pcm16_to_wav(pcm, 24000)
    assert wav[:4] == b"RIFF"
    samples, sample_rate = decode_wav(wav)
    assert sample_rate == 24000
    assert len(samples) == 100


def test_decode_base64_pcm_duration():
    pcm = np.zeros(24000, dtype="<i2").tobytes()
    samples, sample_rate = decode_base64_pcm(base64.b64encode(pcm).decode(), 24000)
    assert len(samples) / sample_rate == pytest.approx(1.0)
    assert samples.dtype == np.float32


def test_decode_base64_pcm_rejects_empty():
    with pytest.raises(ValueError, match="Empty audio payload"):
        decode_base64_pcm("", 24000)


def test_encode_wav_preserves_length():
    samples = _sine(0.5, 16000)
    decoded, sample_rate = decode_wav(encode_wav(samples, 16000))
    assert sample_rate == 16000
    assert len(decoded) == len(samples)


@pytest.mark.parametrize("rate,semitones", [(1.0, 0.0), (2.0, -12.0), (0.5, 12.0)])
def test_pitch_correction_semitones(rate, semitones):
    assert pitch_correction_semitones(rate) == pytest.approx(semitones)


def test_change_tempo_identity_at_rate_one():
    samples = _sine(0.1, 16000)
    assert change_tempo(samples, 16000, 1.0) is samples


def test_change_tempo_rejects_non_positive_rate():
    with pytest.raises(ValueError):
        change_tempo(_sine(0.1, 16000), 16000, 0.0)


@pytest.mark.parametrize("rate", [2.0, 0.5])
def test_change_tempo_scales_duration(rate):
    samples = _sine(1.0, 16000)
    stretched = change_tempo(samples, 16000, rate)
    assert len(stretched) == pytest.approx(len(samples) / rate, rel=0.01)
    assert stretched.dtype == np.float32
