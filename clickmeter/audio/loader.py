"""Audio file loading and decoding into mono sample buffers."""

from __future__ import annotations

from io import BytesIO
from pathlib import Path
from typing import Union

import librosa
import numpy as np
import soundfile as sf

from clickmeter.analysis.models import InvalidAudioError, SampleBuffer


def _to_buffer(audio: np.ndarray, sample_rate: int) -> SampleBuffer:
    """Average channels (librosa layout: channels first) into a mono buffer."""
    channel_count = 1 if audio.ndim == 1 else audio.shape[0]
    mono = librosa.to_mono(audio) if audio.ndim > 1 else audio
    return SampleBuffer(samples=mono, sample_rate=sample_rate, channel_count=channel_count)


def load_audio(
    file_path_or_buffer: Union[str, Path, BytesIO],
    sr: int | None = None,
) -> SampleBuffer:
    """Load an audio file or buffer and convert to mono.

    Parameters
    ----------
    file_path_or_buffer:
        Path to an audio file or a BytesIO buffer containing audio data.
    sr:
        Target sample rate. ``None`` keeps the file's native rate.

    Raises
    ------
    InvalidAudioError
        If the file exists but cannot be decoded.
    """
    try:
        audio, sample_rate = librosa.load(file_path_or_buffer, sr=sr, mono=False)
    except FileNotFoundError:
        raise
    except Exception as e:
        # soundfile and the audioread fallback raise unrelated error types
        raise InvalidAudioError(f"Could not decode audio: {e}") from e
    return _to_buffer(audio, sample_rate)


def decode_audio(data: bytes, sr: int | None = None) -> SampleBuffer:
    """Decode in-memory audio bytes (any libsndfile format) into a mono buffer.

    Raises
    ------
    InvalidAudioError
        If the bytes cannot be decoded.
    """
    try:
        audio, sample_rate = sf.read(BytesIO(data), dtype="float32", always_2d=True)
    except (RuntimeError, TypeError, ValueError) as e:
        raise InvalidAudioError(f"Could not decode audio: {e}") from e

    audio = audio.T  # (channels, frames)
    if sr is not None and sr != sample_rate:
        audio = librosa.resample(audio, orig_sr=sample_rate, target_sr=sr)
        sample_rate = sr
    if audio.shape[0] == 1:
        return SampleBuffer(samples=audio[0], sample_rate=sample_rate, channel_count=1)
    return _to_buffer(np.ascontiguousarray(audio), sample_rate)
