"""
Offline mix rendering for VocalTake.
Pure numpy; identical inputs and gains give bit-identical buffers.
Nothing is clipped here, the encoder clamps at the very end.
"""
from __future__ import annotations
from typing import Optional
import numpy as np

from .track import AudioTrack


def _fit_length(data: np.ndarray, length: int) -> np.ndarray:
    """Truncate or zero-extend a 1-D array to `length` samples."""
    if len(data) >= length:
        return data[:length]
    padded = np.zeros(length, dtype=np.float32)
    padded[:len(data)] = data
    return padded


def render_full_mix(
    instrumental: AudioTrack,
    vocal: Optional[AudioTrack],
    instrumental_gain: float,
    vocal_gain: float,
) -> AudioTrack:
    """
    Mix instrumental and vocal into a stereo buffer.

    The output takes the instrumental's length and samplerate. A mono
    instrumental feeds both channels; extra channels beyond two are dropped.
    The vocal is mono and is broadcast to both channels.
    """
    length = instrumental.duration_samples
    output = np.zeros((length, 2), dtype=np.float32)

    data = instrumental.data
    if instrumental.is_mono:
        output += data[:, :1] * np.float32(instrumental_gain)
    else:
        output += data[:, :2] * np.float32(instrumental_gain)

    if vocal is not None:
        voice = vocal.resampled(instrumental.samplerate).get_mono()
        voice = _fit_length(voice, length) * np.float32(vocal_gain)
        output += voice[:, np.newaxis]

    return AudioTrack(output, instrumental.samplerate, "Mix")


def render_solo_vocal(vocal: AudioTrack, vocal_gain: float) -> AudioTrack:
    """Render the vocal alone as a mono buffer at its own samplerate."""
    return AudioTrack(vocal.get_mono() * np.float32(vocal_gain), vocal.samplerate, "Take")
