"""
PCM encoder for VocalTake.
Serializes float channels into a canonical 44-byte-header RIFF/WAVE container.
"""
from __future__ import annotations
import struct
from typing import Sequence
import numpy as np

from .config import WAV_CONFIG
from .errors import EncodeError
from .track import AudioTrack

# RIFF header, fmt chunk and data chunk header, all little-endian
_WAV_HEADER = struct.Struct("<4sI4s4sIHHIIHH4sI")


def float_to_pcm16(samples: np.ndarray) -> np.ndarray:
    """
    Convert float samples to int16.

    Samples are clamped to [-1.0, 1.0]; positives scale by 32767 and negatives
    by 32768 so both ends of the float range land exactly on the int16 limits.
    """
    clipped = np.clip(np.nan_to_num(np.asarray(samples, dtype=np.float64)), -1.0, 1.0)
    scaled = np.where(
        clipped < 0,
        np.round(clipped * WAV_CONFIG.negative_scale),
        np.round(clipped * WAV_CONFIG.positive_scale),
    )
    return scaled.astype(np.int16)


def wav_header(num_frames: int, channels: int, samplerate: int) -> bytes:
    """Builds the 44-byte header for `num_frames` interleaved 16-bit frames."""
    block_align = channels * WAV_CONFIG.bits_per_sample // 8
    data_bytes = num_frames * block_align
    return _WAV_HEADER.pack(
        b"RIFF",
        36 + data_bytes,
        b"WAVE",
        b"fmt ",
        WAV_CONFIG.fmt_chunk_size,
        WAV_CONFIG.format_tag,
        channels,
        samplerate,
        samplerate * block_align,
        block_align,
        WAV_CONFIG.bits_per_sample,
        b"data",
        data_bytes,
    )


def encode(channels: Sequence[np.ndarray], samplerate: int) -> bytes:
    """
    Encode one or two float channels as a 16-bit PCM WAV file.

    Args:
        channels: One 1-D sample array per channel, all the same length
        samplerate: Sample rate in Hz

    Returns:
        Complete WAV file contents

    Raises:
        EncodeError: If the channel layout or samplerate is invalid.
    """
    if samplerate <= 0:
        raise EncodeError(f"Sample rate must be positive, got {samplerate}", code="SAMPLE_RATE")
    if len(channels) not in (1, 2):
        raise EncodeError(
            f"Only mono or stereo can be encoded, got {len(channels)} channels",
            code="CHANNEL_COUNT",
        )

    arrays = [np.asarray(c) for c in channels]
    if any(a.ndim != 1 for a in arrays):
        raise EncodeError("Each channel must be a 1-D sample array", code="CHANNEL_SHAPE")
    lengths = {len(a) for a in arrays}
    if len(lengths) != 1:
        raise EncodeError(
            "All channels must have the same length",
            code="LENGTH_MISMATCH",
            details={"lengths": [len(a) for a in arrays]},
        )

    # (frames, channels) flattened row-major gives L R L R ...
    interleaved = float_to_pcm16(np.column_stack(arrays)).astype("<i2")
    num_frames = lengths.pop()
    return wav_header(num_frames, len(arrays), int(samplerate)) + interleaved.tobytes()


def encode_track(track: AudioTrack) -> bytes:
    """Encode an AudioTrack (mono or stereo) as WAV."""
    return encode([track.channel(i) for i in range(track.channels)], track.samplerate)
