"""
Sample decoder for VocalTake.
Turns encoded audio bytes into AudioTrack buffers normalized to [-1.0, 1.0].
"""
from __future__ import annotations
import io
import logging
import os
import tempfile
import numpy as np
import soundfile as sf

from .config import AUDIO_CONFIG, WAV_CONFIG
from .errors import DecodeError
from .track import AudioTrack

logger = logging.getLogger("VocalTake")


def pcm16_to_float(samples: np.ndarray) -> np.ndarray:
    """Inverse of the encoder's asymmetric int16 scaling."""
    samples = samples.astype(np.float32)
    return np.where(
        samples < 0,
        samples / WAV_CONFIG.negative_scale,
        samples / WAV_CONFIG.positive_scale,
    ).astype(np.float32)


def _read_soundfile(data: bytes) -> tuple[np.ndarray, int]:
    """Reads any libsndfile container. 16-bit PCM keeps the encoder's scaling."""
    info = sf.info(io.BytesIO(data))
    if info.subtype == "PCM_16":
        raw, samplerate = sf.read(io.BytesIO(data), dtype="int16", always_2d=True)
        return pcm16_to_float(raw), samplerate
    return sf.read(io.BytesIO(data), dtype="float32", always_2d=True)


def _read_librosa(data: bytes) -> tuple[np.ndarray, int]:
    """Fallback for containers libsndfile cannot open (webm/opus, mp3)."""
    import librosa

    # audioread backends need a real path
    with tempfile.NamedTemporaryFile(suffix=".audio", delete=False) as tmp:
        tmp.write(data)
        tmp_path = tmp.name
    try:
        samples, samplerate = librosa.load(tmp_path, sr=None, mono=False)
    finally:
        os.remove(tmp_path)

    # librosa returns (channels, samples) for multichannel input
    if samples.ndim > 1:
        samples = samples.T
    return samples.astype(np.float32), int(samplerate)


def decode(data: bytes, name: str = "Track") -> AudioTrack:
    """
    Decode an encoded audio byte stream.

    Args:
        data: Raw container bytes (WAV, FLAC, OGG, ... or anything librosa reads)
        name: Name given to the resulting track

    Returns:
        AudioTrack with samples shaped (samples, channels)

    Raises:
        DecodeError: If the stream is empty, truncated or of an unknown format.
    """
    if not data:
        raise DecodeError("Audio data is empty", code="EMPTY_AUDIO")

    try:
        samples, samplerate = _read_soundfile(data)
    except (sf.LibsndfileError, RuntimeError, TypeError) as sf_error:
        logger.debug("soundfile could not decode %s (%s), trying librosa", name, sf_error)
        try:
            samples, samplerate = _read_librosa(data)
        except Exception as e:
            raise DecodeError(
                f"Failed to decode audio: {e}",
                code="UNSUPPORTED_FORMAT",
                details={"name": name, "bytes": len(data)},
            ) from e

    if samples.size == 0:
        raise DecodeError("Decoded audio has no samples", code="EMPTY_AUDIO", details={"name": name})

    samples = np.clip(np.nan_to_num(samples), -1.0, 1.0)
    track = AudioTrack(samples, samplerate, name)
    logger.debug("Decoded %r", track)
    return track


def decode_raw(
    data: bytes,
    samplerate: int = AUDIO_CONFIG.default_samplerate,
    channels: int = AUDIO_CONFIG.capture_channels,
    name: str = "Take",
) -> AudioTrack:
    """
    Decode headerless little-endian 16-bit PCM as delivered by the capture stream.
    A trailing partial frame is dropped.
    """
    frame_bytes = 2 * channels
    usable = len(data) - len(data) % frame_bytes
    if usable <= 0:
        raise DecodeError("No audio was captured", code="EMPTY_CAPTURE")

    samples = np.frombuffer(data[:usable], dtype="<i2").reshape(-1, channels)
    return AudioTrack(pcm16_to_float(samples), samplerate, name)


def to_mono(track: AudioTrack) -> AudioTrack:
    """Downmix to a single channel (channel mean). Mono tracks pass through."""
    if track.is_mono:
        return track
    return AudioTrack(track.get_mono(), track.samplerate, track.name)
