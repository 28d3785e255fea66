"""
Centralized configuration for VocalTake.
All magic numbers and default settings in one place.
"""
from dataclasses import dataclass
from enum import Enum, auto


class EngineState(Enum):
    """Timeline engine state."""
    IDLE = auto()
    PLAYING = auto()
    RECORDING = auto()


@dataclass(frozen=True, slots=True)
class AudioConfig:
    """Audio engine configuration."""
    default_samplerate: int = 44100
    playback_blocksize: int = 1024
    playback_channels: int = 2
    capture_blocksize: int = 1024
    capture_channels: int = 1  # mono capture contract
    capture_dtype: str = "int16"
    tick_interval_ms: int = 16  # ~60 position updates per second
    min_gain: float = 0.0
    max_gain: float = 1.0
    default_instrumental_gain: float = 0.5
    default_vocal_gain: float = 0.8
    skip_seconds: float = 10.0


@dataclass(frozen=True, slots=True)
class WavConfig:
    """PCM container layout."""
    bits_per_sample: int = 16
    fmt_chunk_size: int = 16
    format_tag: int = 1  # linear PCM
    positive_scale: int = 32767
    negative_scale: int = 32768


@dataclass(frozen=True, slots=True)
class ApiConfig:
    """Recording server settings."""
    base_url: str = "http://localhost:3000"
    api_prefix: str = "/api"
    timeout_seconds: float = 60.0
    upload_filename: str = "recording.wav"
    upload_content_type: str = "audio/wav"


# Global config instances (immutable singletons)
AUDIO_CONFIG = AudioConfig()
WAV_CONFIG = WavConfig()
API_CONFIG = ApiConfig()
