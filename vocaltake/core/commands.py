"""
Discrete commands understood by the TimelineEngine.

Anything outside the engine's own thread (audio callbacks, loader threads,
UI event handlers) talks to it by posting one of these. The engine applies
them strictly in arrival order.
"""
from dataclasses import dataclass
from typing import Optional

from .errors import TakeEditorError
from .track import AudioTrack

INSTRUMENTAL = "instrumental"
VOCAL = "vocal"


@dataclass(frozen=True, slots=True)
class Play:
    pass


@dataclass(frozen=True, slots=True)
class Pause:
    pass


@dataclass(frozen=True, slots=True)
class Seek:
    seconds: float


@dataclass(frozen=True, slots=True)
class SkipBackward:
    seconds: Optional[float] = None


@dataclass(frozen=True, slots=True)
class TogglePlayPause:
    pass


@dataclass(frozen=True, slots=True)
class StartRecording:
    pass


@dataclass(frozen=True, slots=True)
class StopRecording:
    pass


@dataclass(frozen=True, slots=True)
class CaptureChunk:
    """
    Raw 16-bit capture bytes for hosts that deliver microphone audio themselves
    instead of through the capture stream's device callback. Mixing both
    sources in one take interleaves their chunks.
    """
    data: bytes


@dataclass(frozen=True, slots=True)
class SetGain:
    role: str  # INSTRUMENTAL or VOCAL
    value: float


@dataclass(frozen=True, slots=True)
class TrackLoaded:
    role: str
    track: AudioTrack


@dataclass(frozen=True, slots=True)
class LoadFailed:
    role: str
    error: TakeEditorError
