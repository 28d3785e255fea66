"""
Type definitions for the VocalTake core module.
Provides type aliases and protocols for the engine's collaborators.
"""
from typing import TYPE_CHECKING, Any, Callable, Protocol
import numpy as np
from numpy.typing import NDArray

if TYPE_CHECKING:
    from .config import EngineState
    from .errors import TakeEditorError
    from .segment import RecordingSegment

# Audio data types
AudioArray = NDArray[np.float32]  # Shape: (samples, channels)
MonoArray = NDArray[np.float32]   # Shape: (samples,)

# Observer callback types
PositionCallback = Callable[[float], None]
StateCallback = Callable[["EngineState"], None]
SegmentsCallback = Callable[[list["RecordingSegment"]], None]
ErrorCallback = Callable[["TakeEditorError"], None]

# Monotonic clock returning seconds
Clock = Callable[[], float]

# Builds a sounddevice-compatible stream from keyword arguments
StreamFactory = Callable[..., Any]


class TrackSource(Protocol):
    """Retrieves raw encoded audio for a track or recording."""
    def fetch_track_bytes(self, track_id: str) -> bytes: ...


class MixSink(Protocol):
    """Stores a rendered PCM container on behalf of the user."""
    def persist_final_mix(self, data: bytes, metadata: Any) -> dict[str, Any]: ...
