"""VocalTake: record vocal takes over a backing track and export PCM mixes."""
from .core import TimelineEngine, AudioTrack, RecordingSegment, EngineState

__version__ = "0.1.0"

__all__ = ['TimelineEngine', 'AudioTrack', 'RecordingSegment', 'EngineState']
