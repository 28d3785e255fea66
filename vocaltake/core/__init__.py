"""
VocalTake Core Module

This module contains the take-timeline logic:
- TimelineEngine: transport state machine, recording and export
- AudioTrack / RecordingSegment: decoded audio and recorded excerpts
- decoder / encoder: encoded bytes <-> float samples
- resolver: overlap resolution and flattening of takes
- mixer: offline solo and full-mix renders
"""
from .timeline import TimelineEngine
from .track import AudioTrack
from .segment import RecordingSegment
from .playback import PlaybackController
from .capture import CaptureStream
from .config import (
    AUDIO_CONFIG,
    WAV_CONFIG,
    API_CONFIG,
    EngineState
)
from .errors import (
    TakeEditorError,
    LoadError,
    DecodeError,
    AudioDeviceError,
    CaptureDeviceError,
    PlaybackDeviceError,
    InvalidStateError,
    EncodeError,
    PersistError,
)
from . import commands
from . import decoder
from . import encoder
from . import mixer
from . import resolver

__all__ = [
    # Main classes
    'TimelineEngine',
    'AudioTrack',
    'RecordingSegment',
    'PlaybackController',
    'CaptureStream',
    # Config
    'AUDIO_CONFIG',
    'WAV_CONFIG',
    'API_CONFIG',
    'EngineState',
    # Errors
    'TakeEditorError',
    'LoadError',
    'DecodeError',
    'AudioDeviceError',
    'CaptureDeviceError',
    'PlaybackDeviceError',
    'InvalidStateError',
    'EncodeError',
    'PersistError',
    # Submodules
    'commands',
    'decoder',
    'encoder',
    'mixer',
    'resolver',
]
