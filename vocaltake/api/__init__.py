"""
VocalTake API Module

Collaborators backed by the recording server:
- TakeApiClient: fetch track bytes, persist rendered takes
- open_editing_session / save_take_to_server: session helpers
"""
from .client import TakeApiClient, RecordingMetadata, default_recording_name, export_filename
from .session import open_editing_session, save_take_to_server

__all__ = [
    'TakeApiClient',
    'RecordingMetadata',
    'default_recording_name',
    'export_filename',
    'open_editing_session',
    'save_take_to_server',
]
