"""Opening and saving an editing session against the recording server."""

from typing import Any, Optional

from vocaltake.core.errors import LoadError, PersistError
from vocaltake.core.timeline import TimelineEngine
from vocaltake.core.types import MixSink
from vocaltake.utils.logger import logger

from .client import RecordingMetadata, TakeApiClient


def open_editing_session(
    client: TakeApiClient,
    song_id: str,
    recording_id: Optional[str] = None,
    **engine_kwargs: Any,
) -> Optional[TimelineEngine]:
    """Build an engine with the song's instrumental and, optionally, a saved take.

    Args:
        client: Server client, also used as the engine's track source.
        song_id: Song whose audio becomes the instrumental.
        recording_id: Saved recording to continue editing.
        **engine_kwargs: Passed through to TimelineEngine.

    Returns:
        The engine, or None when the song itself cannot be loaded.
    """
    engine = TimelineEngine(client, **engine_kwargs)
    try:
        song = client.get_song(song_id)
    except LoadError as e:
        logger.error(f"Could not open song {song_id}: {e}")
        on_error = engine_kwargs.get("on_error")
        if on_error:
            on_error(e)
        return None

    if not engine.load_instrumental(song["audio_path"]):
        return None

    if recording_id:
        try:
            recording = client.get_recording(recording_id)
        except LoadError as e:
            # The instrumental is usable on its own
            logger.warning(f"Could not open recording {recording_id}: {e}")
        else:
            if recording.get("audio_path"):
                engine.load_vocal(recording["audio_path"])

    return engine


def save_take_to_server(
    engine: TimelineEngine,
    sink: MixSink,
    metadata: RecordingMetadata,
) -> Optional[dict[str, Any]]:
    """Render the solo take and hand it to the sink.

    Returns:
        The sink's acknowledgement, or None when there is nothing to save
        or the upload failed.
    """
    data = engine.save_take()
    if data is None:
        return None
    try:
        return sink.persist_final_mix(data, metadata)
    except PersistError as e:
        logger.error(f"Saving take failed: {e}")
        return None
