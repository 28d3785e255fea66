"""
Playback sources for VocalTake.
Plays the instrumental and the flattened vocal through one sounddevice
output stream, so both sources always share the same start offset.
"""
from __future__ import annotations
import logging
from typing import Optional
import numpy as np

from .config import AUDIO_CONFIG
from .errors import PlaybackDeviceError
from .track import AudioTrack
from .types import StreamFactory

logger = logging.getLogger("VocalTake")


def default_output_stream(**kwargs):
    """Opens a real sounddevice output stream."""
    import sounddevice as sd
    return sd.OutputStream(**kwargs)


class PlaybackController:
    """
    Drives synchronized playback of two tracks from a timeline offset.
    Gains are plain floats read by the audio callback on every block.
    """
    __slots__ = (
        '_stream_factory', '_stream', '_instrumental', '_vocal',
        '_frame', 'instrumental_gain', 'vocal_gain'
    )

    def __init__(self, stream_factory: Optional[StreamFactory] = None) -> None:
        """
        Initialize playback controller.

        Args:
            stream_factory: Callable building an output stream from keyword
                arguments (defaults to sounddevice.OutputStream)
        """
        self._stream_factory = stream_factory or default_output_stream
        self._stream = None
        self._instrumental: Optional[AudioTrack] = None
        self._vocal: Optional[AudioTrack] = None
        self._frame: int = 0
        self.instrumental_gain: float = AUDIO_CONFIG.default_instrumental_gain
        self.vocal_gain: float = AUDIO_CONFIG.default_vocal_gain

    @property
    def is_active(self) -> bool:
        """True while an output stream is open."""
        return self._stream is not None

    @property
    def current_frame(self) -> int:
        """Next frame the callback will render."""
        return self._frame

    def start(
        self,
        instrumental: AudioTrack,
        vocal: Optional[AudioTrack],
        offset_seconds: float,
        instrumental_gain: float,
        vocal_gain: float,
    ) -> None:
        """
        Start both sources at `offset_seconds`.

        Any running stream is stopped first.

        Raises:
            PlaybackDeviceError: If the output stream cannot be opened.
        """
        self.stop()

        self._instrumental = instrumental
        self._vocal = vocal
        self._frame = max(0, int(offset_seconds * instrumental.samplerate))
        self.instrumental_gain = instrumental_gain
        self.vocal_gain = vocal_gain

        def playback_callback(outdata, frames, time, status) -> None:
            """Real-time audio callback."""
            if status:
                logger.debug("Playback status: %s", status)
            outdata[:] = self.render_block(frames)

        try:
            stream = self._stream_factory(
                samplerate=instrumental.samplerate,
                channels=AUDIO_CONFIG.playback_channels,
                blocksize=AUDIO_CONFIG.playback_blocksize,
                dtype="float32",
                callback=playback_callback,
            )
            stream.start()
        except Exception as e:
            logger.error("Failed to start playback: %s", e, exc_info=True)
            raise PlaybackDeviceError(f"Could not open audio output: {e}", code="OUTPUT_UNAVAILABLE") from e

        self._stream = stream
        logger.info("Playback started at %.3fs", offset_seconds)

    def render_block(self, frames: int) -> np.ndarray:
        """
        Mix the next `frames` frames of both sources into a stereo block
        and advance the read position. Past the end of a source it is silent.
        """
        block = np.zeros((frames, AUDIO_CONFIG.playback_channels), dtype=np.float32)
        start = self._frame
        end = start + frames

        instrumental = self._instrumental
        if instrumental is not None and start < instrumental.duration_samples:
            data = instrumental.data[start:end]
            if data.shape[1] == 1:
                block[:len(data)] += data * self.instrumental_gain
            else:
                block[:len(data)] += data[:, :2] * self.instrumental_gain

        vocal = self._vocal
        if vocal is not None and start < vocal.duration_samples:
            voice = vocal.get_mono()[start:end] * self.vocal_gain
            block[:len(voice)] += voice[:, np.newaxis]

        # Prevent digital clipping
        np.clip(block, -1.0, 1.0, out=block)
        self._frame = end
        return block

    def stop(self) -> None:
        """Stop and release the output stream. Safe to call repeatedly."""
        stream, self._stream = self._stream, None
        if stream is None:
            return
        try:
            stream.stop()
            stream.close()
        except Exception as e:
            logger.warning("Error stopping stream: %s", e)
        logger.info("Playback stopped at frame %d", self._frame)
