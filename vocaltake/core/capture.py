"""
Microphone capture for VocalTake.
The input callback is the producer: it appends raw 16-bit chunks to a deque
in arrival order. The engine consumes the buffer once, when the take stops.
"""
from __future__ import annotations
import logging
from collections import deque
from typing import Optional

from .config import AUDIO_CONFIG
from .errors import CaptureDeviceError
from .types import StreamFactory

logger = logging.getLogger("VocalTake")


def default_input_stream(**kwargs):
    """Opens a real sounddevice raw input stream."""
    import sounddevice as sd
    return sd.RawInputStream(**kwargs)


class CaptureStream:
    """One open microphone stream and the chunks it has delivered."""
    __slots__ = ('_stream_factory', '_stream', '_chunks', 'samplerate', 'channels')

    def __init__(
        self,
        samplerate: int,
        channels: int = AUDIO_CONFIG.capture_channels,
        stream_factory: Optional[StreamFactory] = None,
    ) -> None:
        self._stream_factory = stream_factory or default_input_stream
        self._stream = None
        self._chunks: deque[bytes] = deque()
        self.samplerate = samplerate
        self.channels = channels

    @property
    def is_open(self) -> bool:
        return self._stream is not None

    @property
    def captured_bytes(self) -> int:
        return sum(len(c) for c in self._chunks)

    def open(self) -> None:
        """
        Open the input device and start delivering chunks.

        Raises:
            CaptureDeviceError: If the microphone is missing or access is denied.
        """
        if self._stream is not None:
            raise CaptureDeviceError("Capture stream is already open", code="ALREADY_OPEN")

        def capture_callback(indata, frames, time, status) -> None:
            if status:
                logger.debug("Capture status: %s", status)
            self.feed(bytes(indata))

        self._chunks.clear()
        try:
            stream = self._stream_factory(
                samplerate=self.samplerate,
                channels=self.channels,
                dtype=AUDIO_CONFIG.capture_dtype,
                blocksize=AUDIO_CONFIG.capture_blocksize,
                callback=capture_callback,
            )
            stream.start()
        except Exception as e:
            logger.error("Failed to open microphone: %s", e, exc_info=True)
            raise CaptureDeviceError(
                "Could not access the microphone. Check that it is connected "
                "and that recording permission is granted.",
                code="DEVICE_UNAVAILABLE",
                details={"error": str(e)},
            ) from e

        self._stream = stream
        logger.info("Capture started (%d Hz, %d ch)", self.samplerate, self.channels)

    def feed(self, data: bytes) -> None:
        """Append one chunk. Empty chunks are ignored."""
        if data:
            self._chunks.append(bytes(data))

    def close(self) -> bytes:
        """
        Stop the device and hand over everything captured, in arrival order.
        Calling it again returns b"".
        """
        stream, self._stream = self._stream, None
        if stream is not None:
            try:
                stream.stop()
                stream.close()
            except Exception as e:
                logger.warning("Error stopping capture stream: %s", e)

        data = b"".join(self._chunks)
        self._chunks.clear()
        if stream is not None:
            logger.info("Capture stopped, %d bytes recorded", len(data))
        return data
