"""Exception taxonomy for the take-timeline engine.

Load, decode and device errors are recoverable: the engine catches them at the
boundary where they occur, logs them and hands them to its ``on_error``
observer. ``EncodeError`` signals a broken caller contract and propagates out
of the render call that hit it.
"""

from typing import Any


class TakeEditorError(Exception):
    """Base exception for all VocalTake errors.

    Attributes:
        message: Human-readable error description.
        code: Short error code string (e.g., "NOT_FOUND").
        details: Optional dictionary with additional context.
    """

    def __init__(
        self,
        message: str,
        code: str = "ERROR",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"[{self.code}] {self.message} (details: {self.details})"
        return f"[{self.code}] {self.message}"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message={self.message!r}, code={self.code!r}, details={self.details!r})"


class LoadError(TakeEditorError):
    """Raised when a track cannot be fetched.

    Common codes:
        - NOT_FOUND: The server has no track under that identifier.
        - TRANSPORT: Network failure or unexpected HTTP status.
        - NO_SOURCE: The engine has no track source configured.
    """


class DecodeError(TakeEditorError):
    """Raised when audio bytes cannot be decoded.

    Common codes:
        - EMPTY_AUDIO: No bytes, or the container holds no samples.
        - EMPTY_CAPTURE: The capture stream delivered no complete frame.
        - UNSUPPORTED_FORMAT: Truncated stream or unknown container.
    """


class AudioDeviceError(TakeEditorError):
    """Base for sound card failures."""


class CaptureDeviceError(AudioDeviceError):
    """Microphone unavailable or permission denied."""


class PlaybackDeviceError(AudioDeviceError):
    """Output device could not be opened."""


class InvalidStateError(TakeEditorError):
    """Operation not allowed in the current engine state."""


class EncodeError(TakeEditorError):
    """Raised when PCM encoding preconditions are violated.

    Common codes:
        - CHANNEL_COUNT: Only mono and stereo are supported.
        - CHANNEL_SHAPE: A channel is not one-dimensional.
        - LENGTH_MISMATCH: Channels differ in length.
        - SAMPLE_RATE: Sample rate is not positive.
    """


class PersistError(TakeEditorError):
    """Raised when the server rejects or fails to store a take."""
