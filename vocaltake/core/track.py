from __future__ import annotations
import numpy as np

from .types import AudioArray, MonoArray


class AudioTrack:
    """
    Decoded audio: float32 samples shaped (samples, channels) plus a samplerate.
    Immutable once built; the sample array is flagged read-only.
    """
    __slots__ = ('_data', '_samplerate', 'name')

    def __init__(self, data, samplerate, name="Track"):
        if samplerate <= 0:
            raise ValueError(f"samplerate must be positive, got {samplerate}")
        data = np.asarray(data, dtype=np.float32)
        if data.ndim == 1:
            data = data[:, np.newaxis]
        elif data.ndim != 2:
            raise ValueError(f"expected (samples, channels) data, got shape {data.shape}")
        # Own the buffer so callers cannot mutate it behind our back
        data = data.copy()
        data.flags.writeable = False
        self._data = data
        self._samplerate = int(samplerate)
        self.name = name

    @classmethod
    def silence(cls, num_samples, samplerate, channels=1, name="Silence"):
        return cls(np.zeros((max(0, num_samples), channels), dtype=np.float32), samplerate, name)

    @property
    def data(self) -> AudioArray:
        return self._data

    @property
    def samplerate(self) -> int:
        return self._samplerate

    @property
    def channels(self) -> int:
        return self._data.shape[1]

    @property
    def is_mono(self) -> bool:
        return self.channels == 1

    @property
    def duration_samples(self) -> int:
        """Total number of sample frames."""
        return self._data.shape[0]

    @property
    def duration_seconds(self) -> float:
        return self.duration_samples / self._samplerate

    def channel(self, index) -> MonoArray:
        """Returns one channel as a 1-D view."""
        return self._data[:, index]

    def get_mono(self) -> MonoArray:
        """Channel mean as a 1-D float32 array."""
        if self.is_mono:
            return self._data[:, 0]
        return self._data.mean(axis=1, dtype=np.float32)

    def slice_seconds(self, start_seconds, duration_seconds):
        """
        Cuts [start, start + duration) out of the track.

        Sample bounds are floor(start * sr) and floor((start + duration) * sr),
        clamped to the buffer. Returns None when the slice holds no samples.
        """
        sr = self._samplerate
        start = max(0, int(np.floor(start_seconds * sr)))
        end = min(self.duration_samples, int(np.floor((start_seconds + duration_seconds) * sr)))
        if end - start <= 0:
            return None
        return AudioTrack(self._data[start:end], sr, self.name)

    def resampled(self, samplerate):
        """Returns this track at another samplerate (self when already there)."""
        if samplerate == self._samplerate:
            return self
        import librosa

        # librosa resamples along the last axis
        converted = librosa.resample(
            np.ascontiguousarray(self._data.T), orig_sr=self._samplerate, target_sr=samplerate
        )
        return AudioTrack(converted.T, samplerate, self.name)

    def __repr__(self):
        return f"AudioTrack({self.name!r}, {self.channels}ch, {self._samplerate}Hz, {self.duration_seconds:.2f}s)"
