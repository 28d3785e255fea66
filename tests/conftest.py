"""
Pytest configuration and fixtures for VocalTake tests.
Audio devices are replaced by fake streams and time by a manual clock.
"""
import pytest
import numpy as np

from vocaltake.core.config import AUDIO_CONFIG
from vocaltake.core.encoder import encode
from vocaltake.core.errors import LoadError
from vocaltake.core.timeline import TimelineEngine
from vocaltake.core.track import AudioTrack

# Low rate keeps timeline buffers small
TEST_SR = 8000


class FakeStream:
    """Stands in for sounddevice.OutputStream / RawInputStream."""

    def __init__(self, **kwargs):
        self.kwargs = kwargs
        self.callback = kwargs.get("callback")
        self.started = False
        self.stop_calls = 0
        self.close_calls = 0

    def start(self):
        self.started = True

    def stop(self):
        self.stop_calls += 1

    def close(self):
        self.close_calls += 1

    @property
    def closed(self):
        return self.close_calls > 0


class StreamFactory:
    """Records every stream it builds; can be told to fail like a missing device."""

    def __init__(self):
        self.streams = []
        self.error = None

    def __call__(self, **kwargs):
        if self.error is not None:
            raise self.error
        stream = FakeStream(**kwargs)
        self.streams.append(stream)
        return stream

    @property
    def last(self):
        return self.streams[-1]


class FakeClock:
    def __init__(self, start=100.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class FakeSource:
    """In-memory TrackSource."""

    def __init__(self, tracks=None):
        self.tracks = dict(tracks or {})
        self.requests = []

    def fetch_track_bytes(self, track_id):
        self.requests.append(track_id)
        if track_id not in self.tracks:
            raise LoadError(f"Track {track_id} not found", code="NOT_FOUND")
        return self.tracks[track_id]


def pcm_chunk(value, seconds, sr=TEST_SR):
    """Raw little-endian int16 mono bytes holding a constant level."""
    frames = int(round(seconds * sr))
    return np.full(frames, int(round(value * 32767)), dtype="<i2").tobytes()


def wav_bytes(seconds, sr=TEST_SR, channels=1, value=0.1):
    frames = int(round(seconds * sr))
    return encode([np.full(frames, value, dtype=np.float32)] * channels, sr)


@pytest.fixture
def sample_mono_audio() -> np.ndarray:
    """Generate 1 second of mono sine wave audio."""
    sr = AUDIO_CONFIG.default_samplerate
    t = np.linspace(0, 1, sr, dtype=np.float32)
    return (0.5 * np.sin(2 * np.pi * 440 * t)).astype(np.float32)


@pytest.fixture
def sample_stereo_audio() -> np.ndarray:
    """Generate 1 second of stereo sine wave audio."""
    sr = AUDIO_CONFIG.default_samplerate
    t = np.linspace(0, 1, sr, dtype=np.float32)
    left = np.sin(2 * np.pi * 440 * t).astype(np.float32)
    right = np.sin(2 * np.pi * 880 * t).astype(np.float32)
    return 0.5 * np.column_stack((left, right))


@pytest.fixture
def mono_track() -> AudioTrack:
    """Two seconds of a ramp at TEST_SR."""
    return AudioTrack(np.linspace(-1, 1, 2 * TEST_SR, dtype=np.float32), TEST_SR, "Ramp")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def output_streams() -> StreamFactory:
    return StreamFactory()


@pytest.fixture
def input_streams() -> StreamFactory:
    return StreamFactory()


@pytest.fixture
def source() -> FakeSource:
    return FakeSource({
        "uploads/song.wav": wav_bytes(10.0, value=0.1),
        "uploads/short.wav": wav_bytes(2.0, value=0.1),
        "uploads/take.wav": wav_bytes(4.0, value=0.3),
        "uploads/stereo-take.wav": wav_bytes(4.0, channels=2, value=0.3),
        "uploads/long-take.wav": wav_bytes(12.0, value=0.3),
    })


@pytest.fixture
def events() -> dict:
    """Collects everything the engine reports through its observers."""
    return {"positions": [], "states": [], "segments": [], "errors": []}


@pytest.fixture
def empty_engine(source, output_streams, input_streams, clock, events) -> TimelineEngine:
    return TimelineEngine(
        source,
        output_stream_factory=output_streams,
        input_stream_factory=input_streams,
        clock=clock,
        on_position_changed=events["positions"].append,
        on_state_changed=events["states"].append,
        on_segments_changed=events["segments"].append,
        on_error=events["errors"].append,
    )


@pytest.fixture
def engine(empty_engine) -> TimelineEngine:
    """Engine with a 10 second instrumental loaded."""
    assert empty_engine.load_instrumental("uploads/song.wav")
    return empty_engine
