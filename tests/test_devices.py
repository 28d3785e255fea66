"""
Tests for the playback and capture stream wrappers.
"""
import pytest
import numpy as np

from conftest import TEST_SR, StreamFactory, pcm_chunk
from vocaltake.core.capture import CaptureStream
from vocaltake.core.errors import CaptureDeviceError, PlaybackDeviceError
from vocaltake.core.playback import PlaybackController
from vocaltake.core.track import AudioTrack


@pytest.fixture
def instrumental():
    return AudioTrack(np.full(TEST_SR, 0.4, dtype=np.float32), TEST_SR, "Backing")


@pytest.fixture
def vocal():
    return AudioTrack(np.full(TEST_SR // 2, 0.5, dtype=np.float32), TEST_SR, "Vocal")


class TestPlaybackController:
    """Tests for PlaybackController."""

    def test_start_opens_stream(self, instrumental, vocal, output_streams):
        controller = PlaybackController(output_streams)
        controller.start(instrumental, vocal, 0.25, 0.5, 0.8)
        stream = output_streams.last
        assert controller.is_active
        assert stream.started
        assert stream.kwargs["channels"] == 2
        assert stream.kwargs["dtype"] == "float32"
        assert controller.current_frame == TEST_SR // 4

    def test_render_block_mixes_sources(self, instrumental, vocal, output_streams):
        controller = PlaybackController(output_streams)
        controller.start(instrumental, vocal, 0.0, 0.5, 0.8)
        block = controller.render_block(256)
        assert block.shape == (256, 2)
        assert np.allclose(block, 0.6)
        assert controller.current_frame == 256

    def test_render_block_past_vocal_end(self, instrumental, vocal, output_streams):
        controller = PlaybackController(output_streams)
        controller.start(instrumental, vocal, 0.75, 1.0, 1.0)
        assert np.allclose(controller.render_block(100), 0.4)

    def test_render_block_past_everything_is_silent(self, instrumental, output_streams):
        controller = PlaybackController(output_streams)
        controller.start(instrumental, None, 0.99, 1.0, 1.0)
        block = controller.render_block(200)
        assert np.allclose(block[:80], 0.4)
        assert np.all(block[80:] == 0.0)

    def test_render_block_clips(self, instrumental, output_streams):
        loud = AudioTrack(np.full(TEST_SR, 0.9, dtype=np.float32), TEST_SR)
        controller = PlaybackController(output_streams)
        controller.start(instrumental, loud, 0.0, 1.0, 1.0)
        assert np.all(controller.render_block(64) == 1.0)

    def test_callback_fills_output(self, instrumental, output_streams):
        controller = PlaybackController(output_streams)
        controller.start(instrumental, None, 0.0, 1.0, 1.0)
        out = np.zeros((128, 2), dtype=np.float32)
        output_streams.last.callback(out, 128, None, None)
        assert np.allclose(out, 0.4)

    def test_gain_change_applies_to_next_block(self, instrumental, output_streams):
        controller = PlaybackController(output_streams)
        controller.start(instrumental, None, 0.0, 1.0, 1.0)
        controller.instrumental_gain = 0.5
        assert np.allclose(controller.render_block(32), 0.2)

    def test_restart_stops_previous_stream(self, instrumental, output_streams):
        controller = PlaybackController(output_streams)
        controller.start(instrumental, None, 0.0, 1.0, 1.0)
        controller.start(instrumental, None, 0.5, 1.0, 1.0)
        assert output_streams.streams[0].closed
        assert not output_streams.streams[1].closed

    def test_stop_is_idempotent(self, instrumental, output_streams):
        controller = PlaybackController(output_streams)
        controller.start(instrumental, None, 0.0, 1.0, 1.0)
        controller.stop()
        controller.stop()
        assert not controller.is_active
        assert output_streams.last.close_calls == 1

    def test_device_error(self, instrumental):
        factory = StreamFactory()
        factory.error = OSError("no default output device")
        controller = PlaybackController(factory)
        with pytest.raises(PlaybackDeviceError) as exc:
            controller.start(instrumental, None, 0.0, 1.0, 1.0)
        assert exc.value.code == "OUTPUT_UNAVAILABLE"
        assert not controller.is_active


class TestCaptureStream:
    """Tests for CaptureStream."""

    def test_open_configures_device(self, input_streams):
        capture = CaptureStream(TEST_SR, 1, input_streams)
        capture.open()
        kwargs = input_streams.last.kwargs
        assert capture.is_open
        assert kwargs["samplerate"] == TEST_SR
        assert kwargs["channels"] == 1
        assert kwargs["dtype"] == "int16"

    def test_chunks_keep_arrival_order(self, input_streams):
        capture = CaptureStream(TEST_SR, 1, input_streams)
        capture.open()
        first = pcm_chunk(0.5, 0.1)
        second = pcm_chunk(-0.5, 0.1)
        input_streams.last.callback(first, len(first) // 2, None, None)
        capture.feed(b"")
        input_streams.last.callback(second, len(second) // 2, None, None)
        assert capture.captured_bytes == len(first) + len(second)
        assert capture.close() == first + second

    def test_close_is_idempotent(self, input_streams):
        capture = CaptureStream(TEST_SR, 1, input_streams)
        capture.open()
        capture.feed(pcm_chunk(0.1, 0.1))
        assert capture.close()
        assert capture.close() == b""
        assert input_streams.last.close_calls == 1
        assert not capture.is_open

    def test_open_twice(self, input_streams):
        capture = CaptureStream(TEST_SR, 1, input_streams)
        capture.open()
        with pytest.raises(CaptureDeviceError) as exc:
            capture.open()
        assert exc.value.code == "ALREADY_OPEN"

    def test_device_unavailable(self):
        factory = StreamFactory()
        factory.error = PermissionError("microphone access denied")
        capture = CaptureStream(TEST_SR, 1, factory)
        with pytest.raises(CaptureDeviceError) as exc:
            capture.open()
        assert exc.value.code == "DEVICE_UNAVAILABLE"
        assert "microphone access denied" in exc.value.details["error"]
        assert not capture.is_open
