"""
Tests for AudioTrack.
"""
import pytest
import numpy as np

from conftest import TEST_SR
from vocaltake.core.config import AUDIO_CONFIG
from vocaltake.core.track import AudioTrack


class TestAudioTrack:
    """Tests for AudioTrack functionality."""

    def test_mono_data_is_2d(self, sample_mono_audio):
        track = AudioTrack(sample_mono_audio, AUDIO_CONFIG.default_samplerate)
        assert track.data.shape == (len(sample_mono_audio), 1)
        assert track.is_mono
        assert track.name == "Track"

    def test_stereo(self, sample_stereo_audio):
        track = AudioTrack(sample_stereo_audio, 44100, "Backing")
        assert track.channels == 2
        assert not track.is_mono
        assert np.array_equal(track.channel(1), sample_stereo_audio[:, 1])

    def test_duration(self, sample_stereo_audio):
        track = AudioTrack(sample_stereo_audio, 44100)
        assert track.duration_samples == 44100
        assert np.isclose(track.duration_seconds, 1.0)

    def test_data_is_copied_and_read_only(self, sample_mono_audio):
        track = AudioTrack(sample_mono_audio, 44100)
        sample_mono_audio[0] = 0.9
        assert track.data[0, 0] != 0.9
        with pytest.raises(ValueError):
            track.data[0, 0] = 0.1

    def test_invalid_samplerate(self):
        with pytest.raises(ValueError):
            AudioTrack(np.zeros(10), 0)

    def test_invalid_shape(self):
        with pytest.raises(ValueError):
            AudioTrack(np.zeros((2, 2, 2)), TEST_SR)

    def test_get_mono_is_channel_mean(self, sample_stereo_audio):
        track = AudioTrack(sample_stereo_audio, 44100)
        mono = track.get_mono()
        assert mono.ndim == 1
        assert np.allclose(mono, sample_stereo_audio.mean(axis=1))

    def test_silence(self):
        track = AudioTrack.silence(TEST_SR, TEST_SR, channels=2)
        assert track.channels == 2
        assert track.duration_seconds == 1.0
        assert not track.data.any()

    def test_slice_seconds(self, mono_track):
        piece = mono_track.slice_seconds(0.5, 1.0)
        assert piece.duration_samples == TEST_SR
        assert piece.data[0, 0] == mono_track.data[TEST_SR // 2, 0]

    def test_slice_is_clamped(self, mono_track):
        piece = mono_track.slice_seconds(1.5, 10.0)
        assert piece.duration_samples == TEST_SR // 2

    def test_empty_slice_is_none(self, mono_track):
        assert mono_track.slice_seconds(0.0, 0.00001) is None
        assert mono_track.slice_seconds(3.0, 1.0) is None

    def test_resampled_same_rate(self, mono_track):
        assert mono_track.resampled(TEST_SR) is mono_track

    def test_resampled(self, mono_track):
        converted = mono_track.resampled(TEST_SR * 2)
        assert converted.samplerate == TEST_SR * 2
        assert converted.duration_samples == 4 * TEST_SR
        assert converted.is_mono

    def test_repr(self, mono_track):
        assert repr(mono_track) == "AudioTrack('Ramp', 1ch, 8000Hz, 2.00s)"
