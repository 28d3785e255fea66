"""
Take-timeline engine for VocalTake.
Owns the timeline position, the instrumental and vocal tracks, the recorded
segment set and the transport state machine (IDLE, PLAYING, RECORDING).
"""
from __future__ import annotations
import queue
import threading
import time
from typing import Optional

from .capture import CaptureStream
from .commands import (
    INSTRUMENTAL, VOCAL, CaptureChunk, LoadFailed, Pause, Play, Seek, SetGain,
    SkipBackward, StartRecording, StopRecording, TogglePlayPause, TrackLoaded,
)
from .config import AUDIO_CONFIG, EngineState
from .decoder import decode, decode_raw, to_mono
from .encoder import encode_track
from .errors import (
    CaptureDeviceError, DecodeError, InvalidStateError, LoadError,
    PlaybackDeviceError, TakeEditorError,
)
from .mixer import render_full_mix, render_solo_vocal
from .playback import PlaybackController
from .resolver import flatten, resolve
from .segment import RecordingSegment
from .track import AudioTrack
from .types import (
    Clock, ErrorCallback, PositionCallback, SegmentsCallback, StateCallback,
    StreamFactory, TrackSource,
)
from vocaltake.utils.logger import logger


def clamp_gain(value: float) -> float:
    return max(AUDIO_CONFIG.min_gain, min(float(value), AUDIO_CONFIG.max_gain))


class TimelineEngine:
    """
    Single-session editing engine.

    Every method is meant to be called from one thread, the one that also
    calls tick(). Other threads (audio callbacks, loaders) must use post().
    Recoverable failures never raise: they are logged, handed to `on_error`
    and the operation returns False or None.
    """

    def __init__(
        self,
        source: Optional[TrackSource] = None,
        *,
        output_stream_factory: Optional[StreamFactory] = None,
        input_stream_factory: Optional[StreamFactory] = None,
        clock: Clock = time.monotonic,
        on_position_changed: Optional[PositionCallback] = None,
        on_state_changed: Optional[StateCallback] = None,
        on_segments_changed: Optional[SegmentsCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> None:
        self._source = source
        self._input_stream_factory = input_stream_factory
        self._clock = clock
        self._playback = PlaybackController(output_stream_factory)
        self._capture: Optional[CaptureStream] = None
        self._commands: queue.SimpleQueue = queue.SimpleQueue()

        self._state = EngineState.IDLE
        self._instrumental: Optional[AudioTrack] = None
        self._vocal: Optional[AudioTrack] = None
        self._segments: list[RecordingSegment] = []
        self._position = 0.0
        self._duration = 0.0
        self._origin_position = 0.0
        self._origin_instant = 0.0
        self._recording_start = 0.0
        self._committing = False
        self._instrumental_gain = AUDIO_CONFIG.default_instrumental_gain
        self._vocal_gain = AUDIO_CONFIG.default_vocal_gain

        self._on_position_changed = on_position_changed
        self._on_state_changed = on_state_changed
        self._on_segments_changed = on_segments_changed
        self._on_error = on_error

        self._handlers = {
            Play: lambda c: self.play(),
            Pause: lambda c: self.pause(),
            Seek: lambda c: self.seek(c.seconds),
            SkipBackward: lambda c: self.skip_backward(c.seconds),
            TogglePlayPause: lambda c: self.toggle_play_pause(),
            StartRecording: lambda c: self.start_recording(),
            StopRecording: lambda c: self.stop_recording(),
            CaptureChunk: self._on_capture_chunk,
            SetGain: self._on_set_gain,
            TrackLoaded: lambda c: self._apply_loaded(c.role, c.track),
            LoadFailed: lambda c: self._report(c.error),
        }
        logger.info("TimelineEngine initialized")

    # --- State ---

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def is_playing(self) -> bool:
        """True while sources run, recording included."""
        return self._state is not EngineState.IDLE

    @property
    def is_recording(self) -> bool:
        return self._state is EngineState.RECORDING

    @property
    def position(self) -> float:
        """Current timeline position in seconds."""
        return self._position

    @property
    def duration(self) -> float:
        """Timeline length in seconds (the instrumental's duration)."""
        return self._duration

    @property
    def instrumental(self) -> Optional[AudioTrack]:
        return self._instrumental

    @property
    def vocal(self) -> Optional[AudioTrack]:
        """Flattened vocal buffer, None until something is recorded or loaded."""
        return self._vocal

    @property
    def segments(self) -> list[RecordingSegment]:
        return list(self._segments)

    @property
    def playback(self) -> PlaybackController:
        return self._playback

    @property
    def instrumental_gain(self) -> float:
        return self._instrumental_gain

    @property
    def vocal_gain(self) -> float:
        return self._vocal_gain

    def _set_state(self, state: EngineState) -> None:
        if self._state is not state:
            self._state = state
            logger.debug(f"Engine state: {state.name}")
            if self._on_state_changed:
                self._on_state_changed(state)

    def _set_position(self, seconds: float) -> None:
        clamped = max(0.0, min(float(seconds), self._duration))
        if clamped != self._position:
            self._position = clamped
            if self._on_position_changed:
                self._on_position_changed(clamped)

    def _set_segments(self, segments: list[RecordingSegment], vocal: Optional[AudioTrack]) -> None:
        self._segments = segments
        self._vocal = vocal
        if self._on_segments_changed:
            self._on_segments_changed(list(segments))

    def _report(self, error: TakeEditorError) -> None:
        logger.error(f"{error.__class__.__name__}: {error}")
        if self._on_error:
            self._on_error(error)

    # --- Commands ---

    def post(self, command) -> None:
        """Queue a command from any thread. Applied by the next tick()."""
        self._commands.put(command)

    def dispatch(self, command):
        """Apply one command immediately and return the handler's result."""
        handler = self._handlers.get(type(command))
        if handler is None:
            raise TypeError(f"Unknown command: {command!r}")
        return handler(command)

    def process_pending(self) -> int:
        """Apply queued commands in arrival order. Returns how many ran."""
        count = 0
        while True:
            try:
                command = self._commands.get_nowait()
            except queue.Empty:
                return count
            self.dispatch(command)
            count += 1

    def _on_capture_chunk(self, command: CaptureChunk) -> None:
        if self._capture is None:
            logger.debug("Dropping capture chunk: no active capture")
            return
        self._capture.feed(command.data)

    def _on_set_gain(self, command: SetGain) -> None:
        if command.role == INSTRUMENTAL:
            self.set_instrumental_gain(command.value)
        elif command.role == VOCAL:
            self.set_vocal_gain(command.value)
        else:
            raise ValueError(f"Unknown track role: {command.role!r}")

    # --- Track Loading ---

    def _fetch_and_decode(self, track_id: str) -> AudioTrack:
        if self._source is None:
            raise LoadError("No track source configured", code="NO_SOURCE")
        data = self._source.fetch_track_bytes(track_id)
        return decode(data, name=str(track_id))

    def load_instrumental(self, track_id: str) -> bool:
        """Fetch and decode the backing track. Blocks until done."""
        return self._load(INSTRUMENTAL, track_id)

    def load_vocal(self, track_id: str) -> bool:
        """Fetch a previously saved take and make it the only segment."""
        return self._load(VOCAL, track_id)

    def _load(self, role: str, track_id: str) -> bool:
        logger.info(f"Loading {role}: {track_id}")
        if self._capture is not None:
            logger.warning(f"Ignoring {role} load while recording")
            return False
        try:
            track = self._fetch_and_decode(track_id)
        except (LoadError, DecodeError) as e:
            self._report(e)
            return False
        return self._apply_loaded(role, track)

    def load_instrumental_async(self, track_id: str) -> threading.Thread:
        """Fetch on a worker thread; the result is applied by a later tick()."""
        return self._spawn_loader(INSTRUMENTAL, track_id)

    def load_vocal_async(self, track_id: str) -> threading.Thread:
        return self._spawn_loader(VOCAL, track_id)

    def _spawn_loader(self, role: str, track_id: str) -> threading.Thread:
        def worker() -> None:
            try:
                track = self._fetch_and_decode(track_id)
            except (LoadError, DecodeError) as e:
                self.post(LoadFailed(role, e))
                return
            self.post(TrackLoaded(role, track))

        thread = threading.Thread(target=worker, name=f"load-{role}", daemon=True)
        thread.start()
        return thread

    def _apply_loaded(self, role: str, track: AudioTrack) -> bool:
        if self._capture is not None:
            self._report(InvalidStateError(f"Cannot replace the {role} while recording", code="RECORDING"))
            return False
        if role == INSTRUMENTAL:
            self._set_instrumental(track)
            return True
        return self._set_vocal(track)

    def _set_instrumental(self, track: AudioTrack) -> None:
        self._halt()
        self._instrumental = track
        self._duration = track.duration_seconds
        self._position = 0.0
        if self._on_position_changed:
            self._on_position_changed(0.0)
        # Takes belong to the previous backing track
        self._set_segments([], None)
        logger.info(f"Instrumental ready: {track!r}")

    def _set_vocal(self, track: AudioTrack) -> bool:
        if self._instrumental is None:
            self._report(InvalidStateError("Load the instrumental before a vocal", code="NO_INSTRUMENTAL"))
            return False

        mono = to_mono(track)
        end = min(mono.duration_seconds, self._duration)
        if end <= 0:
            self._report(DecodeError("Vocal track is empty", code="EMPTY_AUDIO"))
            return False

        segments = [RecordingSegment(mono, 0.0, end)]
        vocal = flatten(segments, self._duration, self._instrumental.samplerate)
        self._set_segments(segments, vocal)
        logger.info(f"Vocal ready: {track!r}")

        if self._state is EngineState.PLAYING:
            self._restart_sources()
        return True

    # --- Playback Control ---

    def _start_sources(self) -> bool:
        """Start both sources at the current position with a fresh clock origin."""
        self._origin_position = self._position
        self._origin_instant = self._clock()
        # The prior take stays silent while the performer records over it
        vocal_gain = 0.0 if self._capture is not None else self._vocal_gain
        try:
            self._playback.start(
                self._instrumental, self._vocal, self._position,
                self._instrumental_gain, vocal_gain,
            )
        except PlaybackDeviceError as e:
            self._report(e)
            return False
        return True

    def _restart_sources(self) -> None:
        self._update_position()
        self._playback.stop()
        if not self._start_sources():
            self._set_state(EngineState.IDLE)

    def _halt(self) -> None:
        """Release playback sources and go IDLE."""
        self._playback.stop()
        self._set_state(EngineState.IDLE)

    def _update_position(self) -> None:
        """Recompute the position from the clock origin (no accumulated deltas)."""
        if self._state is EngineState.IDLE:
            return
        self._set_position(self._origin_position + (self._clock() - self._origin_instant))

    def play(self) -> bool:
        """Start playback from the current position."""
        if self._instrumental is None:
            logger.debug("play() ignored: no instrumental loaded")
            return False
        if self._state is not EngineState.IDLE:
            return False
        if self._duration - self._position <= 0:
            logger.debug("play() ignored: at end of timeline")
            return False

        if not self._start_sources():
            return False
        self._set_state(EngineState.PLAYING)
        logger.info(f"Playing from {self._position:.3f}s")
        return True

    def pause(self) -> None:
        """Stop playback and keep the position. Ends an active recording."""
        if self._capture is not None:
            self.stop_recording()
            return
        self._update_position()
        self._halt()

    def toggle_play_pause(self) -> bool:
        """Returns True when the call started playback."""
        if self._state is EngineState.IDLE:
            return self.play()
        self.pause()
        return False

    def tick(self) -> None:
        """
        One scheduler step: apply queued commands, then advance the position.
        Reaching the end of the timeline stops playback, or commits the take.
        """
        self.process_pending()
        if self._state is EngineState.IDLE:
            return

        self._update_position()
        if self._position >= self._duration:
            logger.info("Reached end of timeline")
            if self._capture is not None:
                self.stop_recording()
            else:
                self._halt()

    def seek(self, seconds: float) -> bool:
        """
        Move the playhead, clamped to [0, duration].
        While playing, both sources restart at the new offset.
        Rejected while recording.
        """
        if self._instrumental is None or self._duration <= 0:
            return False
        if self._capture is not None:
            logger.warning("Seek ignored while recording")
            return False

        self._set_position(seconds)
        if self._state is EngineState.PLAYING:
            self._playback.stop()
            if self._duration - self._position <= 0 or not self._start_sources():
                self._set_state(EngineState.IDLE)
        return True

    def skip_backward(self, seconds: Optional[float] = None) -> bool:
        step = AUDIO_CONFIG.skip_seconds if seconds is None else seconds
        return self.seek(self._position - step)

    # --- Gains ---

    def set_instrumental_gain(self, value: float) -> None:
        self._instrumental_gain = clamp_gain(value)
        self._playback.instrumental_gain = self._instrumental_gain

    def set_vocal_gain(self, value: float) -> None:
        self._vocal_gain = clamp_gain(value)
        if self._capture is None:
            self._playback.vocal_gain = self._vocal_gain

    # --- Recording ---

    def start_recording(self) -> bool:
        """
        Open the microphone and record from the current position.
        Starts playback when idle.
        """
        if self._instrumental is None:
            logger.debug("start_recording() ignored: no instrumental loaded")
            return False
        if self._capture is not None or self._state is EngineState.RECORDING:
            logger.warning("start_recording() rejected: already recording")
            return False
        if self._committing:
            logger.warning("start_recording() rejected: previous take still being committed")
            return False
        if self._duration - self._position <= 0:
            logger.debug("start_recording() ignored: at end of timeline")
            return False

        self._update_position()
        capture = CaptureStream(
            self._instrumental.samplerate,
            AUDIO_CONFIG.capture_channels,
            self._input_stream_factory,
        )
        try:
            capture.open()
        except CaptureDeviceError as e:
            self._report(e)
            return False

        self._capture = capture
        self._playback.vocal_gain = 0.0
        self._recording_start = self._position

        if self._state is EngineState.IDLE and not self.play():
            capture.close()
            self._capture = None
            self._playback.vocal_gain = self._vocal_gain
            return False

        self._set_state(EngineState.RECORDING)
        logger.info(f"Recording from {self._recording_start:.3f}s")
        return True

    def stop_recording(self) -> Optional[RecordingSegment]:
        """
        Close the microphone, commit the take and stop playback.
        Safe from any state: without an active capture it only releases playback.

        Returns:
            The committed segment, or None when nothing was committed
        """
        capture, self._capture = self._capture, None
        self._update_position()

        if capture is None:
            logger.debug("stop_recording() with no active capture")
            self._halt()
            return None

        self._committing = True
        try:
            raw = capture.close()
            segment = self._commit_take(raw, capture, self._recording_start, self._position)
        finally:
            self._committing = False
            self._playback.vocal_gain = self._vocal_gain
            self._halt()
        return segment

    def _commit_take(
        self,
        raw: bytes,
        capture: CaptureStream,
        start: float,
        end: float,
    ) -> Optional[RecordingSegment]:
        """Decode, resolve and flatten; state is replaced only if all succeed."""
        end = min(end, self._duration)
        if end <= start:
            logger.warning(f"Discarding empty take at {start:.3f}s")
            return None

        try:
            take = to_mono(decode_raw(raw, capture.samplerate, capture.channels, name="Take"))
        except DecodeError as e:
            self._report(e)
            return None

        segment = RecordingSegment(take, start, end)
        segments = resolve(self._segments, segment)
        vocal = flatten(segments, self._duration, self._instrumental.samplerate)
        self._set_segments(segments, vocal)
        logger.info(f"Committed take [{start:.3f}, {end:.3f}), {len(segments)} segments")
        return segment

    # --- Export ---

    def export_mix(self) -> Optional[bytes]:
        """Full mix (instrumental + vocal) as a stereo WAV."""
        if self._instrumental is None:
            logger.warning("Nothing to export: no instrumental loaded")
            return None
        mix = render_full_mix(self._instrumental, self._vocal, self._instrumental_gain, self._vocal_gain)
        data = encode_track(mix)
        logger.info(f"Exported mix: {len(data)} bytes")
        return data

    def save_take(self) -> Optional[bytes]:
        """Solo vocal as a mono WAV."""
        if self._vocal is None:
            logger.warning("Nothing to save: record something first")
            return None
        take = render_solo_vocal(self._vocal, self._vocal_gain)
        data = encode_track(take)
        logger.info(f"Rendered take: {len(data)} bytes")
        return data

    def cleanup(self) -> None:
        """Release devices and drop observers. The engine is unusable afterwards."""
        self._on_position_changed = None
        self._on_state_changed = None
        self._on_segments_changed = None
        self._on_error = None

        if self._capture is not None:
            self._capture.close()
            self._capture = None
        self._playback.stop()
        self._state = EngineState.IDLE
