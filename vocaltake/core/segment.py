from dataclasses import dataclass

from .track import AudioTrack


@dataclass(frozen=True)
class RecordingSegment:
    """
    A recorded excerpt of vocal audio placed on the timeline.
    Covers [start_time, end_time) in seconds.
    """
    track: AudioTrack
    start_time: float
    end_time: float

    def __post_init__(self):
        if self.start_time < 0:
            raise ValueError(f"segment starts before the timeline: {self.start_time}")
        if self.end_time <= self.start_time:
            raise ValueError(f"empty segment [{self.start_time}, {self.end_time})")

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time

    def overlaps(self, other: "RecordingSegment") -> bool:
        return not (self.end_time <= other.start_time or self.start_time >= other.end_time)

    def covers(self, seconds: float) -> bool:
        return self.start_time <= seconds < self.end_time
