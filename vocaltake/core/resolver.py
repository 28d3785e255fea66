"""
Segment resolution for VocalTake.
A new take replaces whatever it overlaps; older takes are split around it.
All functions are pure and return new objects.
"""
from __future__ import annotations
import logging
from typing import Iterable, Optional
import numpy as np

from .segment import RecordingSegment
from .track import AudioTrack

logger = logging.getLogger("VocalTake")


def _leading_part(existing: RecordingSegment, cut: float) -> Optional[RecordingSegment]:
    """Part of `existing` before `cut`, or None when no samples remain."""
    sliced = existing.track.slice_seconds(0.0, cut - existing.start_time)
    if sliced is None:
        return None
    return RecordingSegment(sliced, existing.start_time, cut)


def _trailing_part(existing: RecordingSegment, cut: float) -> Optional[RecordingSegment]:
    """Part of `existing` from `cut` on, or None when no samples remain."""
    sliced = existing.track.slice_seconds(cut - existing.start_time, existing.end_time - cut)
    if sliced is None:
        return None
    return RecordingSegment(sliced, cut, existing.end_time)


def resolve(
    existing: Iterable[RecordingSegment],
    incoming: RecordingSegment,
) -> list[RecordingSegment]:
    """
    Merge a newly recorded segment into a non-overlapping segment set.

    Segments the incoming one does not touch are kept as they are. Overlapped
    segments lose the overlapped range; their leading and trailing remainders
    survive as new segments when they still hold samples.

    Args:
        existing: Current segments, pairwise non-overlapping
        incoming: The segment just recorded

    Returns:
        New list sorted by start time, incoming included
    """
    resolved: list[RecordingSegment] = []

    for segment in existing:
        if not segment.overlaps(incoming):
            resolved.append(segment)
            continue

        if segment.start_time < incoming.start_time:
            left = _leading_part(segment, incoming.start_time)
            if left is not None:
                resolved.append(left)

        if segment.end_time > incoming.end_time:
            right = _trailing_part(segment, incoming.end_time)
            if right is not None:
                resolved.append(right)

    resolved.append(incoming)
    resolved.sort(key=lambda s: s.start_time)
    logger.debug("Resolved take [%.3f, %.3f) into %d segments",
                 incoming.start_time, incoming.end_time, len(resolved))
    return resolved


def flatten(
    segments: Iterable[RecordingSegment],
    duration: float,
    samplerate: int,
    name: str = "Vocal",
) -> AudioTrack:
    """
    Render a segment set into one mono buffer spanning [0, duration).

    Uncovered time is silence. Each segment writes at most the samples of its
    own [start, end) window, so the output does not depend on buffer lengths
    recorded past a segment's end.
    """
    total = max(0, int(np.floor(duration * samplerate)))
    output = np.zeros(total, dtype=np.float32)

    for segment in segments:
        track = segment.track.resampled(samplerate)
        data = track.get_mono()

        start = int(np.floor(segment.start_time * samplerate))
        end = min(total, int(np.floor(segment.end_time * samplerate)))
        count = min(len(data), end - start)
        if count <= 0:
            continue
        output[start:start + count] = data[:count]

    return AudioTrack(output, samplerate, name)
