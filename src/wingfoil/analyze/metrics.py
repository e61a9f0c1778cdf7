# wingfoil/analyze/metrics.py
"""
Scalar session metrics.

All speeds are m/s, distances meters, durations seconds. Functions take the
track (raw or conditioned, as documented per function) and return a number;
none of them mutate their input.
"""

from __future__ import annotations

from typing import Sequence

from wingfoil.analyze.conditioning import speed_or_zero
from wingfoil.analyze.geodesy import distance
from wingfoil.models import TrackPoint

# Points slower than this never start a sustained-speed run.
MIN_SUSTAIN_START_SPEED_MS = 0.1


def _seconds(p0: TrackPoint, p1: TrackPoint) -> float:
    return (p1.time - p0.time).total_seconds()


def total_distance(points: Sequence[TrackPoint]) -> float:
    """Sum of great-circle distances between consecutive raw points."""
    return sum(distance(p0, p1) for p0, p1 in zip(points, points[1:]))


def total_time(points: Sequence[TrackPoint]) -> float:
    """Seconds from first to last point (may be <= 0 for malformed input)."""
    if len(points) < 2:
        return 0.0
    return _seconds(points[0], points[-1])


def max_distance_from_start(points: Sequence[TrackPoint]) -> float:
    if not points:
        return 0.0
    start = points[0]
    return max((distance(start, p) for p in points[1:]), default=0.0)


def weighted_average_speed(points: Sequence[TrackPoint]) -> float:
    """
    Time-weighted (trapezoidal) average speed.

    Pairs with an unknown speed or a non-positive dt are skipped rather than
    counted as zero. Returns 0 if no pair qualifies.
    """
    num = 0.0
    den = 0.0
    for p0, p1 in zip(points, points[1:]):
        if p0.speed is None or p1.speed is None:
            continue
        dt_s = _seconds(p0, p1)
        if dt_s <= 0:
            continue
        num += (p0.speed + p1.speed) / 2 * dt_s
        den += dt_s
    return num / den if den > 0 else 0.0


def sustained_duration(points: Sequence[TrackPoint], start: int, target_ms: float) -> float:
    """
    Seconds for which speed stays >= target_ms starting at points[start].

    The run ends at the first point below target or whose timestamp goes
    backwards. A run starting at the last point lasts 0 seconds.
    """
    if start >= len(points) - 1:
        return 0.0

    end = start
    for i in range(start + 1, len(points)):
        p = points[i]
        if speed_or_zero(p) < target_ms or p.time < points[i - 1].time:
            break
        end = i
    return _seconds(points[start], points[end])


def max_sustained_speed(points: Sequence[TrackPoint], min_duration_s: float) -> float:
    """
    Highest speed reached at some point and held (>=) for at least
    `min_duration_s` from that point forward.

    Single-sample spikes never qualify, so they are not reported as top speed.
    """
    if len(points) < 2:
        return 0.0

    best = 0.0
    for i, p in enumerate(points):
        speed = speed_or_zero(p)
        if speed <= MIN_SUSTAIN_START_SPEED_MS or speed <= best:
            continue
        if sustained_duration(points, i, speed) >= min_duration_s:
            best = speed
    return best


def flying_time(points: Sequence[TrackPoint], threshold_ms: float) -> float:
    """
    Seconds spent above `threshold_ms`.

    A segment counts fully when both ends are above the threshold and half
    when only one is, approximating the crossing instant. Segments with
    dt <= 0 are skipped.
    """
    total = 0.0
    for p0, p1 in zip(points, points[1:]):
        above0 = speed_or_zero(p0) > threshold_ms
        above1 = speed_or_zero(p1) > threshold_ms
        if not (above0 or above1):
            continue
        dt_s = _seconds(p0, p1)
        if dt_s <= 0:
            continue
        total += dt_s if (above0 and above1) else dt_s / 2
    return total


def longest_flying_sequence(points: Sequence[TrackPoint], threshold_ms: float, min_segment_s: float) -> float:
    """
    Longest run of consecutive points above `threshold_ms`, in seconds.

    A run lasts from its first to its last point. Runs shorter than
    `min_segment_s` are ignored; 0 if none qualifies.
    """
    longest = 0.0
    run_start = None

    def close(last: int) -> None:
        nonlocal longest
        seconds = _seconds(points[run_start], points[last])
        if seconds >= min_segment_s:
            longest = max(longest, seconds)

    for i, p in enumerate(points):
        if speed_or_zero(p) > threshold_ms:
            if run_start is None:
                run_start = i
        elif run_start is not None:
            close(i - 1)
            run_start = None

    if run_start is not None:
        close(len(points) - 1)

    return longest
