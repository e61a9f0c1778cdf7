# wingfoil/analyze/maneuvers.py
"""
Tack and jibe detection from bearing changes.

For every start index i the detector looks ahead through a time window and
finds the largest net heading change between the segment arriving at i and
any later segment inside the window. That single largest change classifies
the turn:

    angle >= jibe threshold  -> jibe (flying if speed stays above the
                                flying-jibe threshold from start to end)
    angle >= tack threshold  -> tack
    otherwise                -> nothing

Segmentation is greedy. Once a maneuver is found the scan resumes right after
its end index, so maneuvers never share a point and the first start index
reached wins any tie with a later, overlapping candidate.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional, Sequence

from wingfoil.analyze.conditioning import speed_or_zero
from wingfoil.analyze.geodesy import angular_difference, bearing
from wingfoil.config import AnalysisConfig
from wingfoil.models import TrackPoint


class ManeuverKind(str, enum.Enum):
    TACK = "tack"
    JIBE = "jibe"


@dataclass(frozen=True)
class Maneuver:
    kind: ManeuverKind
    start_index: int
    end_index: int
    angle_deg: float
    is_flying: bool = False


@dataclass(frozen=True)
class ManeuverCounts:
    jibes: int = 0
    tacks: int = 0
    flying_jibes: int = 0


def build_bearings(points: Sequence[TrackPoint]) -> list[float]:
    """
    One bearing per point index: bearings[i] is the course from point i to
    point i + 1, and the last slot repeats the final segment's bearing.

    A zero-length segment has no direction and takes the previous segment's
    bearing (0.0 if it is the first).
    """
    bearings: list[float] = []
    for p0, p1 in zip(points, points[1:]):
        if p0.lat == p1.lat and p0.lon == p1.lon:
            bearings.append(bearings[-1] if bearings else 0.0)
        else:
            bearings.append(bearing(p0, p1))

    if bearings:
        bearings.append(bearings[-1])
    return bearings


def is_flying_between(points: Sequence[TrackPoint], start: int, end: int, threshold_ms: float) -> bool:
    """True iff every point in [start, end] is strictly faster than threshold_ms."""
    return all(speed_or_zero(points[k]) > threshold_ms for k in range(start, end + 1))


def detect_maneuver_at(
    points: Sequence[TrackPoint],
    bearings: Sequence[float],
    start: int,
    config: AnalysisConfig,
) -> Optional[Maneuver]:
    """Classify the largest heading change starting at `start`, if any."""
    max_angle = 0.0
    end = -1
    t0 = points[start].time

    for j in range(start + 1, len(points)):
        if (points[j].time - t0).total_seconds() > config.maneuver_time_window_s:
            break
        angle = angular_difference(bearings[start - 1], bearings[j - 1])
        if angle > max_angle:
            max_angle = angle
            end = j

    if max_angle >= config.jibe_angle_threshold_deg:
        flying = is_flying_between(points, start, end, config.flying_jibe_speed_threshold_ms)
        return Maneuver(ManeuverKind.JIBE, start, end, max_angle, is_flying=flying)
    if max_angle >= config.tack_angle_threshold_deg:
        return Maneuver(ManeuverKind.TACK, start, end, max_angle)
    return None


def detect_maneuvers(points: Sequence[TrackPoint], config: AnalysisConfig) -> list[Maneuver]:
    """Scan the whole track and return non-overlapping maneuvers in order."""
    bearings = build_bearings(points)
    found: list[Maneuver] = []

    i = 1
    while i < len(points) - 1:
        m = detect_maneuver_at(points, bearings, i, config)
        if m is not None:
            found.append(m)
            i = m.end_index  # skip ahead past this turn
        i += 1

    return found


def count_maneuvers(maneuvers: Sequence[Maneuver]) -> ManeuverCounts:
    jibes = [m for m in maneuvers if m.kind is ManeuverKind.JIBE]
    return ManeuverCounts(
        jibes=len(jibes),
        tacks=sum(1 for m in maneuvers if m.kind is ManeuverKind.TACK),
        flying_jibes=sum(1 for m in jibes if m.is_flying),
    )
