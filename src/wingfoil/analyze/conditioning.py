# wingfoil/analyze/conditioning.py
"""
Speed conditioning for speed-derived metrics.

Raw GPS speed carries burst noise. Independent policies produce cleaned
views of a track; each returns an ordered subsequence of the original points
(same objects, nothing copied) and none modifies its input:

- filter_speed_outliers: drop points above a sanity cap
- filter_time_order: drop points whose time does not strictly increase
- filter_speed_jumps: drop single-sample spikes relative to the last kept point

Distance and duration metrics always use the unfiltered track.

fill_missing_speed is the parser-side backfill for formats without a speed
channel. It returns a new list and leaves the input untouched.
"""

from __future__ import annotations

import dataclasses
import math
from typing import Optional, Sequence

from wingfoil.analyze.geodesy import distance
from wingfoil.models import TrackPoint


def speed_or_zero(p: TrackPoint) -> float:
    """Speed for threshold comparisons: unknown counts as 0."""
    return p.speed if p.speed is not None else 0.0


def filter_speed_outliers(points: Sequence[TrackPoint], cap_ms: float) -> list[TrackPoint]:
    """Keep points whose speed is not above `cap_ms`. Unknown speeds are kept."""
    return [p for p in points if speed_or_zero(p) <= cap_ms]


def filter_time_order(points: Sequence[TrackPoint]) -> list[TrackPoint]:
    """Keep a point only if its time is strictly after the last kept point."""
    kept: list[TrackPoint] = []
    for p in points:
        if kept and not p.time > kept[-1].time:
            continue
        kept.append(p)
    return kept


def filter_speed_jumps(points: Sequence[TrackPoint], jump_ms: float) -> list[TrackPoint]:
    """
    Keep a point only if its time strictly follows the last kept point and its
    speed is within `jump_ms` of the last kept speed.

    Points with missing or non-finite speed are always dropped.
    """
    kept: list[TrackPoint] = []
    last_speed: Optional[float] = None
    last_time = None

    for p in points:
        s = p.speed
        if s is None or not math.isfinite(s):
            continue
        if last_time is not None and not p.time > last_time:
            continue
        if last_speed is None or abs(s - last_speed) <= jump_ms:
            kept.append(p)
            last_speed = s
            last_time = p.time
        # else: spike, dropped

    return kept


def fill_missing_speed(points: Sequence[TrackPoint]) -> list[TrackPoint]:
    """
    Return a copy of `points` where every unknown speed is filled in.

    - first point: 0
    - later points: distance / dt from the previous point, or the previous
      (filled) speed when dt <= 0
    """
    out: list[TrackPoint] = []
    for i, p in enumerate(points):
        if p.speed is not None:
            out.append(p)
            continue
        if i == 0:
            out.append(dataclasses.replace(p, speed=0.0))
            continue

        prev = out[-1]
        dt_s = (p.time - prev.time).total_seconds()
        if dt_s > 0:
            speed = distance(prev, p) / dt_s
        else:
            speed = speed_or_zero(prev)
        out.append(dataclasses.replace(p, speed=speed))

    return out
