# wingfoil/analyze/track.py
"""
Track analysis entry points for wingfoil.

analyze_points is the engine facade: points + AnalysisConfig -> RawStatistics.
analyze_session returns the detected maneuvers alongside, for callers that
also draw them. Neither holds state between calls or logs; any problem with the input
is raised as an AnalysisError subclass and no partial result is produced.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable, Mapping, Optional

from wingfoil.analyze import metrics
from wingfoil.analyze.conditioning import filter_speed_jumps, filter_speed_outliers, filter_time_order
from wingfoil.analyze.maneuvers import Maneuver, count_maneuvers, detect_maneuvers
from wingfoil.config import AnalysisConfig
from wingfoil.errors import DegenerateTimeError, InsufficientDataError
from wingfoil.formats.gpx import read_track
from wingfoil.models import RawStatistics, TrackPoint, as_trackpoints


def analyze_session(
    points: Iterable[TrackPoint | Mapping[str, Any]],
    config: Optional[AnalysisConfig] = None,
) -> tuple[RawStatistics, list[Maneuver]]:
    """
    Compute session statistics for one complete track, together with the
    detected maneuvers (indices refer to `points`).

    Raises:
      InsufficientDataError   fewer than two points
      MalformedTimestampError a point time does not parse
      DegenerateTimeError     last point is not later than the first
    """
    cfg = config or AnalysisConfig()
    pts = as_trackpoints(points or [])
    if len(pts) < 2:
        raise InsufficientDataError(f"Need at least 2 track points, got {len(pts)}")

    total_time = metrics.total_time(pts)
    if total_time <= 0:
        raise DegenerateTimeError(
            f"Track duration must be positive (first={pts[0].time.isoformat()}, "
            f"last={pts[-1].time.isoformat()})"
        )

    # speed view: capped, then strictly increasing in time
    capped = filter_time_order(filter_speed_outliers(pts, cfg.outlier_speed_cap_ms))
    speed_view = capped
    if cfg.speed_jump_limit_ms is not None:
        speed_view = filter_speed_jumps(capped, cfg.speed_jump_limit_ms)

    maneuvers = detect_maneuvers(pts, cfg)
    counts = count_maneuvers(maneuvers)

    raw = RawStatistics(
        total_distance_m=metrics.total_distance(pts),
        total_time_s=total_time,
        start_time=pts[0].time,
        end_time=pts[-1].time,
        avg_speed_ms=metrics.weighted_average_speed(capped),
        max_speed_ms=metrics.max_sustained_speed(speed_view, cfg.min_max_speed_duration_s),
        # skipped non-monotonic pairs can otherwise push the sum past the span
        flying_time_s=min(metrics.flying_time(pts, cfg.flying_speed_threshold_ms), total_time),
        max_distance_from_start_m=metrics.max_distance_from_start(pts),
        longest_flying_sequence_s=metrics.longest_flying_sequence(
            pts, cfg.flying_speed_threshold_ms, cfg.min_flying_segment_s
        ),
        jibe_count=counts.jibes,
        tack_count=counts.tacks,
        flying_jibe_count=counts.flying_jibes,
    )

    return raw, maneuvers


def analyze_points(
    points: Iterable[TrackPoint | Mapping[str, Any]],
    config: Optional[AnalysisConfig] = None,
) -> RawStatistics:
    """Engine facade: points + config -> RawStatistics. See analyze_session."""
    raw, _ = analyze_session(points, config)
    return raw


def analyze_track(gpx_path: Path, config: Optional[AnalysisConfig] = None) -> RawStatistics:
    """Read a GPX file (speeds backfilled) and analyze it."""
    return analyze_points(read_track(gpx_path), config)
