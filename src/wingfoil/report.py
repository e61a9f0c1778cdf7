# wingfoil/report.py
"""
Human-readable rendering of RawStatistics.

Durations as H:MM:SS (or M:SS under an hour), speeds in km/h, distances in km,
percentages with one decimal.
"""

from __future__ import annotations

from typing import Any

from wingfoil.config import KMH_PER_MS
from wingfoil.models import RawStatistics, format_time_utc


def format_duration(seconds: float) -> str:
    seconds = max(0, int(seconds))
    hours, rem = divmod(seconds, 3600)
    minutes, secs = divmod(rem, 60)
    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def format_speed(speed_ms: float) -> str:
    return f"{speed_ms * KMH_PER_MS:.1f} km/h"


def format_km(meters: float) -> str:
    return f"{meters / 1000:.2f} km"


def format_statistics(raw: RawStatistics) -> dict[str, Any]:
    """Nested, display-ready statistics for one session."""
    flying_pct = raw.flying_time_s / raw.total_time_s * 100 if raw.total_time_s > 0 else 0.0
    flying_jibe_pct = (
        f"{raw.flying_jibe_count / raw.jibe_count * 100:.1f}" if raw.jibe_count > 0 else "0"
    )

    return {
        "general": {
            "date": raw.start_time.date().isoformat(),
            "total_time": format_duration(raw.total_time_s),
            "start_time": format_time_utc(raw.start_time),
            "end_time": format_time_utc(raw.end_time),
        },
        "speed": {
            "avg": format_speed(raw.avg_speed_ms),
            "max": format_speed(raw.max_speed_ms),
        },
        "flying": {
            "time": format_duration(raw.flying_time_s),
            "longest_sequence": format_duration(raw.longest_flying_sequence_s),
            "percentage": f"{flying_pct:.1f}%",
        },
        "maneuvers": {
            "jibes": raw.jibe_count,
            "tacks": raw.tack_count,
            "flying_jibes": raw.flying_jibe_count,
            "flying_jibe_percentage": f"{flying_jibe_pct}%",
        },
        "distance": {
            "total": format_km(raw.total_distance_m),
            "max_from_start": format_km(raw.max_distance_from_start_m),
        },
    }
