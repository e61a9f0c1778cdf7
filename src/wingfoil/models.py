# wingfoil/models.py
"""
Core records shared by the analysis engine and its collaborators.

- TrackPoint: one GPS fix (immutable)
- RawStatistics: the numeric result of one analysis call
"""

from __future__ import annotations

import datetime as _dt
from collections.abc import Iterable, Mapping
from dataclasses import asdict, dataclass
from typing import Any, Optional

from wingfoil.errors import MalformedPointError, MalformedTimestampError


def parse_time_utc(text: str) -> _dt.datetime:
    """
    Parse an ISO-8601 timestamp into a tz-aware UTC datetime.

    Expected examples:
      - "2026-01-02T21:14:44Z"
      - "2026-01-02T21:14:44.123Z"
      - "2026-01-02T21:14:44+01:00"

    Naive timestamps are taken as UTC. Sub-second precision is preserved.

    Raises:
      MalformedTimestampError if `text` is not an absolute instant.
    """
    if not isinstance(text, str) or not text.strip():
        raise MalformedTimestampError(f"Missing or non-string timestamp: {text!r}")
    s = text.strip()

    if s.endswith("Z"):
        s = s[:-1] + "+00:00"

    try:
        dt = _dt.datetime.fromisoformat(s)
    except ValueError as e:
        raise MalformedTimestampError(f"Unparseable timestamp: {text!r}") from e

    return as_utc(dt)


def as_utc(dt: _dt.datetime) -> _dt.datetime:
    """Return `dt` in UTC; naive values are assumed to already be UTC."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=_dt.timezone.utc)
    return dt.astimezone(_dt.timezone.utc)


def format_time_utc(dt: _dt.datetime) -> str:
    """Format a datetime as ISO-8601 UTC with a trailing Z."""
    return as_utc(dt).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class TrackPoint:
    """
    One GPS fix.

    speed is in m/s; None means unknown, not zero.
    hr and distance are carried through for collaborators and never read by the engine.
    """

    lat: float
    lon: float
    time: _dt.datetime
    speed: Optional[float] = None
    hr: Optional[float] = None
    distance: Optional[float] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "lat": self.lat,
            "lon": self.lon,
            "time": format_time_utc(self.time),
            "speed": self.speed,
            "hr": self.hr,
            "distance": self.distance,
        }


def _optional_float(v: Any) -> Optional[float]:
    if v is None or v == "":
        return None
    return float(v)


def _point_from_mapping(raw: Mapping[str, Any]) -> TrackPoint:
    t = raw.get("time")
    time = as_utc(t) if isinstance(t, _dt.datetime) else parse_time_utc(t)
    try:
        return TrackPoint(
            lat=float(raw["lat"]),
            lon=float(raw["lon"]),
            time=time,
            speed=_optional_float(raw.get("speed")),
            hr=_optional_float(raw.get("hr")),
            distance=_optional_float(raw.get("distance")),
        )
    except KeyError as e:
        raise MalformedPointError(f"Track point without {e.args[0]!r}: {dict(raw)!r}") from e
    except (TypeError, ValueError) as e:
        raise MalformedPointError(f"Track point with a non-numeric field: {dict(raw)!r}") from e


def as_trackpoints(points: Iterable[TrackPoint | Mapping[str, Any]]) -> list[TrackPoint]:
    """
    Normalize an input sequence into TrackPoints.

    Accepts TrackPoint instances (returned as-is, with naive times taken as UTC)
    or mappings with keys lat, lon, time and optional speed, hr, distance.

    Raises:
      MalformedTimestampError on the first point whose time does not parse,
      MalformedPointError on the first mapping without numeric lat/lon
      (or with a non-numeric speed, hr or distance); no per-point recovery
      is attempted.
    """
    out: list[TrackPoint] = []
    for p in points:
        if isinstance(p, TrackPoint):
            if p.time.tzinfo is None:
                p = TrackPoint(p.lat, p.lon, as_utc(p.time), p.speed, p.hr, p.distance)
            out.append(p)
        else:
            out.append(_point_from_mapping(p))
    return out


@dataclass(frozen=True)
class RawStatistics:
    """
    Numeric session summary. Distances in meters, durations in seconds,
    speeds in m/s.
    """

    total_distance_m: float
    total_time_s: float
    start_time: _dt.datetime
    end_time: _dt.datetime
    avg_speed_ms: float
    max_speed_ms: float
    flying_time_s: float
    max_distance_from_start_m: float
    longest_flying_sequence_s: float
    jibe_count: int
    tack_count: int
    flying_jibe_count: int

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        d["start_time"] = format_time_utc(self.start_time)
        d["end_time"] = format_time_utc(self.end_time)
        return d
