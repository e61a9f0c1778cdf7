# wingfoil/session.py
"""
Session assembly: one GPX file -> metadata + statistics + points.

It combines parsing, analysis, presentation and (optionally) reverse
geocoding. assemble_session takes already parsed and analyzed input so a
caller that also plots the track reads each file only once.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Optional, Sequence
from xml.etree import ElementTree as ET

from wingfoil.analyze.conditioning import fill_missing_speed
from wingfoil.analyze.track import analyze_points
from wingfoil.config import AnalysisConfig
from wingfoil.errors import GeocodeError
from wingfoil.formats.gpx import extract_trackpoints, read_gpx, read_gpx_info
from wingfoil.geocode import Geocoder
from wingfoil.models import RawStatistics, TrackPoint, format_time_utc
from wingfoil.report import format_statistics
from wingfoil.util.logging import log, utc_now_iso


@dataclass(frozen=True)
class SessionMetadata:
    name: Optional[str] = None
    type: Optional[str] = None
    time: Optional[str] = None
    city: Optional[str] = None
    district: Optional[str] = None
    hamlet: Optional[str] = None
    road: Optional[str] = None
    country: Optional[str] = None


def resolve_location(geocoder: Optional[Geocoder], point: TrackPoint) -> dict[str, Any]:
    """
    Address dict for `point`, or {} when no geocoder is given or the lookup fails.

    A place name is decoration; a failed lookup is logged and never aborts the session.
    """
    if geocoder is None:
        return {}
    try:
        return geocoder.reverse(point.lat, point.lon).get("address") or {}
    except GeocodeError as e:
        log(f"WARNING: {e}; continuing without location")
        return {}


def assemble_session(
    tree: ET.ElementTree,
    points: Sequence[TrackPoint],
    raw: RawStatistics,
    config: AnalysisConfig,
    geocoder: Optional[Geocoder] = None,
) -> dict[str, Any]:
    """Describe an already analyzed GPX session as a JSON-ready dict."""
    info = read_gpx_info(tree)
    address = resolve_location(geocoder, points[0])
    metadata = SessionMetadata(
        name=info.name,
        type=info.type,
        time=format_time_utc(info.time) if info.time else None,
        city=address.get("city") or address.get("town") or address.get("village"),
        district=address.get("city_district"),
        hamlet=address.get("hamlet"),
        road=address.get("road"),
        country=address.get("country"),
    )

    return {
        "metadata": asdict(metadata),
        "statistics": format_statistics(raw),
        "raw_statistics": raw.to_dict(),
        "config": {
            "type": type(config).__name__,
            "parameters": config.as_dict(),
            "generated_utc": utc_now_iso(),
        },
        "points": [p.to_dict() for p in points],
    }


def build_session(
    gpx_path: Path,
    config: Optional[AnalysisConfig] = None,
    geocoder: Optional[Geocoder] = None,
) -> dict[str, Any]:
    """Parse, analyze and describe one GPX session as a JSON-ready dict."""
    cfg = config or AnalysisConfig()
    tree = read_gpx(gpx_path)
    points = fill_missing_speed(extract_trackpoints(tree))
    return assemble_session(tree, points, analyze_points(points, cfg), cfg, geocoder)
