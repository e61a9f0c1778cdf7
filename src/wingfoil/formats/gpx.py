# wingfoil/formats/gpx.py
"""
GPX helpers for wingfoil

This module is intentionally format-focused:
- GPX namespace handling (1.0 and 1.1)
- safely reading an ElementTree
- extracting track points, including device speed/heart-rate extensions
- extracting session metadata (name, type, time)

Key design principle:
  Parsing lives here; the analysis engine only ever sees TrackPoint records.
"""

from __future__ import annotations

import datetime as _dt
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from xml.etree import ElementTree as ET

from wingfoil.analyze.conditioning import fill_missing_speed
from wingfoil.errors import InvalidGpxError, MalformedTimestampError
from wingfoil.models import TrackPoint, parse_time_utc

# Extension children we read, by local tag name (any namespace):
# gpxdata:speed, gpxtpx:speed, gpxdata:hr, gpxtpx:hr, gpxdata:distance
_EXTENSION_FIELDS = ("speed", "hr", "distance")


def _namespace(root: ET.Element) -> dict[str, str]:
    """
    Namespace map for the document's GPX version.

    ElementTree represents namespaced tags internally as "{namespace-uri}tag";
    the root tag tells us which GPX schema the file uses.
    """
    if root.tag.startswith("{"):
        return {"gpx": root.tag[1:].split("}", 1)[0]}
    # un-namespaced document; ElementPath reads "{}tag" as plain "tag"
    return {"gpx": ""}


def _local(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def read_gpx(path: Path) -> ET.ElementTree:
    """
    Read a GPX file into an ElementTree.

    Raises:
      InvalidGpxError on XML or OS errors
    """
    try:
        return ET.parse(path)
    except (ET.ParseError, OSError) as e:
        raise InvalidGpxError(f"Cannot read GPX {path}: {e}") from e


def first_time_utc_from_gpx(root: ET.Element) -> Optional[_dt.datetime]:
    """
    Return the session start time (UTC) of a GPX document, if any.

    Preference order:
      - metadata time
      - first <trkpt><time> found in document order
    """
    ns = _namespace(root)
    candidates = [root.find("gpx:metadata/gpx:time", ns)]
    candidates += root.findall(".//gpx:trkpt/gpx:time", ns)
    for t in candidates:
        if t is None or not (t.text or "").strip():
            continue
        try:
            return parse_time_utc(t.text)
        except MalformedTimestampError:
            continue
    return None


def _extension_values(trkpt: ET.Element, ns: dict[str, str]) -> dict[str, float]:
    ext = trkpt.find("gpx:extensions", ns)
    if ext is None:
        return {}

    values: dict[str, float] = {}
    for el in ext.iter():
        name = _local(el.tag)
        if name not in _EXTENSION_FIELDS or name in values:
            continue
        text = (el.text or "").strip()
        if not text:
            continue
        try:
            values[name] = float(text)
        except ValueError as e:
            raise InvalidGpxError(f"Non-numeric <{name}> extension value: {text!r}") from e
    return values


def extract_trackpoints(tree: ET.ElementTree) -> list[TrackPoint]:
    """
    Extract ordered trackpoints from a GPX tree.

    Speed is taken from extensions when present and left unknown (None)
    otherwise. Every point must carry lat, lon and a parseable <time>.
    """
    root = tree.getroot()
    ns = _namespace(root)
    pts: list[TrackPoint] = []

    for trkpt in root.findall(".//gpx:trkseg/gpx:trkpt", ns):
        try:
            lat = float(trkpt.get("lat"))
            lon = float(trkpt.get("lon"))
        except (TypeError, ValueError) as e:
            raise InvalidGpxError(f"Trackpoint with missing or bad lat/lon: {trkpt.attrib}") from e

        t = (trkpt.findtext("gpx:time", default="", namespaces=ns) or "").strip()
        if not t:
            raise InvalidGpxError(f"Trackpoint at ({lat}, {lon}) has no <time>")

        ext = _extension_values(trkpt, ns)
        pts.append(TrackPoint(
            lat=lat,
            lon=lon,
            time=parse_time_utc(t),
            speed=ext.get("speed"),
            hr=ext.get("hr"),
            distance=ext.get("distance"),
        ))

    return pts


@dataclass(frozen=True)
class GpxInfo:
    """Session-level descriptors read from the GPX document."""
    name: Optional[str]
    type: Optional[str]
    time: Optional[_dt.datetime]


def read_gpx_info(tree: ET.ElementTree) -> GpxInfo:
    root = tree.getroot()
    ns = _namespace(root)

    def text(path: str) -> Optional[str]:
        v = root.findtext(path, namespaces=ns)
        return v.strip() if v and v.strip() else None

    return GpxInfo(
        name=text("gpx:trk/gpx:name") or text("gpx:metadata/gpx:name"),
        type=text("gpx:trk/gpx:type"),
        time=first_time_utc_from_gpx(root),
    )


def read_track(path: Path) -> list[TrackPoint]:
    """
    Read a GPX file into analysis-ready track points.

    Missing speeds are backfilled from consecutive positions.
    """
    return fill_missing_speed(extract_trackpoints(read_gpx(path)))
