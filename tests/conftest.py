import datetime as dt
import math
from pathlib import Path

import pytest

from wingfoil.models import TrackPoint

T0 = dt.datetime(2025, 6, 1, 10, 0, 0, tzinfo=dt.timezone.utc)
EARTH_RADIUS_M = 6_371_000.0


def make_track(legs, *, start=(47.0, 8.0), dt_s=1.0, t0=T0):
    """
    Build a synthetic track from (heading_deg, speed_ms, steps) legs.

    One point every dt_s seconds; each step moves speed * dt_s meters along
    the leg heading, and the new point carries the leg speed.
    """
    lat, lon = start
    t = t0
    pts = [TrackPoint(lat=lat, lon=lon, time=t, speed=legs[0][1])]
    for heading, speed, steps in legs:
        for _ in range(steps):
            d = speed * dt_s
            h = math.radians(heading)
            lat += math.degrees(d * math.cos(h) / EARTH_RADIUS_M)
            lon += math.degrees(d * math.sin(h) / (EARTH_RADIUS_M * math.cos(math.radians(lat))))
            t = t + dt.timedelta(seconds=dt_s)
            pts.append(TrackPoint(lat=lat, lon=lon, time=t, speed=speed))
    return pts


def make_speed_series(speeds, *, dt_s=1.0, t0=T0):
    """Stationary-ish points (north, 1 m apart) carrying the given speeds."""
    pts = []
    for k, s in enumerate(speeds):
        pts.append(TrackPoint(
            lat=47.0 + k * 1e-5,
            lon=8.0,
            time=t0 + dt.timedelta(seconds=k * dt_s),
            speed=s,
        ))
    return pts


@pytest.fixture
def sample_gpx_path() -> Path:
    return Path(__file__).parent / "data" / "sample.gpx"


@pytest.fixture
def track_builder():
    return make_track


@pytest.fixture
def speed_series():
    return make_speed_series
