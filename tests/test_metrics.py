import dataclasses
import datetime as dt

import pytest

from wingfoil.analyze import metrics

KMH8_MS = 8 / 3.6


def test_flying_time_half_weights_threshold_crossings(speed_series):
    pts = speed_series([0, 9, 9, 0], dt_s=10)
    # half of first + full middle + half of last
    assert metrics.flying_time(pts, KMH8_MS) == pytest.approx(20.0)


def test_flying_time_skips_non_positive_dt(speed_series):
    pts = speed_series([9, 9, 9], dt_s=10)
    pts[2] = dataclasses.replace(pts[2], time=pts[1].time)
    assert metrics.flying_time(pts, KMH8_MS) == pytest.approx(10.0)


def test_flying_time_treats_unknown_speed_as_zero(speed_series):
    pts = speed_series([9, None, 9], dt_s=10)
    assert metrics.flying_time(pts, KMH8_MS) == pytest.approx(10.0)


@pytest.mark.parametrize("min_segment, expected", [(5, 10.0), (10, 10.0), (15, 0.0)])
def test_longest_flying_sequence_respects_minimum(speed_series, min_segment, expected):
    pts = speed_series([0, 9, 9, 0], dt_s=10)
    assert metrics.longest_flying_sequence(pts, KMH8_MS, min_segment) == expected


def test_longest_flying_sequence_closes_run_at_track_end(speed_series):
    pts = speed_series([9, 9, 0, 9, 9, 9, 9], dt_s=2)
    assert metrics.longest_flying_sequence(pts, KMH8_MS, 5) == pytest.approx(6.0)


def test_longest_flying_sequence_picks_longest_run(speed_series):
    pts = speed_series([9] * 4 + [1] + [9] * 8 + [1] + [9] * 3, dt_s=1)
    assert metrics.longest_flying_sequence(pts, KMH8_MS, 2) == pytest.approx(7.0)


def test_weighted_average_is_trapezoidal(speed_series):
    pts = speed_series([2.0, 4.0, 4.0], dt_s=10)
    pts[2] = dataclasses.replace(pts[2], time=pts[1].time + dt.timedelta(seconds=30))
    # (3 * 10 + 4 * 30) / 40
    assert metrics.weighted_average_speed(pts) == pytest.approx(3.75)


def test_weighted_average_skips_unknown_and_non_positive_dt(speed_series):
    pts = speed_series([2.0, 4.0, None, 6.0, 6.0], dt_s=10)
    pts[4] = dataclasses.replace(pts[4], time=pts[3].time)
    assert metrics.weighted_average_speed(pts) == pytest.approx(3.0)


def test_weighted_average_without_valid_pairs_is_zero(speed_series):
    assert metrics.weighted_average_speed(speed_series([None, None, 3.0])) == 0.0


def test_max_sustained_speed_ignores_short_spike(speed_series):
    pts = speed_series([5, 10, 10, 10, 10, 20, 5])
    assert metrics.max_sustained_speed(pts, 3) == 10
    assert metrics.max_sustained_speed(pts, 5) == 5
    assert metrics.max_sustained_speed(pts, 0) == 20


def test_max_sustained_speed_is_monotonic_in_min_duration(speed_series):
    speeds = [0, 3, 4, 7, 7.5, 8, 12, 7, 6, 6.5, 9, 9, 9, 2, 11, 3]
    pts = speed_series(speeds, dt_s=0.5)
    results = [metrics.max_sustained_speed(pts, d) for d in (0, 0.5, 1, 2, 3, 5, 8, 20)]
    assert results == sorted(results, reverse=True)


def test_max_sustained_speed_ignores_crawl(speed_series):
    assert metrics.max_sustained_speed(speed_series([0.05, 0.1, 0.1, 0.1, 0.1]), 1) == 0.0


def test_sustained_duration_stops_when_time_goes_backwards(speed_series):
    pts = speed_series([5, 5, 5, 5])
    pts[2] = dataclasses.replace(pts[2], time=pts[0].time - dt.timedelta(seconds=5))
    assert metrics.sustained_duration(pts, 0, 5) == pytest.approx(1.0)
    assert metrics.sustained_duration(pts, 3, 5) == 0.0


def test_distance_and_time_metrics(speed_series):
    pts = speed_series([1, 1, 1, 1], dt_s=4)
    step = 1.11195  # 1e-5 deg latitude in meters
    assert metrics.total_distance(pts) == pytest.approx(3 * step, rel=1e-4)
    assert metrics.max_distance_from_start(pts) == pytest.approx(3 * step, rel=1e-4)
    assert metrics.total_time(pts) == pytest.approx(12.0)


def test_max_distance_from_start_on_out_and_back(track_builder):
    pts = track_builder([(90, 5, 20), (270, 5, 20)])
    assert metrics.max_distance_from_start(pts) == pytest.approx(100.0, rel=1e-3)
    assert metrics.total_distance(pts) == pytest.approx(200.0, rel=1e-3)
