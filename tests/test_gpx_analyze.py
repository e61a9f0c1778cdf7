import json

import pytest

from wingfoil.analyze import gpx_analyze


def test_analyze_sample_gpx(sample_gpx_path):
    from wingfoil.analyze.track import analyze_track

    raw = analyze_track(sample_gpx_path)

    assert raw.total_distance_m == pytest.approx(277.99, abs=0.05)
    assert raw.total_time_s == pytest.approx(50.5)
    assert raw.max_distance_from_start_m == pytest.approx(277.99, abs=0.05)
    assert raw.avg_speed_ms == pytest.approx(4.447, abs=0.005)
    assert raw.max_speed_ms == pytest.approx(5.5)
    assert raw.flying_time_s == pytest.approx(40.25)
    assert raw.longest_flying_sequence_s == pytest.approx(30.0)
    assert (raw.jibe_count, raw.tack_count, raw.flying_jibe_count) == (0, 0, 0)


@pytest.fixture
def no_user_config(tmp_path):
    return ["--config", str(tmp_path / "absent.toml")]


def test_main_tsv(sample_gpx_path, no_user_config, capsys):
    rc = gpx_analyze.main([str(sample_gpx_path), "--tsv", *no_user_config])
    assert rc == 0

    lines = capsys.readouterr().out.strip().splitlines()
    assert lines[0] == gpx_analyze.TSV_HEADER
    row = lines[1].split("\t")
    assert row[0] == str(sample_gpx_path)
    assert float(row[2]) == pytest.approx(50.5)
    assert row[-3:] == ["0", "0", "0"]


def test_main_report(sample_gpx_path, no_user_config, capsys):
    assert gpx_analyze.main([str(sample_gpx_path), *no_user_config]) == 0
    out = capsys.readouterr().out
    assert "max speed        : 19.8 km/h" in out
    assert "flying time      : 0:40 (79.7%)" in out


def test_main_json(sample_gpx_path, no_user_config, capsys):
    assert gpx_analyze.main([str(sample_gpx_path), "--json", *no_user_config]) == 0
    doc = json.loads(capsys.readouterr().out)
    assert doc["metadata"]["name"] == "Morning wing"
    assert doc["statistics"]["distance"]["total"] == "0.28 km"
    assert len(doc["points"]) == 6


def test_main_threshold_override(sample_gpx_path, no_user_config, capsys):
    rc = gpx_analyze.main([str(sample_gpx_path), "--tsv", "--flying-speed-kmh", "30", *no_user_config])
    assert rc == 0
    row = capsys.readouterr().out.strip().splitlines()[1].split("\t")
    assert float(row[5]) == 0.0


def test_main_rejects_bad_thresholds(sample_gpx_path, no_user_config):
    rc = gpx_analyze.main([str(sample_gpx_path), "--tack-angle", "150", *no_user_config])
    assert rc == 2


def test_main_reports_missing_and_invalid_files(tmp_path, sample_gpx_path, no_user_config, capsys):
    broken = tmp_path / "broken.gpx"
    broken.write_text("<gpx", encoding="utf-8")

    rc = gpx_analyze.main([str(tmp_path / "nope.gpx"), str(broken), str(sample_gpx_path), *no_user_config])
    assert rc == 2

    captured = capsys.readouterr()
    assert "Skipping (not a file)" in captured.err
    assert "ERROR" in captured.err
    assert str(sample_gpx_path) in captured.out


def test_main_plot_out(sample_gpx_path, no_user_config, tmp_path):
    import matplotlib
    matplotlib.use("Agg")

    out = tmp_path / "plot.png"
    rc = gpx_analyze.main([str(sample_gpx_path), "--tsv", "--plot-out", str(out), *no_user_config])
    assert rc == 0
    assert out.is_file()


def test_main_closes_plot_figures(sample_gpx_path, no_user_config, tmp_path):
    import matplotlib
    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    plt.close("all")
    out = tmp_path / "plot.png"
    rc = gpx_analyze.main([str(sample_gpx_path)] * 3 + ["--tsv", "--plot-out", str(out), *no_user_config])

    assert rc == 0
    assert (tmp_path / "plot_sample.png").is_file()
    assert plt.get_fignums() == []


def test_main_parses_and_analyzes_each_file_once(sample_gpx_path, no_user_config, tmp_path, monkeypatch, capsys):
    import matplotlib
    matplotlib.use("Agg")

    from wingfoil.analyze import track

    calls = {"read_gpx": 0, "detect_maneuvers": 0}
    real_read_gpx = gpx_analyze.read_gpx
    real_detect = track.detect_maneuvers

    def counting_read_gpx(path):
        calls["read_gpx"] += 1
        return real_read_gpx(path)

    def counting_detect(points, config):
        calls["detect_maneuvers"] += 1
        return real_detect(points, config)

    monkeypatch.setattr(gpx_analyze, "read_gpx", counting_read_gpx)
    monkeypatch.setattr(track, "detect_maneuvers", counting_detect)

    rc = gpx_analyze.main([str(sample_gpx_path), "--json", "--plot-out", str(tmp_path / "p.png"), *no_user_config])

    assert rc == 0
    assert calls == {"read_gpx": 1, "detect_maneuvers": 1}
    assert json.loads(capsys.readouterr().out)["metadata"]["name"] == "Morning wing"


@pytest.fixture
def geocode_enabled_config(tmp_path, monkeypatch):
    monkeypatch.delenv("WINGFOIL_GEOCODE_ENABLED", raising=False)
    user = tmp_path / "user.toml"
    user.write_text("[geocode]\nenabled = true\n", encoding="utf-8")
    return ["--config", str(user)]


def test_geocoder_only_built_for_json_output(sample_gpx_path, geocode_enabled_config, monkeypatch, capsys):
    built = []

    class FakeGeocoder:
        @classmethod
        def from_config(cls, cfg):
            built.append(cfg)
            return cls()

        def reverse(self, lat, lon):
            return {"address": {"city": "Zug", "country": "Switzerland"}}

    monkeypatch.setattr(gpx_analyze, "NominatimGeocoder", FakeGeocoder)

    assert gpx_analyze.main([str(sample_gpx_path), "--tsv", *geocode_enabled_config]) == 0
    assert built == []
    capsys.readouterr()

    assert gpx_analyze.main([str(sample_gpx_path), "--json", *geocode_enabled_config]) == 0
    assert len(built) == 1
    doc = json.loads(capsys.readouterr().out)
    assert doc["metadata"]["city"] == "Zug"
