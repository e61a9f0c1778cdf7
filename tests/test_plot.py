import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt

from wingfoil.analyze.maneuvers import detect_maneuvers
from wingfoil.config import AnalysisConfig
from wingfoil.visualize.plot import plot_track


def test_plot_track_marks_maneuvers(track_builder, tmp_path):
    pts = track_builder([(0, 5, 20), (170, 5, 20), (80, 5, 20)])
    maneuvers = detect_maneuvers(pts, AnalysisConfig())
    out = tmp_path / "nested" / "track.png"

    fig = plot_track(pts, maneuvers, show=False, out_path=out)
    try:
        assert out.is_file()
        labels = [t.get_text() for t in fig.axes[0].get_legend().get_texts()]
        assert "flying jibe (1)" in labels
        assert "tack (1)" in labels
    finally:
        plt.close(fig)


def test_plot_track_without_maneuvers(track_builder):
    fig = plot_track(track_builder([(0, 5, 10)]), show=False)
    try:
        assert fig.axes[0].get_legend() is None
    finally:
        plt.close(fig)
