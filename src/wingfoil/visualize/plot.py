# wingfoil/visualize/plot.py
"""
Plotting routines for wingfoil
"""

from pathlib import Path

import matplotlib.pyplot as plt

from wingfoil.analyze.conditioning import speed_or_zero
from wingfoil.analyze.maneuvers import ManeuverKind
from wingfoil.config import KMH_PER_MS


def plot_track(points, maneuvers=(), *, title="Track coloured by speed", show=True, out_path=None):
    """
    Scatter the track coloured by speed (km/h) and mark detected maneuvers
    at their start point. Returns the Figure.
    """
    lats = [p.lat for p in points]
    lons = [p.lon for p in points]
    speeds_kmh = [speed_or_zero(p) * KMH_PER_MS for p in points]

    fig = plt.figure(figsize=(8, 6))
    ax = fig.add_subplot(1, 1, 1)
    sc = ax.scatter(lons, lats, c=speeds_kmh, s=5, cmap="viridis")
    fig.colorbar(sc, ax=ax, label="Speed (km/h)")

    groups = {
        "flying jibe": ([], "^", "tab:red"),
        "jibe": ([], "v", "tab:orange"),
        "tack": ([], "s", "tab:blue"),
    }
    for m in maneuvers:
        if m.kind is ManeuverKind.TACK:
            key = "tack"
        else:
            key = "flying jibe" if m.is_flying else "jibe"
        groups[key][0].append(points[m.start_index])

    for label, (pts, marker, color) in groups.items():
        if pts:
            ax.scatter([p.lon for p in pts], [p.lat for p in pts],
                       marker=marker, c=color, s=40, label=f"{label} ({len(pts)})")
    if maneuvers:
        ax.legend(loc="best")

    ax.set_xlabel("Longitude")
    ax.set_ylabel("Latitude")
    ax.set_title(title)

    if out_path is not None:
        out_path = Path(out_path)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(out_path, dpi=120)
    if show:
        plt.show()
    return fig
