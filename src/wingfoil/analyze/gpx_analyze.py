#!/usr/bin/env python3
"""
wingfoil: analyze wing/foil sailing sessions from GPX file(s).

Prints one report per file (or TSV rows / JSON session documents). Threshold
flags override config files and WINGFOIL_* environment variables.
"""

from __future__ import annotations

import argparse
import json
from pathlib import Path

from wingfoil.analyze.conditioning import fill_missing_speed
from wingfoil.analyze.track import analyze_session
from wingfoil.config import KMH_PER_MS, load_config
from wingfoil.errors import WingfoilError
from wingfoil.formats.gpx import extract_trackpoints, read_gpx
from wingfoil.geocode import NominatimGeocoder
from wingfoil.models import RawStatistics
from wingfoil.report import format_duration, format_statistics
from wingfoil.session import assemble_session
from wingfoil.util.logging import log

TSV_HEADER = (
    "file\tdistance_m\tduration_s\tavg_speed_kmh\tmax_speed_kmh\tflying_s"
    "\tlongest_flying_s\tmax_from_start_m\tjibes\tflying_jibes\ttacks"
)

# CLI flag dest -> AnalysisConfig field
OVERRIDE_FLAGS = {
    "flying_speed_kmh": "flying_speed_threshold_kmh",
    "flying_jibe_speed_kmh": "flying_jibe_speed_threshold_kmh",
    "jibe_angle": "jibe_angle_threshold_deg",
    "tack_angle": "tack_angle_threshold_deg",
    "window": "maneuver_time_window_s",
    "min_flying_segment": "min_flying_segment_s",
    "min_max_speed_duration": "min_max_speed_duration_s",
    "outlier_cap": "outlier_speed_cap_ms",
    "speed_jump_limit": "speed_jump_limit_ms",
}


def print_report(path: Path, raw: RawStatistics, *, tsv: bool) -> None:
    if tsv:
        print(
            f"{path}\t"
            f"{raw.total_distance_m:.2f}\t"
            f"{raw.total_time_s:.1f}\t"
            f"{raw.avg_speed_ms * KMH_PER_MS:.2f}\t"
            f"{raw.max_speed_ms * KMH_PER_MS:.2f}\t"
            f"{raw.flying_time_s:.1f}\t"
            f"{raw.longest_flying_sequence_s:.1f}\t"
            f"{raw.max_distance_from_start_m:.2f}\t"
            f"{raw.jibe_count}\t"
            f"{raw.flying_jibe_count}\t"
            f"{raw.tack_count}"
        )
        return

    stats = format_statistics(raw)
    print(f"\n{path}")
    print(f"  date             : {stats['general']['date']}")
    print(f"  duration         : {format_duration(raw.total_time_s)}")
    print(f"  distance         : {stats['distance']['total']}")
    print(f"  max from start   : {stats['distance']['max_from_start']}")
    print(f"  avg speed        : {stats['speed']['avg']}")
    print(f"  max speed        : {stats['speed']['max']}")
    print(f"  flying time      : {stats['flying']['time']} ({stats['flying']['percentage']})")
    print(f"  longest flight   : {stats['flying']['longest_sequence']}")
    print(f"  jibes            : {raw.jibe_count}"
          f" (flying {raw.flying_jibe_count}, {stats['maneuvers']['flying_jibe_percentage']})")
    print(f"  tacks            : {raw.tack_count}")


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="wingfoil: Analyze wing/foil GPX session(s).")
    ap.add_argument("gpx", nargs="+", help="One or more GPX files.")
    ap.add_argument("--tsv", action="store_true",
                    help="Print tab-separated output (good for piping).")
    ap.add_argument("--json", action="store_true",
                    help="Print full session documents (metadata, statistics, points) as JSON.")
    ap.add_argument("--geocode", action="store_true",
                    help="Resolve a place name for the start point (network; JSON output only).")
    ap.add_argument("--config", default=None,
                    help="User config TOML (default: ~/.config/wingfoil/config.toml)")
    ap.add_argument("--plot", action="store_true",
                    help="Show the track coloured by speed with maneuvers marked.")
    ap.add_argument("--plot-out", default=None,
                    help="Save the plot to this path (with several files, the file stem is appended).")

    th = ap.add_argument_group("analysis thresholds")
    th.add_argument("--flying-speed-kmh", type=float, default=None)
    th.add_argument("--flying-jibe-speed-kmh", type=float, default=None)
    th.add_argument("--jibe-angle", type=float, default=None, help="degrees")
    th.add_argument("--tack-angle", type=float, default=None, help="degrees")
    th.add_argument("--window", type=float, default=None, help="maneuver time window, seconds")
    th.add_argument("--min-flying-segment", type=float, default=None, help="seconds")
    th.add_argument("--min-max-speed-duration", type=float, default=None, help="seconds")
    th.add_argument("--outlier-cap", type=float, default=None, help="m/s")
    th.add_argument("--speed-jump-limit", type=float, default=None, help="m/s")
    return ap


def _plot_path(plot_out: str, path: Path, many: bool) -> Path:
    out = Path(plot_out).expanduser()
    if many:
        out = out.with_name(f"{out.stem}_{path.stem}{out.suffix or '.png'}")
    return out


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        cfg = load_config(
            user_config_path=Path(args.config).expanduser() if args.config else None,
        )
        analysis = cfg.analysis.with_overrides(
            **{field: getattr(args, flag) for flag, field in OVERRIDE_FLAGS.items()}
        )
    except WingfoilError as e:
        log(f"ERROR: {e}")
        return 2

    geocoder = None
    if args.json and (args.geocode or cfg.geocode.enabled):
        geocoder = NominatimGeocoder.from_config(cfg.geocode)

    if args.tsv and not args.json:
        print(TSV_HEADER)

    failed = 0
    sessions = []
    for path in (Path(p).expanduser() for p in args.gpx):
        if not path.is_file():
            log(f"Skipping (not a file): {path}")
            failed += 1
            continue
        try:
            tree = read_gpx(path)
            points = fill_missing_speed(extract_trackpoints(tree))
            raw, maneuvers = analyze_session(points, analysis)

            if args.json:
                sessions.append(assemble_session(tree, points, raw, analysis, geocoder))
            else:
                print_report(path, raw, tsv=args.tsv)

            if args.plot or args.plot_out:
                # matplotlib is only imported when a plot is requested
                import matplotlib.pyplot as plt
                from wingfoil.visualize.plot import plot_track
                fig = plot_track(
                    points, maneuvers,
                    title=path.name,
                    show=args.plot,
                    out_path=_plot_path(args.plot_out, path, len(args.gpx) > 1) if args.plot_out else None,
                )
                plt.close(fig)
        except WingfoilError as e:
            log(f"ERROR: {path}: {e}")
            failed += 1

    if args.json:
        print(json.dumps(sessions if len(sessions) != 1 else sessions[0], indent=2))

    return 2 if failed else 0


if __name__ == "__main__":
    raise SystemExit(main())
