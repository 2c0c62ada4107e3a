#!/usr/bin/env python3
"""
Runner for per-trip distance and speed reduction.

Pipeline:
- Load config and fill default paths, reduction and column settings.
- Load points (parquet or csv).
- Optionally split users into trips by time gap (trip_segmentation.gap_threshold_min).
- Reduce every trip to distance (m) and average speed (m/s).
- Save the trip table as parquet under the output directory.
- Print concise logs: #points, #trips, #ok, #degenerate.
"""

from __future__ import annotations

import argparse
import sys
from typing import List

from trajstats.data_loader import load_config, load_points, reduction_settings, save_results
from trajstats.preprocessing import assign_trip_ids, compute_trip_stats


def _parse_args(argv: List[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Compute per-trip distances and average speeds.")
    parser.add_argument("--config", default="configs/config.yaml", help="YAML configuration file")
    parser.add_argument("--input", default=None, help="Points file; overrides paths.input_points")
    parser.add_argument("--output-dir", default=None, help="Overrides paths.output_dir")
    parser.add_argument("--n-jobs", type=int, default=None, help="Overrides reduction.n_jobs")
    return parser.parse_args(argv)


def main(argv: List[str] | None = None) -> int:
    args = _parse_args(argv)

    # 1) Config
    cfg = load_config(args.config)
    settings = reduction_settings(cfg)
    cols = cfg["columns"]
    seg_cfg = cfg["trip_segmentation"]
    input_path = args.input or cfg["paths"]["input_points"]
    output_dir = args.output_dir or cfg["paths"]["output_dir"]
    n_jobs = args.n_jobs if args.n_jobs is not None else settings.n_jobs

    # 2) Points
    df_points = load_points(input_path, time_col=cols["timestamp"], coord_cols=(cols["x"], cols["y"]))

    # 3) Trips by time gap, when the input has no trip ids yet
    if seg_cfg["gap_threshold_min"] is not None:
        df_points = assign_trip_ids(
            df_points,
            gap_threshold_min=seg_cfg["gap_threshold_min"],
            user_col=seg_cfg["user_id"],
            time_col=cols["timestamp"],
            trip_col=cols["trajectory_id"],
        )

    # 4) Reduce
    trips = compute_trip_stats(
        df_points,
        id_col=cols["trajectory_id"],
        x_col=cols["x"],
        y_col=cols["y"],
        time_col=cols["timestamp"],
        n_jobs=n_jobs,
        chunk_size=settings.chunk_size,
    )

    # 5) Save
    out_path = save_results(trips, output_dir=output_dir)

    ok = int((trips["status"] == "ok").sum()) if len(trips) else 0
    print(
        f"REDUCE | points={len(df_points)} trips={len(trips)} ok={ok} "
        f"degenerate={len(trips) - ok} n_jobs={n_jobs} chunk_size={settings.chunk_size}"
    )
    print(f"Artifacts written: trips={out_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
