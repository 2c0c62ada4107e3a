import os
from dataclasses import dataclass
from typing import Dict, Sequence

import pandas as pd


@dataclass(frozen=True)
class ReductionSettings:
    n_jobs: int = 1
    chunk_size: int = 4096


def load_config(config_path: str = "configs/config.yaml") -> Dict:
    """
    Read YAML configuration and return as a dict.

    Missing sections are filled with defaults; values present in the file are kept.
    """
    import yaml

    if not os.path.exists(config_path):
        raise FileNotFoundError(f"Config file not found: {config_path}")
    with open(config_path, "r", encoding="utf-8") as f:
        cfg = yaml.safe_load(f) or {}

    paths = cfg.setdefault("paths", {}) or {}
    paths.setdefault("input_points", "data/processed/points.parquet")
    paths.setdefault("output_dir", "outputs")
    cfg["paths"] = paths

    reduction = cfg.setdefault("reduction", {}) or {}
    reduction.setdefault("n_jobs", ReductionSettings.n_jobs)
    reduction.setdefault("chunk_size", ReductionSettings.chunk_size)
    cfg["reduction"] = reduction

    columns = cfg.setdefault("columns", {}) or {}
    columns.setdefault("trajectory_id", "trip_id")
    columns.setdefault("x", "x")
    columns.setdefault("y", "y")
    columns.setdefault("timestamp", "timestamp")
    cfg["columns"] = columns

    # gap_threshold_min: null means the input already carries trajectory ids
    segmentation = cfg.setdefault("trip_segmentation", {}) or {}
    segmentation.setdefault("user_id", "user_id")
    segmentation.setdefault("gap_threshold_min", None)
    cfg["trip_segmentation"] = segmentation
    return cfg


def reduction_settings(cfg: Dict) -> ReductionSettings:
    """Validated reduction settings from a loaded config."""
    section = cfg.get("reduction", {}) or {}
    n_jobs = section.get("n_jobs", ReductionSettings.n_jobs)
    chunk_size = section.get("chunk_size", ReductionSettings.chunk_size)
    if isinstance(n_jobs, bool) or not isinstance(n_jobs, int) or n_jobs == 0:
        raise ValueError(f"reduction.n_jobs must be a non-zero integer, got {n_jobs!r}")
    if isinstance(chunk_size, bool) or not isinstance(chunk_size, int) or chunk_size <= 0:
        raise ValueError(f"reduction.chunk_size must be a positive integer, got {chunk_size!r}")
    return ReductionSettings(n_jobs=n_jobs, chunk_size=chunk_size)


def _pick_parquet_engine() -> str:
    try:
        import pyarrow  # noqa: F401

        return "pyarrow"
    except ImportError:
        try:
            import fastparquet  # noqa: F401

            return "fastparquet"
        except ImportError:
            raise RuntimeError(
                "No parquet engine available. Please install 'pyarrow' (preferred) or 'fastparquet'."
            )


def load_points(path: str, time_col: str = "timestamp", coord_cols: Sequence[str] = ()) -> pd.DataFrame:
    """
    Load a points table from .parquet or .csv.
    The timestamp column is parsed to UTC datetimes and coord_cols are enforced as float64;
    other columns are kept as stored.
    """
    if not os.path.exists(path):
        raise FileNotFoundError(f"Points file not found: {path}")

    ext = os.path.splitext(path)[1].lower()
    if ext == ".parquet":
        df = pd.read_parquet(path, engine=_pick_parquet_engine())
    elif ext == ".csv":
        df = pd.read_csv(path)
    else:
        raise ValueError(f"Unsupported points file extension '{ext}'; expected .parquet or .csv")

    if time_col in df.columns:
        df[time_col] = pd.to_datetime(df[time_col], utc=True, format="ISO8601")
    for col in coord_cols:
        if col in df.columns:
            df[col] = pd.to_numeric(df[col]).astype("float64")
    print(f"[data_loader] Loaded {len(df)} points from '{path}'")
    return df


def save_results(df_trips: pd.DataFrame, output_dir: str = "outputs", filename: str = "trip_stats.parquet") -> str:
    """Write the per-trip table to output_dir as parquet and return the file path."""
    os.makedirs(output_dir, exist_ok=True)
    out_path = os.path.join(output_dir, filename)
    df_trips.to_parquet(out_path, index=False, engine=_pick_parquet_engine())
    print(f"[data_loader] Saved trips: {len(df_trips)} to '{out_path}'")
    return out_path
