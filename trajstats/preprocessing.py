from __future__ import annotations

from typing import Any, Optional, Tuple

import numpy as np
import pandas as pd

from trajstats.distances import compute_from_groups, trajectory_status
from trajstats.groups import GroupDescriptor


TRIP_STATS_COLUMNS = [
    "points",
    "start_time",
    "end_time",
    "duration_s",
    "distance_m",
    "speed_mps",
    "status",
]


def _column(values: Any) -> pd.Series:
    if isinstance(values, pd.Series):
        return values.reset_index(drop=True)
    return pd.Series(values)


# -------------------------------
# Trajectory derivation
# -------------------------------
def derive_trajectories(
    object_id: Any,
    x: Any,
    y: Any,
    timestamp: Any,
) -> Tuple[GroupDescriptor, pd.DataFrame]:
    """
    Group loose points into trajectories.

    Points are stable-sorted by (object_id, timestamp) so each object's samples become one
    contiguous, time-ordered range.
    Returns:
        groups (GroupDescriptor): int32 lengths/offsets into the sorted points, keys = object ids
        points (DataFrame): columns object_id, x, y, timestamp in sorted order
    """
    points = pd.DataFrame(
        {
            "object_id": _column(object_id),
            "x": _column(x),
            "y": _column(y),
            "timestamp": _column(timestamp),
        }
    )
    if points.empty:
        raise ValueError("Cannot derive trajectories from zero points")
    if points[["object_id", "timestamp"]].isna().any().any():
        raise ValueError("'object_id' and 'timestamp' must not contain nulls")

    points = points.sort_values(["object_id", "timestamp"], kind="mergesort").reset_index(drop=True)
    sizes = points.groupby("object_id", sort=False).size()
    groups = GroupDescriptor.from_lengths(sizes.to_numpy(), keys=sizes.index)
    return groups, points


# -------------------------------
# Trip segmentation
# -------------------------------
def assign_trip_ids(
    df: pd.DataFrame,
    gap_threshold_min: float,
    user_col: str = "user_id",
    time_col: str = "timestamp",
    trip_col: str = "trip_id",
) -> pd.DataFrame:
    """
    Start a new trip whenever the user changes or the gap to the previous point of the same
    user exceeds gap_threshold_min. Trips are numbered per user from 0 and identified by the
    string "{user}-{seq}" in trip_col.
    Returns a copy sorted by (user, timestamp).
    """
    if df.empty:
        out = df.copy()
        out[trip_col] = pd.Series(dtype="object")
        return out

    if df[[user_col, time_col]].isna().any().any():
        raise ValueError(f"'{user_col}' and '{time_col}' must not contain nulls")

    df = df.sort_values([user_col, time_col], kind="mergesort").reset_index(drop=True)
    grp = df.groupby(user_col, sort=False, group_keys=False)
    gap_s = (df[time_col] - grp[time_col].shift(1)).dt.total_seconds()
    # First point per user always opens a trip
    gap_s = gap_s.fillna(np.inf)
    new_trip = (gap_s > float(gap_threshold_min) * 60.0) | (grp.cumcount() == 0)

    trip_seq = new_trip.groupby(df[user_col]).cumsum() - 1
    df[trip_col] = df[user_col].astype(str) + "-" + trip_seq.astype(int).astype(str)
    print(
        f"[preprocessing] Trip segmentation: gap_threshold_min={gap_threshold_min}, "
        f"users={df[user_col].nunique()}, trips={df[trip_col].nunique()}"
    )
    return df


# -------------------------------
# Table-level statistics
# -------------------------------
def compute_trip_stats(
    df_points: pd.DataFrame,
    id_col: str = "trip_id",
    x_col: str = "x",
    y_col: str = "y",
    time_col: str = "timestamp",
    n_jobs: Optional[int] = None,
    chunk_size: Optional[int] = None,
) -> pd.DataFrame:
    """
    Per-trip distance and average speed for a points table.

    Returns a DataFrame with columns:
        id_col, points, start_time, end_time, duration_s, distance_m, speed_mps, status
    distance_m/speed_mps keep the -2.0/-3.0 sentinels; status names them.
    """
    missing = [c for c in (id_col, x_col, y_col, time_col) if c not in df_points.columns]
    if missing:
        raise KeyError(f"Expected columns {missing} to be present in points DataFrame.")

    if df_points.empty:
        print("[preprocessing] compute_trip_stats: no points; emitting empty trip table.")
        return pd.DataFrame(columns=[id_col] + TRIP_STATS_COLUMNS)

    groups, points = derive_trajectories(
        df_points[id_col], df_points[x_col], df_points[y_col], df_points[time_col]
    )
    result = compute_from_groups(
        points["x"], points["y"], points["timestamp"], groups, n_jobs=n_jobs, chunk_size=chunk_size
    )

    first = groups.offset.astype(np.int64)
    last = first + groups.length.astype(np.int64) - 1
    ts = points["timestamp"]
    start_time = ts.iloc[first].reset_index(drop=True)
    end_time = ts.iloc[last].reset_index(drop=True)

    trips = pd.DataFrame(
        {
            id_col: groups.keys,
            "points": groups.length.astype(np.int64),
            "start_time": start_time,
            "end_time": end_time,
            "duration_s": (end_time - start_time).dt.total_seconds(),
            "distance_m": result["distance"].to_numpy(),
            "speed_mps": result["speed"].to_numpy(),
            "status": trajectory_status(result).to_numpy(),
        }
    )
    print(
        f"[preprocessing] Trip stats: trips={len(trips)}, "
        f"ok={int((trips['status'] == 'ok').sum())}, points={len(points)}"
    )
    return trips
