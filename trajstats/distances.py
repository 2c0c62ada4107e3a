from __future__ import annotations

from enum import Enum
from typing import Any, Optional

import numpy as np
import pandas as pd

from trajstats.dispatch import select_reducer
from trajstats.groups import GroupDescriptor
from trajstats.reducer import TOO_FEW_POINTS, ZERO_DURATION, run_reducer
from trajstats.validation import validate_inputs


DEFAULT_N_JOBS = 1
DEFAULT_CHUNK_SIZE = 4096


class TrajectoryStatus(str, Enum):
    OK = "ok"
    TOO_FEW_POINTS = "too_few_points"
    ZERO_DURATION = "zero_duration"


def trajectory_distances_and_speeds(
    x: Any,
    y: Any,
    timestamp: Any,
    length: Any,
    offset: Any,
    n_jobs: Optional[int] = None,
    chunk_size: Optional[int] = None,
    keys: Optional[Any] = None,
) -> pd.DataFrame:
    """
    Compute total path length and average speed of every trajectory.

    Args:
        x, y: point coordinates (float32 or float64, same dtype); segment sums are kilometers
        timestamp: datetime64 sample times (D, h, m, s, ms, us or ns)
        length, offset: int32 point count and start index of each trajectory
        n_jobs: joblib worker count (default 1, inline); threads only pay off on long
            trajectories where the numpy segment math releases the GIL
        chunk_size: trajectories per unit of dispatched work
        keys: optional trajectory identifiers used as the result index
    Returns:
        DataFrame with float64 columns:
            distance (m), speed (m/s); -2.0 in both for trajectories with fewer than 2 points,
            -3.0 in both for trajectories whose elapsed time is under 1 ms
        One row per trajectory, in input order.
    Raises:
        ValueError / TypeError before any work is done if the inputs are inconsistent.
    """
    batch = validate_inputs(x, y, timestamp, length, offset)
    reducer = select_reducer(batch.x.dtype, batch.timestamp.dtype)

    n_groups = len(batch.length)
    if keys is not None and len(keys) != n_groups:
        raise ValueError(f"'keys' must have one entry per trajectory, got {len(keys)} for {n_groups}")
    chunk_size = DEFAULT_CHUNK_SIZE if chunk_size is None else int(chunk_size)
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")

    distance = np.empty(n_groups, dtype=np.float64)
    speed = np.empty(n_groups, dtype=np.float64)
    run_reducer(
        reducer,
        n_groups,
        (batch.x, batch.y, batch.ticks, batch.length, batch.offset, distance, speed),
        n_jobs=DEFAULT_N_JOBS if n_jobs is None else n_jobs,
        chunk_size=chunk_size,
    )

    index = pd.Index(keys) if keys is not None else pd.RangeIndex(n_groups)
    result = pd.DataFrame({"distance": distance, "speed": speed}, index=index)

    too_few = int((distance == TOO_FEW_POINTS).sum())
    zero_dur = int((distance == ZERO_DURATION).sum())
    print(
        f"[distances] Reduced trajectories={n_groups} points={len(batch.x)} "
        f"ok={n_groups - too_few - zero_dur} too_few_points={too_few} zero_duration={zero_dur}"
    )
    return result


def compute_from_groups(
    x: Any,
    y: Any,
    timestamp: Any,
    groups: GroupDescriptor,
    n_jobs: Optional[int] = None,
    chunk_size: Optional[int] = None,
) -> pd.DataFrame:
    """Same as trajectory_distances_and_speeds, taking a GroupDescriptor; its keys label the rows."""
    return trajectory_distances_and_speeds(
        x,
        y,
        timestamp,
        groups.length,
        groups.offset,
        n_jobs=n_jobs,
        chunk_size=chunk_size,
        keys=groups.keys,
    )


def trajectory_status(result: pd.DataFrame) -> pd.Series:
    """
    Map each result row to a TrajectoryStatus.
    Sentinels are read from the distance column; the numeric values are left untouched.
    """
    distance = result["distance"].to_numpy()
    status = np.where(
        distance == TOO_FEW_POINTS,
        TrajectoryStatus.TOO_FEW_POINTS.value,
        np.where(distance == ZERO_DURATION, TrajectoryStatus.ZERO_DURATION.value, TrajectoryStatus.OK.value),
    )
    return pd.Series(status, index=result.index, name="status", dtype="object")
