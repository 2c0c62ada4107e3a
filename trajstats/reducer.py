from __future__ import annotations

from typing import Callable, List, Optional, Tuple

import numpy as np
from joblib import Parallel, delayed


# Sentinels written to both outputs of a degenerate trajectory
TOO_FEW_POINTS = -2.0
ZERO_DURATION = -3.0

KM_TO_M = 1000
KM_PER_MS_TO_M_PER_S = 1_000_000


def reduce_chunk(
    start: int,
    stop: int,
    x: np.ndarray,
    y: np.ndarray,
    ticks: np.ndarray,
    length: np.ndarray,
    offset: np.ndarray,
    distance: np.ndarray,
    speed: np.ndarray,
    element_type: type,
    elapsed_ms: Callable[[int], int],
) -> None:
    """
    Reduce trajectories [start, stop) into distance (m) and speed (m/s).

    Each trajectory reads only its own point range and writes only its own output slot.
    Segment lengths are folded left to right in element_type; the raw sum is kilometers.
      - fewer than 2 points: both outputs are TOO_FEW_POINTS
      - elapsed time truncated to 0 ms: both outputs are ZERO_DURATION
    ticks holds the timestamps as int64 counts of their native unit.
    """
    km_to_m = element_type(KM_TO_M)
    km_per_ms_to_m_per_s = element_type(KM_PER_MS_TO_M_PER_S)

    for g in range(start, stop):
        n = int(length[g])
        idx = int(offset[g])
        if n < 2:
            distance[g] = TOO_FEW_POINTS
            speed[g] = TOO_FEW_POINTS
            continue

        end = idx + n - 1
        duration_ms = elapsed_ms(int(ticks[end]) - int(ticks[idx]))
        if duration_ms == 0:
            distance[g] = ZERO_DURATION
            speed[g] = ZERO_DURATION
            continue

        dx = np.diff(x[idx : end + 1])
        dy = np.diff(y[idx : end + 1])
        # np.add.accumulate is a sequential fold, unlike the pairwise np.sum
        dist_km = np.add.accumulate(np.sqrt(dx * dx + dy * dy))[-1]

        distance[g] = dist_km * km_to_m
        speed[g] = (dist_km * km_per_ms_to_m_per_s) / element_type(duration_ms)


def _chunks(n_groups: int, chunk_size: int) -> List[Tuple[int, int]]:
    return [(s, min(s + chunk_size, n_groups)) for s in range(0, n_groups, chunk_size)]


def run_reducer(
    reducer: Callable[..., None],
    n_groups: int,
    arrays: Tuple[np.ndarray, ...],
    n_jobs: Optional[int] = 1,
    chunk_size: int = 4096,
) -> None:
    """
    Run reducer over every trajectory index, one chunk of trajectories per unit of work.

    arrays is (x, y, ticks, length, offset, distance, speed). Chunks write disjoint slots of
    the shared output arrays, so workers use joblib's shared-memory (threading) backend;
    threads only overlap inside numpy calls, so n_jobs > 1 pays off on long trajectories.
    All writes are complete when this function returns.
    """
    chunks = _chunks(n_groups, chunk_size)
    if n_jobs == 1 or len(chunks) <= 1:
        for s, e in chunks:
            reducer(s, e, *arrays)
        return

    Parallel(n_jobs=n_jobs, require="sharedmem")(delayed(reducer)(s, e, *arrays) for s, e in chunks)
