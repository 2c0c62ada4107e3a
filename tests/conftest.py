from __future__ import annotations

import sys
from pathlib import Path

import numpy as np
import pytest


ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


def ms_timestamps(*millis: int) -> np.ndarray:
    """datetime64[ms] array from millisecond offsets since the epoch."""
    return np.array(millis, dtype="int64").astype("datetime64[ms]")


@pytest.fixture
def three_trip_batch():
    """
    One batch with a single-point trip, a two-point trip sharing one timestamp,
    and a 3-point trip (0,0) -> (3,4) -> (3,10) over 2.5 s.
    """
    x = np.array([0.0, 1.0, 2.0, 0.0, 3.0, 3.0])
    y = np.array([0.0, 1.0, 2.0, 0.0, 4.0, 10.0])
    ts = ms_timestamps(0, 5000, 5000, 0, 1000, 2500)
    length = np.array([1, 2, 3], dtype=np.int32)
    offset = np.array([0, 1, 3], dtype=np.int32)
    return x, y, ts, length, offset
