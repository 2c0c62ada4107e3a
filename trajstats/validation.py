from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

import numpy as np
import pandas as pd


@dataclass(frozen=True)
class ValidatedBatch:
    x: np.ndarray
    y: np.ndarray
    timestamp: np.ndarray
    length: np.ndarray
    offset: np.ndarray

    @property
    def ticks(self) -> np.ndarray:
        """Timestamps as int64 counts of their native unit."""
        return self.timestamp.view(np.int64)


# -------------------------------
# Helpers
# -------------------------------
def _as_array(values: Any, name: str, default_dtype: Optional[Any] = None) -> np.ndarray:
    """
    Convert a pandas Series/Index, numpy array or plain sequence to a 1-D numpy array.
    Timezone-aware datetimes are normalized to naive UTC. Plain sequences without a dtype
    are converted with default_dtype when one is given.
    """
    if isinstance(values, (pd.Series, pd.Index)):
        if values.isna().any():
            raise ValueError(f"'{name}' must not contain nulls")
        if isinstance(values.dtype, pd.DatetimeTZDtype):
            if isinstance(values, pd.Series):
                values = values.dt.tz_convert("UTC").dt.tz_localize(None)
            else:
                values = values.tz_convert("UTC").tz_localize(None)
        numpy_dtype = getattr(values.dtype, "numpy_dtype", None)
        arr = values.to_numpy(dtype=numpy_dtype) if numpy_dtype is not None else values.to_numpy()
    elif isinstance(values, np.ndarray):
        arr = values
    elif default_dtype is not None:
        try:
            arr = np.asarray(values, dtype=default_dtype)
        except OverflowError as e:
            raise TypeError(f"'{name}' must be {np.dtype(default_dtype).name}; {e}") from e
    else:
        arr = np.asarray(values)

    if arr.ndim != 1:
        raise ValueError(f"'{name}' must be one-dimensional, got shape {arr.shape}")
    return arr


def _check_no_nulls(arr: np.ndarray, name: str) -> None:
    if arr.dtype.kind == "f" and np.isnan(arr).any():
        raise ValueError(f"'{name}' must not contain nulls (NaN)")
    if arr.dtype.kind == "M" and np.isnat(arr).any():
        raise ValueError(f"'{name}' must not contain nulls (NaT)")


# -------------------------------
# Boundary validator
# -------------------------------
def validate_inputs(x: Any, y: Any, timestamp: Any, length: Any, offset: Any) -> ValidatedBatch:
    """
    Check every precondition of a distance/speed batch before any work is dispatched.

    Raises:
        ValueError: empty inputs, mismatched sizes, nulls, or out-of-range groups.
        TypeError: mismatched coordinate dtypes, non-temporal timestamps, non-int32 groups.
    Returns the inputs as numpy arrays.
    """
    x_arr = _as_array(x, "x")
    y_arr = _as_array(y, "y")
    ts_arr = _as_array(timestamp, "timestamp")
    length_arr = _as_array(length, "length", default_dtype=np.int32)
    offset_arr = _as_array(offset, "offset", default_dtype=np.int32)

    if len(x_arr) == 0:
        raise ValueError("'x' must not be empty")
    if len(ts_arr) == 0:
        raise ValueError("'timestamp' must not be empty")
    if len(length_arr) == 0:
        raise ValueError("'length' must not be empty")
    if not (len(x_arr) == len(y_arr) == len(ts_arr)):
        raise ValueError(
            f"'x', 'y' and 'timestamp' must have equal sizes, got {len(x_arr)}, {len(y_arr)}, {len(ts_arr)}"
        )
    if len(length_arr) != len(offset_arr):
        raise ValueError(
            f"'length' and 'offset' must have equal sizes, got {len(length_arr)} and {len(offset_arr)}"
        )
    if len(x_arr) < len(offset_arr):
        raise ValueError(
            f"number of points ({len(x_arr)}) must be at least the number of trajectories ({len(offset_arr)})"
        )

    if x_arr.dtype != y_arr.dtype:
        raise TypeError(f"'x' and 'y' must share one dtype, got {x_arr.dtype} and {y_arr.dtype}")
    if not np.issubdtype(ts_arr.dtype, np.datetime64):
        hint = " (pass a numpy datetime64 array or pandas datetimes)" if ts_arr.dtype == object else ""
        raise TypeError(f"'timestamp' must be a datetime64 type, got {ts_arr.dtype}{hint}")
    for name, arr in (("length", length_arr), ("offset", offset_arr)):
        if arr.dtype != np.int32:
            raise TypeError(f"'{name}' must be int32, got {arr.dtype}")

    _check_no_nulls(x_arr, "x")
    _check_no_nulls(y_arr, "y")
    _check_no_nulls(ts_arr, "timestamp")

    if (length_arr < 0).any():
        raise ValueError("'length' must be non-negative")
    if (offset_arr < 0).any():
        raise ValueError("'offset' must be non-negative")
    ends = offset_arr.astype(np.int64) + length_arr.astype(np.int64)
    if (ends > len(x_arr)).any():
        g = int(np.argmax(ends > len(x_arr)))
        raise ValueError(
            f"trajectory {g} spans points [{int(offset_arr[g])}, {int(ends[g])}) beyond {len(x_arr)} points"
        )

    return ValidatedBatch(x=x_arr, y=y_arr, timestamp=ts_arr, length=length_arr, offset=offset_arr)
