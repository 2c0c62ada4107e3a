from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import numpy as np
import pandas as pd


@dataclass(frozen=True)
class GroupDescriptor:
    """
    Offset/length table partitioning flat point arrays into trajectories.

    Trajectory g covers the points [offset[g], offset[g] + length[g]).
    keys optionally holds the trajectory identifier of every group, in the same order,
    and is used to label results.
    """

    length: np.ndarray
    offset: np.ndarray
    keys: Optional[pd.Index] = None

    def __len__(self) -> int:
        return int(len(self.length))

    def span(self, g: int) -> Tuple[int, int]:
        """Return (start index, point count) for trajectory g."""
        return int(self.offset[g]), int(self.length[g])

    @classmethod
    def from_lengths(cls, lengths: Sequence[int], keys: Optional[Sequence] = None) -> "GroupDescriptor":
        """
        Build a descriptor for back-to-back trajectories from their point counts.
        Offsets are the exclusive prefix sum of the lengths.
        """
        length = np.asarray(lengths, dtype=np.int32)
        offset = np.zeros(len(length), dtype=np.int32)
        if len(length) > 1:
            np.cumsum(length[:-1], out=offset[1:])
        return cls(length=length, offset=offset, keys=None if keys is None else pd.Index(keys))

    @classmethod
    def from_offsets(cls, offsets: Sequence[int], n_points: int, keys: Optional[Sequence] = None) -> "GroupDescriptor":
        """Build a descriptor from sorted start offsets; the last trajectory runs to n_points."""
        offset = np.asarray(offsets, dtype=np.int32)
        bounds = np.append(offset.astype(np.int64), np.int64(n_points))
        length = np.diff(bounds).astype(np.int32)
        return cls(length=length, offset=offset, keys=None if keys is None else pd.Index(keys))
