from trajstats.dispatch import select_reducer
from trajstats.distances import (
    TrajectoryStatus,
    compute_from_groups,
    trajectory_distances_and_speeds,
    trajectory_status,
)
from trajstats.groups import GroupDescriptor
from trajstats.preprocessing import assign_trip_ids, compute_trip_stats, derive_trajectories
from trajstats.reducer import TOO_FEW_POINTS, ZERO_DURATION

__all__ = [
    "GroupDescriptor",
    "TOO_FEW_POINTS",
    "TrajectoryStatus",
    "ZERO_DURATION",
    "assign_trip_ids",
    "compute_from_groups",
    "compute_trip_stats",
    "derive_trajectories",
    "select_reducer",
    "trajectory_distances_and_speeds",
    "trajectory_status",
]
