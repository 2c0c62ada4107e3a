import numpy as np
import pandas as pd
import pytest

from conftest import ms_timestamps
from trajstats.distances import (
    TrajectoryStatus,
    compute_from_groups,
    trajectory_distances_and_speeds,
    trajectory_status,
)
from trajstats.groups import GroupDescriptor


def _single(x, y, ts, **kwargs):
    n = len(x)
    return trajectory_distances_and_speeds(
        x, y, ts, np.array([n], dtype=np.int32), np.array([0], dtype=np.int32), **kwargs
    )


def test_three_four_five_one_second():
    out = _single(np.array([0.0, 3.0]), np.array([0.0, 4.0]), ms_timestamps(0, 1000))
    assert list(out.columns) == ["distance", "speed"]
    assert out["distance"].iloc[0] == 5000.0
    assert out["speed"].iloc[0] == 5000.0


def test_output_is_float64_and_aligned(three_trip_batch):
    out = trajectory_distances_and_speeds(*three_trip_batch)
    assert out["distance"].dtype == np.float64
    assert out["speed"].dtype == np.float64
    assert len(out) == 3
    assert list(out.index) == [0, 1, 2]


def test_end_to_end_mixed_batch(three_trip_batch):
    out = trajectory_distances_and_speeds(*three_trip_batch)
    assert out["distance"].tolist() == [-2.0, -3.0, 11000.0]
    assert out["speed"].tolist() == [-2.0, -3.0, 4400.0]


def test_zero_length_trajectory_is_too_few_points():
    out = trajectory_distances_and_speeds(
        np.array([0.0, 3.0]),
        np.array([0.0, 4.0]),
        ms_timestamps(0, 1000),
        np.array([0, 2], dtype=np.int32),
        np.array([0, 0], dtype=np.int32),
    )
    assert out.loc[0].tolist() == [-2.0, -2.0]
    assert out.loc[1].tolist() == [5000.0, 5000.0]


def test_sub_millisecond_elapsed_time_is_zero_duration():
    ts = np.array([0, 999_999], dtype="int64").astype("datetime64[ns]")
    out = _single(np.array([0.0, 3.0]), np.array([0.0, 4.0]), ts)
    assert out.loc[0].tolist() == [-3.0, -3.0]


def test_elapsed_time_truncates_to_whole_milliseconds():
    ts = np.array([0, 1_999_999], dtype="int64").astype("datetime64[ns]")
    out = _single(np.array([0.0, 3.0]), np.array([0.0, 4.0]), ts)
    assert out["distance"].iloc[0] == 5000.0
    assert out["speed"].iloc[0] == 5_000_000.0


@pytest.mark.parametrize(
    "unit, step, elapsed_ms",
    [
        ("D", 1, 86_400_000),
        ("h", 1, 3_600_000),
        ("m", 1, 60_000),
        ("s", 1, 1000),
        ("ms", 1000, 1000),
        ("us", 1_000_000, 1000),
        ("ns", 1_000_000_000, 1000),
    ],
)
@pytest.mark.parametrize("element", [np.float32, np.float64])
def test_all_supported_type_combinations(unit, step, elapsed_ms, element):
    ts = np.array([0, step], dtype="int64").astype(f"datetime64[{unit}]")
    out = _single(np.array([0, 3], dtype=element), np.array([0, 4], dtype=element), ts)
    assert out["distance"].iloc[0] == 5000.0
    assert out["speed"].iloc[0] == pytest.approx(5_000_000 / elapsed_ms, rel=1e-6)


def test_day_resolution_timestamps():
    ts = np.array(["2021-06-01", "2021-06-02", "2021-06-04"], dtype="datetime64[D]")
    out = _single(np.array([0.0, 3.0, 3.0]), np.array([0.0, 4.0, 10.0]), ts)
    assert out["distance"].iloc[0] == 11000.0
    assert out["speed"].iloc[0] == pytest.approx(11_000_000 / (3 * 86_400_000))


def test_float32_accumulates_left_to_right_in_float32():
    rng = np.random.default_rng(7)
    x = rng.uniform(0, 50, size=40).astype(np.float32)
    y = rng.uniform(0, 50, size=40).astype(np.float32)
    ts = ms_timestamps(*range(0, 40 * 700, 700))

    dx = np.diff(x)
    dy = np.diff(y)
    seg = np.sqrt(dx * dx + dy * dy)
    acc = seg[0]
    for s in seg[1:]:
        acc = np.float32(acc + s)
    expected_distance = float(acc * np.float32(1000))
    expected_speed = float((acc * np.float32(1_000_000)) / np.float32(39 * 700))

    out = _single(x, y, ts)
    assert out["distance"].iloc[0] == expected_distance
    assert out["speed"].iloc[0] == expected_speed


def test_deterministic(three_trip_batch):
    first = trajectory_distances_and_speeds(*three_trip_batch)
    second = trajectory_distances_and_speeds(*three_trip_batch)
    pd.testing.assert_frame_equal(first, second)


def test_permuted_descriptor_permutes_output(three_trip_batch):
    x, y, ts, length, offset = three_trip_batch
    base = trajectory_distances_and_speeds(x, y, ts, length, offset)
    perm = np.array([2, 0, 1])
    out = trajectory_distances_and_speeds(x, y, ts, length[perm], offset[perm])
    np.testing.assert_array_equal(out["distance"].to_numpy(), base["distance"].to_numpy()[perm])
    np.testing.assert_array_equal(out["speed"].to_numpy(), base["speed"].to_numpy()[perm])


def test_parallel_chunks_match_inline():
    rng = np.random.default_rng(11)
    lengths = rng.integers(0, 12, size=200).astype(np.int32)
    groups = GroupDescriptor.from_lengths(lengths)
    n = int(lengths.sum())
    x = rng.normal(size=n).cumsum()
    y = rng.normal(size=n).cumsum()
    ts = ms_timestamps(*np.cumsum(rng.integers(0, 3000, size=n)))

    inline = compute_from_groups(x, y, ts, groups, n_jobs=1)
    parallel = compute_from_groups(x, y, ts, groups, n_jobs=2, chunk_size=7)
    pd.testing.assert_frame_equal(inline, parallel)


def test_keys_label_rows(three_trip_batch):
    x, y, ts, length, offset = three_trip_batch
    groups = GroupDescriptor(length=length, offset=offset, keys=pd.Index(["a", "b", "c"]))
    out = compute_from_groups(x, y, ts, groups)
    assert list(out.index) == ["a", "b", "c"]
    assert out.loc["c", "distance"] == 11000.0


def test_mismatched_x_y_fails_before_output():
    with pytest.raises(ValueError, match="equal sizes"):
        trajectory_distances_and_speeds(
            np.array([0.0, 3.0]),
            np.array([0.0]),
            ms_timestamps(0, 1000),
            np.array([2], dtype=np.int32),
            np.array([0], dtype=np.int32),
        )


def test_integer_coordinates_rejected():
    with pytest.raises(TypeError, match="coordinate type"):
        _single(np.array([0, 3]), np.array([0, 4]), ms_timestamps(0, 1000))


def test_non_temporal_timestamps_rejected():
    with pytest.raises(TypeError, match="timestamp"):
        _single(np.array([0.0, 3.0]), np.array([0.0, 4.0]), np.array([0, 1000], dtype="timedelta64[ms]"))


def test_invalid_chunk_size():
    with pytest.raises(ValueError, match="chunk_size"):
        _single(np.array([0.0, 3.0]), np.array([0.0, 4.0]), ms_timestamps(0, 1000), chunk_size=0)


def test_keys_must_match_trajectory_count(three_trip_batch):
    with pytest.raises(ValueError, match="keys"):
        trajectory_distances_and_speeds(*three_trip_batch, keys=["a"])


def test_trajectory_status(three_trip_batch):
    out = trajectory_distances_and_speeds(*three_trip_batch)
    status = trajectory_status(out)
    assert status.tolist() == [
        TrajectoryStatus.TOO_FEW_POINTS.value,
        TrajectoryStatus.ZERO_DURATION.value,
        TrajectoryStatus.OK.value,
    ]
    # numeric output untouched
    assert out["distance"].tolist() == [-2.0, -3.0, 11000.0]


def test_default_runs_inline_without_joblib(monkeypatch, three_trip_batch):
    def fail(*args, **kwargs):
        raise AssertionError("joblib.Parallel should not be used by default")

    monkeypatch.setattr("trajstats.reducer.Parallel", fail)
    out = trajectory_distances_and_speeds(*three_trip_batch, chunk_size=1)
    assert out["distance"].tolist() == [-2.0, -3.0, 11000.0]
