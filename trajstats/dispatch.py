from __future__ import annotations

import functools
from dataclasses import dataclass
from typing import Any, Callable, Dict

import numpy as np

from trajstats.reducer import reduce_chunk


@dataclass(frozen=True)
class TimestampType:
    """A supported timestamp representation and its conversion of tick deltas to whole ms."""

    name: str
    ms_per_tick: int = 1
    ticks_per_ms: int = 1

    def elapsed_ms(self, ticks: int) -> int:
        # Truncates toward zero, so sub-millisecond spans give 0
        if self.ms_per_tick > 1:
            return ticks * self.ms_per_tick
        whole = abs(ticks) // self.ticks_per_ms
        return whole if ticks >= 0 else -whole


ELEMENT_TYPES: Dict[str, np.dtype] = {
    "float32": np.dtype(np.float32),
    "float64": np.dtype(np.float64),
}

TIMESTAMP_TYPES: Dict[str, TimestampType] = {
    "datetime64[D]": TimestampType("datetime64[D]", ms_per_tick=86_400_000),
    "datetime64[h]": TimestampType("datetime64[h]", ms_per_tick=3_600_000),
    "datetime64[m]": TimestampType("datetime64[m]", ms_per_tick=60_000),
    "datetime64[s]": TimestampType("datetime64[s]", ms_per_tick=1000),
    "datetime64[ms]": TimestampType("datetime64[ms]"),
    "datetime64[us]": TimestampType("datetime64[us]", ticks_per_ms=1000),
    "datetime64[ns]": TimestampType("datetime64[ns]", ticks_per_ms=1_000_000),
}


def _dtype_name(tag: Any) -> str:
    try:
        return np.dtype(tag).name
    except TypeError:
        return str(tag)


def resolve_element_type(tag: Any) -> np.dtype:
    """Map an element-type tag (dtype or dtype name) to a supported floating dtype."""
    name = _dtype_name(tag)
    if name not in ELEMENT_TYPES:
        raise TypeError(
            f"Unsupported coordinate type '{name}'; expected one of {sorted(ELEMENT_TYPES)}"
        )
    return ELEMENT_TYPES[name]


def resolve_timestamp_type(tag: Any) -> TimestampType:
    """Map a timestamp-type tag (dtype or dtype name) to a supported temporal type."""
    name = _dtype_name(tag)
    if name not in TIMESTAMP_TYPES:
        raise TypeError(
            f"Unsupported timestamp type '{name}'; expected one of {sorted(TIMESTAMP_TYPES)}"
        )
    return TIMESTAMP_TYPES[name]


@functools.lru_cache(maxsize=None)
def _instantiate(element_name: str, timestamp_name: str) -> Callable[..., None]:
    element = ELEMENT_TYPES[element_name]
    timestamp = TIMESTAMP_TYPES[timestamp_name]
    return functools.partial(reduce_chunk, element_type=element.type, elapsed_ms=timestamp.elapsed_ms)


def select_reducer(element_tag: Any, timestamp_tag: Any) -> Callable[..., None]:
    """
    Pick the reducer instantiation for a (coordinate type, timestamp type) pair.

    Element type is resolved first, then the timestamp type. Any tag outside the
    supported sets raises TypeError before a reducer is built; nothing is coerced.
    """
    element = resolve_element_type(element_tag)
    timestamp = resolve_timestamp_type(timestamp_tag)
    return _instantiate(element.name, timestamp.name)
