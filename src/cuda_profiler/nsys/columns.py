from __future__ import annotations

from typing import Literal

import attrs

from .csv_table import strip_outer_quotes

LogicalColumn = Literal["name", "total_time", "avg_time", "calls"]

# Ordered aliases per logical column; the first alias found in the header wins.
# Newer `cuda_gpu_kern_sum` exports use the "(ns)" headers, older ones the bare names.
COLUMN_ALIASES: dict[LogicalColumn, tuple[str, ...]] = {
    "name": ("name", "kernel name"),
    "total_time": ("total time (ns)", "total time", "total", "time"),
    "avg_time": ("avg (ns)", "avg", "average", "avg time"),
    "calls": ("instances", "calls", "count"),
}


@attrs.define(frozen=True, slots=True)
class ColumnMap:
    name: int | None
    total_time: int | None
    avg_time: int | None
    calls: int | None
    # True when the resolved time headers declare bare nanosecond counters.
    raw_nanoseconds: bool = False

    @property
    def usable(self) -> bool:
        return self.name is not None


def normalize_header(h: str) -> str:
    return strip_outer_quotes(h).strip().lower()


def _find(header: list[str], aliases: tuple[str, ...]) -> int | None:
    for alias in aliases:
        for idx, h in enumerate(header):
            if h == alias:
                return idx
    return None


def resolve_columns(header_row: list[str]) -> ColumnMap:
    """Map a header row to logical column indices (case-insensitive alias match)."""
    header = [normalize_header(h) for h in header_row]
    total_idx = _find(header, COLUMN_ALIASES["total_time"])
    avg_idx = _find(header, COLUMN_ALIASES["avg_time"])
    time_headers = [header[i] for i in (total_idx, avg_idx) if i is not None]
    return ColumnMap(
        name=_find(header, COLUMN_ALIASES["name"]),
        total_time=total_idx,
        avg_time=avg_idx,
        calls=_find(header, COLUMN_ALIASES["calls"]),
        raw_nanoseconds=any("(ns)" in h for h in time_headers),
    )
