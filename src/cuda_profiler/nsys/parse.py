"""
Parse Nsight Systems kernel-summary CSV exports.

Expected shape (`nsys stats --report cuda_gpu_kern_sum`), e.g.:

    Time (%),Total Time (ns),Instances,Avg (ns),...,Name

Column names, order and time units vary across `nsys` versions. Parsing never
raises for malformed content: an unusable table yields no rows and a malformed
row yields a record with absent fields.
"""

from __future__ import annotations

import logging
from pathlib import Path

from .columns import ColumnMap, resolve_columns
from .csv_table import cell, strip_outer_quotes, tokenize_line
from .model import KernelRecord
from .units import parse_calls, to_milliseconds

log = logging.getLogger(__name__)


def _non_blank_lines(text: str) -> list[str]:
    return [ln.strip() for ln in text.splitlines() if ln.strip()]


def _row_to_record(fields: list[str], cols: ColumnMap) -> KernelRecord | None:
    name = strip_outer_quotes(cell(fields, cols.name) or "")
    if not name:
        return None
    return KernelRecord(
        name=name,
        calls=parse_calls(cell(fields, cols.calls)),
        total_time_ms=to_milliseconds(cell(fields, cols.total_time), cols.raw_nanoseconds),
        avg_time_ms=to_milliseconds(cell(fields, cols.avg_time), cols.raw_nanoseconds),
    )


def parse_kernel_csv(text: str) -> list[KernelRecord]:
    """Return one KernelRecord per data row with a non-empty name, in row order."""
    lines = _non_blank_lines(text)
    if len(lines) < 2:
        return []

    cols = resolve_columns(tokenize_line(lines[0]))
    if not cols.usable:
        log.debug("No Name column in CSV header: %r", lines[0])
        return []

    out: list[KernelRecord] = []
    for line in lines[1:]:
        rec = _row_to_record(tokenize_line(line), cols)
        if rec is not None:
            out.append(rec)
    return out


def parse_kernel_csv_file(csv_path: Path) -> list[KernelRecord]:
    return parse_kernel_csv(csv_path.read_text(encoding="utf-8-sig", errors="replace"))
