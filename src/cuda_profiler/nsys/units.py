from __future__ import annotations

import math
import re

from .csv_table import strip_outer_quotes

_NS_PER_MS = 1_000_000.0

_VALUE_WITH_UNIT_RE = re.compile(
    r"^([-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?)\s*(ns|us|ms|s)?$",
    re.IGNORECASE,
)

# Inline unit -> (multiplier, divisor) to milliseconds; exact powers of ten keep
# "2500us" at exactly 2.5.
_UNIT_TO_MS: dict[str, tuple[float, float]] = {
    "ns": (1.0, 1e6),
    "us": (1.0, 1e3),
    "ms": (1.0, 1.0),
    "s": (1e3, 1.0),
}


def _parse_float(s: str) -> float | None:
    try:
        v = float(s)
    except ValueError:
        return None
    if not math.isfinite(v):
        return None
    return v


def to_milliseconds(raw: str | None, source_is_raw_nanoseconds: bool) -> float | None:
    """
    Convert one time cell to milliseconds.

    Parameters
    ----------
    raw:
        Cell text as tokenized (may be None when the row is short).
    source_is_raw_nanoseconds:
        True for schemas that emit bare nanosecond counters (e.g. "Total Time (ns)").
        False for schemas that embed the unit inline ("2.5ms", "2500us"); a value
        without a unit is taken as milliseconds.

    Unparsable, non-finite or negative values yield None rather than zero.
    """
    if raw is None:
        return None
    s = strip_outer_quotes(raw)
    if not s:
        return None

    if source_is_raw_nanoseconds:
        v = _parse_float(s)
        if v is None or v < 0:
            return None
        return v / _NS_PER_MS

    m = _VALUE_WITH_UNIT_RE.fullmatch(s)
    if m is None:
        return None
    v = _parse_float(m.group(1))
    if v is None or v < 0:
        return None
    unit = (m.group(2) or "ms").lower()
    mul, div = _UNIT_TO_MS[unit]
    return v * mul / div


def parse_calls(raw: str | None) -> int | None:
    """Parse an invocation count, stripping thousands separators and truncating toward zero."""
    if raw is None:
        return None
    s = strip_outer_quotes(raw).replace(",", "")
    if not s:
        return None
    v = _parse_float(s)
    if v is None or v < 0:
        return None
    return math.trunc(v)
