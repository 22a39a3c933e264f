from __future__ import annotations

import logging
import os
import re
from pathlib import Path

import attrs

log = logging.getLogger(__name__)

SOURCE_SUFFIXES: frozenset[str] = frozenset({".cu", ".cuh", ".cpp", ".h", ".hpp"})
EXCLUDED_DIRS: frozenset[str] = frozenset({"node_modules", ".git", "build", "dist", "out", ".vscode"})
MAX_FILES = 4000
MAX_BYTES = 2_000_000

# "void ns::matmulKernel<float>(float*, int)" -> "matmulKernel"
_DEMANGLED_RE = re.compile(r"(?:^|[\s:*&])([A-Za-z_]\w*)\s*(?:<.*>)?\s*\(")


@attrs.define(frozen=True, slots=True)
class Callsite:
    path: Path
    line: int
    column: int


def kernel_identifier(kernel_name: str) -> str | None:
    """Extract the bare function name from a demangled kernel signature, if it is one."""
    m = _DEMANGLED_RE.search(kernel_name)
    if m is None:
        return None
    ident = m.group(1)
    return ident if ident != kernel_name else None


def search_patterns(kernel_name: str) -> list[str]:
    patterns = [f"{kernel_name}<<<", kernel_name]
    ident = kernel_identifier(kernel_name)
    if ident:
        patterns += [f"{ident}<<<", ident]
    return patterns


def iter_source_files(root: Path, *, max_files: int = MAX_FILES) -> list[Path]:
    out: list[Path] = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if d not in EXCLUDED_DIRS)
        for fn in sorted(filenames):
            if Path(fn).suffix.lower() in SOURCE_SUFFIXES:
                out.append(Path(dirpath) / fn)
                if len(out) >= max_files:
                    return out
    return out


def _read_source(path: Path) -> str | None:
    try:
        if path.stat().st_size > MAX_BYTES:
            return None
        return path.read_text(errors="replace")
    except OSError as e:
        log.debug("Skipping unreadable source %s: %s", path, e)
        return None


def _first_hit(files: list[Path], needle: str) -> Callsite | None:
    for path in files:
        text = _read_source(path)
        if text is None:
            continue
        idx = text.find(needle)
        if idx < 0:
            continue
        line = text.count("\n", 0, idx) + 1
        column = idx - (text.rfind("\n", 0, idx) + 1) + 1
        return Callsite(path=path, line=line, column=column)
    return None


def find_kernel_callsite(root: Path, kernel_name: str) -> Callsite | None:
    """Best-effort text search for a kernel's launch site (then any mention) under root."""
    name = kernel_name.strip()
    if not name:
        return None
    files = iter_source_files(root)
    for pattern in search_patterns(name):
        hit = _first_hit(files, pattern)
        if hit is not None:
            return hit
    return None
