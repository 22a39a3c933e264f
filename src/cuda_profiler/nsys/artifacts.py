"""
Locate the files `nsys profile` / `nsys stats` leave in the output directory.

The tool's naming scheme is not a stable contract across versions (trace
extension, stats suffixes), so each lookup walks an explicit fallback chain and
logs which branch selected the file.
"""

from __future__ import annotations

import logging
from pathlib import Path

from .errors import ArtifactNotFound

log = logging.getLogger(__name__)

# Probed in order; `.qdrep` is the pre-2021.3 extension.
TRACE_EXTENSIONS: tuple[str, ...] = (".nsys-rep", ".qdrep")

# Tokens in the file name written for the `cuda_gpu_kern_sum` report.
KERNEL_SUMMARY_TOKENS: tuple[str, ...] = ("cuda", "kern")


def ensure_dir(path: Path) -> None:
    """Create a directory (and parents) if it does not exist."""
    path.mkdir(parents=True, exist_ok=True)


def _list_files(directory: Path) -> list[Path]:
    """Return regular files in directory, sorted by name; missing dir -> []."""
    try:
        entries = sorted(directory.iterdir(), key=lambda p: p.name)
    except OSError:
        return []
    return [p for p in entries if p.is_file()]


def list_files_containing(directory: Path, needle: str) -> list[str]:
    return [p.name for p in _list_files(directory) if needle in p.name]


def _mtime(path: Path) -> float:
    try:
        return path.stat().st_mtime
    except OSError:
        return float("-inf")


def _newest(paths: list[Path]) -> Path:
    # max() keeps the first of equal keys, so ties fall back to name order.
    return max(paths, key=_mtime)


def locate_trace(output_dir: Path, unique_prefix: str) -> Path:
    """
    Return the trace written for `unique_prefix` (a file stem inside output_dir).

    Raises
    ------
    ArtifactNotFound
        No known trace extension exists; the error lists every file whose name
        contains the prefix.
    """
    for ext in TRACE_EXTENSIONS:
        candidate = output_dir / f"{unique_prefix}{ext}"
        if candidate.is_file():
            log.info("Located trace: %s", candidate)
            return candidate

    found = list_files_containing(output_dir, unique_prefix)
    raise ArtifactNotFound(
        kind="trace",
        directory=output_dir,
        detail=f"Nsight Systems report not found for prefix {output_dir / unique_prefix}.",
        found=found,
    )


def _is_csv(path: Path) -> bool:
    return path.suffix.lower() == ".csv"


def _is_kernel_summary(path: Path) -> bool:
    lower = path.name.lower()
    return all(tok in lower for tok in KERNEL_SUMMARY_TOKENS)


def locate_csv(output_dir: Path, stats_prefix: str) -> Path:
    """
    Return the kernel-summary CSV exported under `stats_prefix`.

    Fallback chain:
    1. CSVs whose name starts with the prefix (case-insensitive) and contains the
       kernel-summary tokens; newest wins.
    2. Any CSV starting with the prefix; newest wins.
    3. The newest CSV anywhere in output_dir.

    Raises
    ------
    ArtifactNotFound
        output_dir holds no CSV at all.
    """
    files = _list_files(output_dir)
    csvs = [p for p in files if _is_csv(p)]
    base = Path(stats_prefix).name.lower()
    matching = [p for p in csvs if p.name.lower().startswith(base)]
    log.debug("CSV candidates for %s: %s", base, [p.name for p in matching])

    preferred = [p for p in matching if _is_kernel_summary(p)]
    if preferred:
        chosen = _newest(preferred)
        log.info("Located kernel summary CSV: %s", chosen)
        return chosen

    if matching:
        chosen = _newest(matching)
        log.warning("No kernel-summary CSV for %s; using newest prefixed CSV %s", base, chosen.name)
        return chosen

    if csvs:
        chosen = _newest(csvs)
        log.warning("No CSV starts with %s; falling back to newest CSV %s", base, chosen.name)
        return chosen

    raise ArtifactNotFound(
        kind="csv",
        directory=output_dir,
        detail=f"No CSV produced by `nsys stats` in {output_dir}.",
        found=[p.name for p in files],
    )
