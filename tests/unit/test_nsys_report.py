from __future__ import annotations

import json
import re
from datetime import datetime, timezone
from pathlib import Path

import pytest

from cuda_profiler.nsys.errors import ProfilerError
from cuda_profiler.nsys.model import KernelRecord, ProfileReport
from cuda_profiler.nsys.report import format_text_table, load_last_run, render_markdown, save_last_run, write_markdown_report

REPORT = ProfileReport(
    command="./app",
    cwd="/work",
    generated_at=datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc),
    kernels=(
        KernelRecord(name="matmulKernel", calls=4, total_time_ms=10.0, avg_time_ms=2.5),
        KernelRecord(name="a|b"),
    ),
)


def test_render_markdown_table() -> None:
    md = render_markdown(REPORT)
    assert "CUDA Kernel Timings (nsys)" in md
    assert "`./app`" in md
    assert "matmulKernel" in md
    assert "10.000" in md
    assert "2.500" in md
    assert "a\\|b" in md

    row = next(line for line in md.splitlines() if "a\\|b" in line)
    cells = [c.strip() for c in re.split(r"(?<!\\)\|", row.strip())[1:-1]]
    assert cells == ["2", "a\\|b", "", "", ""]


def test_render_markdown_empty_report() -> None:
    md = render_markdown(ProfileReport(command="./app", cwd="/w", generated_at=REPORT.generated_at))
    assert "No kernel rows were parsed" in md


def test_write_markdown_report_appends_suffix(tmp_path: Path) -> None:
    written = write_markdown_report(REPORT, tmp_path / "sub" / "kernels")
    assert written == tmp_path / "sub" / "kernels.md"
    assert "matmulKernel" in written.read_text()

    written2 = write_markdown_report(REPORT, tmp_path / "r.md")
    assert written2 == tmp_path / "r.md"
    assert written2.exists()


def test_format_text_table_leaves_absent_cells_blank() -> None:
    lines = format_text_table(REPORT).splitlines()
    assert lines[0].split() == ["#", "Kernel", "Total", "(ms)", "Avg", "(ms)", "Calls"]
    assert lines[1].split() == ["1", "matmulKernel", "10.000", "2.500", "4"]
    assert lines[2].split() == ["2", "a|b"]


def test_last_run_roundtrip(tmp_path: Path) -> None:
    path = tmp_path / "out" / "last_run.json"
    csv_path = tmp_path / "out" / "nsys-T-stats_cuda_gpu_kern_sum.csv"
    save_last_run(path, REPORT, csv_path)

    loaded = load_last_run(path)
    assert loaded is not None
    report, loaded_csv = loaded
    assert report == REPORT
    assert loaded_csv == csv_path


def test_load_last_run_missing_returns_none(tmp_path: Path) -> None:
    assert load_last_run(tmp_path / "nope.json") is None


def test_load_last_run_rejects_invalid_payload(tmp_path: Path) -> None:
    path = tmp_path / "last_run.json"
    path.write_text(json.dumps({"schema_version": "0.1.0", "csv_path": "x.csv"}))
    with pytest.raises(ProfilerError, match="Invalid last-run file"):
        load_last_run(path)


def test_load_last_run_rejects_truncated_json(tmp_path: Path) -> None:
    path = tmp_path / "last_run.json"
    path.write_text("{truncated")
    with pytest.raises(ProfilerError, match="Corrupt last-run file"):
        load_last_run(path)
