from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from jsonschema import Draft202012Validator
from jsonschema.exceptions import ValidationError
from mdutils.mdutils import MdUtils  # type: ignore[import-untyped]

from .errors import ProfilerError
from .model import ProfileReport

LAST_RUN_FILENAME = "last_run.json"
LAST_RUN_SCHEMA_VERSION = "0.1.0"

TABLE_HEADER: tuple[str, ...] = ("#", "Kernel", "Total (ms)", "Avg (ms)", "Calls")


def _format_ms(v: float | None) -> str:
    if v is None:
        return ""
    return f"{v:.3f}"


def _format_int(v: int | None) -> str:
    if v is None:
        return ""
    return str(v)


def table_rows(report: ProfileReport) -> list[list[str]]:
    return [
        [str(i), k.name, _format_ms(k.total_time_ms), _format_ms(k.avg_time_ms), _format_int(k.calls)]
        for i, k in enumerate(report.kernels, start=1)
    ]


def format_text_table(report: ProfileReport) -> str:
    """Plain fixed-width table for terminal output."""
    rows = [list(TABLE_HEADER), *table_rows(report)]
    widths = [max(len(r[c]) for r in rows) for c in range(len(TABLE_HEADER))]
    lines = []
    for r in rows:
        cells = [r[c].rjust(widths[c]) if c != 1 else r[c].ljust(widths[c]) for c in range(len(r))]
        lines.append("  ".join(cells).rstrip())
    return "\n".join(lines)


def _build_md(report: ProfileReport, file_name: str) -> MdUtils:
    md = MdUtils(file_name=file_name, title="CUDA Kernel Timings (nsys)")
    md.new_paragraph(f"{report.tool} • `{report.command}`")
    md.new_list(
        [
            f"Working directory: `{report.cwd}`",
            f"Generated at: `{report.generated_at.isoformat()}`",
            f"Kernels: {len(report.kernels)}",
        ]
    )
    md.new_header(level=1, title="Kernels")
    if not report.kernels:
        md.new_paragraph("No kernel rows were parsed from the exported CSV.")
        return md
    cells: list[str] = list(TABLE_HEADER)
    for row in table_rows(report):
        cells.extend(row)
    md.new_table(columns=len(TABLE_HEADER), rows=len(report.kernels) + 1, text=cells, text_align="left")
    return md


def render_markdown(report: ProfileReport) -> str:
    return _build_md(report, "report").get_md_text()


def write_markdown_report(report: ProfileReport, path: Path) -> Path:
    """Write the report as Markdown; returns the written path (`.md` is appended if missing)."""
    path.parent.mkdir(parents=True, exist_ok=True)
    stem = str(path)[: -len(".md")] if path.suffix == ".md" else str(path)
    _build_md(report, stem).create_md_file()
    return Path(f"{stem}.md")


def _schema_path() -> Path:
    return Path(__file__).resolve().parent / "schemas" / "last_run.schema.json"


def validate_last_run(payload: dict[str, Any]) -> None:
    schema = json.loads(_schema_path().read_text())
    Draft202012Validator(schema).validate(payload)


def save_last_run(path: Path, report: ProfileReport, csv_path: Path) -> None:
    payload = {
        "schema_version": LAST_RUN_SCHEMA_VERSION,
        "csv_path": str(csv_path),
        "report": report.to_dict(),
    }
    validate_last_run(payload)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=2, sort_keys=True) + "\n", encoding="utf-8")


def load_last_run(path: Path) -> tuple[ProfileReport, Path] | None:
    """Return (report, csv_path) from a previous run, or None if nothing was saved."""
    if not path.exists():
        return None
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
        validate_last_run(payload)
        report = ProfileReport.from_dict(payload["report"])
    except ValidationError as e:
        raise ProfilerError(f"Invalid last-run file {path}: {e.message}") from e
    except ValueError as e:
        # JSONDecodeError, UnicodeDecodeError and bad timestamps
        raise ProfilerError(f"Corrupt last-run file {path}: {e}") from e
    return report, Path(payload["csv_path"])
