from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Any, Literal

import attrs

RunState = Literal["idle", "capturing", "summarizing", "completed", "failed"]
ToolId = Literal["nsys"]

TOOL_ID: ToolId = "nsys"


@attrs.define(frozen=True, slots=True)
class KernelRecord:
    name: str
    calls: int | None = None
    total_time_ms: float | None = None
    avg_time_ms: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "calls": self.calls,
            "total_time_ms": self.total_time_ms,
            "avg_time_ms": self.avg_time_ms,
        }

    @staticmethod
    def from_dict(d: dict[str, Any]) -> "KernelRecord":
        return KernelRecord(
            name=d["name"],
            calls=d.get("calls"),
            total_time_ms=d.get("total_time_ms"),
            avg_time_ms=d.get("avg_time_ms"),
        )


@attrs.define(frozen=True, slots=True)
class ProfileReport:
    command: str
    cwd: str
    generated_at: datetime
    kernels: tuple[KernelRecord, ...] = attrs.field(converter=tuple, factory=tuple)
    tool: ToolId = TOOL_ID

    def to_dict(self) -> dict[str, Any]:
        return {
            "tool": self.tool,
            "command": self.command,
            "cwd": self.cwd,
            "generated_at": self.generated_at.isoformat(),
            "kernels": [k.to_dict() for k in self.kernels],
        }

    @staticmethod
    def from_dict(d: dict[str, Any]) -> "ProfileReport":
        return ProfileReport(
            command=d["command"],
            cwd=d["cwd"],
            generated_at=datetime.fromisoformat(d["generated_at"]),
            kernels=tuple(KernelRecord.from_dict(k) for k in d.get("kernels", [])),
        )


@attrs.define(frozen=True, slots=True)
class RunArtifacts:
    trace_path: Path
    csv_path: Path
    command: str
    cwd: Path
    capture_cmd: str = ""
    export_cmd: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "trace_path": str(self.trace_path),
            "csv_path": str(self.csv_path),
            "command": self.command,
            "cwd": str(self.cwd),
            "capture_cmd": self.capture_cmd,
            "export_cmd": self.export_cmd,
        }
