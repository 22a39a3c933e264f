from __future__ import annotations

import threading
from pathlib import Path

import attrs

KERN_SUM_CSV = (
    "Time (%),Total Time (ns),Instances,Avg (ns),Med (ns),Min (ns),Max (ns),StdDev (ns),Name\n"
    '50.0,10000000,4,2500000,2500000,2400000,2600000,1000,"matmulKernel"\n'
)


@attrs.define
class FakeProc:
    returncode: int = 0
    stdout: str = ""
    stderr: str = ""


@attrs.define
class FakeNsys:
    """Stand-in for the nsys executable: writes the files each subcommand would."""

    csv_text: str = KERN_SUM_CSV
    trace_ext: str = ".nsys-rep"
    capture_result: FakeProc = attrs.field(factory=FakeProc)
    export_result: FakeProc = attrs.field(factory=FakeProc)
    write_trace: bool = True
    write_csv: bool = True
    capture_gate: threading.Event | None = None
    calls: list[tuple[str, list[str], Path]] = attrs.field(factory=list)
    _lock: threading.Lock = attrs.field(factory=threading.Lock)

    def count(self, subcommand: str) -> int:
        return sum(1 for sub, _, _ in self.calls if sub == subcommand)

    def __call__(self, argv: list[str], cwd: Path) -> FakeProc:
        sub = argv[1]
        with self._lock:
            self.calls.append((sub, list(argv), cwd))
        out = Path(argv[argv.index("-o") + 1])
        if sub == "profile":
            if self.capture_gate is not None:
                self.capture_gate.wait(timeout=10)
            if self.capture_result.returncode == 0 and self.write_trace:
                out.with_name(out.name + self.trace_ext).write_bytes(b"trace")
            return self.capture_result
        if sub == "stats":
            if self.export_result.returncode == 0 and self.write_csv:
                out.with_name(out.name + "_cuda_gpu_kern_sum.csv").write_text(self.csv_text)
            return self.export_result
        raise AssertionError(f"unexpected subcommand: {sub}")
