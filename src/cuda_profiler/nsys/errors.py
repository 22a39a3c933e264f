from __future__ import annotations

from pathlib import Path
from typing import Literal

Phase = Literal["capture", "export"]
ArtifactKind = Literal["trace", "csv"]


class ProfilerError(RuntimeError):
    """Base class for failures that abort a profiling run."""


class ConfigurationError(ProfilerError):
    """A required setting is missing or the tool could not be launched at all."""


class SubprocessFailure(ProfilerError):
    """The profiler exited non-zero in one of the two phases."""

    def __init__(self, *, phase: Phase, argv: list[str], returncode: int, stdout: str, stderr: str) -> None:
        self.phase = phase
        self.argv = list(argv)
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        exe = argv[0] if argv else "<tool>"
        parts = [f"{exe} {phase} failed (code {returncode})."]
        if stderr.strip():
            parts.append(stderr.strip())
        if stdout.strip():
            parts.append(stdout.strip())
        super().__init__("\n".join(parts))


class ArtifactNotFound(ProfilerError):
    """The profiler succeeded but the expected output file is not on disk."""

    def __init__(self, *, kind: ArtifactKind, directory: Path, detail: str, found: list[str] | tuple[str, ...] = ()) -> None:
        self.kind = kind
        self.directory = directory
        self.found = tuple(found)
        listing = ", ".join(self.found) if self.found else "(none)"
        super().__init__(f"{detail} Files: {listing}")
