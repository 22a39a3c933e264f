from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable

from .model import ProfileReport, RunArtifacts
from .parse import parse_kernel_csv_file
from .runner import RunCoordinator

log = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def report_from_csv(
    csv_path: Path,
    *,
    command: str,
    cwd: str,
    clock: Callable[[], datetime] = _utc_now,
) -> ProfileReport:
    """Build a report from an already exported kernel-summary CSV."""
    kernels = parse_kernel_csv_file(csv_path)
    if not kernels:
        log.warning("Nsight Systems ran, but no kernel rows were parsed from %s", csv_path)
    return ProfileReport(command=command, cwd=cwd, generated_at=clock(), kernels=tuple(kernels))


class ProfilePipeline:
    """Run capture/export through a RunCoordinator and parse the exported CSV."""

    def __init__(self, coordinator: RunCoordinator, *, clock: Callable[[], datetime] = _utc_now) -> None:
        self.coordinator = coordinator
        self._clock = clock

    def run(self) -> ProfileReport:
        report, _ = self.run_with_artifacts()
        return report

    def run_with_artifacts(self) -> tuple[ProfileReport, RunArtifacts]:
        """Like `run`, also returning the trace/CSV paths the report was built from."""
        # Coordinator failures (configuration/subprocess/artifact) propagate unchanged.
        run_artifacts = self.coordinator.run()
        report = report_from_csv(
            run_artifacts.csv_path,
            command=run_artifacts.command,
            cwd=str(run_artifacts.cwd),
            clock=self._clock,
        )
        return report, run_artifacts
