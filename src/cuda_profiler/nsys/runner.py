"""
Two-phase Nsight Systems run coordination.

A run is `nsys profile` (capture) followed by `nsys stats` (export) into a
timestamped prefix under the output directory. Only one run may be in flight:
concurrent callers of `RunCoordinator.run()` share the in-flight run's outcome
instead of starting a second capture against the same output directory.
"""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
import threading
from concurrent.futures import Future
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Protocol

from . import artifacts
from .errors import ConfigurationError, Phase, SubprocessFailure
from .model import TOOL_ID, RunArtifacts, RunState
from .settings import ProfilerSettings, ResolvedSettings

log = logging.getLogger(__name__)

# Pinned so the exported kernel table does not depend on the tool's defaults.
CAPTURE_FLAGS: tuple[str, ...] = ("--trace=cuda,nvtx",)
EXPORT_FLAGS: tuple[str, ...] = ("--report", "cuda_gpu_kern_sum", "--format", "csv", "--force-export=true")


class ProcessResult(Protocol):
    returncode: int
    stdout: str
    stderr: str


ExecFn = Callable[[list[str], Path], ProcessResult]


def run_process(argv: list[str], cwd: Path) -> ProcessResult:
    """Run argv to completion and capture stdout/stderr as text."""
    return subprocess.run(argv, cwd=cwd, capture_output=True, text=True, errors="replace", check=False)


def shell_argv(command: str) -> list[str]:
    """Wrap a user command line so the platform shell interprets it."""
    if os.name == "nt":
        return ["cmd.exe", "/d", "/s", "/c", command]
    return ["/bin/sh", "-c", command]


def build_capture_argv(*, tool: str, prefix: Path, command: str) -> list[str]:
    return [tool, "profile", *CAPTURE_FLAGS, "-o", str(prefix), *shell_argv(command)]


def build_export_argv(*, tool: str, stats_prefix: Path, trace_path: Path) -> list[str]:
    return [tool, "stats", *EXPORT_FLAGS, "-o", str(stats_prefix), str(trace_path)]


def _utc_stamp(now: datetime) -> str:
    return now.isoformat(timespec="microseconds").replace("+00:00", "Z").replace(":", "-").replace(".", "-")


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class RunCoordinator:
    """
    Drive one capture/export run at a time.

    States: idle -> capturing -> summarizing -> completed, or failed from either
    active state. `run()` is safe to call from several threads; callers that
    arrive while a run is active receive that run's result (or exception).
    """

    def __init__(
        self,
        settings: ProfilerSettings,
        *,
        exec_fn: ExecFn = run_process,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._settings = settings
        self._exec = exec_fn
        self._clock = clock
        self._lock = threading.Lock()
        self._inflight: Future[RunArtifacts] | None = None
        self._state: RunState = "idle"
        self._last_stamp: str | None = None
        self._stamp_seq = 0

    @property
    def state(self) -> RunState:
        return self._state

    @property
    def busy(self) -> bool:
        with self._lock:
            return self._inflight is not None

    def run(self) -> RunArtifacts:
        """Submit a run (or join the in-flight one) and wait for its outcome."""
        with self._lock:
            fut = self._inflight
            owner = fut is None
            if fut is None:
                fut = Future()
                fut.set_running_or_notify_cancel()
                self._inflight = fut

        if not owner:
            log.info("Run already in progress; waiting for its result")
            return fut.result()

        try:
            result = self._execute()
        except BaseException as e:
            self._release()
            fut.set_exception(e)
            raise
        self._release()
        fut.set_result(result)
        return result

    def _release(self) -> None:
        with self._lock:
            self._inflight = None

    def _next_prefix_name(self) -> str:
        stamp = _utc_stamp(self._clock())
        if self._last_stamp is not None and stamp <= self._last_stamp:
            self._stamp_seq += 1
            name = f"{TOOL_ID}-{self._last_stamp}-{self._stamp_seq}"
        else:
            self._last_stamp = stamp
            self._stamp_seq = 0
            name = f"{TOOL_ID}-{stamp}"
        return name

    def _invoke(self, phase: Phase, argv: list[str], cwd: Path) -> None:
        log.debug("%s argv: %s", phase, shlex.join(argv))
        try:
            proc = self._exec(argv, cwd)
        except OSError as e:
            raise ConfigurationError(f"Failed to launch {argv[0]} in {cwd}: {e}") from e
        if proc.returncode != 0:
            raise SubprocessFailure(
                phase=phase,
                argv=argv,
                returncode=proc.returncode,
                stdout=proc.stdout or "",
                stderr=proc.stderr or "",
            )

    def _execute(self) -> RunArtifacts:
        cfg: ResolvedSettings = self._settings.resolve()
        artifacts.ensure_dir(cfg.output_dir)

        prefix_name = self._next_prefix_name()
        prefix = cfg.output_dir / prefix_name
        stats_prefix = cfg.output_dir / f"{prefix_name}-stats"

        try:
            self._state = "capturing"
            log.info("Capturing %r under %s", cfg.command, prefix)
            capture_argv = build_capture_argv(tool=cfg.tool, prefix=prefix, command=cfg.command)
            self._invoke("capture", capture_argv, cfg.cwd)
            trace_path = artifacts.locate_trace(cfg.output_dir, prefix_name)

            self._state = "summarizing"
            log.info("Exporting kernel summary from %s", trace_path.name)
            export_argv = build_export_argv(tool=cfg.tool, stats_prefix=stats_prefix, trace_path=trace_path)
            self._invoke("export", export_argv, cfg.cwd)
            csv_path = artifacts.locate_csv(cfg.output_dir, stats_prefix.name)
        except BaseException:
            self._state = "failed"
            raise

        self._state = "completed"
        return RunArtifacts(
            trace_path=trace_path,
            csv_path=csv_path,
            command=cfg.command,
            cwd=cfg.cwd,
            capture_cmd=shlex.join(capture_argv),
            export_cmd=shlex.join(export_argv),
        )
