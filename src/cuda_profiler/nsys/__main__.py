from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

import attrs
from jsonschema.exceptions import ValidationError

from .errors import ConfigurationError, ProfilerError
from .model import ProfileReport
from .navigate import find_kernel_callsite
from .pipeline import ProfilePipeline, report_from_csv
from .report import LAST_RUN_FILENAME, format_text_table, load_last_run, save_last_run, write_markdown_report
from .runner import RunCoordinator
from .settings import ProfilerSettings, load_settings


def _abs_path(p: str) -> Path:
    return Path(p).expanduser().resolve()


def build_parser() -> argparse.ArgumentParser:
    """Build CLI parser for the Nsight Systems kernel-timing pipeline."""
    parser = argparse.ArgumentParser(
        prog="cuda_profiler.nsys",
        description="Profile a command under Nsight Systems and report per-kernel GPU timings.",
    )
    parser.add_argument("--log-level", default="warning", choices=["debug", "info", "warning", "error"])
    sub = parser.add_subparsers(dest="cmd", required=True)

    def add_workspace_args(p: argparse.ArgumentParser) -> None:
        p.add_argument("--workspace", type=_abs_path, default=Path.cwd(), help="Workspace folder (default: current dir).")
        p.add_argument("--settings", type=_abs_path, default=None, help="JSON settings file (command/cwd/outputDir/toolPath).")
        p.add_argument("--output-dir", default=None, help="Artifact directory (relative to the workspace unless absolute).")

    run = sub.add_parser("run", help="Run nsys profile + nsys stats and print the kernel table.")
    add_workspace_args(run)
    run.add_argument("--command", dest="profiled_command", default=None, help="Command line to profile.")
    run.add_argument("--cwd", default=None, help="Working directory (supports ${workspaceFolder}).")
    run.add_argument("--tool-path", default=None, help="nsys executable (default: $CUDA_PROFILER_NSYS or nsys).")
    run.add_argument("--markdown", type=_abs_path, default=None, help="Also write the report as Markdown here.")

    reload = sub.add_parser("reload", help="Re-parse the CSV from the last run and print the kernel table.")
    add_workspace_args(reload)
    reload.add_argument("--markdown", type=_abs_path, default=None, help="Also write the report as Markdown here.")

    show = sub.add_parser("show", help="Parse an existing kernel-summary CSV (no profiling).")
    show.add_argument("--csv", type=_abs_path, required=True)
    show.add_argument("--markdown", type=_abs_path, default=None, help="Also write the report as Markdown here.")

    find = sub.add_parser("find-kernel", help="Locate a kernel's launch site in source files.")
    find.add_argument("kernel_name")
    find.add_argument("--root", type=_abs_path, default=Path.cwd(), help="Source tree to search (default: current dir).")

    return parser


def _settings_from_args(ns: argparse.Namespace) -> ProfilerSettings:
    if ns.settings is not None:
        settings = load_settings(ns.settings, workspace_folder=ns.workspace)
    else:
        settings = ProfilerSettings(workspace_folder=ns.workspace)

    overrides: dict[str, object] = {}
    if getattr(ns, "profiled_command", None) is not None:
        overrides["command"] = ns.profiled_command
    if getattr(ns, "cwd", None) is not None:
        overrides["cwd"] = ns.cwd
    if ns.output_dir is not None:
        overrides["output_dir"] = ns.output_dir
    if getattr(ns, "tool_path", None) is not None:
        overrides["tool_path"] = ns.tool_path
    return attrs.evolve(settings, **overrides)


def _output_dir(settings: ProfilerSettings, workspace: Path) -> Path:
    out = Path(settings.output_dir).expanduser()
    return out if out.is_absolute() else workspace / out


def _emit(report: ProfileReport, markdown: Path | None) -> None:
    print(format_text_table(report))
    if not report.kernels:
        print("Warning: Nsight Systems ran, but no kernel rows were parsed from the CSV.", file=sys.stderr)
    if markdown is not None:
        written = write_markdown_report(report, markdown)
        print(f"Wrote {written}", file=sys.stderr)


def _cmd_run(ns: argparse.Namespace) -> int:
    settings = _settings_from_args(ns)
    pipeline = ProfilePipeline(RunCoordinator(settings))
    report, run_artifacts = pipeline.run_with_artifacts()
    save_last_run(_output_dir(settings, ns.workspace) / LAST_RUN_FILENAME, report, run_artifacts.csv_path)
    _emit(report, ns.markdown)
    return 0


def _cmd_reload(ns: argparse.Namespace) -> int:
    settings = _settings_from_args(ns)
    last = load_last_run(_output_dir(settings, ns.workspace) / LAST_RUN_FILENAME)
    if last is None:
        print("No previous run recorded. Run `cuda_profiler.nsys run` first.")
        return 0
    previous, csv_path = last
    report = report_from_csv(csv_path, command=previous.command, cwd=previous.cwd)
    _emit(report, ns.markdown)
    return 0


def _cmd_show(ns: argparse.Namespace) -> int:
    report = report_from_csv(ns.csv, command="", cwd=str(ns.csv.parent))
    _emit(report, ns.markdown)
    return 0


def _cmd_find_kernel(ns: argparse.Namespace) -> int:
    hit = find_kernel_callsite(ns.root, ns.kernel_name)
    if hit is None:
        print(f"No callsite found for kernel: {ns.kernel_name}")
        return 1
    print(f"{hit.path}:{hit.line}:{hit.column}")
    return 0


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint. Returns process exit code."""
    parser = build_parser()
    ns = parser.parse_args(argv)
    logging.basicConfig(level=getattr(logging, ns.log_level.upper()), format="%(levelname)s %(name)s: %(message)s")

    try:
        if ns.cmd == "run":
            return _cmd_run(ns)
        if ns.cmd == "reload":
            return _cmd_reload(ns)
        if ns.cmd == "show":
            return _cmd_show(ns)
        if ns.cmd == "find-kernel":
            return _cmd_find_kernel(ns)
    except ConfigurationError as e:
        print(str(e), file=sys.stderr)
        return 2
    except ProfilerError as e:
        print(str(e), file=sys.stderr)
        return 1
    except (OSError, ValidationError) as e:
        print(f"{type(e).__name__}: {e}", file=sys.stderr)
        return 1

    raise AssertionError(f"Unhandled cmd: {ns.cmd}")


if __name__ == "__main__":
    raise SystemExit(main())
