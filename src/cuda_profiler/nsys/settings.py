from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

import attrs
from jsonschema import Draft202012Validator
from jsonschema.exceptions import ValidationError

from .errors import ConfigurationError

WORKSPACE_TOKEN = "${workspaceFolder}"
DEFAULT_OUTPUT_DIR = ".cuda-profiler"
TOOL_ENV_VAR = "CUDA_PROFILER_NSYS"


def default_tool() -> str:
    return "nsys.exe" if os.name == "nt" else "nsys"


@attrs.define(frozen=True, slots=True)
class ResolvedSettings:
    command: str
    cwd: Path
    output_dir: Path
    tool: str
    workspace_folder: Path


@attrs.define(frozen=True, slots=True)
class ProfilerSettings:
    command: str = ""
    cwd: str = WORKSPACE_TOKEN
    output_dir: str = DEFAULT_OUTPUT_DIR
    tool_path: str | None = None
    workspace_folder: Path | None = None

    def resolve(self) -> ResolvedSettings:
        """Validate and expand settings; raise ConfigurationError before any run starts."""
        command = self.command.strip()
        if not command:
            raise ConfigurationError("Set `command` (the command line to profile) in settings.")
        if self.workspace_folder is None:
            raise ConfigurationError("Open a folder/workspace first (no workspace folder set).")

        wf = Path(self.workspace_folder).expanduser().resolve()
        cwd = Path(self.cwd.replace(WORKSPACE_TOKEN, str(wf))).expanduser()
        if not cwd.is_absolute():
            cwd = wf / cwd

        out = Path(self.output_dir).expanduser()
        if not out.is_absolute():
            out = wf / out

        return ResolvedSettings(
            command=command,
            cwd=cwd,
            output_dir=out,
            tool=resolve_tool(self.tool_path),
            workspace_folder=wf,
        )


def resolve_tool(tool_path: str | None) -> str:
    """Explicit setting, then $CUDA_PROFILER_NSYS, then the platform default name."""
    if tool_path and tool_path.strip():
        return tool_path.strip()
    env = os.environ.get(TOOL_ENV_VAR, "").strip()
    if env:
        return env
    return default_tool()


def _schema_path() -> Path:
    return Path(__file__).resolve().parent / "schemas" / "settings.schema.json"


def validate_settings_payload(payload: Any) -> None:
    schema = json.loads(_schema_path().read_text())
    Draft202012Validator(schema).validate(payload)


def load_settings(path: Path, *, workspace_folder: Path | None = None) -> ProfilerSettings:
    """Load a JSON settings file (`command`, `cwd`, `outputDir`, `toolPath`)."""
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigurationError(f"Cannot read settings file {path}: {e}") from e
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ConfigurationError(f"Invalid JSON in settings file {path}: {e}") from e

    try:
        validate_settings_payload(payload)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid settings file {path}: {e.message}") from e

    return ProfilerSettings(
        command=payload.get("command", ""),
        cwd=payload.get("cwd", WORKSPACE_TOKEN),
        output_dir=payload.get("outputDir", DEFAULT_OUTPUT_DIR),
        tool_path=payload.get("toolPath"),
        workspace_folder=workspace_folder,
    )
