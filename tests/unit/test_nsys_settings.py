from __future__ import annotations

import json
from pathlib import Path

import pytest

from cuda_profiler.nsys.errors import ConfigurationError
from cuda_profiler.nsys.settings import TOOL_ENV_VAR, ProfilerSettings, default_tool, load_settings, resolve_tool


def test_resolve_substitutes_workspace_folder(tmp_path: Path) -> None:
    s = ProfilerSettings(command="  ./app  ", cwd="${workspaceFolder}/build", workspace_folder=tmp_path)
    r = s.resolve()
    wf = tmp_path.resolve()
    assert r.command == "./app"
    assert r.cwd == wf / "build"
    assert r.output_dir == wf / ".cuda-profiler"


def test_resolve_keeps_absolute_output_dir(tmp_path: Path) -> None:
    out = tmp_path / "elsewhere"
    r = ProfilerSettings(command="x", output_dir=str(out), workspace_folder=tmp_path).resolve()
    assert r.output_dir == out


def test_resolve_rejects_empty_command(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError):
        ProfilerSettings(command="", workspace_folder=tmp_path).resolve()


def test_resolve_requires_workspace() -> None:
    with pytest.raises(ConfigurationError):
        ProfilerSettings(command="x").resolve()


def test_resolve_tool_precedence(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(TOOL_ENV_VAR, raising=False)
    assert resolve_tool(None) == default_tool()
    assert resolve_tool("  ") == default_tool()
    monkeypatch.setenv(TOOL_ENV_VAR, "/opt/nsys/bin/nsys")
    assert resolve_tool(None) == "/opt/nsys/bin/nsys"
    assert resolve_tool("/custom/nsys") == "/custom/nsys"


def test_load_settings(tmp_path: Path) -> None:
    p = tmp_path / "settings.json"
    p.write_text(json.dumps({"command": "./app", "outputDir": "prof", "toolPath": "nsys2"}))
    s = load_settings(p, workspace_folder=tmp_path)
    assert s.command == "./app"
    assert s.output_dir == "prof"
    assert s.tool_path == "nsys2"
    assert s.cwd == "${workspaceFolder}"
    assert s.workspace_folder == tmp_path


def test_load_settings_rejects_unknown_keys(tmp_path: Path) -> None:
    p = tmp_path / "settings.json"
    p.write_text(json.dumps({"command": "./app", "nsysPath": "x"}))
    with pytest.raises(ConfigurationError):
        load_settings(p)


def test_load_settings_rejects_bad_json(tmp_path: Path) -> None:
    p = tmp_path / "settings.json"
    p.write_text("{not json")
    with pytest.raises(ConfigurationError):
        load_settings(p)


def test_load_settings_rejects_non_utf8(tmp_path: Path) -> None:
    p = tmp_path / "settings.json"
    p.write_bytes(b"\xff\xfe{")
    with pytest.raises(ConfigurationError, match="Invalid JSON"):
        load_settings(p)


def test_load_settings_missing_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError):
        load_settings(tmp_path / "missing.json")
