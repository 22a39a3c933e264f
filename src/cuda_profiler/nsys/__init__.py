"""
Nsight Systems kernel-timing pipeline.

This package drives `nsys profile` followed by `nsys stats`, locates the
artifacts those two phases leave in the output directory, and parses the
exported kernel-summary CSV into a typed `ProfileReport`:

- `runner.RunCoordinator`: two-phase capture/export with single-flight runs
- `artifacts`: trace/CSV discovery with explicit fallbacks
- `parse`: version-tolerant kernel-summary CSV parsing
- `pipeline.ProfilePipeline`: composition root returning a `ProfileReport`
"""

from __future__ import annotations

from .errors import ArtifactNotFound, ConfigurationError, ProfilerError, SubprocessFailure
from .model import KernelRecord, ProfileReport, RunArtifacts
from .parse import parse_kernel_csv, parse_kernel_csv_file
from .pipeline import ProfilePipeline
from .runner import RunCoordinator
from .settings import ProfilerSettings, load_settings

__all__ = [
    "ArtifactNotFound",
    "ConfigurationError",
    "KernelRecord",
    "ProfileReport",
    "ProfilePipeline",
    "ProfilerError",
    "ProfilerSettings",
    "RunArtifacts",
    "RunCoordinator",
    "SubprocessFailure",
    "load_settings",
    "parse_kernel_csv",
    "parse_kernel_csv_file",
]
