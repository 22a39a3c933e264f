"""CUDA kernel profiling helpers (Python orchestrator layer)."""

from __future__ import annotations
