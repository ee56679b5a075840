"""Runtime module for container engine detection.

Public API:
    select_runtime(candidates, executor) -> ContainerRuntime
"""

from droidpack.runtime.detector import detect_runtimes, probe_runtime, select_runtime
from droidpack.runtime.types import (
    ContainerRuntime,
    RuntimeCandidate,
    RuntimeStatus,
    candidates_from_names,
)

__all__ = [
    "select_runtime",
    "probe_runtime",
    "detect_runtimes",
    "candidates_from_names",
    "ContainerRuntime",
    "RuntimeCandidate",
    "RuntimeStatus",
]
