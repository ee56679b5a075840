"""Executor module for the containerized build.

Public API:
    build(request, runtime, executor) -> BuildArtifact
"""

from droidpack.executor.build import build, locate_artifact, pull_image, run_build
from droidpack.executor.process import SubprocessExecutor
from droidpack.executor.types import (
    BuildArtifact,
    BuildRequest,
    BuildStage,
    CommandResult,
    Mount,
    ProcessExecutor,
)

__all__ = [
    "build",
    "locate_artifact",
    "pull_image",
    "run_build",
    "SubprocessExecutor",
    "BuildArtifact",
    "BuildRequest",
    "BuildStage",
    "CommandResult",
    "Mount",
    "ProcessExecutor",
]
