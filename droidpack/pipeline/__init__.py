"""Pipeline module composing runtime selection, build and packaging.

Public API:
    setup(settings, executor) -> SetupReport
    build_artifact(settings, executor) -> BuildArtifact
    fix_artifact_at_default_path(settings) -> BuildArtifact
    build_bundle(settings, executor, skip_build) -> Bundle
    clean(settings, executor, remove_image) -> list[Path]
    existing_artifact(settings) -> BuildArtifact
"""

from droidpack.pipeline.lock import pipeline_lock
from droidpack.pipeline.service import (
    SetupReport,
    build_artifact,
    build_bundle,
    clean,
    existing_artifact,
    fix_artifact_at_default_path,
    runtime_report,
    setup,
)
from droidpack.pipeline.state import (
    VALID_TRANSITIONS,
    PipelineRun,
    PipelineState,
    validate_transition,
)

__all__ = [
    "setup",
    "build_artifact",
    "fix_artifact_at_default_path",
    "build_bundle",
    "clean",
    "existing_artifact",
    "runtime_report",
    "pipeline_lock",
    "SetupReport",
    "PipelineRun",
    "PipelineState",
    "VALID_TRANSITIONS",
    "validate_transition",
]
