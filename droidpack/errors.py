"""Failure taxonomy for the build pipeline.

Every stage raises a PipelineError subclass. Each carries a FailureKind,
a remediation hint for the operator, and whatever diagnostic output the
underlying tool produced. Failures are terminal for the current invocation;
nothing here is retried.
"""

from enum import StrEnum
from typing import Optional


class FailureKind(StrEnum):
    """Normalized failure kinds surfaced to the caller."""

    NO_RUNTIME_AVAILABLE = "no_runtime_available"
    IMAGE_PULL_FAILED = "image_pull_failed"
    BUILD_COMMAND_FAILED = "build_command_failed"
    ARTIFACT_NOT_PRODUCED = "artifact_not_produced"
    ARTIFACT_CORRUPT = "artifact_corrupt"
    EXTRACTION_FAILED = "extraction_failed"
    REPACK_FAILED = "repack_failed"
    ARTIFACT_MISSING = "artifact_missing"
    PIPELINE_LOCKED = "pipeline_locked"
    SETUP_CHECK_FAILED = "setup_check_failed"


REMEDIATION_HINTS: dict[FailureKind, str] = {
    FailureKind.NO_RUNTIME_AVAILABLE: "Install podman or docker and make sure it is on PATH.",
    FailureKind.IMAGE_PULL_FAILED: "Check network connectivity and the image reference, then retry.",
    FailureKind.BUILD_COMMAND_FAILED: "Inspect the build output above and fix the project before rebuilding.",
    FailureKind.ARTIFACT_NOT_PRODUCED: "The build exited cleanly but wrote no APK; check the build output path and app name.",
    FailureKind.ARTIFACT_CORRUPT: "The APK is not a valid archive; rebuild the artifact first.",
    FailureKind.EXTRACTION_FAILED: "The APK could not be extracted; rebuild the artifact first.",
    FailureKind.REPACK_FAILED: "Check free disk space and write permissions on the output directory.",
    FailureKind.ARTIFACT_MISSING: "No APK found; run `droidpack build-artifact` first.",
    FailureKind.PIPELINE_LOCKED: "Another droidpack run holds the output directory; wait for it or remove a stale lock.",
    FailureKind.SETUP_CHECK_FAILED: "Fix the missing prerequisite reported above and rerun `droidpack setup`.",
}


class PipelineError(Exception):
    """Base class for every terminal pipeline failure.

    Carries the failure kind plus the underlying tool's stdout/stderr so the
    CLI can show the operator what went wrong and how to fix it.
    """

    kind: FailureKind = FailureKind.BUILD_COMMAND_FAILED

    def __init__(
        self,
        message: str,
        stdout: str = "",
        stderr: str = "",
        remediation: Optional[str] = None,
    ):
        self.stdout = stdout
        self.stderr = stderr
        self.remediation = remediation or REMEDIATION_HINTS[self.kind]
        super().__init__(message)

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "message": str(self),
            "remediation": self.remediation,
            "stdout": self.stdout,
            "stderr": self.stderr,
        }


class NoRuntimeAvailableError(PipelineError):
    """No container engine in the priority list is installed with a live daemon.

    `statuses` holds the probe result of every attempted candidate.
    """

    kind = FailureKind.NO_RUNTIME_AVAILABLE

    def __init__(self, statuses: list, remediation: Optional[str] = None):
        self.statuses = list(statuses)
        summary = ", ".join(f"{s.name}: {s.diagnostic}" for s in self.statuses) or "no candidates"
        super().__init__(
            f"No container runtime available ({summary})",
            remediation=remediation,
        )


class ImagePullFailedError(PipelineError):
    kind = FailureKind.IMAGE_PULL_FAILED


class BuildCommandFailedError(PipelineError):
    kind = FailureKind.BUILD_COMMAND_FAILED


class ArtifactNotProducedError(PipelineError):
    kind = FailureKind.ARTIFACT_NOT_PRODUCED


class ArtifactCorruptError(PipelineError):
    kind = FailureKind.ARTIFACT_CORRUPT


class ExtractionFailedError(PipelineError):
    kind = FailureKind.EXTRACTION_FAILED


class RepackFailedError(PipelineError):
    kind = FailureKind.REPACK_FAILED


class ArtifactMissingError(PipelineError):
    kind = FailureKind.ARTIFACT_MISSING


class PipelineLockedError(PipelineError):
    kind = FailureKind.PIPELINE_LOCKED


class SetupCheckFailedError(PipelineError):
    kind = FailureKind.SETUP_CHECK_FAILED
