"""Containerized build execution.

Runs pull -> mkdir -> build -> artifact check in sequence. Every step is a
hard gate: the first failure raises and nothing is retried.

The build tool's exit code is not fully trusted. A build that exits 0 but
leaves no artifact at the conventional path still fails with
ArtifactNotProducedError.
"""

import logging
import zipfile
from typing import Callable, Optional

from droidpack.errors import (
    ArtifactNotProducedError,
    BuildCommandFailedError,
    ImagePullFailedError,
)
from droidpack.executor.process import truncate_output
from droidpack.executor.types import (
    BuildArtifact,
    BuildRequest,
    BuildStage,
    CommandResult,
    ProcessExecutor,
)
from droidpack.runtime.types import ContainerRuntime

logger = logging.getLogger(__name__)


def pull_image(
    request: BuildRequest,
    runtime: ContainerRuntime,
    executor: ProcessExecutor,
) -> CommandResult:
    """Pull the toolchain image. Raises ImagePullFailedError on non-zero exit."""
    logger.info("Pulling %s with %s", request.image_ref, runtime.name)
    result = executor.run(
        runtime.pull_command(request.image_ref),
        timeout=request.pull_timeout_seconds,
    )
    if not result.is_success:
        _log_failure("pull", result)
        raise ImagePullFailedError(
            f"{runtime.name} pull {request.image_ref} failed with exit code {result.exit_code}",
            stdout=result.stdout,
            stderr=result.stderr,
        )
    return result


def run_build(
    request: BuildRequest,
    runtime: ContainerRuntime,
    executor: ProcessExecutor,
) -> CommandResult:
    """Run the build command in a throwaway container with the source mounted."""
    command = runtime.run_command(
        image_ref=request.image_ref,
        command=list(request.build_command),
        mounts=request.mounts,
        workdir=request.container_workdir,
    )
    logger.info("Building artifact (this may take a while): %s", " ".join(request.build_command))
    result = executor.run(command, cwd=request.source_root, timeout=request.timeout_seconds)
    if not result.is_success:
        _log_failure("build", result)
        raise BuildCommandFailedError(
            f"Build command failed with exit code {result.exit_code}",
            stdout=result.stdout,
            stderr=result.stderr,
        )
    return result


def build(
    request: BuildRequest,
    runtime: ContainerRuntime,
    executor: ProcessExecutor,
    on_stage: Optional[Callable[[BuildStage], None]] = None,
) -> BuildArtifact:
    """Execute the full containerized build.

    Steps:
    1. pull request.image_ref: raises ImagePullFailedError on failure
    2. create the artifact's output directory (idempotent)
    3. run the build in a container: raises BuildCommandFailedError on failure
    4. require the artifact at request.output_path: raises ArtifactNotProducedError

    `on_stage` is called after each gate passes, so callers can track
    progress. Returns the BuildArtifact with its size and archive validity.
    """
    notify = on_stage or (lambda stage: None)

    history = [pull_image(request, runtime, executor)]
    notify(BuildStage.IMAGE_PULLED)

    request.output_path.parent.mkdir(parents=True, exist_ok=True)

    build_result = run_build(request, runtime, executor)
    history.append(build_result)
    notify(BuildStage.BUILT)

    artifact = locate_artifact(request, build_result, history)
    notify(BuildStage.VALIDATED)
    return artifact


def locate_artifact(
    request: BuildRequest,
    build_result: CommandResult,
    history: Optional[list[CommandResult]] = None,
) -> BuildArtifact:
    """Require the artifact at the conventional path after a build.

    Raises ArtifactNotProducedError when it is absent, whatever the build's
    exit code was.
    """
    if not request.output_path.is_file():
        logger.error("Build exited 0 but no artifact at %s", request.output_path)
        raise ArtifactNotProducedError(
            f"No artifact produced at {request.output_path}",
            stdout=build_result.stdout,
            stderr=build_result.stderr,
        )

    artifact = BuildArtifact(
        path=request.output_path,
        archive_valid=zipfile.is_zipfile(request.output_path),
        size_bytes=request.output_path.stat().st_size,
        history=list(history or [build_result]),
    )
    if not artifact.archive_valid:
        logger.warning("Artifact at %s is not a valid archive", artifact.path)
    logger.info("Artifact built: %s (%d bytes)", artifact.path, artifact.size_bytes)
    return artifact


def _log_failure(step: str, result: CommandResult) -> None:
    if result.stderr:
        logger.warning("%s stderr (tail):\n%s", step, truncate_output(result.stderr))
    if result.stdout:
        logger.warning("%s stdout (tail):\n%s", step, truncate_output(result.stdout))
