"""Pipeline service: composes the stages behind each CLI command.

Every operation:
  - computes runtime selection fresh (never cached between invocations)
  - holds the output-directory lock while it mutates anything
  - records its progress in a PipelineRun and marks it FAILED with the
    failure kind before re-raising

No operation retries or falls back mid-run. The only fallback is between
runtime candidates at selection time.
"""

import logging
import shutil
import zipfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from droidpack.core.config import Settings
from droidpack.errors import (
    ArtifactMissingError,
    PipelineError,
    SetupCheckFailedError,
)
from droidpack.executor.build import build, pull_image
from droidpack.executor.types import BuildArtifact, BuildRequest, ProcessExecutor
from droidpack.packaging.archive import SCRATCH_PREFIX, TEMP_ARCHIVE_PREFIX
from droidpack.packaging.bundler import assemble_bundle
from droidpack.packaging.postprocess import fix_artifact
from droidpack.packaging.types import Bundle
from droidpack.pipeline.lock import pipeline_lock
from droidpack.pipeline.state import PipelineRun, PipelineState
from droidpack.runtime.detector import detect_runtimes, select_runtime
from droidpack.runtime.types import ContainerRuntime, RuntimeStatus, candidates_from_names

logger = logging.getLogger(__name__)


@dataclass
class SetupReport:
    """Outcome of `setup`: the selected runtime and what was prepared."""

    runtime: ContainerRuntime
    image_ref: str
    created_dirs: list[Path] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "runtime": self.runtime.name,
            "runtime_version": self.runtime.version,
            "image_ref": self.image_ref,
            "created_dirs": [str(p) for p in self.created_dirs],
        }


def build_request(settings: Settings) -> BuildRequest:
    return BuildRequest(
        source_root=settings.project_root,
        image_ref=settings.image_ref,
        output_path=settings.artifact_path,
        build_command=tuple(settings.build_command),
        container_workdir=settings.container_workdir,
        timeout_seconds=settings.build_timeout_seconds,
        pull_timeout_seconds=settings.pull_timeout_seconds,
    )


def choose_runtime(settings: Settings, executor: ProcessExecutor) -> ContainerRuntime:
    return select_runtime(
        candidates_from_names(settings.runtime_priority),
        executor,
        timeout=settings.probe_timeout_seconds,
    )


def runtime_report(settings: Settings, executor: ProcessExecutor) -> list[RuntimeStatus]:
    """Status of every configured runtime candidate (for `doctor`)."""
    return detect_runtimes(
        candidates_from_names(settings.runtime_priority),
        executor,
        timeout=settings.probe_timeout_seconds,
    )


def setup(settings: Settings, executor: ProcessExecutor) -> SetupReport:
    """Verify prerequisites, create output directories and pull the image once."""
    runtime = choose_runtime(settings, executor)

    if not settings.project_root.is_dir():
        raise SetupCheckFailedError(f"Project root {settings.project_root} does not exist")
    manifest = settings.project_root / settings.project_manifest
    if not manifest.is_file():
        raise SetupCheckFailedError(
            f"{settings.project_manifest} not found in {settings.project_root}",
            remediation=f"Run droidpack from the project root containing {settings.project_manifest} "
                        "or pass --project-root.",
        )

    created: list[Path] = []
    with pipeline_lock(settings.lock_path, timeout=settings.lock_timeout_seconds):
        for directory in (settings.artifact_path.parent, settings.bundle_path.parent):
            if not directory.is_dir():
                created.append(directory)
            directory.mkdir(parents=True, exist_ok=True)

        pull_image(build_request(settings), runtime, executor)

    logger.info("Setup complete: runtime=%s image=%s", runtime.name, settings.image_ref)
    return SetupReport(runtime=runtime, image_ref=settings.image_ref, created_dirs=created)


def _build_stages(settings: Settings, executor: ProcessExecutor, run: PipelineRun) -> BuildArtifact:
    runtime = choose_runtime(settings, executor)
    run.advance(PipelineState.RUNTIME_SELECTED)

    return build(
        build_request(settings),
        runtime,
        executor,
        on_stage=lambda stage: run.advance(PipelineState(stage)),
    )


def build_artifact(
    settings: Settings,
    executor: ProcessExecutor,
    run: Optional[PipelineRun] = None,
) -> BuildArtifact:
    """Select a runtime and build the APK at the conventional path."""
    run = run or PipelineRun()
    try:
        with pipeline_lock(settings.lock_path, timeout=settings.lock_timeout_seconds):
            return _build_stages(settings, executor, run)
    except PipelineError as exc:
        run.fail(exc.kind, str(exc))
        raise


def existing_artifact(settings: Settings) -> BuildArtifact:
    """Describe the APK already at the conventional path."""
    path = settings.artifact_path
    if not path.is_file():
        raise ArtifactMissingError(f"APK not found at {path}")
    return BuildArtifact(
        path=path,
        archive_valid=zipfile.is_zipfile(path),
        size_bytes=path.stat().st_size,
    )


def fix_artifact_at_default_path(
    settings: Settings,
    run: Optional[PipelineRun] = None,
) -> BuildArtifact:
    """Run the post-processor against the conventional APK path."""
    run = run or PipelineRun()
    try:
        with pipeline_lock(settings.lock_path, timeout=settings.lock_timeout_seconds):
            artifact = existing_artifact(settings)
            run.advance(PipelineState.VALIDATED)
            fixed = fix_artifact(artifact, digest_mode=settings.manifest_digest_mode)
            run.advance(PipelineState.POSTPROCESSED)
            return fixed
    except PipelineError as exc:
        run.fail(exc.kind, str(exc))
        raise


def build_bundle(
    settings: Settings,
    executor: ProcessExecutor,
    skip_build: bool = False,
    run: Optional[PipelineRun] = None,
) -> Bundle:
    """Build the APK (unless skip_build) and repackage it into a bundle."""
    run = run or PipelineRun()
    try:
        with pipeline_lock(settings.lock_path, timeout=settings.lock_timeout_seconds):
            if skip_build:
                artifact = existing_artifact(settings)
                run.advance(PipelineState.VALIDATED)
            else:
                artifact = _build_stages(settings, executor, run)

            bundle = assemble_bundle(artifact, settings.bundle_path)
            run.advance(PipelineState.BUNDLED)
            return bundle
    except PipelineError as exc:
        run.fail(exc.kind, str(exc))
        raise


def clean(
    settings: Settings,
    executor: Optional[ProcessExecutor] = None,
    remove_image: bool = False,
) -> list[Path]:
    """Delete build outputs and leftover scratch state.

    With remove_image, also removes the toolchain image via the selected
    runtime; a failing `rmi` is logged, not raised.
    """
    removed: list[Path] = []
    output_root = settings.output_root

    if output_root.is_dir():
        with pipeline_lock(settings.lock_path, timeout=settings.lock_timeout_seconds):
            for child in sorted(output_root.iterdir()):
                if child == settings.lock_path:
                    continue
                _remove_path(child)
                removed.append(child)
        settings.lock_path.unlink(missing_ok=True)
        try:
            output_root.rmdir()
            removed.append(output_root)
        except OSError:
            logger.debug("Output root %s not empty after clean", output_root)

    # Leftovers from interrupted runs outside the output root. Only the
    # exact shapes the packagers create; other dot-files are the user's.
    if settings.project_root.is_dir():
        for pattern in (f"{SCRATCH_PREFIX}*", f"{TEMP_ARCHIVE_PREFIX}*.tmp"):
            for stray in settings.project_root.glob(pattern):
                _remove_path(stray)
                removed.append(stray)

    if remove_image:
        if executor is None:
            raise ValueError("remove_image requires an executor")
        runtime = choose_runtime(settings, executor)
        result = executor.run(
            runtime.remove_image_command(settings.image_ref),
            timeout=settings.probe_timeout_seconds,
        )
        if result.is_success:
            logger.info("Removed image %s", settings.image_ref)
        else:
            logger.warning("Could not remove image %s: %s", settings.image_ref, result.stderr.strip())

    logger.info("Clean removed %d paths", len(removed))
    return removed


def _remove_path(path: Path) -> None:
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    else:
        path.unlink(missing_ok=True)
