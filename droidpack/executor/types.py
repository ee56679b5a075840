"""Types for the process executor and the containerized build."""

from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path
from typing import Optional, Protocol


class BuildStage(StrEnum):
    """Gates passed by `build`, in order. Values match the pipeline states."""

    IMAGE_PULLED = "image_pulled"
    BUILT = "built"
    VALIDATED = "validated"


@dataclass
class CommandResult:
    """Result of a single external command (container engine call).

    A command is successful if exit_code == 0. Exit code 127 means the
    binary was not found, -1 a timeout, -2 any other launch failure.
    """

    command: list[str]
    exit_code: int
    duration_seconds: float
    stdout: str = ""
    stderr: str = ""

    @property
    def is_success(self) -> bool:
        return self.exit_code == 0

    def to_dict(self) -> dict:
        return {
            "command": self.command,
            "exit_code": self.exit_code,
            "duration_seconds": round(self.duration_seconds, 3),
            "is_success": self.is_success,
        }


class ProcessExecutor(Protocol):
    """Anything that can run a command and report its outcome.

    Implementations never raise for a failed command; they return a
    CommandResult with a non-zero exit code instead.
    """

    def run(
        self,
        command: list[str],
        cwd: Optional[Path] = None,
        timeout: Optional[int] = None,
    ) -> CommandResult: ...


@dataclass(frozen=True)
class Mount:
    """A host directory bound into the container."""

    source: Path
    target: str

    def to_arg(self) -> str:
        return f"{self.source}:{self.target}"


@dataclass(frozen=True)
class BuildRequest:
    """Everything BuildExecutor needs for one invocation. Immutable."""

    source_root: Path
    image_ref: str
    output_path: Path
    build_command: tuple[str, ...] = ("cargo", "quad-apk", "build", "--release")
    container_workdir: str = "/root/src"
    timeout_seconds: Optional[int] = None
    pull_timeout_seconds: Optional[int] = None

    @property
    def mounts(self) -> list[Mount]:
        return [Mount(source=self.source_root.resolve(), target=self.container_workdir)]


@dataclass
class BuildArtifact:
    """A produced installable artifact on disk.

    Downstream stages never mutate the file in place; they write a new file
    and atomically replace `path`.
    """

    path: Path
    archive_valid: bool
    size_bytes: int
    history: list[CommandResult] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "path": str(self.path),
            "archive_valid": self.archive_valid,
            "size_bytes": self.size_bytes,
        }
