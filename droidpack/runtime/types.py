"""Types for container runtime detection.

A RuntimeCandidate is an engine we know how to talk to. Probing a candidate
yields a RuntimeStatus; the selected one becomes the ContainerRuntime that
builds the engine-specific command lines.
"""

from dataclasses import dataclass
from typing import Optional

from droidpack.executor.types import Mount

DIAGNOSTIC_READY = "ready"
DIAGNOSTIC_NOT_INSTALLED = "not installed"
DIAGNOSTIC_DAEMON_DOWN = "daemon not running"


@dataclass(frozen=True)
class RuntimeCandidate:
    """A container engine CLI, identified by name and executable."""

    name: str
    binary: str

    def version_command(self) -> list[str]:
        return [self.binary, "--version"]

    def info_command(self) -> list[str]:
        return [self.binary, "info"]


# Known engines. Unknown names in the priority list are treated as a binary
# of the same name speaking the docker CLI dialect.
KNOWN_CANDIDATES: dict[str, RuntimeCandidate] = {
    "podman": RuntimeCandidate(name="podman", binary="podman"),
    "docker": RuntimeCandidate(name="docker", binary="docker"),
}


def candidates_from_names(names: list[str]) -> list[RuntimeCandidate]:
    """Resolve configured runtime names into candidates, preserving order."""
    candidates: list[RuntimeCandidate] = []
    seen: set[str] = set()
    for name in names:
        if name in seen:
            continue
        seen.add(name)
        candidates.append(KNOWN_CANDIDATES.get(name, RuntimeCandidate(name=name, binary=name)))
    return candidates


@dataclass
class RuntimeStatus:
    """Outcome of probing one candidate."""

    candidate: RuntimeCandidate
    installed: bool
    daemon_live: bool
    version_output: str = ""
    info_output: str = ""

    @property
    def name(self) -> str:
        return self.candidate.name

    @property
    def is_ready(self) -> bool:
        return self.installed and self.daemon_live

    @property
    def diagnostic(self) -> str:
        if not self.installed:
            return DIAGNOSTIC_NOT_INSTALLED
        if not self.daemon_live:
            return DIAGNOSTIC_DAEMON_DOWN
        return DIAGNOSTIC_READY

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "binary": self.candidate.binary,
            "installed": self.installed,
            "daemon_live": self.daemon_live,
            "diagnostic": self.diagnostic,
            "version": self.version_output.strip().splitlines()[0] if self.version_output.strip() else None,
        }


@dataclass(frozen=True)
class ContainerRuntime:
    """The engine selected for this invocation.

    Holds the fixed command vocabulary used by the rest of the pipeline.
    """

    name: str
    binary: str
    installed: bool = True
    daemon_live: bool = True
    version: Optional[str] = None

    @classmethod
    def from_status(cls, status: RuntimeStatus) -> "ContainerRuntime":
        version = status.version_output.strip().splitlines()[0] if status.version_output.strip() else None
        return cls(
            name=status.candidate.name,
            binary=status.candidate.binary,
            installed=status.installed,
            daemon_live=status.daemon_live,
            version=version,
        )

    def pull_command(self, image_ref: str) -> list[str]:
        return [self.binary, "pull", image_ref]

    def run_command(
        self,
        image_ref: str,
        command: list[str],
        mounts: list[Mount],
        workdir: str,
    ) -> list[str]:
        args = [self.binary, "run", "--rm"]
        for mount in mounts:
            args.extend(["-v", mount.to_arg()])
        args.extend(["-w", workdir, image_ref])
        args.extend(command)
        return args

    def remove_image_command(self, image_ref: str) -> list[str]:
        return [self.binary, "rmi", image_ref]
