"""Tests for runtime candidates and the container command vocabulary."""

from pathlib import Path

from droidpack.executor.types import Mount
from droidpack.runtime.types import (
    ContainerRuntime,
    RuntimeCandidate,
    RuntimeStatus,
    candidates_from_names,
)


class TestCandidatesFromNames:
    def test_preserves_order(self):
        names = [c.name for c in candidates_from_names(["docker", "podman"])]
        assert names == ["docker", "podman"]

    def test_drops_duplicates(self):
        assert len(candidates_from_names(["docker", "docker"])) == 1

    def test_unknown_name_uses_same_binary(self):
        (candidate,) = candidates_from_names(["nerdctl"])
        assert candidate == RuntimeCandidate(name="nerdctl", binary="nerdctl")


class TestContainerRuntimeCommands:
    runtime = ContainerRuntime(name="docker", binary="docker")

    def test_pull_command(self):
        assert self.runtime.pull_command("notfl3/cargo-apk") == ["docker", "pull", "notfl3/cargo-apk"]

    def test_run_command_mounts_source_and_sets_workdir(self):
        cmd = self.runtime.run_command(
            image_ref="notfl3/cargo-apk",
            command=["cargo", "quad-apk", "build", "--release"],
            mounts=[Mount(source=Path("/home/dev/thatch"), target="/root/src")],
            workdir="/root/src",
        )
        assert cmd == [
            "docker", "run", "--rm",
            "-v", "/home/dev/thatch:/root/src",
            "-w", "/root/src",
            "notfl3/cargo-apk",
            "cargo", "quad-apk", "build", "--release",
        ]

    def test_remove_image_command(self):
        assert self.runtime.remove_image_command("img") == ["docker", "rmi", "img"]


class TestRuntimeStatus:
    def test_to_dict_reports_first_version_line(self):
        status = RuntimeStatus(
            candidate=RuntimeCandidate("podman", "podman"),
            installed=True,
            daemon_live=False,
            version_output="podman version 5.0.1\nextra\n",
        )
        data = status.to_dict()
        assert data["version"] == "podman version 5.0.1"
        assert data["diagnostic"] == "daemon not running"
        assert data["installed"] is True

    def test_from_status(self):
        status = RuntimeStatus(
            candidate=RuntimeCandidate("docker", "docker"),
            installed=True,
            daemon_live=True,
        )
        runtime = ContainerRuntime.from_status(status)
        assert runtime.name == "docker"
        assert runtime.version is None
