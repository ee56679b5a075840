"""Shared fixtures for the droidpack test suite.

No test starts a real container engine. Engine calls go through
FakeExecutor, which answers from a table keyed by the first two argv
entries (e.g. ("docker", "info")).
"""

import zipfile
from pathlib import Path
from typing import Callable, Optional

import pytest

from droidpack.core.config import Settings
from droidpack.executor.types import CommandResult


class FakeExecutor:
    """Scripted ProcessExecutor.

    responses values may be an exit code, a CommandResult, or a callable
    taking the argv list and returning either of those. Unlisted commands
    exit with `default_exit`.
    """

    def __init__(self, responses: Optional[dict] = None, default_exit: int = 0):
        self.responses = responses or {}
        self.default_exit = default_exit
        self.calls: list[list[str]] = []
        self.timeouts: list[Optional[int]] = []

    def run(self, command, cwd=None, timeout=None) -> CommandResult:
        self.calls.append(list(command))
        self.timeouts.append(timeout)
        response = self.responses.get(tuple(command[:2]), self.default_exit)
        if callable(response):
            response = response(list(command))
        if isinstance(response, CommandResult):
            return response
        return CommandResult(
            command=list(command),
            exit_code=response,
            duration_seconds=0.0,
            stdout="fake 1.0\n" if response == 0 else "",
            stderr="" if response == 0 else f"{command[0]} {command[1]} failed",
        )

    def called(self, *prefix: str) -> bool:
        return any(tuple(c[: len(prefix)]) == prefix for c in self.calls)


@pytest.fixture
def fake_executor() -> Callable[..., FakeExecutor]:
    return FakeExecutor


def write_zip(path: Path, entries: dict[str, bytes]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(path, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for name, data in entries.items():
            zf.writestr(name, data)
    return path


@pytest.fixture
def make_apk() -> Callable[[Path, dict[str, bytes]], Path]:
    return write_zip


@pytest.fixture
def settings(tmp_path, monkeypatch) -> Settings:
    """Settings rooted at a temporary project with a Cargo.toml."""
    monkeypatch.chdir(tmp_path)
    for key in ("DROIDPACK_RUNTIME_PRIORITY", "DROIDPACK_IMAGE_REF", "DROIDPACK_PROJECT_ROOT"):
        monkeypatch.delenv(key, raising=False)
    (tmp_path / "Cargo.toml").write_text('[package]\nname = "thatch"\n')
    return Settings(project_root=tmp_path)


CENTRAL_HEADER = b"PK\x01\x02"
FLAG_ENCRYPTED = 0x1
METHOD_UNSUPPORTED = 99


def write_unreadable_zip(path: Path, entries: dict[str, bytes], flag_bits: int = 0,
                         compress_type: Optional[int] = None) -> Path:
    """Write a stored zip, then rewrite its central directory headers.

    Setting FLAG_ENCRYPTED makes every entry demand a password; an unknown
    compress_type makes every entry unreadable by zipfile.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(path, "w", compression=zipfile.ZIP_STORED) as zf:
        for name, data in entries.items():
            zf.writestr(name, data)

    raw = bytearray(path.read_bytes())
    offset = raw.find(CENTRAL_HEADER)
    while offset != -1:
        flags = int.from_bytes(raw[offset + 8:offset + 10], "little") | flag_bits
        raw[offset + 8:offset + 10] = flags.to_bytes(2, "little")
        if compress_type is not None:
            raw[offset + 10:offset + 12] = compress_type.to_bytes(2, "little")
        offset = raw.find(CENTRAL_HEADER, offset + 4)
    path.write_bytes(bytes(raw))
    return path


@pytest.fixture
def make_unreadable_apk() -> Callable[..., Path]:
    return write_unreadable_zip
