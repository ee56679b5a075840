import shlex
from pathlib import Path
from typing import Annotated, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

DIGEST_MODES = {"placeholder", "sha256"}


def _normalise_priority(value) -> list[str]:
    """Accept either a list or a comma-separated string of runtime names.

    ``DROIDPACK_RUNTIME_PRIORITY=docker,podman`` and the JSON list form
    ``["docker", "podman"]`` both produce ``["docker", "podman"]``.
    """
    if isinstance(value, str):
        value = value.split(",")
    names = [str(v).strip().lower() for v in value]
    return [n for n in names if n]


class Settings(BaseSettings):
    """Pipeline settings loaded from environment variables.

    Every field can be overridden with a ``DROIDPACK_`` prefixed variable
    (e.g. ``DROIDPACK_IMAGE_REF``) or a ``.env`` file in the working
    directory. The CLI overrides ``project_root`` and ``debug`` from its
    options.

    Output layout
    ─────────────
    <project_root>/<build_output>/release/<artifact_ext>/<app_name>.<artifact_ext>
    <project_root>/<build_output>/release/<bundle_ext>/<app_name>.<bundle_ext>
    """

    model_config = SettingsConfigDict(
        env_prefix="DROIDPACK_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Project
    project_root: Path = Path(".")
    project_manifest: str = "Cargo.toml"
    app_name: str = "thatch"
    artifact_ext: str = "apk"
    bundle_ext: str = "aab"
    build_output: str = "target/android-artifacts"

    # Toolchain image and the command run inside it
    image_ref: str = "notfl3/cargo-apk"
    build_command: Annotated[list[str], NoDecode] = ["cargo", "quad-apk", "build", "--release"]
    container_workdir: str = "/root/src"

    @field_validator("build_command", mode="before")
    @classmethod
    def split_build_command(cls, v) -> list[str]:
        if isinstance(v, str):
            return shlex.split(v)
        return v

    # Runtime candidates in priority order (first ready one wins)
    runtime_priority: Annotated[list[str], NoDecode] = ["podman", "docker"]

    @field_validator("runtime_priority", mode="before")
    @classmethod
    def normalise_runtime_priority(cls, v) -> list[str]:
        return _normalise_priority(v)

    # Timeouts in seconds. None disables the timeout.
    build_timeout_seconds: Optional[int] = None
    pull_timeout_seconds: Optional[int] = None
    probe_timeout_seconds: int = 15

    # "placeholder" writes the same fixed digest for every manifest entry.
    manifest_digest_mode: str = "placeholder"

    @field_validator("manifest_digest_mode", mode="before")
    @classmethod
    def validate_digest_mode(cls, v: str) -> str:
        mode = str(v).strip().lower()
        if mode not in DIGEST_MODES:
            raise ValueError(
                f"manifest_digest_mode must be one of {sorted(DIGEST_MODES)}, got '{v}'"
            )
        return mode

    # Advisory lock on the output directory
    lock_timeout_seconds: float = 0.0

    # App
    debug: bool = False
    json_logs: bool = False

    @property
    def output_root(self) -> Path:
        return self.project_root / self.build_output

    @property
    def release_dir(self) -> Path:
        return self.output_root / "release"

    @property
    def artifact_path(self) -> Path:
        return self.release_dir / self.artifact_ext / f"{self.app_name}.{self.artifact_ext}"

    @property
    def bundle_path(self) -> Path:
        return self.release_dir / self.bundle_ext / f"{self.app_name}.{self.bundle_ext}"

    @property
    def lock_path(self) -> Path:
        return self.output_root / ".droidpack.lock"


def get_settings(**overrides) -> Settings:
    return Settings(**overrides)
