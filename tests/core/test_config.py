"""Tests for environment-driven settings."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from droidpack.core.config import Settings, get_settings


@pytest.fixture(autouse=True)
def _isolated_env(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    for key in (
        "DROIDPACK_RUNTIME_PRIORITY",
        "DROIDPACK_BUILD_COMMAND",
        "DROIDPACK_IMAGE_REF",
        "DROIDPACK_MANIFEST_DIGEST_MODE",
        "DROIDPACK_BUILD_TIMEOUT_SECONDS",
        "DROIDPACK_PROJECT_ROOT",
    ):
        monkeypatch.delenv(key, raising=False)


class TestDefaults:
    def test_toolchain_defaults(self):
        settings = Settings()
        assert settings.image_ref == "notfl3/cargo-apk"
        assert settings.build_command == ["cargo", "quad-apk", "build", "--release"]
        assert settings.container_workdir == "/root/src"
        assert settings.runtime_priority == ["podman", "docker"]
        assert settings.build_timeout_seconds is None
        assert settings.manifest_digest_mode == "placeholder"

    def test_conventional_paths(self):
        settings = Settings(project_root=Path("/work/thatch"))
        assert settings.artifact_path == Path(
            "/work/thatch/target/android-artifacts/release/apk/thatch.apk"
        )
        assert settings.bundle_path == Path(
            "/work/thatch/target/android-artifacts/release/aab/thatch.aab"
        )
        assert settings.lock_path.parent == settings.output_root

    def test_app_name_changes_both_artifacts(self):
        settings = Settings(project_root=Path("/p"), app_name="demo")
        assert settings.artifact_path.name == "demo.apk"
        assert settings.bundle_path.name == "demo.aab"


class TestEnvironmentOverrides:
    def test_comma_separated_runtime_priority(self, monkeypatch):
        monkeypatch.setenv("DROIDPACK_RUNTIME_PRIORITY", "Docker, podman")
        assert Settings().runtime_priority == ["docker", "podman"]

    def test_build_command_is_shell_split(self, monkeypatch):
        monkeypatch.setenv("DROIDPACK_BUILD_COMMAND", "cargo apk build --features 'a b'")
        assert Settings().build_command == ["cargo", "apk", "build", "--features", "a b"]

    def test_image_and_timeout(self, monkeypatch):
        monkeypatch.setenv("DROIDPACK_IMAGE_REF", "ghcr.io/acme/cargo-apk:1.2")
        monkeypatch.setenv("DROIDPACK_BUILD_TIMEOUT_SECONDS", "1800")
        settings = Settings()
        assert settings.image_ref == "ghcr.io/acme/cargo-apk:1.2"
        assert settings.build_timeout_seconds == 1800

    def test_dotenv_file(self, tmp_path):
        (tmp_path / ".env").write_text("DROIDPACK_APP_NAME=fromenvfile\n")
        assert Settings().app_name == "fromenvfile"

    def test_explicit_overrides_win(self, monkeypatch):
        monkeypatch.setenv("DROIDPACK_IMAGE_REF", "from-env")
        assert get_settings(image_ref="explicit").image_ref == "explicit"


class TestDigestMode:
    def test_sha256_accepted(self, monkeypatch):
        monkeypatch.setenv("DROIDPACK_MANIFEST_DIGEST_MODE", "SHA256")
        assert Settings().manifest_digest_mode == "sha256"

    def test_unknown_mode_rejected(self):
        with pytest.raises(ValidationError, match="manifest_digest_mode"):
            Settings(manifest_digest_mode="md5")
