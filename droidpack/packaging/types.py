"""Types for the packaging module."""

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class PackageManifestEntry:
    """One `Name:` section of a regenerated MANIFEST.MF."""

    entry_name: str
    digest: str


@dataclass(frozen=True)
class BundleModule:
    """Archive-relative directories of one bundle module.

    Created empty before extraction; the APK itself is extracted flatly
    under the module root, so these mostly stay empty.
    """

    root: str
    manifest_dir: str
    code_dir: str
    lib_dir: str
    assets_dir: str

    @classmethod
    def named(cls, root: str) -> "BundleModule":
        return cls(
            root=root,
            manifest_dir=f"{root}/manifest",
            code_dir=f"{root}/dex",
            lib_dir=f"{root}/lib",
            assets_dir=f"{root}/assets",
        )

    @property
    def directories(self) -> list[str]:
        return [self.manifest_dir, self.code_dir, self.lib_dir, self.assets_dir]


@dataclass
class Bundle:
    """A store bundle written to disk."""

    path: Path
    size_bytes: int
    base_module: BundleModule
    entry_count: int = 0

    def to_dict(self) -> dict:
        return {
            "path": str(self.path),
            "size_bytes": self.size_bytes,
            "entry_count": self.entry_count,
            "base_module": {
                "root": self.base_module.root,
                "manifest_dir": self.base_module.manifest_dir,
                "code_dir": self.base_module.code_dir,
                "lib_dir": self.base_module.lib_dir,
                "assets_dir": self.base_module.assets_dir,
            },
        }
