"""Packaging module for APK post-processing and bundle assembly.

Public API:
    fix_artifact(artifact, digest_mode) -> BuildArtifact
    assemble_bundle(artifact, bundle_path) -> Bundle
"""

from droidpack.packaging.bundler import assemble_bundle
from droidpack.packaging.postprocess import PLACEHOLDER_DIGEST, fix_artifact
from droidpack.packaging.types import Bundle, BundleModule, PackageManifestEntry

__all__ = [
    "assemble_bundle",
    "fix_artifact",
    "PLACEHOLDER_DIGEST",
    "Bundle",
    "BundleModule",
    "PackageManifestEntry",
]
