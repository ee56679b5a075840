"""Bundle assembler: repackages an APK into an AAB-style module layout.

Creates a scratch tree:

    base/manifest/
    base/dex/
    base/lib/
    base/assets/

then extracts the whole APK flatly under base/ and archives the scratch
root into the bundle path. Entries are not routed into the four
subdirectories by type; an APK's own lib/ and assets/ land in base/lib and
base/assets by name alone, everything else sits directly under base/.

This is a basic conversion for testing a store upload flow. A production
bundle needs bundletool and a signed upload.

The scratch tree is removed whether or not archiving succeeded.
"""

import logging
import zipfile
import zlib
from pathlib import Path

from droidpack.errors import ArtifactMissingError, ExtractionFailedError
from droidpack.executor.types import BuildArtifact
from droidpack.packaging.archive import extract_all, scratch_dir, write_archive
from droidpack.packaging.types import Bundle, BundleModule

logger = logging.getLogger(__name__)

BASE_MODULE = "base"


def assemble_bundle(artifact: BuildArtifact, bundle_path: Path) -> Bundle:
    """Build a bundle at `bundle_path` from the APK described by `artifact`.

    Raises ArtifactMissingError if the APK does not exist,
    ExtractionFailedError if it cannot be read, RepackFailedError if the
    bundle cannot be written.
    """
    apk_path = Path(artifact.path)
    bundle_path = Path(bundle_path)
    if not apk_path.is_file():
        raise ArtifactMissingError(f"APK not found at {apk_path}")

    module = BundleModule.named(BASE_MODULE)
    bundle_path.parent.mkdir(parents=True, exist_ok=True)

    with scratch_dir(bundle_path.parent) as scratch:
        for directory in module.directories:
            (scratch / directory).mkdir(parents=True, exist_ok=True)

        try:
            with zipfile.ZipFile(apk_path) as zf:
                extracted = extract_all(zf, scratch / module.root)
        except (zipfile.BadZipFile, zlib.error, OSError, NotImplementedError) as exc:
            raise ExtractionFailedError(f"Cannot open {apk_path} as an archive: {exc}") from exc

        entry_count = write_archive(scratch, bundle_path, include_dirs=True)

    bundle = Bundle(
        path=bundle_path,
        size_bytes=bundle_path.stat().st_size,
        base_module=module,
        entry_count=entry_count,
    )
    logger.info(
        "Bundle created: %s (%d files from APK, %d bytes)",
        bundle.path, len(extracted), bundle.size_bytes,
    )
    return bundle
