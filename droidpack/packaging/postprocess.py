"""Artifact post-processor: strips stale signing metadata and rebuilds the manifest.

Flow:
1. Open and verify the APK as a zip archive. A file that is not a valid
   archive raises ArtifactCorruptError and is left untouched.
2. Extract every entry into a fresh scratch directory.
3. Delete META-INF/MANIFEST.MF and every signature file (*.SF, *.RSA,
   *.DSA, *.EC) under META-INF/.
4. Write a new META-INF/MANIFEST.MF with one section per remaining file.
5. Re-archive deterministically and atomically replace the APK.

Digests:
  "placeholder" (default) writes PLACEHOLDER_DIGEST for every entry. The
  regenerated manifest is therefore NOT authoritative: it satisfies tools
  that only check the manifest's shape, not ones that verify content.
  "sha256" writes real base64 SHA-256 content digests.

Neither mode signs the APK. Sign it with apksigner before distribution.
"""

import base64
import hashlib
import logging
import zipfile
import zlib
from pathlib import Path

from droidpack.errors import ArtifactCorruptError, ArtifactMissingError
from droidpack.executor.types import BuildArtifact
from droidpack.packaging.archive import extract_all, list_tree, scratch_dir, write_archive
from droidpack.packaging.types import PackageManifestEntry

logger = logging.getLogger(__name__)

MANIFEST_NAME = "META-INF/MANIFEST.MF"
SIGNATURE_SUFFIXES = (".SF", ".RSA", ".DSA", ".EC")

# base64 of 32 zero bytes, shaped like a SHA-256 digest
PLACEHOLDER_DIGEST = base64.b64encode(bytes(32)).decode("ascii")

# JAR manifest lines are limited to 72 bytes; longer ones continue on the
# next line after a single leading space.
_MAX_LINE_BYTES = 72


def is_signature_entry(name: str) -> bool:
    """Return True for META-INF entries that belong to the old signature."""
    if not name.upper().startswith("META-INF/"):
        return False
    tail = name[len("META-INF/"):]
    if "/" in tail:
        return False
    upper = tail.upper()
    return upper == "MANIFEST.MF" or upper.endswith(SIGNATURE_SUFFIXES)


def strip_signature_entries(root: Path) -> list[str]:
    """Delete signature-related files from an extracted tree. Returns their names."""
    removed: list[str] = []
    for name, path in list_tree(root):
        if is_signature_entry(name):
            path.unlink()
            removed.append(name)
    return removed


def build_manifest_entries(root: Path, digest_mode: str = "placeholder") -> list[PackageManifestEntry]:
    """Build one manifest entry per file under `root`, sorted by name."""
    entries: list[PackageManifestEntry] = []
    for name, path in list_tree(root):
        if name == MANIFEST_NAME:
            continue
        if digest_mode == "sha256":
            digest = base64.b64encode(hashlib.sha256(path.read_bytes()).digest()).decode("ascii")
        else:
            digest = PLACEHOLDER_DIGEST
        entries.append(PackageManifestEntry(entry_name=name, digest=digest))
    return entries


def render_manifest(entries: list[PackageManifestEntry]) -> bytes:
    lines = ["Manifest-Version: 1.0", "Created-By: droidpack", ""]
    for entry in entries:
        lines.extend(_wrap_header(f"Name: {entry.entry_name}"))
        lines.extend(_wrap_header(f"SHA-256-Digest: {entry.digest}"))
        lines.append("")
    return ("\r\n".join(lines) + "\r\n").encode("utf-8")


def _wrap_header(line: str) -> list[str]:
    raw = line.encode("utf-8")
    if len(raw) <= _MAX_LINE_BYTES:
        return [line]

    # Split on byte boundaries without cutting a multi-byte character.
    out: list[str] = []
    limit = _MAX_LINE_BYTES
    while raw:
        cut = min(limit, len(raw))
        while cut < len(raw) and (raw[cut] & 0xC0) == 0x80:
            cut -= 1
        chunk = raw[:cut].decode("utf-8")
        out.append(chunk if not out else " " + chunk)
        raw = raw[cut:]
        limit = _MAX_LINE_BYTES - 1
    return out


def verify_archive(path: Path) -> None:
    """Raise ArtifactCorruptError unless `path` is a readable zip archive."""
    try:
        with zipfile.ZipFile(path) as zf:
            bad_entry = zf.testzip()
    except (
        zipfile.BadZipFile, zlib.error, OSError, RuntimeError, NotImplementedError, EOFError,
    ) as exc:
        raise ArtifactCorruptError(f"{path} is not a valid archive: {exc}") from exc
    if bad_entry is not None:
        raise ArtifactCorruptError(f"{path} has a corrupt entry: {bad_entry}")


def fix_artifact(artifact: BuildArtifact, digest_mode: str = "placeholder") -> BuildArtifact:
    """Strip signing metadata from the APK and regenerate its manifest.

    The APK on disk is only replaced once the new archive is fully written.
    Returns a new BuildArtifact describing the fixed file.
    """
    path = Path(artifact.path)
    if not path.is_file():
        raise ArtifactMissingError(f"No artifact found at {path}")

    verify_archive(path)

    with scratch_dir(path.parent) as scratch:
        with zipfile.ZipFile(path) as zf:
            extracted = extract_all(zf, scratch)

        removed = strip_signature_entries(scratch)
        if removed:
            logger.info("Removed %d signature entries: %s", len(removed), ", ".join(removed))

        entries = build_manifest_entries(scratch, digest_mode=digest_mode)
        manifest_path = scratch / MANIFEST_NAME
        manifest_path.parent.mkdir(parents=True, exist_ok=True)
        manifest_path.write_bytes(render_manifest(entries))

        write_archive(scratch, path)

    logger.info(
        "Fixed artifact %s (%d entries extracted, %d manifest entries, digests=%s)",
        path, len(extracted), len(entries), digest_mode,
    )
    return BuildArtifact(
        path=path,
        archive_valid=True,
        size_bytes=path.stat().st_size,
    )
