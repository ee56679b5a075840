"""Archive helpers shared by the post-processor and the bundle assembler.

All writes follow the same rule: build the new archive in a temp file next
to its destination, then `os.replace` it into place. The destination is
never partially overwritten.

Archives are written deterministically: entries sorted by name, a fixed
1980-01-01 timestamp, fixed permissions and a fixed deflate level, so the
same tree always produces the same bytes.
"""

import logging
import os
import shutil
import tempfile
import zipfile
import zlib
from contextlib import contextmanager
from pathlib import Path, PurePosixPath
from typing import Iterator

from droidpack.errors import ExtractionFailedError, RepackFailedError

logger = logging.getLogger(__name__)

SCRATCH_PREFIX = ".droidpack-scratch-"
TEMP_ARCHIVE_PREFIX = ".droidpack-"

FIXED_DATE_TIME = (1980, 1, 1, 0, 0, 0)
COMPRESS_LEVEL = 9
_FILE_ATTR = 0o100644 << 16
_DIR_ATTR = (0o40755 << 16) | 0x10


@contextmanager
def scratch_dir(parent: Path) -> Iterator[Path]:
    """Create a fresh scratch directory under `parent`; always remove it."""
    parent.mkdir(parents=True, exist_ok=True)
    path = Path(tempfile.mkdtemp(prefix=SCRATCH_PREFIX, dir=parent))
    try:
        yield path
    finally:
        shutil.rmtree(path, ignore_errors=True)
        logger.debug("Removed scratch directory %s", path)


def _is_unsafe_name(name: str) -> bool:
    posix = PurePosixPath(name.replace("\\", "/"))
    return posix.is_absolute() or ".." in posix.parts or (len(name) > 1 and name[1] == ":")


def extract_all(archive: zipfile.ZipFile, dest: Path) -> list[str]:
    """Extract every entry of `archive` under `dest`.

    Entries that are absolute or escape `dest` abort the extraction.
    Returns the names of extracted files (directories excluded).
    """
    names: list[str] = []
    try:
        for info in archive.infolist():
            if _is_unsafe_name(info.filename):
                raise ExtractionFailedError(
                    f"Archive entry escapes the extraction root: {info.filename}"
                )
            archive.extract(info, dest)
            if not info.is_dir():
                names.append(info.filename)
    except (
        zipfile.BadZipFile, zlib.error, OSError, RuntimeError, NotImplementedError, EOFError,
    ) as exc:
        raise ExtractionFailedError(f"Failed to extract {archive.filename}: {exc}") from exc
    return names


def list_tree(root: Path, include_dirs: bool = False) -> list[tuple[str, Path]]:
    """Return (archive name, path) pairs for everything under `root`, sorted."""
    entries: list[tuple[str, Path]] = []
    for path in root.rglob("*"):
        rel = path.relative_to(root).as_posix()
        if path.is_dir():
            if include_dirs:
                entries.append((rel + "/", path))
        else:
            entries.append((rel, path))
    entries.sort(key=lambda e: e[0])
    return entries


def write_archive(source_root: Path, dest: Path, include_dirs: bool = False) -> int:
    """Archive the contents of `source_root` into `dest` atomically.

    Returns the number of entries written. Raises RepackFailedError on any
    write failure, leaving `dest` untouched.
    """
    dest.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=TEMP_ARCHIVE_PREFIX, suffix=".tmp", dir=dest.parent)
    os.close(fd)
    tmp_path = Path(tmp_name)

    try:
        entries = list_tree(source_root, include_dirs=include_dirs)
        with zipfile.ZipFile(tmp_path, "w", compression=zipfile.ZIP_DEFLATED) as zf:
            for name, path in entries:
                info = zipfile.ZipInfo(name, date_time=FIXED_DATE_TIME)
                if name.endswith("/"):
                    info.external_attr = _DIR_ATTR
                    zf.writestr(info, b"")
                    continue
                info.compress_type = zipfile.ZIP_DEFLATED
                info.external_attr = _FILE_ATTR
                zf.writestr(info, path.read_bytes(), compresslevel=COMPRESS_LEVEL)
        os.replace(tmp_path, dest)
    except (OSError, zipfile.LargeZipFile, ValueError) as exc:
        tmp_path.unlink(missing_ok=True)
        raise RepackFailedError(f"Failed to write archive {dest}: {exc}") from exc

    logger.debug("Wrote %d entries to %s", len(entries), dest)
    return len(entries)
