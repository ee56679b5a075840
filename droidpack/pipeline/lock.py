"""Advisory lock on the output directory.

Two runs against the same output directory would interleave writes to the
canonical APK and scratch directories. Every mutating pipeline operation
holds this lock for its whole duration; it is released on every exit path.
"""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from filelock import FileLock, Timeout

from droidpack.errors import PipelineLockedError

logger = logging.getLogger(__name__)


@contextmanager
def pipeline_lock(lock_path: Path, timeout: float = 0.0) -> Iterator[None]:
    """Hold `lock_path` for the duration of the block.

    With timeout=0 a held lock fails immediately with PipelineLockedError.
    """
    lock_path.parent.mkdir(parents=True, exist_ok=True)
    lock = FileLock(str(lock_path), timeout=timeout)
    try:
        lock.acquire()
    except Timeout as exc:
        raise PipelineLockedError(f"Output directory is locked by another run ({lock_path})") from exc

    logger.debug("Acquired pipeline lock %s", lock_path)
    try:
        yield
    finally:
        lock.release()
        logger.debug("Released pipeline lock %s", lock_path)
