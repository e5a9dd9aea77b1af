"""Tarball extraction and page counting for a downloaded issue."""

import logging
import os
import shutil
import tarfile
from pathlib import Path

from .config import PAGE_SUFFIX
from .errors import StorageError, UnpackError

logger = logging.getLogger(__name__)

WRITE_FLAGS = os.O_CREAT | os.O_TRUNC | os.O_WRONLY


def _destination(target: Path, name: str) -> Path:
    """Resolve an entry name under target, refusing anything that escapes it."""
    path = (target / name).resolve()
    if path != target and not path.is_relative_to(target):
        raise UnpackError(name, "entry escapes the scratch directory")
    return path


def extract_archive(tarball: Path, target: Path) -> int:
    """
    Extract every directory and regular file of tarball into target.

    Recorded permission bits and relative paths are kept. Compression is
    detected from the stream, so plain tar works as well as tar.gz.

    Returns:
        Number of files written
    """
    target = Path(target).resolve()
    written = 0
    try:
        with tarfile.open(tarball, "r:*") as tar:
            for member in tar:
                path = _destination(target, member.name)
                if member.isdir():
                    os.makedirs(path, mode=member.mode, exist_ok=True)
                    continue
                if not member.isreg():
                    logger.debug("Skipping non-regular entry %s", member.name)
                    continue
                path.parent.mkdir(parents=True, exist_ok=True)
                source = tar.extractfile(member)
                fd = os.open(path, WRITE_FLAGS, member.mode)
                with os.fdopen(fd, "wb") as out, source:
                    shutil.copyfileobj(source, out)
                written += 1
    except (tarfile.TarError, OSError, EOFError) as e:
        raise UnpackError(tarball, str(e)) from e
    logger.info("Extracted %d files from %s", written, tarball)
    return written


def count_pages(directory: Path) -> int:
    """Count the text pages directly inside directory."""
    try:
        names = os.listdir(directory)
    except OSError as e:
        raise StorageError(f"Could not scan {directory}: {e}") from e
    return sum(1 for name in names if name.endswith(PAGE_SUFFIX))
