"""
Session state for the currently loaded issue.

A session owns one scratch directory and the archive file inside it.
Every reload reassigns all of its fields; nothing from the previous
issue survives a reset.
"""

import asyncio
import logging
import re
import shutil
import tempfile
from pathlib import Path

from .config import ARCHIVE_SUFFIX, ISSUE_URL_TEMPLATE, SCRATCH_PREFIX, STATUS_BUFFER
from .errors import PageNotFoundError, StorageError

logger = logging.getLogger(__name__)

NON_DIGITS = re.compile(r"[^0-9]+")


class _Done:
    """Terminal marker on the status channel."""

    def __repr__(self) -> str:
        return "DONE"


DONE = _Done()


def sanitize_issue(raw: str) -> str:
    """Strip everything but digits from a user-supplied issue number."""
    return NON_DIGITS.sub("", raw or "")


class Session:
    """
    Identity and on-disk location of the loaded issue.

    Attributes:
        issue: Digit-only issue identifier
        url: Source locator derived from the URL template
        scratch_dir: Temporary directory owned by this session (None until reset)
        archive_path: Local copy of the downloaded archive
        archive_file: Open binary handle on archive_path
        pages: Number of text pages, valid once the issue is indexed
        status: Single-slot status channel for the load pipeline
    """

    def __init__(self, url_template: str = ISSUE_URL_TEMPLATE) -> None:
        self.url_template = url_template
        self.issue = ""
        self.url = ""
        self.scratch_dir: Path | None = None
        self.archive_path: Path | None = None
        self.archive_file = None
        self.pages = 0
        self.status: asyncio.Queue = asyncio.Queue(maxsize=STATUS_BUFFER)

    @property
    def loaded(self) -> bool:
        return self.scratch_dir is not None

    def reset(self, issue: str) -> "Session":
        """
        Release the previous issue and prepare storage for a new one.

        Args:
            issue: Digit-only issue identifier

        Returns:
            This session, reinitialized for the new issue

        Raises:
            StorageError: If the scratch directory or archive file cannot be created
        """
        self.release()

        try:
            scratch_dir = Path(tempfile.mkdtemp(prefix=f"{SCRATCH_PREFIX}{issue}-"))
        except OSError as e:
            raise StorageError(f"Could not create scratch directory: {e}") from e

        archive_path = scratch_dir / f"{issue}{ARCHIVE_SUFFIX}"
        try:
            archive_file = open(archive_path, "wb")
        except OSError as e:
            shutil.rmtree(scratch_dir, ignore_errors=True)
            raise StorageError(f"Could not create {archive_path}: {e}") from e

        self.issue = issue
        self.url = self.url_template.format(issue=issue)
        self.scratch_dir = scratch_dir
        self.archive_path = archive_path
        self.archive_file = archive_file
        self.pages = 0
        self.status = asyncio.Queue(maxsize=STATUS_BUFFER)
        logger.info("Session for issue %s in %s", issue, scratch_dir)
        return self

    def release(self) -> None:
        """Close the archive handle and remove the scratch directory."""
        if self.scratch_dir is None:
            return
        if self.archive_file is not None:
            self.archive_file.close()
        # Extracted pages may carry restrictive modes; removal is best effort.
        shutil.rmtree(self.scratch_dir, ignore_errors=True)
        logger.info("Released issue %s (%s)", self.issue, self.scratch_dir)
        self.scratch_dir = None
        self.archive_file = None
        self.pages = 0

    def read_page(self, name: str) -> str:
        """
        Read an extracted page by file name.

        Raises:
            PageNotFoundError: If nothing is loaded or the file is missing
        """
        if self.scratch_dir is None:
            raise PageNotFoundError(name)
        try:
            data = (self.scratch_dir / name).read_bytes()
        except OSError as e:
            raise PageNotFoundError(name) from e
        return data.decode("utf-8", errors="replace")
