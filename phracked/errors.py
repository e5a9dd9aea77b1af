"""
Exceptions raised while loading and reading an issue.

Storage, fetch, persist and unpack failures end the session. A missing
page is recoverable and only reported in the body panel.
"""


class PhrackedError(Exception):
    """Base exception for all reader errors."""

    def __init__(self, message: str, code: str = "UNKNOWN_ERROR") -> None:
        """
        Initialize exception with message and error code.

        Args:
            message: Human-readable error message
            code: Machine-readable error code (SNAKE_CASE)
        """
        self.message = message
        self.code = code
        super().__init__(message)


class StorageError(PhrackedError):
    """Raised when the scratch directory or archive file cannot be created."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="STORAGE_ERROR")


class FetchError(PhrackedError):
    """Raised when the issue archive cannot be retrieved."""

    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        super().__init__(f"Could not fetch {url}: {reason}", code="FETCH_ERROR")


class PersistError(PhrackedError):
    """Raised when the downloaded body cannot be written to disk."""

    def __init__(self, path, reason: str) -> None:
        self.path = path
        super().__init__(f"Could not write {path}: {reason}", code="PERSIST_ERROR")


class UnpackError(PhrackedError):
    """Raised when the archive cannot be extracted."""

    def __init__(self, path, reason: str) -> None:
        self.path = path
        super().__init__(f"Could not unpack {path}: {reason}", code="UNPACK_ERROR")


class PageNotFoundError(PhrackedError):
    """Raised when a page file is missing from the scratch directory."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Page '{name}' not found", code="PAGE_NOT_FOUND")


class PipelineBusyError(PhrackedError):
    """Raised when a load is requested while another one is running."""

    def __init__(self, issue: str) -> None:
        super().__init__(f"Issue #{issue} is still loading", code="PIPELINE_BUSY")
