"""Error taxonomy shared by the storage services and the HTTP layer."""
from typing import Optional


class FileServerError(Exception):
    """Base class for every failure the file server reports to clients."""

    kind = "FileServerError"


class TooManyFilesError(FileServerError):
    kind = "TooManyFiles"

    def __init__(self, count: int, limit: int):
        self.count = count
        self.limit = limit
        super().__init__(f"Maximum {limit} files allowed, got {count}")


class NoFilesError(FileServerError):
    kind = "NoFiles"

    def __init__(self):
        super().__init__("No files were uploaded")


class FileTooLargeError(FileServerError):
    kind = "FileTooLarge"

    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(f"File too large. Maximum size is {limit} bytes")


class InvalidNameError(FileServerError):
    kind = "InvalidName"

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Invalid file name: {name!r}")


class NotFoundError(FileServerError):
    kind = "NotFound"

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"File {name} not found")


class StorageIOError(FileServerError):
    """An underlying write, rename, read or delete failed.

    The original ``OSError`` is chained as ``__cause__``.
    """

    kind = "StorageIOError"

    def __init__(self, operation: str, name: str, reason: Optional[str] = None):
        self.operation = operation
        self.name = name
        message = f"Failed to {operation} {name}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class NotPreviewableError(FileServerError):
    kind = "NotPreviewable"

    def __init__(self, name: str):
        self.name = name
        super().__init__("File cannot be previewed as text")
