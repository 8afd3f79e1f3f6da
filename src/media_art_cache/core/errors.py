"""
Exception hierarchy for the media art cache.

Required-field, not-found and cancellation errors abort a request and reach
the caller. Filesystem and codec errors are normally caught by the
reconciliation engine and reported inside a ReconcileResult.
"""

from typing import Optional


class MediaArtError(Exception):
    """Base exception for media art cache errors"""
    pass


class RequiredFieldMissing(MediaArtError):
    """A mandatory metadata field (usually the title) was not supplied"""

    def __init__(self, field_name: str):
        super().__init__(f"Required field missing: {field_name}")
        self.field_name = field_name


class ResourceNotFound(MediaArtError):
    """The related media file or URI does not exist"""

    def __init__(self, resource: str):
        super().__init__(f"Resource does not exist: {resource}")
        self.resource = resource


class FilesystemOperationFailed(MediaArtError):
    """A rename, link, copy or mkdir failed; carries the OS error text"""

    def __init__(self, operation: str, path: str, strerror: Optional[str] = None):
        message = f"{operation} failed for '{path}'"
        if strerror:
            message += f": {strerror}"
        super().__init__(message)
        self.operation = operation
        self.path = path
        self.strerror = strerror

    @classmethod
    def from_os_error(cls, operation: str, path, error: OSError) -> "FilesystemOperationFailed":
        return cls(operation, str(path), error.strerror or str(error))


class CodecFailure(MediaArtError):
    """Image decoding or JPEG encoding failed"""
    pass


class StorageUnavailable(MediaArtError):
    """Removable media enumeration could not be initialized"""
    pass


class DownloadServiceUnavailable(MediaArtError):
    """The art download service is not present on the session bus"""
    pass


class OperationCancelled(MediaArtError):
    """The request was cancelled at a suspension point"""
    pass
