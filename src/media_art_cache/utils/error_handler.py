"""
User-Friendly Error Handling

Converts media art cache exceptions into short messages with suggestions
for command line users.
"""

import logging
import traceback
from enum import Enum
from typing import Any, Dict, List, Optional

from ..core.errors import (
    CodecFailure,
    DownloadServiceUnavailable,
    FilesystemOperationFailed,
    OperationCancelled,
    RequiredFieldMissing,
    ResourceNotFound,
    StorageUnavailable,
)


class ErrorCategory(Enum):
    """Categories of errors"""
    FILE_ACCESS = "file_access"
    IMAGE_PROCESSING = "image_processing"
    CONFIGURATION = "configuration"
    SERVICE = "service"
    USER_INPUT = "user_input"
    SYSTEM = "system"


class UserFriendlyError:
    """User-friendly error representation"""

    def __init__(self,
                 category: ErrorCategory,
                 title: str,
                 message: str,
                 suggestions: List[str] = None,
                 technical_details: str = None,
                 error_code: str = None):
        self.category = category
        self.title = title
        self.message = message
        self.suggestions = suggestions or []
        self.technical_details = technical_details
        self.error_code = error_code


class ErrorHandler:
    """Maps exceptions to templates and formats them for display"""

    def __init__(self, verbose: bool = False):
        self.verbose = verbose
        self.logger = logging.getLogger(__name__)
        self.error_templates = self._load_error_templates()

    def _load_error_templates(self) -> Dict[str, Dict[str, Any]]:
        return {
            "required_field": {
                "category": ErrorCategory.USER_INPUT,
                "title": "Missing field",
                "message": "{error}",
                "suggestions": [
                    "Pass the title with --title (and the artist with --artist)",
                    "Use 'media-art extract' to see which tags the file carries",
                ]
            },
            "resource_not_found": {
                "category": ErrorCategory.FILE_ACCESS,
                "title": "File not found",
                "message": "{error}",
                "suggestions": [
                    "Check that the media path or file:// URI is correct",
                ]
            },
            "filesystem": {
                "category": ErrorCategory.FILE_ACCESS,
                "title": "Cache write failed",
                "message": "{error}",
                "suggestions": [
                    "Check the permissions of the cache directory",
                    "Check the available disk space",
                ]
            },
            "codec": {
                "category": ErrorCategory.IMAGE_PROCESSING,
                "title": "Image conversion failed",
                "message": "{error}",
                "suggestions": [
                    "Make sure the image is a valid JPEG or PNG file",
                ]
            },
            "storage": {
                "category": ErrorCategory.SYSTEM,
                "title": "Storage detection unavailable",
                "message": "{error}",
                "suggestions": [
                    "Disable removable media detection with --no-removable",
                ]
            },
            "download_service": {
                "category": ErrorCategory.SERVICE,
                "title": "Download service unavailable",
                "message": "{error}",
                "suggestions": [
                    "Start the album art download service or pass --no-download",
                ]
            },
            "cancelled": {
                "category": ErrorCategory.USER_INPUT,
                "title": "Cancelled",
                "message": "{error}",
                "suggestions": []
            },
            "invalid_option": {
                "category": ErrorCategory.USER_INPUT,
                "title": "Invalid option",
                "message": "{error}",
                "suggestions": [
                    "Use --help for the list of valid values",
                ]
            },
            "system_error": {
                "category": ErrorCategory.SYSTEM,
                "title": "Unexpected error",
                "message": "{error}",
                "suggestions": [
                    "Run again with --log-level DEBUG for details",
                ]
            }
        }

    def handle_exception(self, exception: Exception, context: Dict[str, Any] = None) -> UserFriendlyError:
        """
        Convert exception to user-friendly error.

        Args:
            exception: The original exception
            context: Additional context information

        Returns:
            UserFriendlyError object
        """
        context = dict(context or {})
        context.setdefault("error", str(exception))

        error_key = self._classify_exception(exception)
        error_info = self.error_templates[error_key]

        try:
            formatted_message = error_info["message"].format(**context)
        except (KeyError, ValueError):
            formatted_message = str(exception)

        technical_details = None
        if self.verbose:
            technical_details = f"{type(exception).__name__}: {exception}\n{traceback.format_exc()}"

        return UserFriendlyError(
            category=error_info["category"],
            title=error_info["title"],
            message=formatted_message,
            suggestions=list(error_info["suggestions"]),
            technical_details=technical_details,
            error_code=error_key
        )

    def _classify_exception(self, exception: Exception) -> str:
        if isinstance(exception, RequiredFieldMissing):
            return "required_field"
        elif isinstance(exception, ResourceNotFound):
            return "resource_not_found"
        elif isinstance(exception, FilesystemOperationFailed):
            return "filesystem"
        elif isinstance(exception, CodecFailure):
            return "codec"
        elif isinstance(exception, StorageUnavailable):
            return "storage"
        elif isinstance(exception, DownloadServiceUnavailable):
            return "download_service"
        elif isinstance(exception, OperationCancelled):
            return "cancelled"
        elif isinstance(exception, FileNotFoundError):
            return "resource_not_found"
        elif isinstance(exception, OSError):
            return "filesystem"
        elif isinstance(exception, ValueError):
            return "invalid_option"
        return "system_error"

    def format_error_message(self, error: UserFriendlyError, show_suggestions: bool = True) -> str:
        """Format error for display"""
        lines = [f"Error: {error.title}", f"   {error.message}"]

        if show_suggestions and error.suggestions:
            lines.append("")
            lines.append("Suggestions:")
            for suggestion in error.suggestions:
                lines.append(f"   - {suggestion}")

        if self.verbose and error.technical_details:
            lines.append("")
            lines.append("Technical details:")
            for line in error.technical_details.split('\n'):
                if line.strip():
                    lines.append(f"   {line}")

        if error.error_code:
            lines.append(f"Error code: {error.error_code}")

        return '\n'.join(lines)

    def log_error(self, error: UserFriendlyError, original_exception: Exception = None):
        """Log error with appropriate level"""
        if error.category in (ErrorCategory.USER_INPUT, ErrorCategory.CONFIGURATION):
            self.logger.warning(f"User Error: {error.title} - {error.message}")
        else:
            self.logger.error(f"System Error: {error.title} - {error.message}")

        if original_exception and self.verbose:
            self.logger.debug(f"Technical details: {error.technical_details}")


# Global error handler instance
_error_handler: Optional[ErrorHandler] = None


def get_error_handler(verbose: bool = False) -> ErrorHandler:
    """Get global error handler instance"""
    global _error_handler
    if _error_handler is None or _error_handler.verbose != verbose:
        _error_handler = ErrorHandler(verbose=verbose)
    return _error_handler


def handle_user_error(exception: Exception, context: Dict[str, Any] = None, verbose: bool = False) -> str:
    """Convenience function to handle and format error"""
    handler = get_error_handler(verbose)
    error = handler.handle_exception(exception, context)
    handler.log_error(error, exception)
    return handler.format_error_message(error)
