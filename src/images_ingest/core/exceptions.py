"""Custom exceptions for the ingestion pipeline.

Every error delivered to a caller carries ``message``, ``code`` and an
optional ``field`` (for instance the rejected file extension). ``stage`` is
filled in by the orchestrator with the pipeline stage that raised it.
"""

from typing import Any, Dict, Optional

FILE_TYPE_UNSUPPORTED = "FILE_TYPE_UNSUPPORTED"
LIMIT_FILE_SIZE = "LIMIT_FILE_SIZE"
LIMIT_FILE_COUNT = "LIMIT_FILE_COUNT"
LIMIT_UNEXPECTED_FILE = "LIMIT_UNEXPECTED_FILE"
MISSING_FILE = "MISSING_FILE"
CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
STORAGE_ERROR = "STORAGE_ERROR"
TRANSFORM_FAILED = "TRANSFORM_FAILED"
CLEANUP_FAILED = "CLEANUP_FAILED"
INTERNAL_ERROR = "INTERNAL_ERROR"


class IngestError(Exception):
    """Base exception for all ingestion pipeline errors."""

    default_message = "error occurred."
    default_code = INTERNAL_ERROR
    client_error = False

    def __init__(
        self,
        message: Optional[str] = None,
        code: Optional[str] = None,
        field: Optional[str] = None,
        stage: Any = None,
    ):
        self.message = message or self.default_message
        self.code = code or self.default_code
        self.field = field
        self.stage = stage
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Serializable view for error responses."""
        return {
            "message": self.message,
            "code": self.code,
            "field": self.field,
            "stage": getattr(self.stage, "value", self.stage),
        }


class ConfigurationError(IngestError):
    """Raised when configuration values have the wrong shape."""

    default_message = "invalid configuration."
    default_code = CONFIGURATION_ERROR


class FileTypeUnsupportedError(IngestError):
    """Raised when the upload's extension is not in the allow-list."""

    default_message = "file not acceptable"
    default_code = FILE_TYPE_UNSUPPORTED
    client_error = True


class LimitExceededError(IngestError):
    """Raised for size, count and unexpected-field violations."""

    default_message = "upload limit exceeded"
    default_code = LIMIT_FILE_SIZE
    client_error = True


class MissingFileError(IngestError):
    """Raised when the request carries no file under the configured field."""

    default_message = "no file uploaded"
    default_code = MISSING_FILE
    client_error = True


class StorageError(IngestError):
    """Raised when writing the master file fails."""

    default_message = "failed to store upload"
    default_code = STORAGE_ERROR


class TransformError(IngestError):
    """Raised when deriving or writing a variant fails."""

    default_message = "failed to process image"
    default_code = TRANSFORM_FAILED


class CleanupFailedError(IngestError):
    """Raised when removing the master file fails."""

    default_message = "failed to remove master file"
    default_code = CLEANUP_FAILED
