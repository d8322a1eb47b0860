"""Protocol definitions for dependency injection and testability."""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, List, Optional, Protocol, Sequence

from .models import IngestConfig, UploadedFile, UploadState


class LoggerProtocol(Protocol):
    """Protocol for logging operations."""

    def debug(self, message: str, context: Any = None, **kwargs: Any) -> None:
        """Log debug message."""
        ...

    def info(self, message: str, context: Any = None, **kwargs: Any) -> None:
        """Log info message."""
        ...

    def warning(self, message: str, context: Any = None, **kwargs: Any) -> None:
        """Log warning message."""
        ...

    def error(self, message: str, context: Any = None, **kwargs: Any) -> None:
        """Log error message."""
        ...


class RequestProtocol(Protocol):
    """Incoming request whose multipart file parts are already parsed."""

    files: Sequence[UploadedFile]


class UploadStager(ABC):
    """Abstract service staging the uploaded master file."""

    @abstractmethod
    def stage(
        self,
        files: Sequence[UploadedFile],
        config: IngestConfig,
        log_context: Optional[Any] = None,
    ) -> UploadState:
        """Validate and write the master file."""
        ...


class VariantDeriver(ABC):
    """Abstract service deriving one variant per configured size."""

    @abstractmethod
    def derive_all(
        self,
        state: UploadState,
        config: IngestConfig,
        log_context: Optional[Any] = None,
    ) -> List[Path]:
        """Write every variant of the staged master."""
        ...


class MasterRemover(ABC):
    """Abstract service removing the staged master file."""

    @abstractmethod
    def cleanup(self, state: UploadState, log_context: Optional[Any] = None) -> None:
        """Delete the master file."""
        ...
