"""Core utilities and shared components for the ingestion pipeline."""

from .config import DEFAULT_CONFIG, load_config_file, resolve_config
from .exceptions import (
    CleanupFailedError,
    ConfigurationError,
    FileTypeUnsupportedError,
    IngestError,
    LimitExceededError,
    MissingFileError,
    StorageError,
    TransformError,
)
from .logging_config import get_logger, setup_logger
from .models import (
    Background,
    ExtractRegion,
    IngestConfig,
    Margins,
    PipelineResult,
    PipelineStage,
    SizeSpec,
    UploadedFile,
    UploadState,
)
from .transforms import TRANSFORM_STEPS, build_query, plan

__all__ = [
    "DEFAULT_CONFIG",
    "resolve_config",
    "load_config_file",
    "IngestConfig",
    "SizeSpec",
    "Background",
    "ExtractRegion",
    "Margins",
    "UploadedFile",
    "UploadState",
    "PipelineStage",
    "PipelineResult",
    "TRANSFORM_STEPS",
    "build_query",
    "plan",
    "setup_logger",
    "get_logger",
    "IngestError",
    "ConfigurationError",
    "FileTypeUnsupportedError",
    "LimitExceededError",
    "MissingFileError",
    "StorageError",
    "TransformError",
    "CleanupFailedError",
]
