# src/images_ingest/core/error_handling.py

import functools
import logging

from PIL import Image, UnidentifiedImageError

from .exceptions import (
    CleanupFailedError,
    IngestError,
    StorageError,
    TransformError,
)
from .models import PipelineStage

_STAGE_ERRORS = {
    PipelineStage.UPLOADING: StorageError,
    PipelineStage.TRANSFORMING: TransformError,
    PipelineStage.CLEANING: CleanupFailedError,
}


def with_error_handling(stage: PipelineStage):
    """
    A decorator mapping library errors raised inside a pipeline stage into
    the ingest error taxonomy.

    ``IngestError`` passes through with its stage filled in. ``OSError``
    becomes the stage's own error class; Pillow decode errors and
    ``ValueError`` raised while transforming become ``TransformError``.
    Anything else is logged and re-raised untouched.
    """
    error_class = _STAGE_ERRORS.get(stage, IngestError)

    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            logger = logging.getLogger(func.__module__ + '.' + func.__name__)
            try:
                return func(*args, **kwargs)
            except IngestError as e:
                if e.stage is None:
                    e.stage = stage
                raise
            except OSError as e:
                logger.error(
                    f"I/O error in '{func.__name__}': {e}",
                    exc_info=True
                )
                raise error_class(str(e), stage=stage) from e
            except (UnidentifiedImageError, Image.DecompressionBombError, ValueError) as e:
                logger.error(
                    f"Image error in '{func.__name__}': {e}",
                    exc_info=True
                )
                if stage is PipelineStage.TRANSFORMING:
                    raise TransformError(f"Failed to process image: {e}", stage=stage) from e
                raise
            except Exception as e:
                logger.error(
                    f"Error in '{func.__name__}': {e}",
                    exc_info=True
                )
                raise
        return wrapper
    return decorator
