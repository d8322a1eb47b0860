"""Serial processor implementation - derives variants one by one."""

from pathlib import Path
from typing import List, Optional

from PIL import Image

from ..core import IngestConfig, UploadState
from ..core.observability import LogContext
from ..core.exceptions import TransformError
from .common import derive_variant, as_transform_error


def derive_all(
    master: Image.Image,
    state: UploadState,
    config: IngestConfig,
    log_context: Optional[LogContext] = None,
) -> List[Path]:
    """
    Derives every configured size serially, in configuration order, in the
    current thread.

    Stops at the first failing size. Variants written before it stay on
    storage.

    Args:
        master: The decoded master image, shared read-only.
        state: Where the master lives and where variants go.
        config: Resolved configuration.
        log_context: Invocation context carried into per-variant log lines.

    Returns:
        Paths of the written variants.

    Raises:
        TransformError: For the first size that fails.
    """
    written: List[Path] = []

    for size in config.sizes:
        try:
            written.append(derive_variant(master, state, config, size, log_context))
        except TransformError:
            raise
        except Exception as exc:
            raise as_transform_error(exc, size) from exc

    return written
