"""Common functions shared across all processor implementations."""

from pathlib import Path
from typing import Optional

from PIL import Image

from ..core import IngestConfig, SizeSpec, UploadState
from ..core.exceptions import IngestError, TransformError
from ..core.observability import LogContext, StructuredLogger
from ..core.transforms import build_query


def derive_variant(
    master: Image.Image,
    state: UploadState,
    config: IngestConfig,
    size: SizeSpec,
    log_context: Optional[LogContext] = None,
) -> Path:
    """Build the query for one size and write it: Query → Render → Encode."""
    logger = StructuredLogger("processor")
    destination = state.variant_path(size.suffix, config.output)

    try:
        query = build_query(master, config, size)
        logger.debug(
            f"Deriving '{size.suffix}' ({size.width}x{size.height}): "
            f"{', '.join(query.operations)}",
            log_context,
        )
        path = query.to_file(destination, config.output)
    except IngestError:
        raise
    except (OSError, ValueError, Image.DecompressionBombError) as exc:
        logger.error(f"Variant '{size.suffix}' failed: {exc}", log_context)
        raise TransformError(
            f"Failed to derive variant '{size.suffix}': {exc}", field=size.suffix
        ) from exc

    logger.debug(f"Wrote {path}", log_context)
    return path


def as_transform_error(error: BaseException, size: SizeSpec) -> TransformError:
    """Wrap an unexpected worker error in a TransformError for ``size``."""
    return TransformError(
        f"Failed to derive variant '{size.suffix}': {error}", field=size.suffix
    )
