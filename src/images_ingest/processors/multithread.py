"""Multithreaded processor implementation - uses thread pool for parallelism."""

from concurrent.futures import ThreadPoolExecutor, as_completed
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
    Derive every configured size on a thread pool.

    Sizes complete in no particular order. The first failure cancels sizes
    that have not started and is raised once running ones finish; nothing
    already written is removed.

    Args:
        master: The decoded master image (each size renders its own copy)
        state: Upload state of the staged master
        config: Resolved configuration
        log_context: Invocation context carried into per-variant log lines

    Returns:
        Paths of the written variants, in completion order
    """
    sizes = list(config.sizes)
    if not sizes:
        return []

    written: List[Path] = []
    max_workers = max(1, min(config.concurrency, len(sizes)))

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        future_to_size = {
            executor.submit(derive_variant, master, state, config, size, log_context): size
            for size in sizes
        }

        for future in as_completed(future_to_size):
            size = future_to_size[future]
            try:
                written.append(future.result())
            except Exception as exc:
                for pending in future_to_size:
                    pending.cancel()
                if isinstance(exc, TransformError):
                    raise
                raise as_transform_error(exc, size) from exc

    return written
