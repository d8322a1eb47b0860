"""Factory classes for creating configured service instances."""

from datetime import datetime
from typing import Any, Callable, Mapping, Optional, Union

from .config import DEFAULT_CONFIG, resolve_config
from .models import IngestConfig
from .observability import MetricsCollector, StructuredLogger
from .protocols import LoggerProtocol
from .services import (
    IngestOrchestrator,
    MasterCleaner,
    MasterUploader,
    VariantTransformer,
)


class LoggerFactory:
    """Factory for creating logger instances."""

    @staticmethod
    def create_logger(name: str, level: Optional[str] = None) -> LoggerProtocol:
        """Create a structured logger on top of the shared logging setup."""
        return StructuredLogger(name, level=level)


class IngestPipelineFactory:
    """Factory for creating the complete ingestion pipeline."""

    @staticmethod
    def create_pipeline(
        config_overrides: Optional[Mapping[str, Any]] = None,
        logger: Optional[LoggerProtocol] = None,
        metrics_collector: Optional[MetricsCollector] = None,
        clock: Optional[Callable[[], datetime]] = None,
        defaults: Union[IngestConfig, Mapping[str, Any]] = DEFAULT_CONFIG,
    ) -> IngestOrchestrator:
        """Resolve the configuration once and wire every stage."""
        config = resolve_config(defaults, config_overrides)

        if logger is None:
            logger = LoggerFactory.create_logger("images-ingest")

        uploader = (
            MasterUploader(logger, clock=clock) if clock else MasterUploader(logger)
        )

        return IngestOrchestrator(
            config=config,
            uploader=uploader,
            transformer=VariantTransformer(logger),
            cleaner=MasterCleaner(logger),
            logger=logger,
            metrics_collector=metrics_collector,
        )


def create_middleware(
    options: Optional[Mapping[str, Any]] = None, **kwargs: Any
) -> IngestOrchestrator:
    """
    Build the ``(request, context, next)`` callable for ``options``.

    Keyword arguments are passed through to
    ``IngestPipelineFactory.create_pipeline``.
    """
    return IngestPipelineFactory.create_pipeline(config_overrides=options, **kwargs)
