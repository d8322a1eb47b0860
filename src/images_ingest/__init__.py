"""Request-scoped image ingestion: stage an upload, derive variants, clean up."""

from .core.factories import IngestPipelineFactory, create_middleware

__version__ = "0.1.0"

__all__ = ["IngestPipelineFactory", "create_middleware", "__version__"]
