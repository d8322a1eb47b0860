"""Testing utilities and fakes for the ingestion pipeline."""

from .fakes import (
    BrokenStream,
    FakeContext,
    FakeLogger,
    FakeRequest,
    RecordingNext,
    create_test_image,
    make_upload,
)

__all__ = [
    "BrokenStream",
    "FakeContext",
    "FakeLogger",
    "FakeRequest",
    "RecordingNext",
    "create_test_image",
    "make_upload",
]
