from images_ingest.core.exceptions import (
    CleanupFailedError,
    FileTypeUnsupportedError,
    IngestError,
    LimitExceededError,
    LIMIT_FILE_COUNT,
    StorageError,
    TransformError,
)
from images_ingest.core.models import PipelineStage


def test_defaults_per_class() -> None:
    error = FileTypeUnsupportedError(field="gif")
    assert error.message == "file not acceptable"
    assert error.code == "FILE_TYPE_UNSUPPORTED"
    assert error.field == "gif"
    assert str(error) == "file not acceptable"


def test_code_override() -> None:
    error = LimitExceededError("Too many files", code=LIMIT_FILE_COUNT)
    assert error.code == "LIMIT_FILE_COUNT"
    assert isinstance(error, IngestError)


def test_client_errors_are_distinguishable() -> None:
    assert FileTypeUnsupportedError().client_error
    assert LimitExceededError().client_error
    assert not StorageError().client_error
    assert not TransformError().client_error
    assert not CleanupFailedError().client_error


def test_to_dict() -> None:
    error = TransformError("bad crop", field="lg", stage=PipelineStage.TRANSFORMING)
    assert error.to_dict() == {
        "message": "bad crop",
        "code": "TRANSFORM_FAILED",
        "field": "lg",
        "stage": "transforming",
    }
