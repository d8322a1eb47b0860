"""Shared data models for the ingestion pipeline."""

from enum import Enum
from pathlib import Path
from typing import Any, Optional, Tuple, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictFloat,
    StrictInt,
    StrictStr,
)


class Background(BaseModel):
    """RGBA background colour, alpha in the 0..1 range."""

    model_config = ConfigDict(frozen=True)

    r: int = 0
    g: int = 0
    b: int = 0
    a: float = 1.0

    def as_rgba(self) -> Tuple[int, int, int, int]:
        """Return the colour as an 8-bit RGBA tuple."""
        return (self.r, self.g, self.b, round(self.a * 255))


class SizeSpec(BaseModel):
    """One output variant: file suffix and target dimensions."""

    model_config = ConfigDict(frozen=True)

    suffix: str
    width: Optional[int] = None
    height: Optional[int] = None


class ExtractRegion(BaseModel):
    """Rectangle to extract from the resized image."""

    model_config = ConfigDict(frozen=True)

    left: int
    top: int
    width: int
    height: int


class Margins(BaseModel):
    """Pixels added to each edge by the extend operation."""

    model_config = ConfigDict(frozen=True)

    top: int = 0
    left: int = 0
    bottom: int = 0
    right: int = 0


class IngestConfig(BaseModel):
    """Fully-resolved configuration for one pipeline invocation.

    Transform toggles are either boolean-gated (``False`` skips the step) or
    value-gated (``False`` skips, anything else is the step's argument).
    Toggles are strict: ``1``, ``"yes"`` or ``"90"`` are never coerced into
    ``True`` or a number.
    """

    model_config = ConfigDict(frozen=True)

    # Identity and storage
    field: str = "file"
    location: str = "/var/www/uploads/"
    dir_format: str = "yyyy/mmm/d"
    file_name_len: int = 50
    max_file_size: Union[int, str] = "10mb"
    accept: Tuple[str, ...] = ("png", "jpeg", "jpg")
    output: str = "jpg"
    sizes: Tuple[SizeSpec, ...] = (SizeSpec(suffix="lg", width=500, height=500),)

    # Fan-out
    concurrency: int = 4
    processor: str = "multithread"

    # Transform toggles
    resize: StrictBool = True
    crop: Union[StrictBool, StrictStr] = False
    background: Background = Background(r=200, g=200, b=200, a=1)
    embed: StrictBool = False
    max: StrictBool = False
    min: StrictBool = False
    without_enlargement: StrictBool = False
    ignore_aspect_ratio: StrictBool = False
    extract: Union[StrictBool, ExtractRegion] = False
    trim: Union[StrictBool, StrictInt, StrictFloat] = False
    flatten: StrictBool = False
    extend: Union[StrictBool, StrictInt, Margins] = False
    negate: StrictBool = False
    rotate: Union[StrictBool, StrictInt] = False
    flip: StrictBool = False
    flop: StrictBool = False
    blur: Union[StrictBool, StrictInt, StrictFloat] = False
    sharpen: StrictBool = False
    gamma: Union[StrictBool, StrictInt, StrictFloat] = False
    grayscale: StrictBool = False
    greyscale: StrictBool = False
    normalize: StrictBool = False
    normalise: StrictBool = False
    progressive: StrictBool = False
    quality: Union[StrictBool, StrictInt, StrictFloat] = False


class UploadedFile(BaseModel):
    """One file part of an incoming multipart request."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    field_name: str
    filename: str = ""
    content_type: str = "application/octet-stream"
    stream: Any


class UploadState(BaseModel):
    """Where the staged master lives.

    ``directory`` is the date-formatted part of the path, ``destination`` the
    full directory on storage and ``filename`` the generated master name.
    """

    model_config = ConfigDict(frozen=True)

    directory: str
    destination: str
    filename: str

    @property
    def master_path(self) -> Path:
        return Path(self.destination) / self.filename

    def variant_path(self, suffix: str, output: str) -> Path:
        """Path of the variant written for ``suffix`` in format ``output``."""
        return Path(self.destination) / f"{self.filename}.{suffix}.{output}"


class PipelineStage(str, Enum):
    """States of one pipeline invocation."""

    START = "start"
    UPLOADING = "uploading"
    TRANSFORMING = "transforming"
    CLEANING = "cleaning"
    DONE = "done"
    FAILED = "failed"


class PipelineResult(BaseModel):
    """Terminal outcome of one pipeline invocation."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    stage: PipelineStage
    correlation_id: str = ""
    upload_state: Optional[UploadState] = None
    error: Optional[Exception] = None
    failed_stage: Optional[PipelineStage] = None
    variants: Tuple[Path, ...] = Field(default_factory=tuple)
    duration: float = 0.0

    @property
    def succeeded(self) -> bool:
        return self.stage is PipelineStage.DONE
