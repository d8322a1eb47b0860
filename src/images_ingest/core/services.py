"""Pipeline stages and the orchestrator sequencing them."""

import os
import time
import uuid
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, List, Mapping, MutableMapping, Optional, Sequence

from PIL import Image

from ..processors import PROCESSORS
from .error_handling import with_error_handling
from .exceptions import (
    CleanupFailedError,
    ConfigurationError,
    FileTypeUnsupportedError,
    IngestError,
    LIMIT_FILE_COUNT,
    LIMIT_FILE_SIZE,
    LIMIT_UNEXPECTED_FILE,
    INTERNAL_ERROR,
    LimitExceededError,
    MissingFileError,
)
from .image_utils import prepare_master
from .models import (
    IngestConfig,
    PipelineResult,
    PipelineStage,
    UploadedFile,
    UploadState,
)
from .naming import format_date, mime_extension, parse_size, random_filename
from .observability import (
    LogContext,
    MetricsCollector,
    PerformanceMetrics,
    log_operation_end,
    log_operation_start,
)
from .protocols import (
    LoggerProtocol,
    MasterRemover,
    RequestProtocol,
    UploadStager,
    VariantDeriver,
)

CONTEXT_KEY = "ingest"


class MasterUploader(UploadStager):
    """Validates the incoming file part and streams it to a dated directory."""

    def __init__(
        self,
        logger: LoggerProtocol,
        clock: Callable[[], datetime] = datetime.now,
        chunk_size: int = 64 * 1024,
    ):
        self._logger = logger
        self._clock = clock
        self._chunk_size = chunk_size

    def _select_upload(
        self, files: Sequence[UploadedFile], config: IngestConfig
    ) -> UploadedFile:
        # Count first: a second part is LIMIT_FILE_COUNT under any field name.
        if len(files) > 1:
            raise LimitExceededError(
                "Too many files", code=LIMIT_FILE_COUNT, field=config.field
            )
        if not files:
            raise MissingFileError(
                f"No file uploaded in field '{config.field}'", field=config.field
            )
        upload = files[0]
        if upload.field_name != config.field:
            raise LimitExceededError(
                "Unexpected field",
                code=LIMIT_UNEXPECTED_FILE,
                field=upload.field_name,
            )
        return upload

    @with_error_handling(PipelineStage.UPLOADING)
    def stage(
        self,
        files: Sequence[UploadedFile],
        config: IngestConfig,
        log_context: Optional[LogContext] = None,
    ) -> UploadState:
        """
        Write the single uploaded file to ``location + date/random-name``.

        The type check runs before anything touches storage. A size overrun
        aborts mid-stream and leaves the partial master where it is.
        """
        upload = self._select_upload(files, config)

        extension = mime_extension(upload.content_type)
        if extension not in config.accept:
            raise FileTypeUnsupportedError("file not acceptable", field=extension)

        limit = parse_size(config.max_file_size)
        directory = format_date(self._clock(), config.dir_format)
        state = UploadState(
            directory=directory,
            destination=config.location + directory,
            filename=random_filename(config.file_name_len),
        )

        self._logger.debug(
            f"Staging '{upload.filename}' as {state.master_path}", log_context
        )
        Path(state.destination).mkdir(parents=True, exist_ok=True)

        written = 0
        with open(state.master_path, "wb") as handle:
            while True:
                chunk = upload.stream.read(self._chunk_size)
                if not chunk:
                    break
                written += len(chunk)
                if written > limit:
                    raise LimitExceededError(
                        "File too large", code=LIMIT_FILE_SIZE, field=config.field
                    )
                handle.write(chunk)

        self._logger.info(
            f"Staged master ({written} bytes)", log_context, filename=state.filename
        )
        return state


class VariantTransformer(VariantDeriver):
    """Derives one resized variant of the master per configured size."""

    def __init__(
        self,
        logger: LoggerProtocol,
        processors: Optional[Mapping[str, Callable[..., List[Path]]]] = None,
    ):
        self._logger = logger
        self._processors = dict(processors or PROCESSORS)

    @with_error_handling(PipelineStage.TRANSFORMING)
    def derive_all(
        self,
        state: UploadState,
        config: IngestConfig,
        log_context: Optional[LogContext] = None,
    ) -> List[Path]:
        processor = self._processors.get(config.processor)
        if processor is None:
            raise ConfigurationError(
                f"Unknown processor: {config.processor}", field="processor"
            )

        # The handle is closed before returning so cleanup can remove the file.
        with Image.open(state.master_path) as opened:
            opened.load()
            master = prepare_master(opened)
            self._logger.debug(
                f"Master {master.width}x{master.height} {master.mode}, "
                f"{len(config.sizes)} size(s) via {config.processor}",
                log_context,
            )
            written = processor(master, state, config, log_context=log_context)

        self._logger.info(f"Wrote {len(written)} variant(s)", log_context)
        return written


class MasterCleaner(MasterRemover):
    """Removes the staged master once every variant exists."""

    def __init__(self, logger: LoggerProtocol):
        self._logger = logger

    def cleanup(self, state: UploadState, log_context: Optional[LogContext] = None) -> None:
        try:
            os.unlink(state.master_path)
        except OSError as exc:
            raise CleanupFailedError(
                f"Failed to remove master file: {exc}",
                field=state.filename,
                stage=PipelineStage.CLEANING,
            ) from exc
        self._logger.debug(f"Removed master {state.master_path}", log_context)


def attach_state(context: Any, state: UploadState) -> None:
    """Expose the upload state on a response/context object or mapping."""
    if isinstance(context, MutableMapping):
        context[CONTEXT_KEY] = state
    else:
        setattr(context, CONTEXT_KEY, state)


class IngestOrchestrator:
    """
    Runs upload → transform → cleanup for one request.

    Stages run strictly in sequence. The first failure ends the run in the
    FAILED state, tagged with the stage that raised it; no later stage runs
    and nothing already written is undone.
    """

    def __init__(
        self,
        config: IngestConfig,
        uploader: UploadStager,
        transformer: VariantDeriver,
        cleaner: MasterRemover,
        logger: LoggerProtocol,
        metrics_collector: Optional[MetricsCollector] = None,
    ):
        self._config = config
        self._uploader = uploader
        self._transformer = transformer
        self._cleaner = cleaner
        self._logger = logger
        self._metrics_collector = metrics_collector

    @property
    def config(self) -> IngestConfig:
        return self._config

    def _run_stage(
        self,
        stage: PipelineStage,
        log_context: LogContext,
        func: Callable[..., Any],
        *args: Any,
    ) -> Any:
        stage_context = log_operation_start(stage.value, self._logger, log_context)
        start_time = time.time()
        success = False
        error_message = None

        try:
            result = func(*args, log_context=stage_context)
            success = True
            return result
        except Exception as e:
            error_message = str(e)
            raise
        finally:
            metric = PerformanceMetrics(
                operation=stage.value,
                start_time=start_time,
                end_time=time.time(),
                success=success,
                error_message=error_message,
                metadata={"correlation_id": log_context.correlation_id},
            )
            log_operation_end(
                stage.value,
                self._logger,
                stage_context,
                success=success,
                error_message=error_message,
                duration_ms=round(metric.duration_ms, 2),
            )
            if self._metrics_collector:
                self._metrics_collector.record_metric(metric)

    def run(
        self, files: Sequence[UploadedFile], config: Optional[IngestConfig] = None
    ) -> PipelineResult:
        """Process one upload and return the terminal result."""
        config = config or self._config
        correlation_id = f"ingest_{uuid.uuid4().hex[:12]}"
        log_context = LogContext(
            correlation_id=correlation_id, component="ingest_orchestrator"
        )
        start_time = time.time()
        stage = PipelineStage.START

        try:
            stage = PipelineStage.UPLOADING
            state = self._run_stage(stage, log_context, self._uploader.stage, files, config)

            stage = PipelineStage.TRANSFORMING
            variants = self._run_stage(
                stage, log_context, self._transformer.derive_all, state, config
            )

            stage = PipelineStage.CLEANING
            self._run_stage(stage, log_context, self._cleaner.cleanup, state)

        except IngestError as e:
            if e.stage is None:
                e.stage = stage
            return self._failed(e, stage, correlation_id, start_time, log_context)
        except Exception as e:
            error = IngestError(str(e), code=INTERNAL_ERROR, stage=stage)
            error.__cause__ = e
            return self._failed(error, stage, correlation_id, start_time, log_context)

        return PipelineResult(
            stage=PipelineStage.DONE,
            correlation_id=correlation_id,
            upload_state=state,
            variants=tuple(variants or ()),
            duration=time.time() - start_time,
        )

    def _failed(
        self,
        error: IngestError,
        stage: PipelineStage,
        correlation_id: str,
        start_time: float,
        log_context: LogContext,
    ) -> PipelineResult:
        self._logger.error(
            "Ingestion failed",
            log_context.with_metadata(stage=stage.value, code=error.code, field=error.field),
        )
        return PipelineResult(
            stage=PipelineStage.FAILED,
            correlation_id=correlation_id,
            error=error,
            failed_stage=stage,
            duration=time.time() - start_time,
        )

    def __call__(
        self, request: RequestProtocol, context: Any, next: Callable[..., Any]
    ) -> Any:
        """
        Middleware entry point.

        Calls ``next(error)`` on failure; otherwise stores the ``UploadState``
        on ``context`` (attribute or key ``ingest``) and calls ``next()``.
        """
        result = self.run(request.files)
        if result.error is not None:
            return next(result.error)

        attach_state(context, result.upload_state)
        return next()
