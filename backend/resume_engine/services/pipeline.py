"""
Resume Intelligence Pipeline

Runs one resume through:
    Authorization -> Mark Processing -> Conversion -> AI Structuring -> Analysis -> Final Save

Every failure after authorization is tagged with the stage it happened in and
persisted on the record (status=failed), so a client polling the resume sees
where it stopped. Re-running the pipeline on a failed resume retries it;
conversion is skipped once raw_text exists.
"""
import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import Awaitable, Callable, Optional, Set

from sqlalchemy.ext.asyncio import AsyncSession

from ..config import get_settings
from ..models.resume import Resume, ResumeStatus
from ..schemas.resume import ATSAnalysis, PipelineMetrics, PipelineResult, StructuredResume
from .llm import TextModel
from .resume_repository import ResumeRepository, StaleResumeError
from .scoring import analyze_resume
from .storage import BlobStore, BlobStoreError
from .structuring import StructuringError, StructuringService
from .templates import DEFAULT_TEMPLATE_ID
from .text_extractor import ExtractionError, TextExtractor

logger = logging.getLogger(__name__)


class PipelineStage:
    AUTHORIZATION = "Authorization"
    MARK_PROCESSING = "Mark Processing"
    CONVERSION = "Conversion"
    AI_STRUCTURING = "AI Structuring"
    ANALYSIS = "Analysis"
    FINAL_SAVE = "Final Save"


class ResumeNotFoundError(Exception):
    def __init__(self, resume_id: int):
        super().__init__(f"Resume {resume_id} not found")
        self.resume_id = resume_id


class PipelineBusyError(Exception):
    def __init__(self, resume_id: int):
        super().__init__(f"Resume {resume_id} is already being processed")
        self.resume_id = resume_id


class StageError(Exception):
    """A failure tagged with the stage that raised it."""

    def __init__(self, stage: str, message: str, error_code: Optional[str] = None):
        super().__init__(message)
        self.stage = stage
        self.message = message
        self.error_code = error_code


# Resume ids with a run in progress in this process
_in_flight: Set[int] = set()


def _error_code_for(error: Exception) -> str:
    if isinstance(error, ExtractionError):
        return error.code.value
    if isinstance(error, BlobStoreError):
        return "STORAGE_ERROR"
    if isinstance(error, StructuringError):
        return "AI_STRUCTURING_FAILED"
    if isinstance(error, asyncio.TimeoutError):
        return "AI_TIMEOUT"
    if isinstance(error, StaleResumeError):
        return "CONCURRENT_MODIFICATION"
    return "INTERNAL_ERROR"


def _error_message_for(error: Exception) -> str:
    if isinstance(error, ExtractionError):
        return error.message
    return str(error) or type(error).__name__


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 2)


class ResumePipeline:
    """Orchestrates extraction, structuring and scoring for one resume at a time."""

    def __init__(
        self,
        repository: ResumeRepository,
        blob_store: BlobStore,
        extractor: TextExtractor,
        structuring: StructuringService,
        scorer: Callable[[StructuredResume], ATSAnalysis] = analyze_resume,
        max_attempts: int = 3,
        retry_base_delay: float = 1.0,
        structuring_timeout: float = 45.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.repository = repository
        self.blob_store = blob_store
        self.extractor = extractor
        self.structuring = structuring
        self.scorer = scorer
        self.max_attempts = max(1, max_attempts)
        self.retry_base_delay = retry_base_delay
        self.structuring_timeout = structuring_timeout
        self.sleep = sleep

    def _log(self, resume_id: int, stage: str, message: str, level: int = logging.INFO):
        logger.log(level, f"[PIPELINE][{resume_id}][{stage}] {message}")

    async def run(self, resume_id: int, user_id: int, selected_template: Optional[str] = None) -> PipelineResult:
        """
        Process a resume end to end.

        Raises:
            ResumeNotFoundError: resume missing or owned by someone else
            PipelineBusyError: a run for this resume is already in progress

        Every other failure is persisted on the record and returned as a
        failed PipelineResult.
        """
        total_start = time.perf_counter()

        # ==================== Authorization ====================
        self._log(resume_id, PipelineStage.AUTHORIZATION, "Start")
        resume = await self.repository.get_for_user(resume_id, user_id)
        if resume is None:
            self._log(resume_id, PipelineStage.AUTHORIZATION, "Resume not found or not owned by user", logging.WARNING)
            raise ResumeNotFoundError(resume_id)

        # Checked and claimed with no await in between
        if resume_id in _in_flight:
            raise PipelineBusyError(resume_id)
        _in_flight.add(resume_id)
        try:
            return await self._process(resume, selected_template, total_start)
        finally:
            _in_flight.discard(resume_id)

    async def _process(self, resume: Resume, selected_template: Optional[str], total_start: float) -> PipelineResult:
        resume_id = resume.id
        metrics = PipelineMetrics()

        # ==================== Mark Processing ====================
        stage = PipelineStage.MARK_PROCESSING
        try:
            await self.repository.update(
                resume,
                status=ResumeStatus.PROCESSING,
                failed_stage=None,
                error_code=None,
                error_message=None,
            )
        except StaleResumeError:
            self._log(resume_id, stage, "Record changed underneath us, treating as busy", logging.WARNING)
            raise PipelineBusyError(resume_id)

        try:
            # ==================== Conversion ====================
            stage = PipelineStage.CONVERSION
            stage_start = time.perf_counter()
            if resume.raw_text:
                metrics.conversion_skipped = True
                self._log(resume_id, stage, "Skipped (raw_text already present)")
            else:
                await self._convert(resume)
            metrics.conversion_ms = _elapsed_ms(stage_start)
            metrics.text_length = len(resume.raw_text or "")
            self._log(resume_id, stage, f"Done. Text length: {metrics.text_length} [{metrics.conversion_ms}ms]")

            # ==================== AI Structuring ====================
            stage = PipelineStage.AI_STRUCTURING
            template_id = selected_template or resume.selected_template or DEFAULT_TEMPLATE_ID
            stage_start = time.perf_counter()
            structured = await self._structure_with_retries(resume, template_id, metrics)
            metrics.ai_ms = _elapsed_ms(stage_start)
            self._log(resume_id, stage, f"Done after {metrics.structuring_attempts} attempt(s) [{metrics.ai_ms}ms]")

            # ==================== Analysis ====================
            stage = PipelineStage.ANALYSIS
            stage_start = time.perf_counter()
            try:
                analysis = self.scorer(structured)
            except Exception:
                # Scoring is pure; an exception here is a defect, not bad input
                logger.exception(f"[PIPELINE][{resume_id}][{stage}] Scoring engine defect")
                raise
            metrics.analysis_ms = _elapsed_ms(stage_start)
            self._log(resume_id, stage, f"Score: {analysis.score} [{metrics.analysis_ms}ms]")

            # ==================== Final Save ====================
            stage = PipelineStage.FINAL_SAVE
            await self.repository.update(
                resume,
                structured_data=structured.model_dump(mode="json"),
                ats_score=analysis.score,
                issues=analysis.issues,
                recommendations=analysis.recommendations,
                selected_template=template_id,
                status=ResumeStatus.COMPLETED,
                processed=True,
                processed_at=datetime.now(timezone.utc),
            )
        except Exception as e:
            return await self._fail(resume, stage, e)

        metrics.total_ms = _elapsed_ms(total_start)
        self._log(resume_id, PipelineStage.FINAL_SAVE, f"Completed [{metrics.total_ms}ms total]")
        return PipelineResult(
            resume_id=resume_id,
            status=ResumeStatus.COMPLETED,
            score=analysis.score,
            metrics=metrics,
        )

    async def _convert(self, resume: Resume) -> None:
        if not resume.storage_path:
            raise StageError(
                PipelineStage.CONVERSION,
                "Resume has neither raw text nor a stored file to convert.",
                "NO_SOURCE",
            )

        self._log(resume.id, PipelineStage.CONVERSION, f"Fetching {resume.storage_path}")
        data = await self.blob_store.get(resume.storage_path)
        if not data:
            raise StageError(PipelineStage.CONVERSION, "Stored file is empty.", "EMPTY_FILE")

        raw_text = await asyncio.to_thread(self.extractor.extract, data, resume.mime_type, resume.id)
        # Persist immediately so a later failure doesn't repeat conversion
        await self.repository.update(resume, raw_text=raw_text)

    async def _structure_with_retries(self, resume: Resume, template_id: str, metrics: PipelineMetrics) -> StructuredResume:
        last_error: Optional[Exception] = None
        for attempt in range(1, self.max_attempts + 1):
            metrics.structuring_attempts = attempt
            try:
                return await asyncio.wait_for(
                    self.structuring.structure(resume.raw_text, template_id),
                    timeout=self.structuring_timeout,
                )
            except Exception as e:
                last_error = e
                self._log(
                    resume.id,
                    PipelineStage.AI_STRUCTURING,
                    f"Attempt {attempt}/{self.max_attempts} failed: {_error_message_for(e)}",
                    logging.WARNING,
                )
                if isinstance(e, StructuringError) and not e.retryable:
                    break
                if attempt < self.max_attempts:
                    await self.sleep(attempt * self.retry_base_delay)
        raise last_error

    async def _fail(self, resume: Resume, stage: str, error: Exception) -> PipelineResult:
        if isinstance(error, StageError):
            stage, message, error_code = error.stage, error.message, error.error_code
        else:
            message, error_code = _error_message_for(error), _error_code_for(error)
        self._log(resume.id, stage, f"Failed: [{error_code}] {message}", logging.ERROR)

        try:
            await self.repository.update(
                resume,
                status=ResumeStatus.FAILED,
                failed_stage=stage,
                error_code=error_code,
                error_message=message,
            )
        except Exception as persist_err:
            # Best effort; the original error is what gets reported
            self._log(resume.id, stage, f"Could not persist failure state: {persist_err}", logging.ERROR)

        return PipelineResult(
            resume_id=resume.id,
            status=ResumeStatus.FAILED,
            stage=stage,
            message=message,
            error_code=error_code,
        )


def build_pipeline(
    db: AsyncSession,
    blob_store: BlobStore,
    model: TextModel,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> ResumePipeline:
    """Wire a pipeline from settings."""
    settings = get_settings()
    return ResumePipeline(
        repository=ResumeRepository(db),
        blob_store=blob_store,
        extractor=TextExtractor(min_text_length=settings.min_text_length),
        structuring=StructuringService(model, min_input_length=settings.min_text_length),
        max_attempts=settings.structuring_max_attempts,
        retry_base_delay=settings.structuring_retry_base_delay,
        structuring_timeout=settings.structuring_timeout_seconds,
        sleep=sleep,
    )
