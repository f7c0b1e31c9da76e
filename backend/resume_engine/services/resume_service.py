"""
Structured-data editing and re-scoring.

Scoring is pure and cheap, so every edit to structured data is re-scored
inline instead of going back through the pipeline.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import ValidationError

from ..models.resume import Resume, ResumeStatus
from ..schemas.resume import ATSAnalysis, StructuredResume
from .resume_repository import ResumeRepository
from .scoring import analyze_resume
from .structuring import normalize_structured_payload

logger = logging.getLogger(__name__)


class InvalidStructuredDataError(ValueError):
    pass


def merge_structured_data(current: Optional[Dict[str, Any]], incoming: Dict[str, Any]) -> StructuredResume:
    """Top-level sections in `incoming` replace the stored ones; the rest are kept."""
    merged = dict(current or {})
    merged.update(incoming or {})
    try:
        return StructuredResume.model_validate(normalize_structured_payload(merged))
    except ValidationError as e:
        raise InvalidStructuredDataError(f"Invalid structured data: {e}")


def _score_changes(structured: StructuredResume) -> Dict[str, Any]:
    analysis: ATSAnalysis = analyze_resume(structured)
    return {
        "structured_data": structured.model_dump(mode="json"),
        "ats_score": analysis.score,
        "issues": analysis.issues,
        "recommendations": analysis.recommendations,
    }


async def apply_structured_edit(
    repository: ResumeRepository,
    resume: Resume,
    structured_data: Optional[Dict[str, Any]] = None,
    selected_template: Optional[str] = None,
) -> Resume:
    """
    Persist a user edit of structured data and/or the selected template.

    A record that was not completed yet becomes completed once it has
    structured data and a score.
    """
    now = datetime.now(timezone.utc)
    changes: Dict[str, Any] = {"last_edited_at": now}

    if selected_template is not None:
        changes["selected_template"] = selected_template

    if structured_data is not None:
        structured = merge_structured_data(resume.structured_data, structured_data)
        changes.update(_score_changes(structured))
        if resume.status != ResumeStatus.COMPLETED:
            changes.update(
                status=ResumeStatus.COMPLETED,
                processed=True,
                processed_at=now,
                failed_stage=None,
                error_code=None,
                error_message=None,
            )

    resume = await repository.update(resume, **changes)
    logger.info(f"[RESUME] Structured data edited for resume {resume.id} (score={resume.ats_score})")
    return resume


async def rescore_resume(repository: ResumeRepository, resume: Resume) -> Resume:
    """Recompute the score from stored structured data."""
    if not resume.structured_data:
        raise InvalidStructuredDataError("Resume has no structured data to score yet")
    structured = merge_structured_data(resume.structured_data, {})
    return await repository.update(resume, **_score_changes(structured))
