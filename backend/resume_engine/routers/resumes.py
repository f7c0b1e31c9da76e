"""
Resumes Router - Creation, upload, pipeline trigger, status and structured-data editing
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import get_settings
from ..database import get_db
from ..models import User, ResumeSource, ResumeStatus
from ..schemas.resume import (
    ALLOWED_UPLOAD_MIME_TYPES,
    ResumeCreate,
    ResumeCreatedResponse,
    ResumeListItem,
    ResumeDetail,
    StructuredDataResponse,
    StructuredDataUpdate,
    ProcessRequest,
    PipelineResult,
)
from ..services.auth import get_current_user
from ..services.llm import TextModel, get_text_model
from ..services.pipeline import ResumePipeline, ResumeNotFoundError, PipelineBusyError, build_pipeline
from ..services.resume_repository import ResumeRepository, StaleResumeError
from ..services.resume_service import InvalidStructuredDataError, apply_structured_edit, rescore_resume
from ..services.storage import BlobStore, BlobStoreError, build_storage_path, get_blob_store
from ..services.text_extractor import DOCX_MIME, MSWORD_MIME, PDF_MIME

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/resumes", tags=["Resumes"])

_EXTENSION_MIME_TYPES = {
    ".pdf": PDF_MIME,
    ".doc": MSWORD_MIME,
    ".docx": DOCX_MIME,
}


# ============================================================================
# Dependencies & Helpers
# ============================================================================

def get_pipeline(
    db: AsyncSession = Depends(get_db),
    blob_store: BlobStore = Depends(get_blob_store),
    model: TextModel = Depends(get_text_model),
) -> ResumePipeline:
    return build_pipeline(db, blob_store, model)


async def _get_owned_resume(repository: ResumeRepository, resume_id: int, user: User):
    resume = await repository.get_for_user(resume_id, user.id)
    if not resume:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Resume not found"
        )
    return resume


def _structured_response(resume) -> StructuredDataResponse:
    return StructuredDataResponse(
        structured_data=resume.structured_data,
        ats_score=resume.ats_score,
        issues=resume.issues or [],
        recommendations=resume.recommendations or [],
        selected_template=resume.selected_template,
        file_name=resume.file_name,
        processed=bool(resume.processed),
        last_edited_at=resume.last_edited_at,
    )


def _conflict() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail="Resume was modified concurrently. Reload and try again."
    )


# ============================================================================
# Creation
# ============================================================================

@router.post("", response_model=ResumeCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_resume(
    data: ResumeCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Create a resume record. Contract violations are rejected with 422 before anything is stored."""
    resume = await ResumeRepository(db).create(current_user.id, data)
    return ResumeCreatedResponse(resume_id=resume.id, status=resume.status)


@router.post("/upload", response_model=ResumeCreatedResponse, status_code=status.HTTP_201_CREATED)
async def upload_resume(
    file: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
    blob_store: BlobStore = Depends(get_blob_store),
    current_user: User = Depends(get_current_user)
):
    """
    Store the uploaded document, then create an `upload` resume record.
    Processing is triggered separately via POST /api/resumes/{id}/process.
    """
    settings = get_settings()
    filename = file.filename or "resume"
    extension = filename[filename.rfind("."):].lower() if "." in filename else ""

    mime_type = file.content_type if file.content_type in ALLOWED_UPLOAD_MIME_TYPES else None
    mime_type = mime_type or _EXTENSION_MIME_TYPES.get(extension)
    if not mime_type:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid file type. Please upload PDF or Word documents (.pdf, .doc, .docx)."
        )

    content = await file.read()
    if not content:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Uploaded file is empty"
        )
    if len(content) > settings.max_upload_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File size must be less than {settings.max_upload_bytes // (1024 * 1024)}MB"
        )

    storage_path = build_storage_path(current_user.id, filename)
    try:
        await blob_store.put(storage_path, content, mime_type)
    except BlobStoreError as e:
        logger.error(f"[STORAGE] Upload failed for user {current_user.id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Failed to save resume file. Please try again."
        )

    resume = await ResumeRepository(db).create(
        current_user.id,
        ResumeCreate(
            source=ResumeSource.UPLOAD,
            file_name=filename[:255],
            storage_path=storage_path,
            mime_type=mime_type,
            size=len(content),
        ),
    )
    return ResumeCreatedResponse(resume_id=resume.id, status=resume.status)


# ============================================================================
# Queries
# ============================================================================

@router.get("", response_model=List[ResumeListItem])
async def list_resumes(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return await ResumeRepository(db).list_for_user(current_user.id)


@router.get("/{resume_id}", response_model=ResumeDetail)
async def get_resume(
    resume_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Current pipeline status and outputs. Safe to poll."""
    resume = await _get_owned_resume(ResumeRepository(db), resume_id, current_user)
    return ResumeDetail.model_validate(resume)


# ============================================================================
# Pipeline
# ============================================================================

@router.post("/{resume_id}/process", response_model=PipelineResult, response_model_exclude_none=True)
async def process_resume(
    resume_id: int,
    request: Optional[ProcessRequest] = None,
    pipeline: ResumePipeline = Depends(get_pipeline),
    current_user: User = Depends(get_current_user)
):
    """Run extraction, structuring and scoring. Failed runs can be retried by calling this again."""
    selected_template = request.selected_template if request else None
    try:
        result = await pipeline.run(resume_id, current_user.id, selected_template)
    except ResumeNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Resume not found"
        )
    except PipelineBusyError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Resume is already being processed"
        )

    if result.status == ResumeStatus.FAILED:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=result.model_dump(mode="json", exclude_none=True),
        )
    return result


# ============================================================================
# Structured Data
# ============================================================================

@router.get("/{resume_id}/structured", response_model=StructuredDataResponse)
async def get_structured_data(
    resume_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    resume = await _get_owned_resume(ResumeRepository(db), resume_id, current_user)
    return _structured_response(resume)


@router.put("/{resume_id}/structured", response_model=StructuredDataResponse)
async def update_structured_data(
    resume_id: int,
    data: StructuredDataUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Save user edits to structured data and/or the selected template. Edits are re-scored."""
    if data.structured_data is None and data.selected_template is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Nothing to update"
        )

    repository = ResumeRepository(db)
    resume = await _get_owned_resume(repository, resume_id, current_user)
    try:
        resume = await apply_structured_edit(
            repository,
            resume,
            structured_data=data.structured_data,
            selected_template=data.selected_template,
        )
    except InvalidStructuredDataError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e)
        )
    except StaleResumeError:
        raise _conflict()
    return _structured_response(resume)


@router.post("/{resume_id}/rescore", response_model=StructuredDataResponse)
async def rescore(
    resume_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    repository = ResumeRepository(db)
    resume = await _get_owned_resume(repository, resume_id, current_user)
    try:
        resume = await rescore_resume(repository, resume)
    except InvalidStructuredDataError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
    except StaleResumeError:
        raise _conflict()
    return _structured_response(resume)
