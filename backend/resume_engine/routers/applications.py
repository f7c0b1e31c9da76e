"""
Applications Router - Tailored CV, cover letter and interview prep for a job description
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from ..database import get_db
from ..models import User, Application, ApplicationStatus
from ..schemas.application import (
    MIN_CV_LENGTH,
    ApplicationCreate,
    ApplicationResponse,
    ApplicationListItem,
)
from ..schemas.resume import StructuredResume
from ..services.auth import get_current_user
from ..services.llm import TextModel, get_text_model
from ..services.materials import ApplicationGenerator, GenerationError, structured_to_text
from ..services.resume_repository import ResumeRepository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/applications", tags=["Applications"])


def get_application_generator(model: TextModel = Depends(get_text_model)) -> ApplicationGenerator:
    return ApplicationGenerator(model)


async def _resolve_cv_text(db: AsyncSession, data: ApplicationCreate, user: User) -> str:
    resume = None
    if data.resume_id is not None:
        resume = await ResumeRepository(db).get_for_user(data.resume_id, user.id)
        if not resume:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Resume not found"
            )

    if data.cv_text:
        return data.cv_text.strip()

    cv_text = ""
    if resume.structured_data:
        cv_text = structured_to_text(StructuredResume.model_validate(resume.structured_data))
    if len(cv_text) < MIN_CV_LENGTH:
        cv_text = resume.raw_text or cv_text
    if len(cv_text.strip()) < MIN_CV_LENGTH:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Resume has no usable text yet (needs at least {MIN_CV_LENGTH} characters). Process it first."
        )
    return cv_text.strip()


@router.post("", response_model=ApplicationResponse, status_code=status.HTTP_201_CREATED)
async def create_application(
    data: ApplicationCreate,
    db: AsyncSession = Depends(get_db),
    generator: ApplicationGenerator = Depends(get_application_generator),
    current_user: User = Depends(get_current_user)
):
    """Generate application materials. Generation failures are stored on the application."""
    cv_text = await _resolve_cv_text(db, data, current_user)

    application = Application(
        user_id=current_user.id,
        resume_id=data.resume_id,
        job_title=data.job_title or "Untitled Application",
        company_name=data.company_name or "Unknown Company",
        original_cv=cv_text,
        job_description=data.job_description.strip(),
        status=ApplicationStatus.DRAFT,
    )
    db.add(application)
    await db.flush()

    try:
        content = await generator.generate(cv_text, application.job_description)
        application.generated_content = content.model_dump()
        application.status = ApplicationStatus.GENERATED
    except GenerationError as e:
        logger.error(f"[AI] Application {application.id} generation failed: {e}")
        application.status = ApplicationStatus.FAILED
        application.error_message = str(e)

    await db.commit()
    await db.refresh(application)
    return application


@router.get("", response_model=list[ApplicationListItem])
async def list_applications(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    result = await db.execute(
        select(Application)
        .where(Application.user_id == current_user.id)
        .order_by(Application.created_at.desc(), Application.id.desc())
    )
    return result.scalars().all()


@router.get("/{application_id}", response_model=ApplicationResponse)
async def get_application(
    application_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    result = await db.execute(
        select(Application).where(
            Application.id == application_id,
            Application.user_id == current_user.id
        )
    )
    application = result.scalar_one_or_none()
    if not application:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Application not found"
        )
    return application
