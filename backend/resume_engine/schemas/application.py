"""
Application schemas for tailored CV / cover letter generation
"""
from typing import List, Optional
from pydantic import BaseModel, Field, model_validator
from datetime import datetime

from ..models.application import ApplicationStatus


MIN_CV_LENGTH = 100
MIN_JOB_DESCRIPTION_LENGTH = 50


class GeneratedContent(BaseModel):
    rewritten_cv: str = ""
    cover_letter: str = ""
    skills_match: List[str] = Field(default_factory=list)
    skills_gap: List[str] = Field(default_factory=list)
    interview_questions: List[str] = Field(default_factory=list)
    summary: str = ""

    class Config:
        extra = "ignore"


class ApplicationCreate(BaseModel):
    """Either resume_id (use its structured data) or cv_text must be supplied."""
    resume_id: Optional[int] = None
    cv_text: Optional[str] = None
    job_description: str
    job_title: Optional[str] = Field(default=None, max_length=255)
    company_name: Optional[str] = Field(default=None, max_length=255)

    @model_validator(mode="after")
    def check_inputs(self):
        if self.resume_id is None and not self.cv_text:
            raise ValueError("Either resume_id or cv_text is required")
        if self.cv_text is not None and len(self.cv_text.strip()) < MIN_CV_LENGTH:
            raise ValueError(f"CV must be at least {MIN_CV_LENGTH} characters long")
        if len(self.job_description.strip()) < MIN_JOB_DESCRIPTION_LENGTH:
            raise ValueError(
                f"Job description must be at least {MIN_JOB_DESCRIPTION_LENGTH} characters long"
            )
        return self


class ApplicationResponse(BaseModel):
    id: int
    resume_id: Optional[int] = None
    job_title: Optional[str] = None
    company_name: Optional[str] = None
    job_description: str
    status: ApplicationStatus
    generated_content: Optional[GeneratedContent] = None
    error_message: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ApplicationListItem(BaseModel):
    id: int
    job_title: Optional[str] = None
    company_name: Optional[str] = None
    status: ApplicationStatus
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
