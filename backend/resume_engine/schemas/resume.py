"""
Resume schemas - structured resume data, creation contract and API projections
"""
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field, model_validator
from datetime import datetime

from ..models.resume import ResumeSource, ResumeStatus


ALLOWED_UPLOAD_MIME_TYPES = (
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
)

MIN_RAW_TEXT_LENGTH = 50


# ============================================================================
# Structured Resume (output of the structuring stage)
# ============================================================================

class _Section(BaseModel):
    class Config:
        extra = "ignore"
        coerce_numbers_to_str = True


class ContactInfo(_Section):
    full_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    location: Optional[str] = None
    linkedin: Optional[str] = None
    portfolio: Optional[str] = None
    github: Optional[str] = None
    website: Optional[str] = None

    def is_empty(self) -> bool:
        return not any(getattr(self, name) for name in type(self).model_fields)


class ExperienceEntry(_Section):
    job_title: Optional[str] = None
    company: Optional[str] = None
    location: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    is_current: bool = False
    responsibilities: List[str] = Field(default_factory=list)
    achievements: List[str] = Field(default_factory=list)


class EducationEntry(_Section):
    degree: Optional[str] = None
    institution: Optional[str] = None
    location: Optional[str] = None
    graduation_date: Optional[str] = None
    gpa: Optional[str] = None
    honors: List[str] = Field(default_factory=list)
    relevant_coursework: List[str] = Field(default_factory=list)


class SkillCategory(_Section):
    category: Optional[str] = None
    skills: List[str] = Field(default_factory=list)


class ProjectEntry(_Section):
    title: Optional[str] = None
    description: Optional[str] = None
    technologies: List[str] = Field(default_factory=list)
    link: Optional[str] = None
    highlights: List[str] = Field(default_factory=list)


class CertificationEntry(_Section):
    name: Optional[str] = None
    issuer: Optional[str] = None
    date: Optional[str] = None
    expiration_date: Optional[str] = None
    credential_id: Optional[str] = None
    credential_url: Optional[str] = None


class LanguageEntry(_Section):
    language: Optional[str] = None
    proficiency: Optional[str] = None  # Native | Fluent | Professional | Intermediate | Basic


class StructuredResume(_Section):
    """Complete structured resume schema"""
    contact: ContactInfo = Field(default_factory=ContactInfo)
    summary: Optional[str] = None
    experience: List[ExperienceEntry] = Field(default_factory=list)
    education: List[EducationEntry] = Field(default_factory=list)
    skills: List[SkillCategory] = Field(default_factory=list)
    projects: List[ProjectEntry] = Field(default_factory=list)
    certifications: List[CertificationEntry] = Field(default_factory=list)
    languages: List[LanguageEntry] = Field(default_factory=list)
    awards: List[str] = Field(default_factory=list)
    publications: List[str] = Field(default_factory=list)
    volunteer_work: List[str] = Field(default_factory=list)


class ATSAnalysis(BaseModel):
    score: int
    issues: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)


# ============================================================================
# Creation Contract
# ============================================================================

class ResumeCreate(BaseModel):
    """
    Canonical creation request.

    source    raw_text      storage_path   mime_type
    upload    forbidden     required       required
    manual    required(50)  forbidden      forbidden
    template  required(50)  forbidden      forbidden
    """
    source: ResumeSource
    file_name: str = Field(min_length=1, max_length=255)
    raw_text: Optional[str] = None
    storage_path: Optional[str] = None
    mime_type: Optional[str] = None
    size: Optional[int] = Field(default=None, ge=0)
    selected_template: Optional[str] = None

    @model_validator(mode="after")
    def check_source_contract(self):
        if self.source == ResumeSource.UPLOAD:
            if self.raw_text is not None:
                raise ValueError('Source "upload" must not provide raw_text')
            if not self.storage_path:
                raise ValueError('Source "upload" requires storage_path')
            if not self.mime_type:
                raise ValueError('Source "upload" requires mime_type')
            if self.mime_type not in ALLOWED_UPLOAD_MIME_TYPES:
                raise ValueError(f"Unsupported mime_type: {self.mime_type}")
        else:
            if not self.raw_text or len(self.raw_text) < MIN_RAW_TEXT_LENGTH:
                raise ValueError(
                    f'Source "{self.source.value}" requires raw_text (min {MIN_RAW_TEXT_LENGTH} chars)'
                )
            if self.storage_path:
                raise ValueError(f'Source "{self.source.value}" must not provide storage_path')
            if self.mime_type:
                raise ValueError(f'Source "{self.source.value}" must not provide mime_type')
        return self


class ResumeCreatedResponse(BaseModel):
    success: bool = True
    resume_id: int
    status: ResumeStatus


# ============================================================================
# Response Schemas
# ============================================================================

class ResumeListItem(BaseModel):
    id: int
    file_name: str
    source: ResumeSource
    size: Optional[int] = None
    mime_type: Optional[str] = None
    status: ResumeStatus
    processed: bool = False
    ats_score: Optional[int] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ResumeDetail(BaseModel):
    """Full status projection used by polling clients"""
    id: int
    file_name: str
    source: ResumeSource
    status: ResumeStatus
    processed: bool = False
    ats_score: Optional[int] = None
    issues: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    raw_text: Optional[str] = None
    structured_data: Optional[Dict[str, Any]] = None
    selected_template: Optional[str] = None
    failed_stage: Optional[str] = None
    error_message: Optional[str] = None
    created_at: Optional[datetime] = None
    last_edited_at: Optional[datetime] = None
    processed_at: Optional[datetime] = None

    @model_validator(mode="before")
    @classmethod
    def _null_lists(cls, data):
        # Scoring output columns are NULL until the first successful run
        if isinstance(data, dict):
            data = dict(data)
        else:
            data = {key: getattr(data, key, None) for key in cls.model_fields}
        for key in ("issues", "recommendations"):
            if data.get(key) is None:
                data[key] = []
        return data

    class Config:
        from_attributes = True


class StructuredDataResponse(BaseModel):
    structured_data: Optional[Dict[str, Any]] = None
    ats_score: Optional[int] = None
    issues: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    selected_template: Optional[str] = None
    file_name: str
    processed: bool = False
    last_edited_at: Optional[datetime] = None


class StructuredDataUpdate(BaseModel):
    """Full or partial replacement of structured data (top-level sections are merged)"""
    structured_data: Optional[Dict[str, Any]] = None
    selected_template: Optional[str] = None


# ============================================================================
# Pipeline Trigger
# ============================================================================

class ProcessRequest(BaseModel):
    selected_template: Optional[str] = None


class PipelineMetrics(BaseModel):
    total_ms: float = 0.0
    conversion_ms: float = 0.0
    ai_ms: float = 0.0
    analysis_ms: float = 0.0
    text_length: int = 0
    structuring_attempts: int = 0
    conversion_skipped: bool = False


class PipelineResult(BaseModel):
    resume_id: int
    status: ResumeStatus
    score: Optional[int] = None
    metrics: Optional[PipelineMetrics] = None
    stage: Optional[str] = None
    message: Optional[str] = None
    error_code: Optional[str] = None
