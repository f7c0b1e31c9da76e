"""
Resume Model - One uploaded or typed-in resume and its pipeline state.

The record is created in PROCESSING by the creation gateway and afterwards
only mutated by the pipeline and the structured-data editor.
"""
from enum import Enum
from datetime import datetime, timezone
from sqlalchemy import (
    Column, Integer, String, Text, DateTime, Boolean, ForeignKey, JSON, Enum as SQLEnum
)
from sqlalchemy.orm import relationship
from ..database import Base


class ResumeSource(str, Enum):
    """Where the resume content came from."""
    UPLOAD = "upload"
    MANUAL = "manual"
    TEMPLATE = "template"


class ResumeStatus(str, Enum):
    """Status of the resume intelligence pipeline."""
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class Resume(Base):
    """
    Resume record tracked through extraction, structuring and scoring.
    Every write goes through ResumeRepository, which bumps `version`.
    """
    __tablename__ = "resumes"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    source = Column(SQLEnum(ResumeSource), nullable=False)

    # File info (storage_path/mime_type only for uploads)
    file_name = Column(String(255), nullable=False)
    size = Column(Integer, default=0)
    storage_path = Column(String(500), nullable=True, unique=True)
    mime_type = Column(String(100), nullable=True)

    # Pipeline outputs
    raw_text = Column(Text, nullable=True)
    structured_data = Column(JSON, nullable=True)
    ats_score = Column(Integer, nullable=True)
    issues = Column(JSON, nullable=True)
    recommendations = Column(JSON, nullable=True)
    selected_template = Column(String(50), nullable=False, default="modern-clean")

    # Status tracking
    status = Column(
        SQLEnum(ResumeStatus),
        default=ResumeStatus.PROCESSING,
        nullable=False
    )
    processed = Column(Boolean, default=False, nullable=False)
    failed_stage = Column(String(50), nullable=True)
    error_code = Column(String(50), nullable=True)
    error_message = Column(Text, nullable=True)

    # Optimistic concurrency token
    version = Column(Integer, default=1, nullable=False)

    # Timestamps
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    last_edited_at = Column(DateTime(timezone=True), nullable=True)
    processed_at = Column(DateTime(timezone=True), nullable=True)

    user = relationship("User", back_populates="resumes")
