"""
Application Model - Tailored application materials generated for a job description.
"""
from enum import Enum
from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, JSON, Enum as SQLEnum
from sqlalchemy.orm import relationship
from ..database import Base


class ApplicationStatus(str, Enum):
    DRAFT = "draft"
    GENERATED = "generated"
    FAILED = "failed"


class Application(Base):
    __tablename__ = "applications"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    resume_id = Column(Integer, ForeignKey("resumes.id", ondelete="SET NULL"), nullable=True)

    job_title = Column(String(255), default="Untitled Application")
    company_name = Column(String(255), default="Unknown Company")
    original_cv = Column(Text, nullable=False)
    job_description = Column(Text, nullable=False)

    status = Column(SQLEnum(ApplicationStatus), default=ApplicationStatus.DRAFT, nullable=False)
    generated_content = Column(JSON, nullable=True)  # rewritten_cv, cover_letter, skills_match, ...
    error_message = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc)
    )

    user = relationship("User", back_populates="applications")
