from .user import User
from .resume import Resume, ResumeSource, ResumeStatus
from .application import Application, ApplicationStatus

__all__ = [
    "User",
    # Resume pipeline
    "Resume", "ResumeSource", "ResumeStatus",
    # Generated materials
    "Application", "ApplicationStatus",
]
