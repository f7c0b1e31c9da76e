from .resumes import router as resumes_router
from .applications import router as applications_router
from .templates import router as templates_router

__all__ = ["resumes_router", "applications_router", "templates_router"]
