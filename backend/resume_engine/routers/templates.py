"""
Templates Router - ATS template registry
"""
from fastapi import APIRouter

from ..services.templates import ATS_TEMPLATES, ATSTemplate

router = APIRouter(prefix="/api/templates", tags=["Templates"])


@router.get("", response_model=list[ATSTemplate])
async def list_templates():
    """All templates a resume can be structured against."""
    return ATS_TEMPLATES
