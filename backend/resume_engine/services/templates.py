"""
ATS template registry.

Templates only bias how the structuring prompt maps raw text into fields;
they never change the structured schema.
"""
from typing import List, Optional
from pydantic import BaseModel


class ATSTemplate(BaseModel):
    id: str
    name: str
    description: str
    best_for: str
    structuring_hint: str


ATS_TEMPLATES: List[ATSTemplate] = [
    ATSTemplate(
        id="modern-clean",
        name="Modern Clean",
        description="Minimalist single-column layout with clear visual hierarchy",
        best_for="General use - All industries and experience levels",
        structuring_hint="Keep a concise summary and list experience in reverse chronological order.",
    ),
    ATSTemplate(
        id="professional-classic",
        name="Professional Classic",
        description="Traditional two-column layout with sidebar",
        best_for="Corporate, Finance, Accounting, Business roles",
        structuring_hint="Group skills into short categories suitable for a sidebar; keep contact details complete.",
    ),
    ATSTemplate(
        id="executive",
        name="Executive",
        description="Senior-level format highlighting leadership and achievements",
        best_for="C-Suite, VP, Director, Senior Management",
        structuring_hint="Separate quantified results into achievements and keep leadership scope in responsibilities.",
    ),
    ATSTemplate(
        id="technical",
        name="Technical",
        description="Tech-focused with comprehensive skills and project sections",
        best_for="Software Engineers, Data Scientists, DevOps, IT",
        structuring_hint="Split skills into granular technical categories and capture technologies for every project.",
    ),
    ATSTemplate(
        id="simple-ats",
        name="Simple ATS",
        description="Maximum ATS compatibility with no-frills design",
        best_for="Maximum ATS compatibility - All industries",
        structuring_hint="Use plain wording, standard section names and one responsibility per bullet.",
    ),
]

DEFAULT_TEMPLATE_ID = "modern-clean"


def get_template_by_id(template_id: Optional[str]) -> Optional[ATSTemplate]:
    return next((t for t in ATS_TEMPLATES if t.id == template_id), None)
