"""
Application materials generation (tailored CV, cover letter, interview prep).
"""
import logging
from typing import List, Optional

from pydantic import ValidationError

from ..schemas.application import GeneratedContent
from ..schemas.resume import StructuredResume
from .llm import TextModel
from .structuring import StructuringError, snake_case_keys, parse_json_object

logger = logging.getLogger(__name__)


class GenerationError(Exception):
    pass


APPLICATION_PROMPT = """
You are an expert career coach and resume writer. Analyze the following CV and job description, then generate a comprehensive application package.

CV:
{cv}

Job Description:
{job_description}

Return ONLY valid JSON with the following structure:
{{
  "rewritten_cv": "A professionally rewritten CV tailored to this specific job. Keep the original information but reframe it to match the job requirements.",
  "cover_letter": "A compelling cover letter (3-4 paragraphs) with specific examples from the CV.",
  "skills_match": ["5-7 skills from the CV that match the job requirements"],
  "skills_gap": ["3-5 skills from the job description that are missing or weak in the CV"],
  "interview_questions": ["5-7 likely interview questions based on the job requirements"],
  "summary": "A brief 2-3 paragraph summary of the candidate's fit for the role"
}}

Ensure all text is professional, specific, and actionable.
"""


# ============================================================================
# Structured resume -> plain text
# ============================================================================

def _join(*parts: Optional[str], sep: str = " | ") -> str:
    return sep.join(p for p in parts if p)


def structured_to_text(data: StructuredResume) -> str:
    """Render structured data as a plain-text CV for prompting."""
    lines: List[str] = []
    contact = data.contact

    if contact.full_name:
        lines.append(contact.full_name)
    contact_line = _join(contact.email, contact.phone, contact.location)
    if contact_line:
        lines.append(contact_line)
    links = _join(contact.linkedin, contact.github, contact.portfolio, contact.website)
    if links:
        lines.append(links)

    if data.summary:
        lines += ["", "SUMMARY", data.summary]

    if data.experience:
        lines += ["", "EXPERIENCE"]
        for exp in data.experience:
            end = "Present" if exp.is_current else exp.end_date
            lines.append(_join(exp.job_title, exp.company, exp.location, _join(exp.start_date, end, sep=" - ")))
            lines += [f"- {item}" for item in exp.responsibilities + exp.achievements]

    if data.education:
        lines += ["", "EDUCATION"]
        for edu in data.education:
            lines.append(_join(edu.degree, edu.institution, edu.graduation_date))
            if edu.honors:
                lines.append(f"Honors: {', '.join(edu.honors)}")

    if data.skills:
        lines += ["", "SKILLS"]
        for category in data.skills:
            if category.skills:
                label = f"{category.category}: " if category.category else ""
                lines.append(label + ", ".join(category.skills))

    if data.projects:
        lines += ["", "PROJECTS"]
        for project in data.projects:
            lines.append(_join(project.title, project.description, sep=": "))
            if project.technologies:
                lines.append(f"Technologies: {', '.join(project.technologies)}")

    if data.certifications:
        lines += ["", "CERTIFICATIONS"]
        lines += [_join(c.name, c.issuer, c.date) for c in data.certifications]

    if data.languages:
        lines += ["", "LANGUAGES"]
        lines += [_join(lang.language, lang.proficiency, sep=" - ") for lang in data.languages]

    for title, items in (("AWARDS", data.awards), ("PUBLICATIONS", data.publications),
                         ("VOLUNTEER WORK", data.volunteer_work)):
        if items:
            lines += ["", title] + [f"- {item}" for item in items]

    return "\n".join(lines).strip()


# ============================================================================
# Generator
# ============================================================================

class ApplicationGenerator:
    def __init__(self, model: TextModel):
        self.model = model

    async def generate(self, cv_text: str, job_description: str) -> GeneratedContent:
        prompt = APPLICATION_PROMPT.format(cv=cv_text, job_description=job_description)
        logger.info(f"[AI] Generating application materials (cv_length={len(cv_text)})")
        try:
            raw_output = await self.model.generate(prompt)
        except Exception as e:
            logger.error(f"[AI] Generation error: {e}")
            raise GenerationError(f"Failed to generate application materials: {e}") from e

        try:
            data = parse_json_object(raw_output)
            return GeneratedContent.model_validate(snake_case_keys(data))
        except (StructuringError, ValidationError) as e:
            raise GenerationError(f"AI returned an invalid application package: {e}") from e
