"""
Resume Structuring Service using Gemini for data extraction.
Turns normalized resume text into a validated StructuredResume.
"""
import json
import re
import logging
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from ..schemas.resume import StructuredResume
from .llm import TextModel
from .templates import get_template_by_id

logger = logging.getLogger(__name__)

MIN_INPUT_LENGTH = 50


class StructuringError(Exception):
    """Model output could not be turned into a StructuredResume."""

    def __init__(self, message: str, raw_output: Optional[str] = None, retryable: bool = True):
        super().__init__(message)
        self.raw_output = raw_output
        self.retryable = retryable


# ============================================================================
# Resume Structuring Prompt
# ============================================================================

RESUME_STRUCTURING_PROMPT = """
You are an expert resume parser. Extract all information from the provided raw resume text and return it as a structured JSON object.

IMPORTANT: Return ONLY valid JSON, no additional text, explanation, or markdown formatting.

The JSON MUST follow this exact structure:
{
    "contact": {
        "full_name": "string",
        "email": "string",
        "phone": "string | null",
        "location": "string | null",
        "linkedin": "string | null",
        "portfolio": "string | null",
        "github": "string | null",
        "website": "string | null"
    },
    "summary": "string | null (professional summary or objective, if present)",
    "experience": [
        {
            "job_title": "string",
            "company": "string",
            "location": "string | null",
            "start_date": "string (e.g., 'Jan 2020')",
            "end_date": "string | null (null if current position)",
            "is_current": boolean,
            "responsibilities": ["string"],
            "achievements": ["string"]
        }
    ],
    "education": [
        {
            "degree": "string",
            "institution": "string",
            "location": "string | null",
            "graduation_date": "string | null",
            "gpa": "string | null",
            "honors": ["string"],
            "relevant_coursework": ["string"]
        }
    ],
    "skills": [
        {
            "category": "string (e.g., 'Programming Languages', 'Frameworks', 'Soft Skills')",
            "skills": ["string"]
        }
    ],
    "projects": [
        {
            "title": "string",
            "description": "string",
            "technologies": ["string"],
            "link": "string | null",
            "highlights": ["string"]
        }
    ],
    "certifications": [
        {
            "name": "string",
            "issuer": "string",
            "date": "string | null",
            "expiration_date": "string | null",
            "credential_id": "string | null",
            "credential_url": "string | null"
        }
    ],
    "languages": [
        {
            "language": "string",
            "proficiency": "Native | Fluent | Professional | Intermediate | Basic"
        }
    ],
    "awards": ["string"],
    "publications": ["string"],
    "volunteer_work": ["string"]
}

Guidelines:
1. Extract ALL information present in the text.
2. If a section is missing, use an empty array [] or null.
3. Preserve the original wording as much as possible for experience items.
4. Ensure the output is strictly valid JSON.
"""


def build_structuring_prompt(raw_text: str, template_id: Optional[str] = None) -> str:
    template_guidance = ""
    if template_id:
        template = get_template_by_id(template_id)
        style = f"{template.name} - {template.structuring_hint}" if template else template_id
        template_guidance = (
            "\nIMPORTANT: Standardize the output according to the following template style "
            f"characteristics: {style}\n"
            "Map the raw text into the fields precisely as defined in the schema.\n"
        )
    return f"{RESUME_STRUCTURING_PROMPT}\n{template_guidance}\nRAW RESUME TEXT:\n{raw_text}"


# ============================================================================
# Output Cleanup & Normalization
# ============================================================================

_LEADING_FENCE = re.compile(r"^```[a-zA-Z]*\s*")
_TRAILING_FENCE = re.compile(r"\s*```$")
_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def strip_code_fences(text: str) -> str:
    """Remove markdown fences and any prose around the outermost JSON object."""
    text = (text or "").strip()
    text = _LEADING_FENCE.sub("", text)
    text = _TRAILING_FENCE.sub("", text)
    start = text.find("{")
    end = text.rfind("}")
    if start != -1 and end > start:
        text = text[start:end + 1]
    return text.strip()


def parse_json_object(raw_output: str) -> Dict[str, Any]:
    """Parse model output into a dict, raising StructuringError with the raw text on failure."""
    cleaned = strip_code_fences(raw_output)
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        logger.error(f"[AI] Failed to parse JSON response: {e}")
        logger.error(f"[AI] Raw response: {(raw_output or '')[:500]}...")
        raise StructuringError("AI returned invalid JSON structure.", raw_output=raw_output)
    if not isinstance(data, dict):
        raise StructuringError(
            f"AI returned {type(data).__name__} instead of a JSON object.", raw_output=raw_output
        )
    return data


def snake_case_keys(obj: Any) -> Any:
    """Recursively convert camelCase keys (fullName, isCurrent, ...) to snake_case."""
    if isinstance(obj, dict):
        return {
            _CAMEL_BOUNDARY.sub("_", key).lower() if isinstance(key, str) else key: snake_case_keys(value)
            for key, value in obj.items()
        }
    if isinstance(obj, list):
        return [snake_case_keys(item) for item in obj]
    return obj


def _as_list(value: Any) -> list:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def _as_str_list(value: Any) -> List[str]:
    """Coerce a value into a list of non-empty strings."""
    result = []
    for item in _as_list(value):
        if isinstance(item, dict):
            item = item.get("title") or item.get("name") or item.get("description")
        if item is None:
            continue
        item = str(item).strip()
        if item:
            result.append(item)
    return result


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "yes", "y", "1", "present", "current")
    return bool(value)


def _as_optional_str(value: Any) -> Optional[str]:
    if value is None or isinstance(value, (dict, list)):
        return None
    value = str(value).strip()
    return value or None


# String-list fields inside each object collection
_ENTRY_LIST_FIELDS = {
    "experience": ("responsibilities", "achievements"),
    "education": ("honors", "relevant_coursework"),
    "skills": ("skills",),
    "projects": ("technologies", "highlights"),
    "certifications": (),
    "languages": (),
}

_STRING_COLLECTIONS = ("awards", "publications", "volunteer_work")

_CONTACT_ALIASES = {
    "name": "full_name",
    "linked_in": "linkedin",
    "git_hub": "github",
    "phone_number": "phone",
}


def normalize_skill_name(skill_name: str) -> str:
    """Normalize skill name for duplicate detection."""
    aliases = {
        "js": "javascript",
        "ts": "typescript",
        "py": "python",
        "cpp": "c++",
        "c#": "csharp",
        "node": "nodejs",
        "node.js": "nodejs",
        "react.js": "react",
        "vue.js": "vue",
        "angular.js": "angular",
        "mongo": "mongodb",
        "postgres": "postgresql",
        "k8s": "kubernetes",
        "gcp": "google cloud",
        "ml": "machine learning",
    }
    normalized = skill_name.lower().strip()
    return aliases.get(normalized, normalized)


def deduplicate_skills(categories: List[dict]) -> List[dict]:
    """Drop skills already listed earlier (in any category), keeping first occurrence."""
    seen = set()
    result = []
    for category in categories:
        unique = []
        for skill in category.get("skills", []):
            key = normalize_skill_name(skill)
            if key in seen:
                continue
            seen.add(key)
            unique.append(skill)
        result.append({**category, "skills": unique})
    return result


def normalize_structured_payload(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Make model output safe for the strict schema.

    - Absent/null collections become []
    - Bare strings become one-element lists
    - Non-dict entries in object collections are dropped
    - Missing contact block becomes an empty block
    """
    data = snake_case_keys(data or {})
    result: Dict[str, Any] = {}

    contact = data.get("contact")
    if not isinstance(contact, dict):
        contact = {}
    for alias, key in _CONTACT_ALIASES.items():
        if key not in contact and alias in contact:
            contact[key] = contact[alias]
    result["contact"] = {
        key: _as_optional_str(contact.get(key))
        for key in ("full_name", "email", "phone", "location", "linkedin", "portfolio", "github", "website")
    }

    result["summary"] = _as_optional_str(data.get("summary"))

    for section, list_fields in _ENTRY_LIST_FIELDS.items():
        entries = []
        for entry in _as_list(data.get(section)):
            if not isinstance(entry, dict):
                continue
            entry = dict(entry)
            for key, value in entry.items():
                # Scalar fields sometimes come back as lists ("location": ["NYC"]) or objects
                if key in list_fields or key == "is_current":
                    continue
                if isinstance(value, list):
                    entry[key] = ", ".join(_as_str_list(value)) or None
                elif isinstance(value, dict):
                    entry[key] = None
            for field in list_fields:
                entry[field] = _as_str_list(entry.get(field))
            if section == "experience":
                entry["is_current"] = _as_bool(entry.get("is_current", False))
            entries.append(entry)
        result[section] = entries

    result["skills"] = deduplicate_skills(result["skills"])

    for section in _STRING_COLLECTIONS:
        result[section] = _as_str_list(data.get(section))

    return result


def parse_structured_output(raw_output: str) -> StructuredResume:
    data = parse_json_object(raw_output)
    try:
        return StructuredResume.model_validate(normalize_structured_payload(data))
    except ValidationError as e:
        raise StructuringError(f"AI output failed schema validation: {e}", raw_output=raw_output)


# ============================================================================
# Service
# ============================================================================

class StructuringService:
    """Single-shot structuring call. Retries belong to the pipeline."""

    def __init__(self, model: TextModel, min_input_length: int = MIN_INPUT_LENGTH):
        self.model = model
        self.min_input_length = min_input_length

    async def structure(self, raw_text: str, template_id: Optional[str] = None) -> StructuredResume:
        if not raw_text or len(raw_text.strip()) < self.min_input_length:
            raise StructuringError("Raw text is too short or empty to be a valid resume.", retryable=False)

        prompt = build_structuring_prompt(raw_text, template_id)
        logger.info(f"[AI] Structuring resume data (template={template_id}, input_length={len(raw_text)})")

        try:
            raw_output = await self.model.generate(prompt)
        except Exception as e:
            logger.error(f"[AI] Generation error: {e}")
            raise StructuringError(f"Failed to structure resume data via AI: {e}") from e

        return parse_structured_output(raw_output)
