from .text_extractor import (
    TextExtractor,
    ExtractionError,
    ExtractionErrorCode,
    normalize_text,
    detect_document_kind,
)
from .structuring import (
    StructuringService,
    StructuringError,
    strip_code_fences,
    parse_structured_output,
    normalize_skill_name,
    deduplicate_skills,
)
from .scoring import analyze_resume
from .storage import (
    BlobStore,
    BlobStoreError,
    LocalBlobStore,
    SupabaseBlobStore,
    build_storage_path,
    get_blob_store,
)
from .llm import TextModel, GeminiTextModel, get_text_model
from .auth import get_current_user, USER_ID_HEADER
from .resume_repository import ResumeRepository, StaleResumeError
from .pipeline import (
    ResumePipeline,
    PipelineStage,
    ResumeNotFoundError,
    PipelineBusyError,
    build_pipeline,
)
from .materials import ApplicationGenerator, GenerationError, structured_to_text

__all__ = [
    # Extraction
    "TextExtractor",
    "ExtractionError",
    "ExtractionErrorCode",
    "normalize_text",
    "detect_document_kind",
    # Structuring
    "StructuringService",
    "StructuringError",
    "strip_code_fences",
    "parse_structured_output",
    "normalize_skill_name",
    "deduplicate_skills",
    # Scoring
    "analyze_resume",
    # Storage
    "BlobStore",
    "BlobStoreError",
    "LocalBlobStore",
    "SupabaseBlobStore",
    "build_storage_path",
    "get_blob_store",
    # Language model
    "TextModel",
    "GeminiTextModel",
    "get_text_model",
    # Identity
    "get_current_user",
    "USER_ID_HEADER",
    # Pipeline
    "ResumeRepository",
    "StaleResumeError",
    "ResumePipeline",
    "PipelineStage",
    "ResumeNotFoundError",
    "PipelineBusyError",
    "build_pipeline",
    # Application materials
    "ApplicationGenerator",
    "GenerationError",
    "structured_to_text",
]
