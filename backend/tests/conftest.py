"""
Pytest configuration.
Provides an in-memory database, fake blob store, scripted language model and
document builders shared by the unit tests.
"""
import io
from typing import Dict, List, Optional

import docx
import fitz  # PyMuPDF
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from resume_engine.database import Base
from resume_engine.models import User
from resume_engine.services.llm import TextModel
from resume_engine.services.pipeline import ResumePipeline
from resume_engine.services.resume_repository import ResumeRepository
from resume_engine.services.storage import BlobStore, BlobStoreError
from resume_engine.services.structuring import StructuringService
from resume_engine.services.text_extractor import TextExtractor


def pytest_configure(config):
    config.addinivalue_line("markers", "api: tests that drive the FastAPI app over ASGI")


# ==================== Fakes ====================

class FakeBlobStore(BlobStore):
    """In-memory blob store that counts reads."""

    def __init__(self, objects: Optional[Dict[str, bytes]] = None):
        self.objects: Dict[str, bytes] = dict(objects or {})
        self.get_calls = 0

    async def get(self, path: str) -> bytes:
        self.get_calls += 1
        if path not in self.objects:
            raise BlobStoreError(f"Object not found: {path}", path)
        return self.objects[path]

    async def exists(self, path: str) -> bool:
        return path in self.objects

    async def put(self, path: str, content: bytes, content_type: str) -> str:
        self.objects[path] = content
        return path


class ScriptedModel(TextModel):
    """Returns (or raises) queued outputs in order; the last one repeats."""

    def __init__(self, outputs: List):
        self.outputs = list(outputs)
        self.prompts: List[str] = []

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        output = self.outputs.pop(0) if len(self.outputs) > 1 else self.outputs[0]
        if isinstance(output, Exception):
            raise output
        return output


class SleepRecorder:
    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


# ==================== Document Builders ====================

def make_pdf(text: str) -> bytes:
    """Build a one-page, text-based PDF."""
    document = fitz.open()
    page = document.new_page()
    y = 72
    for line in text.split("\n"):
        page.insert_text((72, y), line, fontsize=10)
        y += 14
    data = document.tobytes()
    document.close()
    return data


def make_docx(paragraphs: List[str], table_rows: Optional[List[List[str]]] = None) -> bytes:
    document = docx.Document()
    for paragraph in paragraphs:
        document.add_paragraph(paragraph)
    if table_rows:
        table = document.add_table(rows=len(table_rows), cols=len(table_rows[0]))
        for row, values in zip(table.rows, table_rows):
            for cell, value in zip(row.cells, values):
                cell.text = value
    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()


RESUME_TEXT = (
    "Jane Doe\n"
    "jane.doe@example.com | +1 555 0100 | Berlin\n"
    "Senior Software Engineer with eight years of experience building data platforms.\n"
    "Experience: Acme Corp, Staff Engineer, 2020 - Present\n"
    "Education: BSc Computer Science, TU Berlin"
)


@pytest.fixture(scope="function")
def full_structured_payload() -> dict:
    """A complete structured resume: every section filled."""
    return {
        "contact": {
            "full_name": "Jane Doe",
            "email": "jane.doe@example.com",
            "phone": "+1 555 0100",
            "location": "Berlin, Germany",
            "linkedin": "https://linkedin.com/in/janedoe",
        },
        "summary": "Senior software engineer with eight years of experience building reliable data platforms.",
        "experience": [
            {
                "job_title": "Staff Engineer",
                "company": "Acme Corp",
                "start_date": "Jan 2020",
                "is_current": True,
                "responsibilities": ["Led platform team", "Designed ingestion pipeline", "Mentored engineers"],
            },
            {
                "job_title": "Software Engineer",
                "company": "Globex",
                "start_date": "Mar 2016",
                "end_date": "Dec 2019",
                "responsibilities": ["Built billing APIs", "Migrated services to Kubernetes"],
            },
            {
                "job_title": "Junior Developer",
                "company": "Initech",
                "start_date": "Jun 2014",
                "end_date": "Feb 2016",
                "responsibilities": ["Maintained internal tools"],
            },
        ],
        "education": [
            {"degree": "MSc Computer Science", "institution": "TU Berlin", "honors": ["With distinction"]},
            {"degree": "BSc Computer Science", "institution": "TU Berlin"},
        ],
        "skills": [
            {"category": "Languages", "skills": ["Python", "Go", "SQL", "TypeScript", "Rust"]},
            {"category": "Platforms", "skills": ["Kubernetes", "Docker", "AWS", "Terraform", "Kafka"]},
            {"category": "Data", "skills": ["PostgreSQL", "Redis", "Spark", "Airflow", "dbt"]},
        ],
        "projects": [{"title": "Open-source scheduler", "technologies": ["Go"]}],
        "certifications": [{"name": "AWS Solutions Architect", "issuer": "Amazon"}],
        "languages": [{"language": "English", "proficiency": "Fluent"}],
        "awards": ["Engineer of the Year 2022"],
    }


# ==================== Database Fixtures ====================

@pytest.fixture(scope="function")
async def db_engine():
    """
    In-memory SQLite engine.
    Each test function gets a fresh database.
    """
    from resume_engine import models  # noqa: F401

    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture(scope="function")
def session_maker(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture(scope="function")
async def db_session(session_maker):
    async with session_maker() as session:
        yield session


@pytest.fixture(scope="function")
async def test_user(db_session) -> User:
    user = User(email="jane.doe@example.com", name="Jane Doe")
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest.fixture(scope="function")
async def other_user(db_session) -> User:
    user = User(email="someone.else@example.com", name="Someone Else")
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest.fixture(scope="function")
def repository(db_session) -> ResumeRepository:
    return ResumeRepository(db_session)


# ==================== Pipeline Fixtures ====================

@pytest.fixture(scope="function")
def blob_store() -> FakeBlobStore:
    return FakeBlobStore()


@pytest.fixture(scope="function")
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture(scope="function")
def make_pipeline(repository, blob_store, sleep_recorder):
    """Factory: build a pipeline around a scripted model."""

    def _make(model: TextModel, **kwargs) -> ResumePipeline:
        return ResumePipeline(
            repository=repository,
            blob_store=blob_store,
            extractor=TextExtractor(),
            structuring=StructuringService(model),
            sleep=sleep_recorder,
            **kwargs,
        )

    return _make
