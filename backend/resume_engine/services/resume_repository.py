"""
Resume persistence.

All writes are compare-and-set on `Resume.version` so two writers racing on
the same record cannot silently overwrite each other.
"""
import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import set_committed_value

from ..models.resume import Resume, ResumeStatus
from ..schemas.resume import ResumeCreate
from .templates import DEFAULT_TEMPLATE_ID

logger = logging.getLogger(__name__)


class StaleResumeError(Exception):
    """The record changed since it was read."""

    def __init__(self, resume_id: int, expected_version: int):
        super().__init__(f"Resume {resume_id} was modified concurrently (expected version {expected_version})")
        self.resume_id = resume_id
        self.expected_version = expected_version


class ResumeRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, resume_id: int) -> Optional[Resume]:
        result = await self.db.execute(select(Resume).where(Resume.id == resume_id))
        return result.scalar_one_or_none()

    async def get_for_user(self, resume_id: int, user_id: int) -> Optional[Resume]:
        """Load a resume only if it belongs to user_id."""
        result = await self.db.execute(
            select(Resume).where(Resume.id == resume_id, Resume.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def list_for_user(self, user_id: int) -> List[Resume]:
        result = await self.db.execute(
            select(Resume)
            .where(Resume.user_id == user_id)
            .order_by(Resume.created_at.desc(), Resume.id.desc())
        )
        return list(result.scalars().all())

    async def create(self, user_id: int, data: ResumeCreate) -> Resume:
        """Persist a validated creation request. Records always start in PROCESSING."""
        resume = Resume(
            user_id=user_id,
            source=data.source,
            file_name=data.file_name,
            size=data.size if data.size is not None else len((data.raw_text or "").encode("utf-8")),
            storage_path=data.storage_path,
            mime_type=data.mime_type,
            raw_text=data.raw_text,
            selected_template=data.selected_template or DEFAULT_TEMPLATE_ID,
            status=ResumeStatus.PROCESSING,
            processed=False,
            version=1,
        )
        self.db.add(resume)
        await self.db.commit()
        await self.db.refresh(resume)
        logger.info(f"[RESUME] Created resume {resume.id} (source={data.source.value}) for user {user_id}")
        return resume

    async def update(self, resume: Resume, **changes) -> Resume:
        """
        Apply changes if nobody else wrote the record since it was loaded.

        Raises:
            StaleResumeError: the stored version differs from resume.version
        """
        expected = resume.version
        now = datetime.now(timezone.utc)
        values = dict(changes, version=expected + 1, updated_at=now)

        result = await self.db.execute(
            update(Resume)
            .where(Resume.id == resume.id, Resume.version == expected)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise StaleResumeError(resume.id, expected)

        await self.db.commit()
        # Mirror the write onto the loaded instance without marking it dirty
        for key, value in values.items():
            set_committed_value(resume, key, value)
        return resume
