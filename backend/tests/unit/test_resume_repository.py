"""
Creation contract and ResumeRepository tests
"""
import pytest
from pydantic import ValidationError

from resume_engine.models import ResumeSource, ResumeStatus
from resume_engine.schemas.resume import ResumeCreate, ResumeDetail
from resume_engine.services.resume_repository import ResumeRepository, StaleResumeError

from conftest import RESUME_TEXT


class TestCreationContract:

    def test_upload_with_raw_text_rejected(self):
        with pytest.raises(ValidationError):
            ResumeCreate(
                source=ResumeSource.UPLOAD,
                file_name="cv.pdf",
                storage_path="user_1/1_cv.pdf",
                mime_type="application/pdf",
                raw_text=RESUME_TEXT,
            )

    def test_upload_requires_storage_path_and_mime_type(self):
        with pytest.raises(ValidationError):
            ResumeCreate(source=ResumeSource.UPLOAD, file_name="cv.pdf", mime_type="application/pdf")
        with pytest.raises(ValidationError):
            ResumeCreate(source=ResumeSource.UPLOAD, file_name="cv.pdf", storage_path="user_1/1_cv.pdf")

    def test_upload_rejects_unsupported_mime_type(self):
        with pytest.raises(ValidationError):
            ResumeCreate(
                source=ResumeSource.UPLOAD,
                file_name="cv.txt",
                storage_path="user_1/1_cv.txt",
                mime_type="text/plain",
            )

    def test_valid_upload(self):
        data = ResumeCreate(
            source=ResumeSource.UPLOAD,
            file_name="cv.pdf",
            storage_path="user_1/1_cv.pdf",
            mime_type="application/pdf",
        )
        assert data.raw_text is None

    def test_manual_without_text_rejected(self):
        with pytest.raises(ValidationError):
            ResumeCreate(source=ResumeSource.MANUAL, file_name="Pasted resume")

    def test_manual_with_49_chars_rejected(self):
        with pytest.raises(ValidationError):
            ResumeCreate(source=ResumeSource.MANUAL, file_name="Pasted resume", raw_text="x" * 49)

    def test_manual_with_50_chars_accepted(self):
        data = ResumeCreate(source=ResumeSource.MANUAL, file_name="Pasted resume", raw_text="x" * 50)
        assert len(data.raw_text) == 50

    @pytest.mark.parametrize("field,value", [
        ("storage_path", "user_1/1_cv.pdf"),
        ("mime_type", "application/pdf"),
    ])
    def test_template_must_not_reference_a_file(self, field, value):
        with pytest.raises(ValidationError):
            ResumeCreate(source=ResumeSource.TEMPLATE, file_name="From template",
                         raw_text=RESUME_TEXT, **{field: value})

    def test_file_name_required(self):
        with pytest.raises(ValidationError):
            ResumeCreate(source=ResumeSource.MANUAL, file_name="", raw_text=RESUME_TEXT)


class TestResumeRepository:

    async def test_create_starts_in_processing(self, repository, test_user):
        resume = await repository.create(
            test_user.id,
            ResumeCreate(source=ResumeSource.MANUAL, file_name="Pasted", raw_text=RESUME_TEXT),
        )

        assert resume.id is not None
        assert resume.status == ResumeStatus.PROCESSING
        assert resume.processed is False
        assert resume.version == 1
        assert resume.selected_template == "modern-clean"
        assert resume.size == len(RESUME_TEXT.encode("utf-8"))

    async def test_get_for_user_enforces_ownership(self, repository, test_user, other_user):
        resume = await repository.create(
            test_user.id,
            ResumeCreate(source=ResumeSource.MANUAL, file_name="Pasted", raw_text=RESUME_TEXT),
        )

        assert (await repository.get_for_user(resume.id, test_user.id)).id == resume.id
        assert await repository.get_for_user(resume.id, other_user.id) is None

    async def test_list_for_user_only_returns_own(self, repository, test_user, other_user):
        for name in ("first", "second"):
            await repository.create(
                test_user.id,
                ResumeCreate(source=ResumeSource.MANUAL, file_name=name, raw_text=RESUME_TEXT),
            )
        await repository.create(
            other_user.id,
            ResumeCreate(source=ResumeSource.MANUAL, file_name="theirs", raw_text=RESUME_TEXT),
        )

        resumes = await repository.list_for_user(test_user.id)
        assert sorted(r.file_name for r in resumes) == ["first", "second"]

    async def test_update_bumps_version(self, repository, test_user):
        resume = await repository.create(
            test_user.id,
            ResumeCreate(source=ResumeSource.MANUAL, file_name="Pasted", raw_text=RESUME_TEXT),
        )

        await repository.update(resume, ats_score=42)

        assert resume.version == 2
        assert resume.ats_score == 42

    async def test_stale_update_rejected(self, repository, session_maker, test_user):
        resume = await repository.create(
            test_user.id,
            ResumeCreate(source=ResumeSource.MANUAL, file_name="Pasted", raw_text=RESUME_TEXT),
        )

        # A second writer in its own session gets there first
        async with session_maker() as other_session:
            other_repository = ResumeRepository(other_session)
            concurrent = await other_repository.get(resume.id)
            await other_repository.update(concurrent, ats_score=10)

        with pytest.raises(StaleResumeError):
            await repository.update(resume, ats_score=99)

    async def test_detail_projection_defaults_lists(self, repository, test_user):
        resume = await repository.create(
            test_user.id,
            ResumeCreate(source=ResumeSource.MANUAL, file_name="Pasted", raw_text=RESUME_TEXT),
        )

        detail = ResumeDetail.model_validate(resume)
        assert detail.issues == []
        assert detail.recommendations == []
        assert detail.status == ResumeStatus.PROCESSING
