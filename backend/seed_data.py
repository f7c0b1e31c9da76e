"""
Seed script for local development: creates the tables and a demo user.
Run with: python -m seed_data  (from the backend/ directory)

Accounts normally come from the auth gateway; locally, send the printed id
in the X-User-Id header.
"""
import asyncio
from sqlalchemy import select
from resume_engine.database import async_session_maker, init_db
from resume_engine.models import User, Resume, ResumeSource, ResumeStatus

DEMO_EMAIL = "demo.user@example.com"

DEMO_RESUME_TEXT = """Alex Morgan
alex.morgan@example.com | +1 555 0199 | Austin, TX | linkedin.com/in/alexmorgan

Backend engineer with six years of experience designing APIs and data pipelines.

EXPERIENCE
Senior Backend Engineer, Northwind (2021 - Present)
- Built the event ingestion platform on Kafka and PostgreSQL
- Led migration of 40 services to Kubernetes

EDUCATION
BSc Computer Science, University of Texas at Austin

SKILLS
Python, FastAPI, SQLAlchemy, PostgreSQL, Kafka, Docker, Kubernetes, AWS
"""


async def seed_database():
    await init_db()

    async with async_session_maker() as db:
        result = await db.execute(select(User).where(User.email == DEMO_EMAIL))
        user = result.scalar_one_or_none()
        if user:
            print(f"Demo user already exists (id={user.id})")
            return

        user = User(email=DEMO_EMAIL, name="Alex Morgan")
        db.add(user)
        await db.flush()

        # A pasted resume ready for POST /api/resumes/{id}/process
        resume = Resume(
            user_id=user.id,
            source=ResumeSource.MANUAL,
            file_name="Pasted resume",
            size=len(DEMO_RESUME_TEXT.encode("utf-8")),
            raw_text=DEMO_RESUME_TEXT,
            status=ResumeStatus.PROCESSING,
        )
        db.add(resume)

        await db.commit()
        print("✅ Database seeded successfully!")
        print(f"   Demo user id: {user.id} (send as X-User-Id)")
        print(f"   Demo resume id: {resume.id}")


if __name__ == "__main__":
    asyncio.run(seed_database())
