"""
ATS scoring tests: determinism, bounds, section budgets and completeness
"""
import pytest

from resume_engine.schemas.resume import StructuredResume
from resume_engine.services.scoring import analyze_resume


def _resume(**sections) -> StructuredResume:
    return StructuredResume.model_validate(sections)


class TestAnalyzeResume:

    def test_full_record_scores_high(self, full_structured_payload):
        analysis = analyze_resume(_resume(**full_structured_payload))

        assert 85 <= analysis.score <= 100
        assert len(analysis.issues) <= 1

    def test_three_roles_one_degree_twelve_skills(self):
        bullets = ["Designed services", "Cut latency 30%", "Mentored engineers", "Ran on-call rotation"]
        data = _resume(
            contact={
                "full_name": "Jane Doe",
                "email": "jane@example.com",
                "phone": "+1 555 0100",
                "location": "Berlin",
                "linkedin": "https://linkedin.com/in/janedoe",
            },
            experience=[
                {"job_title": "Staff Engineer", "company": "Acme", "is_current": True, "responsibilities": bullets},
                {"job_title": "Senior Engineer", "company": "Globex", "responsibilities": bullets},
                {"job_title": "Engineer", "company": "Initech", "responsibilities": bullets},
            ],
            education=[{"degree": "BSc Computer Science", "institution": "TU Berlin", "honors": ["Magna cum laude"]}],
            skills=[
                {"category": "Languages", "skills": ["Python", "Go", "SQL", "TypeScript"]},
                {"category": "Platforms", "skills": ["Docker", "Kubernetes", "AWS", "PostgreSQL",
                                                     "Kafka", "Redis", "Terraform", "Linux"]},
            ],
            projects=[{"title": "Open-source scheduler", "technologies": ["Go"]}],
            certifications=[{"name": "AWS Solutions Architect", "issuer": "Amazon"}],
        )

        analysis = analyze_resume(data)

        # contact 20 + experience 35 + education 15 + skills 15 + projects 3 + certifications 3
        assert analysis.score == 91
        assert analysis.issues == ["Missing professional summary or objective."]

    def test_is_deterministic(self, full_structured_payload):
        data = _resume(**full_structured_payload)
        assert analyze_resume(data) == analyze_resume(data)

    def test_empty_resume(self):
        analysis = analyze_resume(StructuredResume())

        assert analysis.score == 0
        assert "Missing basic contact information." in analysis.issues
        assert "No skills section identified." in analysis.issues

    @pytest.mark.parametrize("skill_count", [0, 1, 8, 15, 40])
    def test_score_bounds(self, full_structured_payload, skill_count):
        full_structured_payload["skills"] = [
            {"category": "All", "skills": [f"skill-{i}" for i in range(skill_count)]}
        ]
        analysis = analyze_resume(_resume(**full_structured_payload))
        assert 0 <= analysis.score <= 100

    def test_adding_phone_never_lowers_score(self):
        without_phone = _resume(contact={"full_name": "Jane Doe", "email": "jane@example.com"})
        with_phone = _resume(contact={"full_name": "Jane Doe", "email": "jane@example.com", "phone": "555"})

        assert analyze_resume(with_phone).score >= analyze_resume(without_phone).score
        assert "Missing phone number in contact information." in analyze_resume(without_phone).issues


class TestSectionBudgets:

    def test_contact_points(self):
        analysis = analyze_resume(_resume(contact={
            "full_name": "Jane Doe",
            "email": "jane@example.com",
            "phone": "555",
            "location": "Berlin",
            "github": "https://github.com/jane",
        }))
        # 20 contact; no LinkedIn still gets link points from github
        assert analysis.score == 20
        assert "Consider adding a LinkedIn profile for better visibility." in analysis.recommendations

    @pytest.mark.parametrize("summary,points", [
        ("A" * 51, 10),
        ("Short summary", 5),
        (None, 0),
    ])
    def test_summary_points(self, summary, points):
        assert analyze_resume(_resume(summary=summary)).score == points

    def test_experience_depth_tiers(self):
        single = _resume(experience=[{"job_title": "Dev", "responsibilities": ["one"]}])
        two = _resume(experience=[{"job_title": "Dev"}, {"job_title": "Dev II"}])
        deep = _resume(experience=[{"job_title": "Dev", "is_current": True,
                                    "responsibilities": [f"task {i}" for i in range(10)]}])

        assert analyze_resume(single).score == 15
        assert "Work experience descriptions are too brief." in analyze_resume(single).issues
        assert analyze_resume(two).score == 20
        assert analyze_resume(deep).score == 35

    def test_missing_current_position_is_an_issue(self):
        analysis = analyze_resume(_resume(experience=[{"job_title": "Dev", "end_date": "2020"}]))
        assert "No current position listed in work history." in analysis.issues

    def test_education_bonus_for_honors(self):
        plain = _resume(education=[{"degree": "BSc"}])
        honors = _resume(education=[{"degree": "BSc", "honors": ["Cum laude"]}])

        assert analyze_resume(plain).score == 10
        assert analyze_resume(honors).score == 15

    @pytest.mark.parametrize("count,points", [(0, 0), (3, 10), (8, 15), (15, 20)])
    def test_skill_tiers(self, count, points):
        data = _resume(skills=[{"category": "All", "skills": [f"s{i}" for i in range(count)]}])
        assert analyze_resume(data).score == points

    def test_supplementary_sections(self):
        data = _resume(
            projects=[{"title": "p"}],
            certifications=[{"name": "c"}],
            languages=[{"language": "English"}],
            awards=["a"],
        )
        analysis = analyze_resume(data)

        assert analysis.score == 10
        assert "Showcase one or two projects with the technologies you used." not in analysis.recommendations
