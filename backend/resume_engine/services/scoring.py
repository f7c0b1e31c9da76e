"""
ATS Scoring Engine

Deterministically evaluates structured resume data.
No AI, no database, no file parsing. Same input always yields the same output.

Point budget (clamped to 0-100):
    contact 20 | summary 10 | experience 35 | education 15 | skills 20
    projects 3 | certifications 3 | languages 2 | awards 2
"""
from ..schemas.resume import ATSAnalysis, StructuredResume

MAX_SCORE = 100


def _score_contact(data: StructuredResume, issues: list, recommendations: list) -> int:
    contact = data.contact
    if contact.is_empty():
        issues.append("Missing basic contact information.")
        return 0

    score = 0
    if contact.full_name:
        score += 5
    if contact.email:
        score += 5
    else:
        issues.append("Missing email address in contact information.")
    if contact.phone:
        score += 4
    else:
        issues.append("Missing phone number in contact information.")
    if contact.location:
        score += 3
    if contact.linkedin or contact.portfolio or contact.github or contact.website:
        score += 3
    if not contact.linkedin:
        recommendations.append("Consider adding a LinkedIn profile for better visibility.")
    return score


def _score_summary(data: StructuredResume, issues: list, recommendations: list) -> int:
    summary = (data.summary or "").strip()
    if len(summary) > 50:
        return 10
    if summary:
        recommendations.append("Your professional summary is a bit short. Aim for 2-3 impactful sentences.")
        return 5
    issues.append("Missing professional summary or objective.")
    recommendations.append("Add a brief career summary to highlight your key value proposition.")
    return 0


def _score_experience(data: StructuredResume, issues: list, recommendations: list) -> int:
    if not data.experience:
        issues.append("No professional experience listed.")
        recommendations.append(
            "If you are a student, include internships, volunteer roles, or key projects."
        )
        return 0

    score = 10  # Base score for having experience

    entries = len(data.experience)
    bullets = sum(len(exp.responsibilities) for exp in data.experience)
    if entries >= 3 or bullets >= 10:
        score += 15
    elif entries >= 2 or bullets >= 5:
        score += 10
        recommendations.append("Add more detail to your work responsibilities using bullet points.")
    else:
        score += 5
        issues.append("Work experience descriptions are too brief.")

    if any(exp.is_current for exp in data.experience):
        score += 10
    else:
        issues.append("No current position listed in work history.")
    return score


def _score_education(data: StructuredResume, issues: list, recommendations: list) -> int:
    if not data.education:
        issues.append("No education history found.")
        recommendations.append("Add your highest degree and the institution attended.")
        return 0

    score = 10
    if len(data.education) > 1 or any(edu.honors for edu in data.education):
        score += 5
    return score


def _score_skills(data: StructuredResume, issues: list, recommendations: list) -> int:
    total_skills = sum(len(category.skills) for category in data.skills)
    if total_skills >= 15:
        return 20
    if total_skills >= 8:
        recommendations.append(
            "Consider listing more technical or soft skills relevant to your industry."
        )
        return 15
    if total_skills > 0:
        issues.append("Very few skills listed.")
        return 10
    issues.append("No skills section identified.")
    recommendations.append("Create a dedicated skills section to help ATS scanners find keywords.")
    return 0


def _score_supplementary(data: StructuredResume, issues: list, recommendations: list) -> int:
    score = 0
    if data.projects:
        score += 3
    else:
        recommendations.append("Showcase one or two projects with the technologies you used.")
    if data.certifications:
        score += 3
    else:
        recommendations.append("List relevant certifications to strengthen keyword matches.")
    if data.languages:
        score += 2
    if data.awards:
        score += 2
    return score


_SECTION_SCORERS = (
    _score_contact,
    _score_summary,
    _score_experience,
    _score_education,
    _score_skills,
    _score_supplementary,
)


def analyze_resume(data: StructuredResume) -> ATSAnalysis:
    """
    Perform a full ATS analysis on structured resume data.

    Args:
        data: The structured representation of a resume

    Returns:
        ATSAnalysis with score (0-100), issues and recommendations
    """
    issues: list = []
    recommendations: list = []
    score = sum(scorer(data, issues, recommendations) for scorer in _SECTION_SCORERS)

    return ATSAnalysis(
        score=min(max(score, 0), MAX_SCORE),
        issues=issues,
        recommendations=recommendations,
    )
