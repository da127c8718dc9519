"""
Irish Public Service grades and the two competency frameworks.

Grades drive question complexity and the pass threshold; frameworks decide
which competencies are asked about and how many questions each gets.
"""
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .exceptions import ValidationFailed


@dataclass(frozen=True)
class Grade:
    id: str
    name: str
    full_name: str
    level: int
    passing_score: int  # percentage
    question_complexity: str
    experience_expectation: str
    typical_responsibilities: Tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class Framework:
    id: str
    name: str
    unit_label: str
    questions_per_unit: int
    competencies: Tuple[Tuple[str, str], ...]

    def keys(self) -> List[str]:
        return [key for key, _ in self.competencies]

    def label(self, key: str) -> str:
        return dict(self.competencies).get(key, key.replace("_", " ").title())

    def normalise(self, competency: str) -> str:
        """Map a key or a human label onto the framework key."""
        value = competency.strip()
        for key, label in self.competencies:
            if value.lower() in (key, label.lower()):
                return key
        return value.lower().replace("&", "and").replace(",", "").replace(" ", "_")

    def select(self, focus: Optional[List[str]] = None) -> List[str]:
        if not focus:
            return self.keys()
        selected = [self.normalise(c) for c in focus]
        unknown = [c for c in selected if c not in self.keys()]
        if unknown:
            raise ValidationFailed(f"Unknown {self.unit_label}: {', '.join(unknown)}.")
        return selected

    def question_count(self, focus: Optional[List[str]] = None) -> int:
        return len(self.select(focus)) * self.questions_per_unit


GRADES = {
    grade.id: grade
    for grade in [
        Grade("co", "CO", "Clerical Officer", 1, 55, "basic",
              "The starting point for many, often requiring a Leaving Certificate or equivalent",
              ("General administrative duties", "Processing applications and forms",
               "Providing information to the public")),
        Grade("eo", "EO", "Executive Officer", 2, 60, "intermediate",
              "A first-level management role, requiring further qualifications and experience",
              ("Managing workflows and processes", "Supervising clerical staff",
               "Drafting correspondence and reports")),
        Grade("heo", "HEO", "Higher Executive Officer", 3, 65, "advanced",
              "A middle management role with responsibility for team management, reporting to "
              "Assistant Principal and supporting large projects, budgets and policy development",
              ("Team management and leadership", "Managing large projects and budgets",
               "Developing and implementing government policy")),
        Grade("ao", "AO", "Administrative Officer", 4, 65, "advanced",
              "A management role with more responsibility than EO, often involving analysis and policy advice",
              ("Policy analysis and advice", "Strategic planning", "Cross-functional collaboration")),
        Grade("ap", "AP", "Assistant Principal", 5, 70, "expert",
              "A senior managerial role with responsibilities in policy implementation, team leadership, "
              "and stakeholder management",
              ("Policy implementation", "Stakeholder management", "Organisational change management")),
        Grade("po", "PO", "Principal Officer", 6, 75, "expert",
              "A higher-level management role with responsibility for larger teams and complex policy areas",
              ("Strategic policy development", "Ministerial briefings", "Cross-departmental collaboration")),
        Grade("as", "AS", "Assistant Secretary", 7, 80, "expert",
              "A senior leadership position with strategic responsibilities",
              ("Departmental oversight", "Policy development leadership", "Major reform initiatives")),
        Grade("ds", "DS", "Deputy Secretary", 8, 85, "expert",
              "A high-ranking position overseeing multiple divisions or policy areas",
              ("Multiple division oversight", "Inter-departmental coordination", "Executive leadership")),
        Grade("sg", "SG", "Secretary General", 9, 90, "expert",
              "The most senior position in a government department",
              ("Overall management responsibility", "Strategic direction", "Departmental transformation")),
    ]
}

DEFAULT_GRADE = "eo"

FRAMEWORKS = {
    "old": Framework(
        "old", "Traditional Framework", "competency", 2,
        (
            ("team_leadership", "Team Leadership"),
            ("judgement_analysis_decision_making", "Judgement, Analysis & Decision Making"),
            ("management_delivery_results", "Management & Delivery of Results"),
            ("interpersonal_communication_skills", "Interpersonal & Communication Skills"),
            ("specialist_knowledge_expertise_self_development",
             "Specialist Knowledge, Expertise and Self Development"),
            ("drive_commitment", "Drive & Commitment"),
        ),
    ),
    "new": Framework(
        "new", "Capability Framework", "capability area", 3,
        (
            ("building_future_readiness", "Building Future Readiness"),
            ("leading_and_empowering", "Leading and Empowering"),
            ("evidence_informed_delivery", "Evidence Informed Delivery"),
            ("communicating_and_collaborating", "Communicating and Collaborating"),
        ),
    ),
}


def get_grade(grade_id: str) -> Grade:
    grade = GRADES.get((grade_id or "").lower())
    if grade is None:
        raise ValidationFailed(f"Invalid grade: {grade_id}. Allowed values are {', '.join(GRADES)}.")
    return grade


def get_framework(framework_id: str) -> Framework:
    framework = FRAMEWORKS.get((framework_id or "").lower())
    if framework is None:
        raise ValidationFailed(f"Invalid framework: {framework_id}. Allowed values are old, new.")
    return framework


def passed(grade_id: str, average_score: Optional[float]) -> Optional[bool]:
    """Compare a 0-10 average against the grade's percentage threshold."""
    if average_score is None:
        return None
    return average_score * 10 >= get_grade(grade_id).passing_score
