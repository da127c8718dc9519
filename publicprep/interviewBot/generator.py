import json
import logging

from . import ai, grades
from .exceptions import EvaluationUnavailable
from .serializers import QuestionSetSerializer

logger = logging.getLogger(__name__)

JOB_SPEC_CHARS = 8000

COMPLEXITY_GUIDANCE = {
    "basic": "Focus on straightforward day-to-day scenarios: customer queries, administrative "
             "processes, following procedures and working in a team.",
    "intermediate": "Balance operational and tactical questions: managing workflows, competing "
                    "priorities, stakeholder queries and implementing policy.",
    "advanced": "Focus on leadership and complex decision making: multiple stakeholders, budgets, "
                "ministerial briefings and cross-department initiatives.",
    "expert": "Focus on executive scenarios: organisational transformation, policy reform, "
              "ministerial advisory and crisis management.",
}


def generate_questions(grade, framework, analysis=None, job_spec_text=None, focus=None):
    """
    Generate an ordered list of competency-tagged questions.

    Args:
        grade (str): Grade id, e.g. "heo".
        framework (str): "old" or "new".
        analysis (dict): Optional CV analysis used to tailor the questions.
        job_spec_text (str): Optional job specification text.
        focus (list): Optional subset of competencies to ask about.

    Returns:
        list: Dicts with competency, question_text and difficulty.
    """
    grade_config = grades.get_grade(grade)
    framework_config = grades.get_framework(framework)
    units = framework_config.select(focus)
    expected = len(units) * framework_config.questions_per_unit

    unit_lines = "\n".join(
        f"- {key}: {framework_config.label(key)}" for key in units
    )
    prompt = f"""
    Generate {expected} interview questions for an Irish Public Service {grade_config.name}
    ({grade_config.full_name}) position using the {framework_config.name}.

    Grade details:
    - Level: {grade_config.level} of 9
    - Expected experience: {grade_config.experience_expectation}
    - Question complexity: {grade_config.question_complexity}
    - Typical responsibilities: {', '.join(grade_config.typical_responsibilities)}

    Generate EXACTLY {framework_config.questions_per_unit} questions for each {framework_config.unit_label}:
    {unit_lines}

    {COMPLEXITY_GUIDANCE[grade_config.question_complexity]}

    Every question must suit a STAR method answer and reflect Irish public sector scenarios
    (parliamentary questions, FOI requests, cross-departmental work, citizen services).
    Mix the {framework_config.unit_label}s in any order.

    CV analysis: {json.dumps(analysis) if analysis else "not provided"}
    Job specification: {(job_spec_text or "not provided")[:JOB_SPEC_CHARS]}

    Respond with a JSON object in this exact format:
    {{
        "questions": [
            {{"competency": "<key from the list above>", "question_text": "<question>",
              "difficulty": "beginner|intermediate|advanced"}}
        ]
    }}
    """
    system = (
        f"You are an expert in Irish Public Service recruitment and {grade_config.name} "
        "competency-based interviewing. Respond only with valid JSON."
    )

    payload = ai.complete_json(system, prompt)
    serializer = QuestionSetSerializer(data=payload)
    if not serializer.is_valid():
        logger.warning(f"Generated question set failed validation: {serializer.errors}")
        raise EvaluationUnavailable(EvaluationUnavailable.MALFORMED)

    questions = serializer.validated_data["questions"][:expected]
    if len(questions) < expected:
        logger.warning(f"Expected {expected} questions for {grade}/{framework}, got {len(questions)}")

    return [
        {
            "competency": framework_config.normalise(q["competency"]),
            "question_text": q["question_text"].strip(),
            "difficulty": q["difficulty"],
        }
        for q in questions
    ]
