"""
Scores a single interview answer against the competency rubric.

The server is the authority on answer length: whatever the client gated on,
short answers are rejected here before any AI call is made.
"""
import logging

from django.conf import settings

from . import ai, grades
from .exceptions import AnswerTooShort, EvaluationUnavailable
from .serializers import EvaluationSerializer

logger = logging.getLogger(__name__)

CV_CONTEXT_CHARS = 6000


def validate_answer_text(answer_text):
    trimmed = (answer_text or "").strip()
    if len(trimmed) < settings.MIN_ANSWER_LENGTH:
        raise AnswerTooShort(
            f"Your answer has {len(trimmed)} characters; at least {settings.MIN_ANSWER_LENGTH} "
            "are needed for a meaningful evaluation. Add more detail using the STAR method."
        )
    return trimmed


def evaluate(answer_text, question_text, competency, grade, framework="old", cv_context=None):
    """
    Evaluate an answer and return the validated rubric.

    Returns:
        dict: overall_score, competency_scores, star_method_analysis, feedback,
        strengths, improvement_areas and improved_answer.

    Raises:
        AnswerTooShort: the trimmed answer is below MIN_ANSWER_LENGTH.
        EvaluationUnavailable: the provider failed or returned an unusable result.
    """
    trimmed = validate_answer_text(answer_text)
    grade_config = grades.get_grade(grade)
    framework_config = grades.get_framework(framework)

    competency_lines = "\n".join(f"- {key}: {label}" for key, label in framework_config.competencies)
    background = f"Candidate background (from CV): {cv_context[:CV_CONTEXT_CHARS]}" if cv_context else ""
    prompt = f"""
    Evaluate this interview answer for an Irish Public Service {grade_config.name}
    ({grade_config.full_name}) position.

    Question: {question_text}
    Answer: {trimmed}
    Primary competency: {framework_config.label(competency)}
    {background}

    Competencies to score (use these keys):
    {competency_lines}

    Score the STAR structure, each part 0-10:
    - situation: clear context and background
    - task: the specific responsibility or challenge
    - action: detailed steps with personal involvement
    - result: measurable outcomes and impact

    Respond with a JSON object in this exact format:
    {{
        "overall_score": <number 0-10, one decimal>,
        "competency_scores": {{"<competency key>": <number 0-10>}},
        "star_method_analysis": {{"situation": <0-10>, "task": <0-10>, "action": <0-10>, "result": <0-10>}},
        "feedback": "<constructive feedback, paragraphs separated by blank lines>",
        "strengths": ["<2-3 word strength>", "..."],
        "improvement_areas": ["<2-3 word improvement>", "..."],
        "improved_answer": "<rewritten answer with Situation:, Task:, Action:, Result: headings>"
    }}

    Be fair and specific. Expect evidence at {grade_config.name} level; a pass at this grade
    corresponds to {grade_config.passing_score / 10:.1f}/10.
    """
    system = (
        f"You are an expert Irish Public Service interviewer and {grade_config.name} competency "
        "assessor. Respond only with valid JSON."
    )

    payload = ai.complete_json(system, prompt)
    serializer = EvaluationSerializer(data=payload)
    if not serializer.is_valid():
        logger.warning(f"Answer evaluation failed validation: {serializer.errors}")
        raise EvaluationUnavailable(EvaluationUnavailable.MALFORMED)

    return dict(serializer.validated_data)
