import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from cvBot import documents
from cvBot.models import Document

from . import evaluator, generator, progression, speech, subscriptions
from .exceptions import EvaluationUnavailable, InterviewEnded, PrepError, ValidationFailed, error_response
from .models import Answer, InterviewSession, Question
from .serializers import (
    AnswerSerializer,
    InterviewSessionSerializer,
    QuestionSerializer,
    RatingSerializer,
    StartInterviewSerializer,
    SubmitAnswerSerializer,
)

logger = logging.getLogger(__name__)


def current_question(interview):
    return (
        interview.questions.select_related("interview")
        .filter(order=interview.current_question_index)
        .first()
    )


class StartInterviewAPIView(APIView):
    def post(self, request):
        """Starts an interview session with freshly generated questions."""
        serializer = StartInterviewSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(
                {"error": "Invalid interview settings.", "details": serializer.errors},
                status=status.HTTP_400_BAD_REQUEST
            )
        data = serializer.validated_data

        try:
            # Fail fast before spending an AI call; re-checked under lock on create
            subscriptions.ensure_can_start(request.user)

            cv = documents.latest_document(request.user, Document.CV)
            job_spec = documents.latest_document(request.user, Document.JOB_SPEC)
            question_set = generator.generate_questions(
                data["grade"],
                data["framework"],
                analysis=cv.analysis if cv else None,
                job_spec_text=job_spec.raw_text if job_spec else None,
                focus=data["competencies"] or None,
            )

            job_title = data.get("job_title")
            if not job_title and job_spec:
                job_title = documents.extract_job_title(job_spec.raw_text)

            interview = progression.create_session(
                request.user, data["grade"], data["framework"], question_set, job_title=job_title
            )
        except PrepError as e:
            logger.info(f"Interview start refused for user {request.user.pk}: {e.code}")
            return error_response(e)
        except Exception:
            logger.exception("Unexpected error starting interview")
            return Response(
                {"error": "An unexpected error occurred. Please try again."},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR
            )

        questions = interview.questions.select_related("interview")
        return Response({
            "interview": InterviewSessionSerializer(interview).data,
            "questions": QuestionSerializer(questions, many=True).data,
            "current_question": QuestionSerializer(questions[0]).data,
        }, status=status.HTTP_201_CREATED)


class InterviewProgressAPIView(APIView):
    """Moves through an interview: advance, go-back or abandon."""

    actions = {
        "advance": progression.advance,
        "go-back": progression.go_back,
        "abandon": progression.abandon,
    }

    def post(self, request, interview_id, action):
        handler = self.actions.get(action)
        if handler is None:
            return Response({"error": f"Unknown action: {action}."}, status=status.HTTP_404_NOT_FOUND)

        try:
            interview = InterviewSession.objects.get(pk=interview_id, user=request.user)
        except InterviewSession.DoesNotExist:
            return Response({"error": "Interview not found."}, status=status.HTTP_404_NOT_FOUND)

        changed = handler(interview)
        question = current_question(interview)
        return Response({
            "changed": changed,
            "interview": InterviewSessionSerializer(interview).data,
            "current_question": QuestionSerializer(question).data if question else None,
        }, status=status.HTTP_200_OK)


def _evaluate_and_record(answer, success_status):
    """
    Score a persisted answer and record it against the session. The answer is
    never discarded: on provider failure the client gets its id back and can
    retry through the evaluate endpoint.
    """
    question = answer.question
    interview = answer.interview
    cv = documents.latest_document(interview.user, Document.CV)

    try:
        evaluation = evaluator.evaluate(
            answer.answer_text,
            question.question_text,
            question.competency,
            interview.grade,
            framework=interview.framework,
            cv_context=cv.raw_text if cv else None,
        )
    except EvaluationUnavailable as e:
        logger.error(f"Evaluation unavailable for answer {answer.pk} ({e.kind})")
        return error_response(e, answer=AnswerSerializer(answer).data)

    try:
        rating, _ = progression.record_answer_completion(answer, evaluation)
    except InterviewEnded as e:
        logger.info(f"Evaluation of answer {answer.pk} discarded: interview {interview.pk} has ended")
        return error_response(e, answer=AnswerSerializer(answer).data)
    interview.refresh_from_db()
    return Response({
        "answer": AnswerSerializer(answer).data,
        "rating": RatingSerializer(rating).data,
        "interview": InterviewSessionSerializer(interview).data,
    }, status=success_status)


class SubmitAnswerAPIView(APIView):
    def post(self, request):
        """Stores an answer and evaluates it."""
        serializer = SubmitAnswerSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(
                {"error": "Interview ID, question ID and answer text are required.", "details": serializer.errors},
                status=status.HTTP_400_BAD_REQUEST
            )
        data = serializer.validated_data

        try:
            interview = InterviewSession.objects.get(pk=data["interview_id"], user=request.user)
            question = interview.questions.get(pk=data["question_id"])
        except InterviewSession.DoesNotExist:
            return Response({"error": "Interview not found."}, status=status.HTTP_404_NOT_FOUND)
        except Question.DoesNotExist:
            return Response({"error": "Invalid question for this interview."}, status=status.HTTP_400_BAD_REQUEST)

        try:
            if interview.status == InterviewSession.ABANDONED:
                raise InterviewEnded()
            answer_text = evaluator.validate_answer_text(data["answer_text"])
        except ValidationFailed as e:
            return error_response(e)

        answer = Answer.objects.create(
            interview=interview,
            question=question,
            answer_text=answer_text,
            time_spent_seconds=data["time_spent_seconds"],
        )
        logger.info(f"Answer {answer.pk} stored for question {question.pk}")
        return _evaluate_and_record(answer, status.HTTP_201_CREATED)


class EvaluateAnswerAPIView(APIView):
    def post(self, request, answer_id):
        """Retries the evaluation of a stored answer. Already rated answers are returned as is."""
        try:
            answer = Answer.objects.select_related("interview", "question").get(
                pk=answer_id, interview__user=request.user
            )
        except Answer.DoesNotExist:
            return Response({"error": "Answer not found."}, status=status.HTTP_404_NOT_FOUND)

        if hasattr(answer, "rating"):
            return Response({
                "answer": AnswerSerializer(answer).data,
                "rating": RatingSerializer(answer.rating).data,
                "interview": InterviewSessionSerializer(answer.interview).data,
            }, status=status.HTTP_200_OK)

        if answer.interview.status == InterviewSession.ABANDONED:
            return error_response(InterviewEnded(), answer=AnswerSerializer(answer).data)

        return _evaluate_and_record(answer, status.HTTP_200_OK)


class SubscriptionAPIView(APIView):
    def get(self, request):
        return Response(subscriptions.summary(request.user), status=status.HTTP_200_OK)


class TranscribeAPIView(APIView):
    def post(self, request):
        """Converts a recorded answer to text."""
        try:
            transcript = speech.transcribe(request.FILES.get("audio"))
        except PrepError as e:
            return error_response(e)
        return Response({"transcript": transcript, "success": True}, status=status.HTTP_200_OK)
