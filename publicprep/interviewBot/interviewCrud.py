from django.http import JsonResponse
from django.utils import timezone
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from . import grades
from .models import Answer, InterviewSession, Question
from .serializers import AnswerSerializer, InterviewSessionSerializer, QuestionSerializer, RatingSerializer
from .views import current_question


def get_user_interview(request, interview_id):
    return InterviewSession.objects.get(pk=interview_id, user=request.user)


class InterviewListAPIView(APIView):
    def get(self, request):
        """
        List the interviews of the logged-in user, most recent first.
        """
        interviews = InterviewSession.objects.filter(user=request.user).select_related("user")
        serializer = InterviewSessionSerializer(interviews, many=True)
        return Response(serializer.data, status=status.HTTP_200_OK)


class InterviewDetailView(APIView):
    def get(self, request, interview_id):
        try:
            interview = get_user_interview(request, interview_id)
        except InterviewSession.DoesNotExist:
            return Response({"error": "Interview not found"}, status=status.HTTP_404_NOT_FOUND)
        question = current_question(interview)
        return Response({
            "interview": InterviewSessionSerializer(interview).data,
            "current_question": QuestionSerializer(question).data if question else None,
        }, status=status.HTTP_200_OK)

    def delete(self, request, interview_id):
        """
        Delete an interview with its questions and answers.
        """
        try:
            interview = get_user_interview(request, interview_id)
            interview.delete()
            return Response({"message": "Interview deleted successfully"}, status=status.HTTP_204_NO_CONTENT)
        except InterviewSession.DoesNotExist:
            return Response({"error": "Interview not found"}, status=status.HTTP_404_NOT_FOUND)


class InterviewQuestionsAPIView(APIView):
    def get(self, request, interview_id):
        try:
            interview = get_user_interview(request, interview_id)
        except InterviewSession.DoesNotExist:
            return Response({"error": "Interview not found"}, status=status.HTTP_404_NOT_FOUND)
        questions = interview.questions.select_related("interview")
        return Response(QuestionSerializer(questions, many=True).data, status=status.HTTP_200_OK)


class CurrentQuestionAPIView(APIView):
    def get(self, request, interview_id):
        try:
            interview = get_user_interview(request, interview_id)
        except InterviewSession.DoesNotExist:
            return Response({"error": "Interview not found"}, status=status.HTTP_404_NOT_FOUND)
        question = current_question(interview)
        if question is None:
            return Response({"error": "No current question"}, status=status.HTTP_404_NOT_FOUND)
        return Response(QuestionSerializer(question).data, status=status.HTTP_200_OK)


class InterviewAnswersAPIView(APIView):
    def get(self, request, interview_id):
        """
        All answers of an interview, newest first. Pass ?latest=true to keep
        only the most recent answer of each question.
        """
        try:
            interview = get_user_interview(request, interview_id)
        except InterviewSession.DoesNotExist:
            return Response({"error": "Interview not found"}, status=status.HTTP_404_NOT_FOUND)

        answers = interview.answers.select_related("rating")
        if request.query_params.get("latest") in ("1", "true"):
            answers = latest_answers(answers)
        return Response(AnswerSerializer(answers, many=True).data, status=status.HTTP_200_OK)


class QuestionAnswersAPIView(APIView):
    def get(self, request, question_id):
        try:
            question = Question.objects.get(pk=question_id, interview__user=request.user)
        except Question.DoesNotExist:
            return Response({"error": "Question not found"}, status=status.HTTP_404_NOT_FOUND)
        answers = question.answers.select_related("rating")
        return Response(AnswerSerializer(answers, many=True).data, status=status.HTTP_200_OK)


class InterviewExportAPIView(APIView):
    def get(self, request, interview_id):
        """
        Download the interview as a JSON report: session summary, then each
        question with its latest answer and feedback.
        """
        try:
            interview = get_user_interview(request, interview_id)
        except InterviewSession.DoesNotExist:
            return Response({"error": "Interview not found"}, status=status.HTTP_404_NOT_FOUND)

        response = JsonResponse(build_report(interview), json_dumps_params={"indent": 2})
        response["Content-Disposition"] = f'attachment; filename="interview-{interview.pk}.json"'
        return response


def latest_answers(answers):
    latest = {}
    for answer in answers:
        latest.setdefault(answer.question_id, answer)
    return list(latest.values())


def build_report(interview):
    grade = grades.get_grade(interview.grade)
    framework = grades.get_framework(interview.framework)
    answers = latest_answers(Answer.objects.filter(interview=interview).select_related("rating"))
    by_question = {answer.question_id: answer for answer in answers}

    items = []
    for question in interview.questions.all():
        answer = by_question.get(question.pk)
        rating = getattr(answer, "rating", None) if answer else None
        items.append({
            "order": question.order + 1,
            "competency": framework.label(question.competency),
            "question": question.question_text,
            "answer": answer.answer_text if answer else None,
            "time_spent_seconds": answer.time_spent_seconds if answer else None,
            "rating": RatingSerializer(rating).data if rating else None,
        })

    return {
        "interview": {
            "id": str(interview.pk),
            "job_title": interview.job_title,
            "grade": grade.name,
            "framework": framework.name,
            "status": interview.status,
            "started_at": interview.started_at.isoformat(),
            "completed_at": interview.completed_at.isoformat() if interview.completed_at else None,
            "total_questions": interview.total_questions,
            "completed_questions": interview.completed_questions,
            "average_score": interview.average_score,
            "average_percentage": round(interview.average_score * 10) if interview.average_score is not None else None,
            "passing_score": grade.passing_score,
            "passed": grades.passed(interview.grade, interview.average_score),
        },
        "questions": items,
        "exported_at": timezone.now().isoformat(),
    }
