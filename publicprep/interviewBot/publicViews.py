import logging

from django.utils import timezone
from rest_framework import serializers, status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.throttling import ScopedRateThrottle
from rest_framework.views import APIView

from . import evaluator, grades, notifications
from .exceptions import PrepError, error_response

logger = logging.getLogger(__name__)


class SampleEvaluationSerializer(serializers.Serializer):
    question_text = serializers.CharField(max_length=1000)
    answer_text = serializers.CharField(allow_blank=True, trim_whitespace=False, max_length=5000)
    competency = serializers.CharField(required=False, default="team_leadership")
    grade = serializers.CharField(required=False, default=grades.DEFAULT_GRADE)


class ContactSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=100)
    email = serializers.EmailField()
    subject = serializers.CharField(max_length=200)
    message = serializers.CharField(max_length=2000)


class PublicAPIView(APIView):
    """Endpoints reachable without an account. No session, so no CSRF check."""

    authentication_classes = []
    permission_classes = [AllowAny]


class HealthCheckAPIView(PublicAPIView):
    def get(self, request):
        return Response({"status": "ok", "timestamp": timezone.now()}, status=status.HTTP_200_OK)


class SampleEvaluationAPIView(PublicAPIView):
    """Scores one answer for the landing page demo. Nothing is stored."""

    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "sample_evaluation"

    def post(self, request):
        serializer = SampleEvaluationSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(
                {"error": "Answer text and question text are required.", "details": serializer.errors},
                status=status.HTTP_400_BAD_REQUEST
            )
        data = serializer.validated_data

        try:
            result = evaluator.evaluate(
                data["answer_text"],
                data["question_text"],
                data["competency"],
                data["grade"].lower(),
            )
        except PrepError as e:
            return error_response(e)

        return Response({
            "evaluation": result,
            "score_percentage": round(result["overall_score"] * 10),
        }, status=status.HTTP_200_OK)


class ContactAPIView(PublicAPIView):
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "contact"

    def post(self, request):
        serializer = ContactSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(
                {"error": "Please check the highlighted fields.", "details": serializer.errors},
                status=status.HTTP_400_BAD_REQUEST
            )
        data = serializer.validated_data

        logger.info(f"Contact form submission: {data['subject']!r}")
        notifications.dispatch(notifications.contact_form_submitted, **data)
        return Response({
            "success": True,
            "message": "Thank you for your message. We'll get back to you soon!",
        }, status=status.HTTP_200_OK)
