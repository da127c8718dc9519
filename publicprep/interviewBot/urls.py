from django.urls import path

from .accountViews import CurrentUserAPIView, LoginAPIView, LogoutAPIView, RegisterAPIView
from .interviewCrud import (
    CurrentQuestionAPIView,
    InterviewAnswersAPIView,
    InterviewDetailView,
    InterviewExportAPIView,
    InterviewListAPIView,
    InterviewQuestionsAPIView,
    QuestionAnswersAPIView,
)
from .publicViews import ContactAPIView, HealthCheckAPIView, SampleEvaluationAPIView
from .views import (
    EvaluateAnswerAPIView,
    InterviewProgressAPIView,
    StartInterviewAPIView,
    SubmitAnswerAPIView,
    SubscriptionAPIView,
    TranscribeAPIView,
)

urlpatterns = [
    path('auth/register/', RegisterAPIView.as_view(), name='register'),
    path('auth/login/', LoginAPIView.as_view(), name='login'),
    path('auth/logout/', LogoutAPIView.as_view(), name='logout'),
    path('auth/user/', CurrentUserAPIView.as_view(), name='current-user'),

    path('interviews/', InterviewListAPIView.as_view(), name='interview-list'),
    path('interviews/start/', StartInterviewAPIView.as_view(), name='start-interview'),
    path('interviews/<uuid:interview_id>/', InterviewDetailView.as_view(), name='interview-detail'),
    path('interviews/<uuid:interview_id>/questions/', InterviewQuestionsAPIView.as_view(), name='interview-questions'),
    path('interviews/<uuid:interview_id>/current-question/', CurrentQuestionAPIView.as_view(),
         name='interview-current-question'),
    path('interviews/<uuid:interview_id>/answers/', InterviewAnswersAPIView.as_view(), name='interview-answers'),
    path('interviews/<uuid:interview_id>/export/', InterviewExportAPIView.as_view(), name='interview-export'),
    path('interviews/<uuid:interview_id>/<str:action>/', InterviewProgressAPIView.as_view(),
         name='interview-progress'),

    path('questions/<uuid:question_id>/answers/', QuestionAnswersAPIView.as_view(), name='question-answers'),
    path('answers/', SubmitAnswerAPIView.as_view(), name='submit-answer'),
    path('answers/<uuid:answer_id>/evaluate/', EvaluateAnswerAPIView.as_view(), name='evaluate-answer'),

    path('subscription/', SubscriptionAPIView.as_view(), name='subscription'),
    path('speech/transcribe/', TranscribeAPIView.as_view(), name='transcribe'),

    path('health/', HealthCheckAPIView.as_view(), name='health'),
    path('sample/evaluate/', SampleEvaluationAPIView.as_view(), name='sample-evaluate'),
    path('contact/', ContactAPIView.as_view(), name='contact'),
]
