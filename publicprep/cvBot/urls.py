from django.urls import path

from .views import DocumentAnalyzeAPIView, DocumentDetailAPIView, DocumentListCreateAPIView, LatestAnalysisAPIView

urlpatterns = [
    path('documents/', DocumentListCreateAPIView.as_view(), name='documents'),
    path('documents/analysis/', LatestAnalysisAPIView.as_view(), name='document-analysis'),
    path('documents/<uuid:document_id>/', DocumentDetailAPIView.as_view(), name='document-detail'),
    path('documents/<uuid:document_id>/analyze/', DocumentAnalyzeAPIView.as_view(), name='document-analyze'),
]
