import logging

from rest_framework import status
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.response import Response
from rest_framework.views import APIView

from interviewBot.exceptions import EvaluationUnavailable, PrepError, error_response

from . import documents
from .models import Document
from .serializers import DocumentDetailSerializer, DocumentSerializer, UploadDocumentSerializer

logger = logging.getLogger(__name__)


class DocumentListCreateAPIView(APIView):
    """API View to list documents and upload a CV or job specification."""

    parser_classes = [MultiPartParser, FormParser, JSONParser]

    def get(self, request):
        queryset = Document.objects.filter(user=request.user)
        return Response(DocumentSerializer(queryset, many=True).data, status=status.HTTP_200_OK)

    def post(self, request):
        """
        Store an uploaded document, replacing the previous one of the same
        kind. CVs are analysed straight away; if that fails the document is
        kept without an analysis and can be analysed later.
        """
        serializer = UploadDocumentSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(
                {"error": "A file and a valid document kind are required.", "details": serializer.errors},
                status=status.HTTP_400_BAD_REQUEST
            )
        kind = serializer.validated_data["kind"]

        try:
            document = documents.store_document(request.user, kind, serializer.validated_data["file"])
        except PrepError as e:
            return error_response(e)
        except Exception:
            logger.exception("Unexpected error in document upload")
            return Response(
                {"error": "An unexpected error occurred. Please try again."},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR
            )

        body = {"document": DocumentSerializer(document).data}
        if kind == Document.CV:
            try:
                documents.analyze_document(document)
                body["document"] = DocumentSerializer(document).data
            except EvaluationUnavailable as e:
                logger.error(f"CV analysis failed for document {document.pk} ({e.kind})")
                body["analysis_error"] = e.payload()
        return Response(body, status=status.HTTP_201_CREATED)


class DocumentDetailAPIView(APIView):
    def get(self, request, document_id):
        try:
            document = Document.objects.get(pk=document_id, user=request.user)
        except Document.DoesNotExist:
            return Response({"error": "Document not found"}, status=status.HTTP_404_NOT_FOUND)
        return Response(DocumentDetailSerializer(document).data, status=status.HTTP_200_OK)

    def delete(self, request, document_id):
        try:
            document = Document.objects.get(pk=document_id, user=request.user)
            document.delete()
            return Response({"message": "Document deleted successfully"}, status=status.HTTP_204_NO_CONTENT)
        except Document.DoesNotExist:
            return Response({"error": "Document not found"}, status=status.HTTP_404_NOT_FOUND)


class DocumentAnalyzeAPIView(APIView):
    def post(self, request, document_id):
        """Re-run the analysis of a CV on request."""
        try:
            document = Document.objects.get(pk=document_id, user=request.user)
        except Document.DoesNotExist:
            return Response({"error": "Document not found"}, status=status.HTTP_404_NOT_FOUND)

        try:
            documents.analyze_document(document)
        except PrepError as e:
            return error_response(e)
        return Response(DocumentSerializer(document).data, status=status.HTTP_200_OK)


class LatestAnalysisAPIView(APIView):
    def get(self, request):
        cv = documents.latest_document(request.user, Document.CV)
        if cv is None or cv.analysis is None:
            return Response({"error": "No CV analysis available"}, status=status.HTTP_404_NOT_FOUND)
        return Response({"document_id": cv.pk, "analysis": cv.analysis}, status=status.HTTP_200_OK)
