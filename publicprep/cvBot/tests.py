from unittest import mock

import fitz
from django.contrib.auth.models import User
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import SimpleTestCase, override_settings
from rest_framework import status
from rest_framework.test import APITestCase

from interviewBot.exceptions import EvaluationUnavailable

from . import documents
from .models import Document

CV_TEXT = (
    "Aoife Byrne\nExecutive Officer, Department of Social Protection (2019 - present)\n"
    "Led a team of four processing 300 claims a week. Introduced a tracker that cut backlogs by 40%."
)

ANALYSIS = {
    "key_highlights": ["Team leadership", "Process improvement"],
    "competency_strengths": {"Team Leadership": 75, "Drive & Commitment": 60},
    "improvement_areas": ["Stakeholder management"],
    "experience_level": "mid",
    "public_sector_experience": True,
}


def pdf_bytes(text):
    pdf = fitz.open()
    page = pdf.new_page()
    page.insert_text((72, 72), text)
    data = pdf.tobytes()
    pdf.close()
    return data


class DocumentUploadAPITestCase(APITestCase):
    def setUp(self):
        self.user = User.objects.create_user(username="testuser", password="password123")
        self.client.login(username="testuser", password="password123")

    def upload(self, name, content, kind="cv", content_type="text/plain"):
        upload = SimpleUploadedFile(name, content, content_type=content_type)
        return self.client.post("/api/documents/", {"kind": kind, "file": upload}, format="multipart")

    @mock.patch("interviewBot.ai.complete_json")
    def test_upload_cv_is_analysed(self, complete_json):
        complete_json.return_value = ANALYSIS
        response = self.upload("cv.txt", CV_TEXT.encode())

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["document"]["analysis"]["experience_level"], "mid")
        document = Document.objects.get(user=self.user)
        self.assertIn("Department of Social Protection", document.raw_text)
        self.assertTrue(document.analysis["public_sector_experience"])

    @mock.patch("interviewBot.ai.complete_json")
    def test_upload_pdf(self, complete_json):
        complete_json.return_value = ANALYSIS
        response = self.upload("cv.pdf", pdf_bytes(CV_TEXT), content_type="application/pdf")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertIn("Executive Officer", Document.objects.get(user=self.user).raw_text)

    @mock.patch("interviewBot.ai.complete_json")
    def test_failed_analysis_keeps_document(self, complete_json):
        complete_json.side_effect = EvaluationUnavailable(EvaluationUnavailable.UNAVAILABLE)
        response = self.upload("cv.txt", CV_TEXT.encode())

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertIsNone(response.data["document"]["analysis"])
        self.assertTrue(response.data["analysis_error"]["retryable"])
        self.assertTrue(Document.objects.filter(user=self.user, analysis__isnull=True).exists())

        complete_json.side_effect = None
        complete_json.return_value = ANALYSIS
        document = Document.objects.get(user=self.user)
        response = self.client.post(f"/api/documents/{document.pk}/analyze/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["analysis"]["competency_strengths"]["Team Leadership"], 75)

    @mock.patch("interviewBot.ai.complete_json")
    def test_job_spec_is_not_analysed(self, complete_json):
        response = self.upload("spec.txt", ("Job Title: HEO Policy Officer\n" + CV_TEXT).encode(), kind="job_spec")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        complete_json.assert_not_called()

    @mock.patch("interviewBot.ai.complete_json")
    def test_reupload_replaces_same_kind(self, complete_json):
        complete_json.return_value = ANALYSIS
        self.upload("first.txt", CV_TEXT.encode())
        self.upload("spec.txt", CV_TEXT.encode(), kind="job_spec")
        self.upload("second.txt", CV_TEXT.encode())

        self.assertEqual(Document.objects.filter(user=self.user, kind=Document.CV).count(), 1)
        self.assertEqual(Document.objects.get(user=self.user, kind=Document.CV).filename, "second.txt")
        self.assertEqual(Document.objects.filter(user=self.user).count(), 2)

    def test_unsupported_extension(self):
        response = self.upload("cv.docx", b"PK\x03\x04 not really a document", content_type="application/msword")
        self.assertEqual(response.status_code, status.HTTP_415_UNSUPPORTED_MEDIA_TYPE)
        self.assertEqual(response.data["code"], "UnsupportedDocument")
        self.assertFalse(Document.objects.exists())

    @override_settings(MAX_DOCUMENT_SIZE=100)
    def test_oversized_document(self):
        response = self.upload("cv.txt", b"x" * 101)
        self.assertEqual(response.status_code, status.HTTP_413_REQUEST_ENTITY_TOO_LARGE)

    def test_too_little_text(self):
        response = self.upload("cv.txt", b"Just a name")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_unreadable_pdf(self):
        response = self.upload("cv.pdf", b"%PDF-1.4 garbage" * 10, content_type="application/pdf")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_analysis_endpoint(self):
        response = self.client.get("/api/documents/analysis/")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

        Document.objects.create(user=self.user, kind=Document.CV, filename="cv.txt", raw_text=CV_TEXT,
                                analysis=ANALYSIS)
        response = self.client.get("/api/documents/analysis/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["analysis"]["experience_level"], "mid")

    def test_documents_are_private(self):
        document = Document.objects.create(user=self.user, kind=Document.CV, filename="cv.txt", raw_text=CV_TEXT)
        User.objects.create_user(username="other", password="password123")
        self.client.login(username="other", password="password123")

        self.assertEqual(self.client.get("/api/documents/").data, [])
        self.assertEqual(self.client.get(f"/api/documents/{document.pk}/").status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(self.client.delete(f"/api/documents/{document.pk}/").status_code,
                         status.HTTP_404_NOT_FOUND)

    def test_detail_and_delete(self):
        document = Document.objects.create(user=self.user, kind=Document.CV, filename="cv.txt", raw_text=CV_TEXT)
        response = self.client.get(f"/api/documents/{document.pk}/")
        self.assertEqual(response.data["raw_text"], CV_TEXT)

        response = self.client.delete(f"/api/documents/{document.pk}/")
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Document.objects.exists())


class DocumentTextTestCase(SimpleTestCase):
    def test_sanitize_keeps_lines_and_accents(self):
        text = "Seán  Ó\tBriain\r\n\r\n\r\n\r\nPolicy\x00Officer "
        self.assertEqual(documents.sanitize_text(text), "Seán Ó Briain\n\nPolicy Officer")

    def test_job_title_patterns(self):
        cases = [
            ("Job Title: Higher Executive Officer\nLocation: Dublin", "Higher Executive Officer"),
            ("Position Title: Data Analyst", "Data Analyst"),
            ("HEO - Climate Action Unit\nAbout the role", "Climate Action Unit"),
            ("Senior Policy Officer - Department of Health", "Senior Policy Officer"),
            ("We are recruiting for several roles.", None),
        ]
        for text, expected in cases:
            self.assertEqual(documents.extract_job_title(text), expected)
