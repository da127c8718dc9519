"""
Text extraction, storage and AI analysis of CVs and job specifications.
"""
import json
import logging
import os
import re
import unicodedata

import fitz  # PyMuPDF for text extraction
from django.conf import settings
from django.db import transaction
from rest_framework import status

from interviewBot import ai, grades
from interviewBot.exceptions import EvaluationUnavailable, UnsupportedDocument, ValidationFailed

from .models import Document
from .serializers import AnalysisSerializer

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = (".pdf", ".txt")
MIN_TEXT_LENGTH = 50
CV_CHARS = 60000
JOB_SPEC_CHARS = 12000

JOB_TITLE_PATTERNS = [
    re.compile(r"(?:Job Title|Position|Role):\s*([^\n]+)", re.IGNORECASE),
    re.compile(r"(?:Title|Position Title):\s*([^\n]+)", re.IGNORECASE),
    re.compile(
        r"^(?:Higher Executive Officer|HEO|Executive Officer|EO|Assistant Principal|AP|Principal Officer|PO)"
        r"\s*[-–]\s*([^\n]+)",
        re.IGNORECASE | re.MULTILINE,
    ),
    re.compile(
        r"^([A-Z][a-zA-Z\s]+(?:Officer|Manager|Director|Administrator|Analyst|Specialist|Coordinator))\s*[-–]",
        re.MULTILINE,
    ),
]


def validate_upload(file):
    """Reject unsupported or oversized files before reading them."""
    if file is None:
        raise ValidationFailed("No file provided.")
    extension = os.path.splitext(file.name or "")[1].lower()
    if extension not in ALLOWED_EXTENSIONS:
        raise UnsupportedDocument("Only PDF and TXT files are allowed.")
    if file.size > settings.MAX_DOCUMENT_SIZE:
        raise UnsupportedDocument(
            f"File too large. Please keep documents under {settings.MAX_DOCUMENT_SIZE // (1024 * 1024)}MB.",
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
        )
    return extension


def extract_text_from_pdf(file):
    """
    Extract text from a PDF file using PyMuPDF.

    Args:
        file (UploadedFile): The uploaded PDF file.

    Returns:
        str: Extracted text from every page.
    """
    try:
        pdf_document = fitz.open(stream=file.read(), filetype="pdf")
    except (RuntimeError, ValueError) as e:
        logger.error(f"Error extracting text from PDF: {str(e)}")
        raise ValidationFailed("This PDF could not be read. Please upload a text-based PDF.") from e

    try:
        text = "".join(page.get_text() for page in pdf_document)
    finally:
        pdf_document.close()
    return text.strip()


def extract_text(file):
    extension = validate_upload(file)
    if extension == ".pdf":
        text = extract_text_from_pdf(file)
    else:
        try:
            text = file.read().decode("utf-8")
        except UnicodeDecodeError as e:
            raise ValidationFailed("Text files must be UTF-8 encoded.") from e
    return sanitize_text(text)


def sanitize_text(text):
    """
    Normalise extracted text: drop control characters and collapse runs of
    spaces while keeping line breaks, which the job title patterns rely on.
    """
    text = unicodedata.normalize("NFKC", str(text))
    text = re.sub(r"[\x00-\x09\x0B-\x1F\x7F]", " ", text.replace("\r\n", "\n"))
    lines = [re.sub(r"[ ]+", " ", line).strip() for line in text.split("\n")]
    return re.sub(r"\n{3,}", "\n\n", "\n".join(lines)).strip()


def latest_document(user, kind):
    return Document.objects.filter(user=user, kind=kind).order_by("-uploaded_at").first()


def store_document(user, kind, file):
    """Extract the upload and replace any earlier document of the same kind."""
    raw_text = extract_text(file)
    if len(raw_text) < MIN_TEXT_LENGTH:
        raise ValidationFailed(
            "We could not find enough text in this document. Please check the file and try again."
        )

    with transaction.atomic():
        replaced, _ = Document.objects.filter(user=user, kind=kind).delete()
        document = Document.objects.create(user=user, kind=kind, filename=file.name, raw_text=raw_text)

    if replaced:
        logger.info(f"Replaced previous {kind} for user {user.pk}")
    logger.info(f"Stored {kind} {document.pk} ({len(raw_text)} characters)")
    return document


def analyze_document(document):
    """
    Analyse a CV against the competency framework and store the result.

    Raises:
        ValidationFailed: the document is not a CV.
        EvaluationUnavailable: the provider failed or returned an unusable result.
    """
    if document.kind != Document.CV:
        raise ValidationFailed("Only CVs can be analysed.")

    job_spec = latest_document(document.user, Document.JOB_SPEC)
    context = f"Job specification context: {job_spec.raw_text[:JOB_SPEC_CHARS]}" if job_spec else ""
    framework = grades.get_framework("old")
    competency_names = "\n".join(f"- {label}" for _, label in framework.competencies)
    prompt = f"""
    Analyse ONLY the information explicitly present in this CV. Do not assume or infer
    anything that is not written.

    CV content:
    {document.raw_text[:CV_CHARS]}

    {context}

    Score the evidence for each competency from 0 to 100:
    {competency_names}

    Irish public sector means government departments, the civil service, local authorities,
    the HSE, the Garda, education, state agencies and semi-state bodies. Private companies
    are NOT public sector.

    Respond with a JSON object in this exact format:
    {{
        "key_highlights": ["<3-5 strengths actually mentioned in the CV>"],
        "competency_strengths": {{"<competency name>": <0-100>}},
        "improvement_areas": ["<2-3 gaps in the evidence>"],
        "experience_level": "entry|mid|senior",
        "public_sector_experience": <true only if explicitly mentioned>
    }}
    """
    system = (
        "You are an expert in Irish Public Service recruitment and competency assessment. "
        "Respond only with valid JSON."
    )

    payload = ai.complete_json(system, prompt)
    serializer = AnalysisSerializer(data=payload)
    if not serializer.is_valid():
        logger.warning(f"CV analysis failed validation: {serializer.errors}")
        raise EvaluationUnavailable(EvaluationUnavailable.MALFORMED)

    # Round-trip through JSON so the stored value is plain dicts and lists
    document.analysis = json.loads(json.dumps(serializer.validated_data))
    document.save(update_fields=["analysis"])
    logger.info(f"Stored analysis for document {document.pk}")
    return document.analysis


def extract_job_title(text):
    for pattern in JOB_TITLE_PATTERNS:
        match = pattern.search(text or "")
        if match and match.group(1).strip():
            return match.group(1).strip()[:255]
    return None
