import logging

import groq
from django.conf import settings
from rest_framework import status

from . import ai
from .exceptions import EvaluationUnavailable, TranscriptionFailed, UnsupportedDocument

logger = logging.getLogger(__name__)


def validate_audio(audio):
    """Reject anything that is not audio or is too large before calling the provider."""
    if audio is None:
        raise UnsupportedDocument("No audio file provided.", status_code=status.HTTP_400_BAD_REQUEST)
    content_type = (audio.content_type or "").split(";")[0].strip()
    if not content_type.startswith("audio/"):
        raise UnsupportedDocument("Only audio files are allowed.")
    if audio.size > settings.MAX_AUDIO_SIZE:
        raise UnsupportedDocument(
            f"Audio file too large. Please keep recordings under {settings.MAX_AUDIO_SIZE // (1024 * 1024)}MB.",
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
        )


def transcribe(audio):
    """
    Transcribe an uploaded audio file with Whisper.

    Args:
        audio (UploadedFile): The recorded answer.

    Returns:
        str: The transcript text.
    """
    validate_audio(audio)
    try:
        client = ai.get_client()
    except EvaluationUnavailable as e:
        raise TranscriptionFailed(e.kind) from e

    logger.info(f"Transcribing audio file: {audio.name} ({audio.size} bytes, {audio.content_type})")
    try:
        transcription = client.audio.transcriptions.create(
            file=(audio.name or "audio.webm", audio.read()),
            model=settings.GROQ_TRANSCRIPTION_MODEL,
            language="en",
            response_format="json",
            temperature=0.2,
        )
    except groq.GroqError as e:
        logger.error(f"Speech transcription error: {str(e)}")
        raise ai.translate_error(e, TranscriptionFailed) from e

    return (transcription.text or "").strip()
