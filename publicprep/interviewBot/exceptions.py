"""
Domain errors shared by the API views and the Python API client.

Each error carries a stable ``code`` that is sent to the client so the UI can
tell a validation problem from an upgrade prompt or a retryable outage.
"""
from rest_framework import status
from rest_framework.response import Response


class PrepError(Exception):
    code = "error"
    default_message = "Something went wrong. Please try again."
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def payload(self):
        return {"error": self.message, "code": self.code}


class ValidationFailed(PrepError):
    code = "ValidationError"
    default_message = "The request could not be processed."
    status_code = status.HTTP_400_BAD_REQUEST


class AnswerTooShort(ValidationFailed):
    code = "AnswerTooShort"
    default_message = "Your answer is too short to evaluate. Add more detail using the STAR method."


class InterviewEnded(ValidationFailed):
    code = "InterviewEnded"
    default_message = "This interview is no longer active. Start a new one to keep practising."


class UnsupportedDocument(ValidationFailed):
    code = "UnsupportedDocument"
    default_message = "Unsupported file. Please upload a PDF or TXT file."

    def __init__(self, message=None, status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE):
        super().__init__(message)
        self.status_code = status_code


class LimitExceeded(PrepError):
    STARTER_EXPIRED = "StarterExpired"
    STARTER_LIMIT_REACHED = "StarterLimitReached"
    FREE_LIMIT_REACHED = "FreeLimitReached"

    MESSAGES = {
        STARTER_EXPIRED: "Your starter plan has expired. Upgrade to premium to keep practising.",
        STARTER_LIMIT_REACHED: "You've used your 1 interview in the starter package. "
                               "Upgrade to premium for unlimited access.",
        FREE_LIMIT_REACHED: "You've used your free interview. Upgrade to keep practising.",
    }
    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, reason, message=None):
        self.reason = reason
        self.code = reason
        super().__init__(message or self.MESSAGES.get(reason))

    def payload(self):
        data = super().payload()
        data.update({"reason": self.reason, "upgrade_required": True})
        return data


class EvaluationUnavailable(PrepError):
    """The AI provider could not produce a usable result; the request can be retried."""

    QUOTA = "quota"
    UNAVAILABLE = "unavailable"
    MALFORMED = "malformed"
    TIMEOUT = "timeout"

    code = "EvaluationUnavailable"
    default_message = "Our evaluation service is temporarily unavailable. Please try again."

    def __init__(self, kind=UNAVAILABLE, message=None):
        self.kind = kind
        super().__init__(message)

    @property
    def status_code(self):
        if self.kind == self.QUOTA:
            return status.HTTP_429_TOO_MANY_REQUESTS
        return status.HTTP_503_SERVICE_UNAVAILABLE

    def payload(self):
        data = super().payload()
        data.update({"kind": self.kind, "retryable": True})
        return data


class TranscriptionFailed(EvaluationUnavailable):
    code = "TranscriptionFailed"
    default_message = "Failed to transcribe audio. Please try again."


class AuthenticationRequired(PrepError):
    code = "AuthenticationRequired"
    default_message = "Your session has expired. Please log in again."
    status_code = status.HTTP_401_UNAUTHORIZED


class ApiError(PrepError):
    """Any other non-success response seen by the API client."""

    code = "ApiError"

    def __init__(self, message=None, status_code=None):
        super().__init__(message)
        self.status_code = status_code


def error_response(exc, **extra):
    body = exc.payload()
    body.update(extra)
    return Response(body, status=exc.status_code)
