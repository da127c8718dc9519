"""
requests-based client for the Public Prep HTTP API.

Error responses are mapped back onto the exceptions the server raised, so
callers can tell an upgrade prompt from a retryable outage or an expired
session without looking at status codes.
"""
import logging

import requests

from .exceptions import (
    AnswerTooShort,
    ApiError,
    AuthenticationRequired,
    EvaluationUnavailable,
    InterviewEnded,
    LimitExceeded,
    TranscriptionFailed,
    UnsupportedDocument,
    ValidationFailed,
)

logger = logging.getLogger(__name__)


def error_from_response(resp):
    try:
        body = resp.json()
    except ValueError:
        body = {}
    if not isinstance(body, dict):
        body = {}
    message = body.get("error") or body.get("detail") or resp.reason
    code = body.get("code")

    if resp.status_code == 401:
        exc = AuthenticationRequired(message)
    elif body.get("upgrade_required"):
        exc = LimitExceeded(body.get("reason") or code, message)
    elif body.get("retryable"):
        error_class = TranscriptionFailed if code == TranscriptionFailed.code else EvaluationUnavailable
        exc = error_class(body.get("kind", EvaluationUnavailable.UNAVAILABLE), message)
    elif code == AnswerTooShort.code:
        exc = AnswerTooShort(message)
    elif code == InterviewEnded.code:
        exc = InterviewEnded(message)
    elif code == UnsupportedDocument.code:
        exc = UnsupportedDocument(message, status_code=resp.status_code)
    elif resp.status_code == 400:
        exc = ValidationFailed(message)
    else:
        exc = ApiError(message, status_code=resp.status_code)
    exc.body = body
    return exc


class PrepApiClient:
    def __init__(self, base_url, timeout=60, session=None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def _request(self, method, path, **kwargs):
        headers = kwargs.pop("headers", {})
        csrf_token = self.session.cookies.get("csrftoken")
        if csrf_token and method not in ("GET", "HEAD"):
            headers["X-CSRFToken"] = csrf_token
            headers["Referer"] = self.base_url

        url = f"{self.base_url}{path}"
        try:
            resp = self.session.request(method, url, headers=headers, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            logger.warning(f"{method} {path} failed: {str(e)}")
            raise ApiError("Could not reach the server. Please check your connection.") from e

        if resp.status_code >= 400:
            raise error_from_response(resp)
        if resp.status_code == 204 or not resp.content:
            return None
        return resp.json()

    # Auth
    def register(self, username, email, password, first_name="", last_name=""):
        return self._request("POST", "/api/auth/register/", json={
            "username": username, "email": email, "password": password,
            "first_name": first_name, "last_name": last_name,
        })

    def login(self, username, password):
        return self._request("POST", "/api/auth/login/", json={"username": username, "password": password})

    def logout(self):
        result = self._request("POST", "/api/auth/logout/")
        self.session.cookies.clear()
        return result

    def current_user(self):
        return self._request("GET", "/api/auth/user/")

    def subscription(self):
        return self._request("GET", "/api/subscription/")

    # Documents
    def upload_document(self, kind, filename, content, content_type="application/pdf"):
        return self._request(
            "POST", "/api/documents/",
            data={"kind": kind},
            files={"file": (filename, content, content_type)},
        )

    def analysis(self):
        return self._request("GET", "/api/documents/analysis/")

    # Interviews
    def start_interview(self, grade="eo", framework="old", competencies=None, job_title=None):
        body = {"grade": grade, "framework": framework, "competencies": competencies or []}
        if job_title:
            body["job_title"] = job_title
        return self._request("POST", "/api/interviews/start/", json=body)

    def interviews(self):
        return self._request("GET", "/api/interviews/")

    def interview(self, interview_id):
        return self._request("GET", f"/api/interviews/{interview_id}/")

    def questions(self, interview_id):
        return self._request("GET", f"/api/interviews/{interview_id}/questions/")

    def answers(self, interview_id, latest=False):
        params = {"latest": "true"} if latest else None
        return self._request("GET", f"/api/interviews/{interview_id}/answers/", params=params)

    def advance(self, interview_id):
        return self._request("POST", f"/api/interviews/{interview_id}/advance/")

    def go_back(self, interview_id):
        return self._request("POST", f"/api/interviews/{interview_id}/go-back/")

    def abandon(self, interview_id):
        return self._request("POST", f"/api/interviews/{interview_id}/abandon/")

    def export(self, interview_id):
        return self._request("GET", f"/api/interviews/{interview_id}/export/")

    # Answers
    def submit_answer(self, interview_id, question_id, answer_text, time_spent_seconds=0):
        return self._request("POST", "/api/answers/", json={
            "interview_id": str(interview_id),
            "question_id": str(question_id),
            "answer_text": answer_text,
            "time_spent_seconds": int(time_spent_seconds),
        })

    def evaluate_answer(self, answer_id):
        return self._request("POST", f"/api/answers/{answer_id}/evaluate/")

    def transcribe(self, filename, content, content_type="audio/webm"):
        result = self._request(
            "POST", "/api/speech/transcribe/",
            files={"audio": (filename, content, content_type)},
        )
        return result["transcript"]

    # Public
    def health(self):
        return self._request("GET", "/api/health/")

    def sample_evaluate(self, question_text, answer_text, competency="team_leadership", grade="eo"):
        return self._request("POST", "/api/sample/evaluate/", json={
            "question_text": question_text,
            "answer_text": answer_text,
            "competency": competency,
            "grade": grade,
        })

    def contact(self, name, email, subject, message):
        return self._request("POST", "/api/contact/", json={
            "name": name, "email": email, "subject": subject, "message": message,
        })
