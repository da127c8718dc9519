"""
Client-side sequencing of a practice interview.

The controller holds all per-question state explicitly (drafts, voice
transcripts, ratings) and reports what happened through an ``EventBus``
instead of module-level globals, so a UI can subscribe to the events it
renders: upgrade prompts, retry banners, the login redirect.
"""
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from .exceptions import (
    ApiError,
    AuthenticationRequired,
    EvaluationUnavailable,
    LimitExceeded,
    PrepError,
    TranscriptionFailed,
    ValidationFailed,
)

logger = logging.getLogger(__name__)


class ControllerEvent(str, Enum):
    INTERVIEW_LOADED = "interview_loaded"
    QUESTION_CHANGED = "question_changed"
    TRANSCRIPT_UPDATED = "transcript_updated"
    TRANSCRIPTION_FAILED = "transcription_failed"
    EVALUATION_STARTED = "evaluation_started"
    EVALUATION_COMPLETED = "evaluation_completed"
    EVALUATION_FAILED = "evaluation_failed"
    VALIDATION_FAILED = "validation_failed"
    INTERVIEW_COMPLETED = "interview_completed"
    UPGRADE_REQUIRED = "upgrade_required"
    SESSION_EXPIRED = "session_expired"


@dataclass
class Message:
    event: ControllerEvent
    data: Dict[str, Any] = field(default_factory=dict)


Handler = Callable[[Message], None]


class EventBus:
    """Publish/subscribe channel between the controller and whatever renders it."""

    def __init__(self):
        self._handlers: Dict[ControllerEvent, List[Handler]] = {}
        self._global_handlers: List[Handler] = []

    def subscribe(self, event: ControllerEvent, handler: Handler) -> None:
        self._handlers.setdefault(event, []).append(handler)

    def subscribe_all(self, handler: Handler) -> None:
        self._global_handlers.append(handler)

    def unsubscribe(self, event: ControllerEvent, handler: Handler) -> None:
        try:
            self._handlers.get(event, []).remove(handler)
        except ValueError:
            logger.warning(f"Handler not found for {event}")

    def publish(self, event: ControllerEvent, **data) -> Message:
        message = Message(event, data)
        logger.debug(f"Publishing {event.value}")
        for handler in self._handlers.get(event, []) + self._global_handlers:
            try:
                handler(message)
            except Exception as e:
                logger.error(f"Error in handler for {event.value}: {e}")
        return message


def punctuate(segment: str) -> str:
    """Capitalise the first letter and make sure the segment ends a sentence."""
    cleaned = segment.strip()
    if not cleaned:
        return ""
    cleaned = cleaned[0].upper() + cleaned[1:]
    if not cleaned.endswith((".", "?", "!")):
        cleaned += "."
    return cleaned


class TranscriptBuffer:
    """
    Merges streaming speech recognition results into an answer.

    Interim results replace the pending interim text wholesale; final
    segments are appended to the accumulated text. Only ``text`` is ever
    submitted, ``display`` adds the interim text for rendering.
    """

    def __init__(self, text: str = ""):
        self.final_text = text.strip()
        self.interim_text = ""

    def update_interim(self, text: str) -> None:
        self.interim_text = text.strip()

    def add_final(self, segment: str) -> None:
        self.interim_text = ""
        punctuated = punctuate(segment)
        if punctuated:
            self.final_text = f"{self.final_text} {punctuated}" if self.final_text else punctuated

    def reset(self, text: str = "") -> None:
        self.final_text = text.strip()
        self.interim_text = ""

    @property
    def text(self) -> str:
        return self.final_text

    @property
    def display(self) -> str:
        return " ".join(part for part in (self.final_text, self.interim_text) if part)


@dataclass
class QuestionState:
    draft: str = ""
    transcript: TranscriptBuffer = field(default_factory=TranscriptBuffer)
    answer_id: Optional[str] = None
    evaluated_text: Optional[str] = None
    rating: Optional[Dict[str, Any]] = None
    in_flight: bool = False


class SessionController:
    def __init__(self, api, bus: Optional[EventBus] = None):
        self.api = api
        self.bus = bus or EventBus()
        self._reset()

    def _reset(self) -> None:
        self.interview: Optional[Dict[str, Any]] = None
        self.questions: List[Dict[str, Any]] = []
        self.index = 0
        self._states: Dict[str, QuestionState] = {}

    # Loading

    def start(self, grade="eo", framework="old", competencies=None, job_title=None) -> bool:
        try:
            data = self.api.start_interview(grade, framework, competencies=competencies, job_title=job_title)
        except PrepError as e:
            self._handle_error(e)
            return False
        self._set_interview(data["interview"], data["questions"])
        return True

    def load(self, interview_id) -> bool:
        """Resume an existing interview, restoring the latest rating of each question."""
        try:
            detail = self.api.interview(interview_id)
            questions = self.api.questions(interview_id)
            answers = self.api.answers(interview_id, latest=True)
        except PrepError as e:
            self._handle_error(e)
            return False

        self._set_interview(detail["interview"], questions)
        for answer in answers:
            state = self._states.get(str(answer["question"]))
            if state is None:
                continue
            state.answer_id = str(answer["id"])
            state.draft = answer["answer_text"]
            state.transcript.reset(answer["answer_text"])
            state.evaluated_text = answer["answer_text"]
            state.rating = answer.get("rating")
        return True

    def _set_interview(self, interview, questions) -> None:
        self.interview = interview
        self.questions = list(questions)
        self.index = min(interview.get("current_question_index", 0), max(len(self.questions) - 1, 0))
        self._states = {str(q["id"]): QuestionState() for q in self.questions}
        self.bus.publish(ControllerEvent.INTERVIEW_LOADED, interview=interview)
        self.bus.publish(ControllerEvent.QUESTION_CHANGED, index=self.index, question=self.current_question)

    # Current question

    @property
    def current_question(self) -> Optional[Dict[str, Any]]:
        if not self.questions:
            return None
        return self.questions[self.index]

    @property
    def state(self) -> Optional[QuestionState]:
        question = self.current_question
        return self._states.get(str(question["id"])) if question else None

    @property
    def draft(self) -> str:
        return self.state.draft if self.state else ""

    def set_draft(self, text: str) -> None:
        """Typed edits replace the draft; later voice segments append to it."""
        if self.state is None:
            return
        self.state.draft = text
        self.state.transcript.reset(text)

    def apply_transcript(self, text: str, is_final: bool = False) -> None:
        state = self.state
        if state is None:
            return
        if is_final:
            state.transcript.add_final(text)
            state.draft = state.transcript.text
        else:
            state.transcript.update_interim(text)
        self.bus.publish(
            ControllerEvent.TRANSCRIPT_UPDATED,
            draft=state.draft, display=state.transcript.display, is_final=is_final,
        )

    def transcribe(self, filename, content, content_type="audio/webm") -> Optional[str]:
        """Send a recording for server-side transcription and append it as a final segment."""
        try:
            transcript = self.api.transcribe(filename, content, content_type)
        except AuthenticationRequired:
            self._expire()
            return None
        except (TranscriptionFailed, ValidationFailed) as e:
            self.bus.publish(ControllerEvent.TRANSCRIPTION_FAILED, message=e.message,
                             retryable=isinstance(e, EvaluationUnavailable))
            return None
        self.apply_transcript(transcript, is_final=True)
        return transcript

    # Submission

    def can_submit(self, answer: Optional[str] = None) -> bool:
        state = self.state
        if state is None or state.in_flight:
            return False
        text = state.draft if answer is None else answer
        return bool(text.strip())

    def submit(self, answer: Optional[str] = None, time_elapsed: int = 0) -> Optional[Dict[str, Any]]:
        """
        Submit the current answer for evaluation and return the rating.

        Returns None without calling the API while the answer is blank or an
        evaluation for this question is already in flight. When an earlier
        attempt stored the same text but could not be evaluated, only the
        evaluation is retried.
        """
        if not self.can_submit(answer):
            return None

        state = self.state
        question = self.current_question
        text = (state.draft if answer is None else answer).strip()
        state.draft = text
        state.in_flight = True
        self.bus.publish(ControllerEvent.EVALUATION_STARTED, question_id=question["id"])

        try:
            if state.answer_id and state.rating is None and state.evaluated_text == text:
                result = self.api.evaluate_answer(state.answer_id)
            else:
                result = self.api.submit_answer(self.interview["id"], question["id"], text, time_elapsed)
        except AuthenticationRequired:
            self._expire()
            return None
        except EvaluationUnavailable as e:
            answer_data = getattr(e, "body", {}).get("answer") or {}
            if answer_data.get("id"):
                state.answer_id = str(answer_data["id"])
                state.evaluated_text = text
                state.rating = None
            self.bus.publish(ControllerEvent.EVALUATION_FAILED, message=e.message, kind=e.kind, retryable=True)
            return None
        except LimitExceeded as e:
            self.bus.publish(ControllerEvent.UPGRADE_REQUIRED, reason=e.reason, message=e.message)
            return None
        except ValidationFailed as e:
            self.bus.publish(ControllerEvent.VALIDATION_FAILED, code=e.code, message=e.message)
            return None
        except ApiError as e:
            self.bus.publish(ControllerEvent.EVALUATION_FAILED, message=e.message, retryable=False)
            return None
        finally:
            state.in_flight = False

        state.answer_id = str(result["answer"]["id"])
        state.evaluated_text = text
        state.rating = result["rating"]
        self.interview = result["interview"]
        self.bus.publish(ControllerEvent.EVALUATION_COMPLETED, question_id=question["id"], rating=state.rating)
        if self.interview.get("completed_at"):
            self.bus.publish(ControllerEvent.INTERVIEW_COMPLETED, interview=self.interview)
        return state.rating

    # Navigation

    def can_go_next(self) -> bool:
        state = self.state
        return state is not None and state.rating is not None and self.index < len(self.questions) - 1

    def can_go_previous(self) -> bool:
        return self.current_question is not None and self.index > 0

    def next(self) -> bool:
        """Move forward. Rejected until the current question has a rating."""
        if not self.can_go_next():
            return False
        return self._move(self.api.advance, self.index + 1)

    def previous(self) -> bool:
        """Move back. Never requires the earlier question to be answered again."""
        if not self.can_go_previous():
            return False
        return self._move(self.api.go_back, self.index - 1)

    def _move(self, call, target) -> bool:
        # The server no longer moves a finished interview; reviewing it is local.
        if self.interview.get("completed_at"):
            self.index = target
            self.bus.publish(ControllerEvent.QUESTION_CHANGED, index=self.index, question=self.current_question)
            return True
        try:
            data = call(self.interview["id"])
        except PrepError as e:
            self._handle_error(e)
            return False
        self.interview = data["interview"]
        self.index = min(self.interview.get("current_question_index", target), len(self.questions) - 1)
        self.bus.publish(ControllerEvent.QUESTION_CHANGED, index=self.index, question=self.current_question)
        return True

    # Errors

    def _handle_error(self, exc) -> None:
        if isinstance(exc, AuthenticationRequired):
            self._expire()
        elif isinstance(exc, LimitExceeded):
            self.bus.publish(ControllerEvent.UPGRADE_REQUIRED, reason=exc.reason, message=exc.message)
        elif isinstance(exc, ValidationFailed):
            self.bus.publish(ControllerEvent.VALIDATION_FAILED, code=exc.code, message=exc.message)
        else:
            self.bus.publish(ControllerEvent.EVALUATION_FAILED, message=exc.message,
                             retryable=isinstance(exc, EvaluationUnavailable))

    def _expire(self) -> None:
        logger.info("Session expired, clearing interview state")
        self._reset()
        self.bus.publish(ControllerEvent.SESSION_EXPIRED)
