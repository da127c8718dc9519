import json
from unittest import mock

import requests
from django.test import SimpleTestCase

from .client import PrepApiClient, error_from_response
from .controller import ControllerEvent, EventBus, SessionController, TranscriptBuffer, punctuate
from .exceptions import (
    AnswerTooShort,
    ApiError,
    AuthenticationRequired,
    EvaluationUnavailable,
    InterviewEnded,
    LimitExceeded,
    TranscriptionFailed,
)

ANSWER = "Situation: I led a team of five through a restructuring. " * 3


def interview(index=0, completed_at=None):
    return {"id": "int-1", "current_question_index": index, "total_questions": 3, "completed_at": completed_at}


QUESTIONS = [{"id": f"q-{i}", "order": i, "question_text": f"Question {i}"} for i in range(3)]


def submitted(question_id, index=0, completed_at=None):
    return {
        "answer": {"id": f"a-{question_id}", "question": question_id},
        "rating": {"id": f"r-{question_id}", "overall_score": 7.0},
        "interview": interview(index, completed_at),
    }


class RecordingBus(EventBus):
    def __init__(self):
        super().__init__()
        self.events = []
        self.subscribe_all(self.events.append)

    def names(self):
        return [message.event for message in self.events]


class SessionControllerTestCase(SimpleTestCase):
    def setUp(self):
        self.api = mock.Mock()
        self.api.start_interview.return_value = {"interview": interview(), "questions": QUESTIONS}
        self.api.advance.side_effect = lambda interview_id: {"interview": interview(1)}
        self.api.go_back.side_effect = lambda interview_id: {"interview": interview(0)}
        self.bus = RecordingBus()
        self.controller = SessionController(self.api, self.bus)
        self.assertTrue(self.controller.start(grade="heo"))

    def test_start_publishes_first_question(self):
        self.assertEqual(self.controller.current_question["id"], "q-0")
        self.assertEqual(self.bus.names(), [ControllerEvent.INTERVIEW_LOADED, ControllerEvent.QUESTION_CHANGED])

    def test_next_rejected_until_rated(self):
        self.assertFalse(self.controller.can_go_next())
        self.assertFalse(self.controller.next())
        self.api.advance.assert_not_called()
        self.assertEqual(self.controller.index, 0)

        self.api.submit_answer.return_value = submitted("q-0")
        self.controller.set_draft(ANSWER)
        self.assertIsNotNone(self.controller.submit(time_elapsed=42))
        self.api.submit_answer.assert_called_once_with("int-1", "q-0", ANSWER.strip(), 42)

        self.assertTrue(self.controller.can_go_next())
        self.assertTrue(self.controller.next())
        self.assertEqual(self.controller.index, 1)
        self.assertEqual(self.controller.current_question["id"], "q-1")

    def test_previous_does_not_require_answer(self):
        self.api.submit_answer.return_value = submitted("q-0")
        self.controller.submit(ANSWER)
        self.controller.next()

        self.assertTrue(self.controller.can_go_previous())
        self.assertTrue(self.controller.previous())
        self.assertEqual(self.controller.index, 0)
        self.assertIsNotNone(self.controller.state.rating)
        self.assertTrue(self.controller.can_go_next())
        self.assertFalse(self.controller.previous())

    def test_completed_interview_is_reviewed_locally(self):
        self.api.submit_answer.return_value = submitted("q-0", completed_at="2026-01-01T10:00:00Z")
        self.controller.submit(ANSWER)

        self.assertTrue(self.controller.next())
        self.assertEqual(self.controller.index, 1)
        self.assertTrue(self.controller.previous())
        self.assertEqual(self.controller.index, 0)
        self.api.advance.assert_not_called()
        self.api.go_back.assert_not_called()

    def test_blank_answer_is_noop(self):
        self.assertIsNone(self.controller.submit("   "))
        self.controller.set_draft("\n\t")
        self.assertFalse(self.controller.can_submit())
        self.assertIsNone(self.controller.submit())
        self.api.submit_answer.assert_not_called()

    def test_submit_is_noop_while_in_flight(self):
        self.api.submit_answer.return_value = submitted("q-0")
        nested = []
        self.bus.subscribe(
            ControllerEvent.EVALUATION_STARTED,
            lambda message: nested.append(self.controller.submit(ANSWER)),
        )

        self.controller.submit(ANSWER)
        self.assertEqual(nested, [None])
        self.assertEqual(self.api.submit_answer.call_count, 1)
        self.assertFalse(self.controller.state.in_flight)

    def test_transient_failure_keeps_draft_and_retries_evaluation_only(self):
        error = EvaluationUnavailable(EvaluationUnavailable.TIMEOUT)
        error.body = {"answer": {"id": "a-q-0"}}
        self.api.submit_answer.side_effect = error
        self.controller.set_draft(ANSWER)

        self.assertIsNone(self.controller.submit())
        self.assertEqual(self.controller.draft, ANSWER.strip())
        failed = self.bus.events[-1]
        self.assertEqual(failed.event, ControllerEvent.EVALUATION_FAILED)
        self.assertTrue(failed.data["retryable"])
        self.assertFalse(self.controller.can_go_next())

        self.api.evaluate_answer.return_value = submitted("q-0")
        self.assertIsNotNone(self.controller.submit())
        self.api.evaluate_answer.assert_called_once_with("a-q-0")
        self.assertEqual(self.api.submit_answer.call_count, 1)

    def test_edited_answer_is_resubmitted(self):
        error = EvaluationUnavailable()
        error.body = {"answer": {"id": "a-q-0"}}
        self.api.submit_answer.side_effect = [error, submitted("q-0")]
        self.controller.submit(ANSWER)
        self.controller.submit(ANSWER + " Result: done.")

        self.assertEqual(self.api.submit_answer.call_count, 2)
        self.api.evaluate_answer.assert_not_called()

    def test_validation_error_is_published(self):
        self.api.submit_answer.side_effect = AnswerTooShort("Too short")
        self.controller.submit("short answer")
        self.assertEqual(self.bus.events[-1].event, ControllerEvent.VALIDATION_FAILED)
        self.assertEqual(self.bus.events[-1].data["code"], "AnswerTooShort")

    def test_limit_error_requests_upgrade(self):
        self.api.start_interview.side_effect = LimitExceeded(LimitExceeded.FREE_LIMIT_REACHED)
        self.assertFalse(self.controller.start())
        message = self.bus.events[-1]
        self.assertEqual(message.event, ControllerEvent.UPGRADE_REQUIRED)
        self.assertEqual(message.data["reason"], "FreeLimitReached")

    def test_expired_session_clears_state(self):
        self.controller.set_draft(ANSWER)
        self.api.submit_answer.side_effect = AuthenticationRequired()
        self.controller.submit()

        self.assertEqual(self.bus.events[-1].event, ControllerEvent.SESSION_EXPIRED)
        self.assertIsNone(self.controller.interview)
        self.assertIsNone(self.controller.current_question)
        self.assertEqual(self.controller.draft, "")
        self.assertFalse(self.controller.next())

    def test_completion_is_published(self):
        self.api.submit_answer.return_value = submitted("q-0", completed_at="2026-01-01T10:00:00Z")
        self.controller.submit(ANSWER)
        self.assertEqual(self.bus.events[-1].event, ControllerEvent.INTERVIEW_COMPLETED)

    def test_voice_segments_build_the_draft(self):
        self.controller.set_draft("I joined the unit in 2019.")
        self.controller.apply_transcript("we had a backlog")
        self.assertEqual(self.controller.draft, "I joined the unit in 2019.")
        self.assertEqual(self.controller.state.transcript.display, "I joined the unit in 2019. we had a backlog")

        self.controller.apply_transcript("we had a backlog of claims", is_final=True)
        self.assertEqual(self.controller.draft, "I joined the unit in 2019. We had a backlog of claims.")

    def test_server_transcription_failure(self):
        self.api.transcribe.side_effect = TranscriptionFailed(TranscriptionFailed.QUOTA)
        self.assertIsNone(self.controller.transcribe("a.webm", b"..."))
        self.assertEqual(self.bus.events[-1].event, ControllerEvent.TRANSCRIPTION_FAILED)

        self.api.transcribe.side_effect = None
        self.api.transcribe.return_value = "i managed the budget"
        self.controller.transcribe("a.webm", b"...")
        self.assertEqual(self.controller.draft, "I managed the budget.")

    def test_load_restores_ratings(self):
        self.api.interview.return_value = {"interview": interview(1)}
        self.api.questions.return_value = QUESTIONS
        self.api.answers.return_value = [
            {"id": "a-1", "question": "q-0", "answer_text": ANSWER, "rating": {"overall_score": 6.0}},
        ]
        controller = SessionController(self.api)
        self.assertTrue(controller.load("int-1"))

        self.assertEqual(controller.index, 1)
        self.assertFalse(controller.can_go_next())
        controller.previous()
        self.assertEqual(controller.draft, ANSWER)
        self.assertTrue(controller.can_go_next())


class TranscriptBufferTestCase(SimpleTestCase):
    def test_interim_replaces_wholesale(self):
        buffer = TranscriptBuffer()
        buffer.update_interim("I was")
        buffer.update_interim("I was asked to")
        self.assertEqual(buffer.display, "I was asked to")
        self.assertEqual(buffer.text, "")

    def test_final_segments_append_with_punctuation(self):
        buffer = TranscriptBuffer()
        buffer.add_final("i was asked to lead")
        buffer.add_final("  did it work?  ")
        buffer.add_final("")
        self.assertEqual(buffer.text, "I was asked to lead. Did it work?")
        self.assertEqual(buffer.interim_text, "")

    def test_punctuate(self):
        self.assertEqual(punctuate("done."), "Done.")
        self.assertEqual(punctuate("wow!"), "Wow!")
        self.assertEqual(punctuate("   "), "")


class EventBusTestCase(SimpleTestCase):
    def test_failing_handler_does_not_stop_others(self):
        bus = EventBus()
        received = []
        bus.subscribe(ControllerEvent.SESSION_EXPIRED, mock.Mock(side_effect=RuntimeError("boom")))
        bus.subscribe(ControllerEvent.SESSION_EXPIRED, received.append)
        bus.publish(ControllerEvent.SESSION_EXPIRED)
        self.assertEqual(len(received), 1)

    def test_unsubscribe(self):
        bus = EventBus()
        handler = mock.Mock()
        bus.subscribe(ControllerEvent.QUESTION_CHANGED, handler)
        bus.unsubscribe(ControllerEvent.QUESTION_CHANGED, handler)
        bus.publish(ControllerEvent.QUESTION_CHANGED, index=1)
        handler.assert_not_called()


def make_response(status_code, body=None):
    response = requests.Response()
    response.status_code = status_code
    response.reason = "Error"
    response._content = json.dumps(body).encode() if body is not None else b""
    return response


class ApiClientTestCase(SimpleTestCase):
    def test_error_mapping(self):
        cases = [
            (401, {"detail": "Authentication credentials were not provided."}, AuthenticationRequired),
            (403, {"error": "Upgrade", "code": "StarterLimitReached", "reason": "StarterLimitReached",
                   "upgrade_required": True}, LimitExceeded),
            (429, {"error": "Busy", "code": "EvaluationUnavailable", "kind": "quota", "retryable": True},
             EvaluationUnavailable),
            (503, {"error": "Down", "code": "TranscriptionFailed", "kind": "unavailable", "retryable": True},
             TranscriptionFailed),
            (400, {"error": "Too short", "code": "AnswerTooShort"}, AnswerTooShort),
            (400, {"error": "Ended", "code": "InterviewEnded"}, InterviewEnded),
            (500, {"error": "An unexpected error occurred."}, ApiError),
        ]
        for status_code, body, error_class in cases:
            error = error_from_response(make_response(status_code, body))
            self.assertIsInstance(error, error_class)
            self.assertEqual(error.body, body)

    def test_limit_reason_and_kind_survive(self):
        error = error_from_response(make_response(403, {"reason": "StarterExpired", "upgrade_required": True}))
        self.assertEqual(error.reason, "StarterExpired")
        error = error_from_response(make_response(429, {"kind": "quota", "retryable": True}))
        self.assertEqual(error.kind, "quota")

    def test_request_sends_csrf_token_and_raises(self):
        session = mock.Mock()
        session.cookies.get.return_value = "token"
        session.request.return_value = make_response(401, {"detail": "Not logged in"})
        client = PrepApiClient("http://testserver/", session=session)

        with self.assertRaises(AuthenticationRequired):
            client.advance("int-1")
        args, kwargs = session.request.call_args
        self.assertEqual(args, ("POST", "http://testserver/api/interviews/int-1/advance/"))
        self.assertEqual(kwargs["headers"]["X-CSRFToken"], "token")

    def test_connection_errors_become_api_errors(self):
        session = mock.Mock()
        session.cookies.get.return_value = None
        session.request.side_effect = requests.ConnectionError("refused")
        client = PrepApiClient("http://testserver", session=session)
        with self.assertRaises(ApiError):
            client.subscription()
