import json
from unittest import mock

from django.contrib.auth.models import User
from django.core import mail
from django.core.cache import cache
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import override_settings
from rest_framework import status
from rest_framework.test import APIClient, APITestCase
from rest_framework.throttling import ScopedRateThrottle

from cvBot.models import Document

from . import grades, progression
from .exceptions import EvaluationUnavailable
from .models import Answer, InterviewSession, Rating, Subscription

ANSWER = (
    "Situation: our unit had a backlog of 400 grant applications. Task: I was asked to clear it "
    "within six weeks. Action: I split the work by complexity and trained two colleagues. "
    "Result: the backlog was cleared in five weeks."
)


def generated_questions(framework="old"):
    config = grades.get_framework(framework)
    return {
        "questions": [
            {"competency": label, "question_text": f"Tell us about {label} ({i})", "difficulty": "intermediate"}
            for _, label in config.competencies
            for i in range(config.questions_per_unit)
        ]
    }


def evaluation(score=7.2):
    return {
        "overall_score": score,
        "competency_scores": {"team_leadership": score},
        "star_method_analysis": {"situation": 7, "task": 6, "action": 8, "result": 7},
        "feedback": "A clear, well structured answer.",
        "strengths": ["Clear structure"],
        "improvement_areas": ["Quantify impact"],
        "improved_answer": "Situation: ... Task: ... Action: ... Result: ...",
    }


class StartInterviewAPITestCase(APITestCase):
    def setUp(self):
        self.user = User.objects.create_user(username="testuser", password="password123")
        self.client.login(username="testuser", password="password123")

    @mock.patch("interviewBot.ai.complete_json")
    def test_start_interview(self, complete_json):
        complete_json.return_value = generated_questions()
        response = self.client.post("/api/interviews/start/", {"grade": "HEO", "framework": "old"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        interview = response.data["interview"]
        self.assertEqual(interview["grade"], "heo")
        self.assertEqual(interview["total_questions"], 12)
        self.assertEqual(len(response.data["questions"]), 12)
        self.assertEqual(response.data["current_question"]["order"], 0)
        self.assertEqual(response.data["questions"][0]["competency"], "team_leadership")
        self.assertEqual(InterviewSession.objects.get(pk=interview["id"]).questions.count(), 12)

    @mock.patch("interviewBot.ai.complete_json")
    def test_start_uses_job_spec_title(self, complete_json):
        complete_json.return_value = generated_questions("new")
        Document.objects.create(
            user=self.user, kind=Document.JOB_SPEC, filename="spec.txt",
            raw_text="Job Title: Higher Executive Officer, Climate Unit\nDuties include...",
        )
        response = self.client.post("/api/interviews/start/", {"grade": "heo", "framework": "new"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["interview"]["job_title"], "Higher Executive Officer, Climate Unit")
        self.assertIn("Climate Unit", complete_json.call_args[0][1])

    def test_start_rejects_unknown_grade(self):
        response = self.client.post("/api/interviews/start/", {"grade": "ceo"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    @mock.patch("interviewBot.ai.complete_json")
    def test_free_user_second_start_refused_without_ai_call(self, complete_json):
        progression.create_session(self.user, "eo", "old", [
            {"competency": "team_leadership", "question_text": "Q", "difficulty": "beginner"}
        ])
        response = self.client.post("/api/interviews/start/", {"grade": "eo"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data["code"], "FreeLimitReached")
        self.assertTrue(response.data["upgrade_required"])
        complete_json.assert_not_called()

    @mock.patch("interviewBot.ai.complete_json")
    def test_generation_failure_keeps_starter_credit(self, complete_json):
        Subscription.objects.filter(user=self.user).update(status=Subscription.STARTER)
        complete_json.side_effect = EvaluationUnavailable(EvaluationUnavailable.TIMEOUT)
        response = self.client.post("/api/interviews/start/", {"grade": "eo"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_503_SERVICE_UNAVAILABLE)
        self.assertTrue(response.data["retryable"])
        self.assertEqual(response.data["kind"], "timeout")
        self.assertFalse(InterviewSession.objects.filter(user=self.user).exists())
        self.assertEqual(Subscription.objects.get(user=self.user).starter_interviews_used, 0)

    def test_unauthenticated_gets_401(self):
        self.client.logout()
        response = self.client.post("/api/interviews/start/", {"grade": "eo"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


class AnswerAPITestCase(APITestCase):
    def setUp(self):
        self.user = User.objects.create_user(username="testuser", password="password123")
        Subscription.objects.filter(user=self.user).update(status=Subscription.PREMIUM)
        self.client.login(username="testuser", password="password123")
        self.interview = progression.create_session(self.user, "heo", "old", [
            {"competency": "team_leadership", "question_text": f"Question {i}", "difficulty": "intermediate"}
            for i in range(3)
        ])
        self.questions = list(self.interview.questions.all())

    def submit(self, question, text=ANSWER):
        return self.client.post("/api/answers/", {
            "interview_id": str(self.interview.pk),
            "question_id": str(question.pk),
            "answer_text": text,
            "time_spent_seconds": 95,
        }, format="json")

    @mock.patch("interviewBot.ai.complete_json")
    def test_short_answer_rejected_before_ai_call(self, complete_json):
        response = self.submit(self.questions[0], "  Too short.  " + " " * 200)

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["code"], "AnswerTooShort")
        self.assertFalse(Answer.objects.exists())
        complete_json.assert_not_called()

    @mock.patch("interviewBot.ai.complete_json")
    def test_submit_answer(self, complete_json):
        complete_json.return_value = evaluation(7.2)
        response = self.submit(self.questions[0])

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["rating"]["overall_score"], 7.2)
        self.assertEqual(response.data["rating"]["score_percentage"], 72)
        self.assertEqual(response.data["answer"]["rating"]["id"], response.data["rating"]["id"])
        self.assertEqual(response.data["interview"]["completed_questions"], 1)
        self.assertEqual(response.data["interview"]["status"], "in_progress")

    @mock.patch("interviewBot.ai.complete_json")
    def test_provider_failure_keeps_answer_and_retry_evaluates(self, complete_json):
        complete_json.side_effect = EvaluationUnavailable(EvaluationUnavailable.QUOTA)
        response = self.submit(self.questions[0])

        self.assertEqual(response.status_code, status.HTTP_429_TOO_MANY_REQUESTS)
        self.assertTrue(response.data["retryable"])
        answer_id = response.data["answer"]["id"]
        self.assertTrue(Answer.objects.filter(pk=answer_id).exists())
        self.assertFalse(Rating.objects.exists())

        complete_json.side_effect = None
        complete_json.return_value = evaluation(6.0)
        response = self.client.post(f"/api/answers/{answer_id}/evaluate/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["rating"]["overall_score"], 6.0)
        self.assertEqual(response.data["interview"]["completed_questions"], 1)

        response = self.client.post(f"/api/answers/{answer_id}/evaluate/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(complete_json.call_count, 2)
        self.assertEqual(Rating.objects.count(), 1)
        self.interview.refresh_from_db()
        self.assertEqual(self.interview.completed_questions, 1)

    @mock.patch("interviewBot.ai.complete_json")
    def test_malformed_evaluation_is_retryable(self, complete_json):
        complete_json.return_value = {"overall_score": 42}
        response = self.submit(self.questions[0])

        self.assertEqual(response.status_code, status.HTTP_503_SERVICE_UNAVAILABLE)
        self.assertEqual(response.data["kind"], "malformed")
        self.assertEqual(Answer.objects.count(), 1)

    @mock.patch("interviewBot.ai.complete_json")
    def test_completing_every_question(self, complete_json):
        for question, score in zip(self.questions, (6.0, 7.0, 8.0)):
            complete_json.return_value = evaluation(score)
            response = self.submit(question)
            self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        interview = response.data["interview"]
        self.assertEqual(interview["completed_questions"], 3)
        self.assertEqual(interview["average_score"], 7.0)
        self.assertEqual(interview["status"], "completed")
        self.assertFalse(interview["is_active"])
        self.assertTrue(interview["passed"])
        self.assertIsNotNone(interview["completed_at"])

    @mock.patch("interviewBot.ai.complete_json")
    def test_resubmission_keeps_history(self, complete_json):
        complete_json.return_value = evaluation(5.0)
        self.submit(self.questions[0])
        complete_json.return_value = evaluation(8.0)
        response = self.submit(self.questions[0])

        self.assertEqual(response.data["interview"]["completed_questions"], 1)
        response = self.client.get(f"/api/questions/{self.questions[0].pk}/answers/")
        self.assertEqual(len(response.data), 2)
        self.assertEqual(response.data[0]["rating"]["overall_score"], 8.0)

        response = self.client.get(f"/api/interviews/{self.interview.pk}/answers/?latest=true")
        self.assertEqual(len(response.data), 1)

    def test_abandoned_interview_rejects_answers(self):
        progression.abandon(self.interview)
        response = self.submit(self.questions[0])
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["code"], "InterviewEnded")

    @mock.patch("interviewBot.ai.complete_json")
    def test_retry_after_abandon_does_not_complete(self, complete_json):
        complete_json.side_effect = EvaluationUnavailable(EvaluationUnavailable.TIMEOUT)
        response = self.submit(self.questions[0])
        self.assertEqual(response.status_code, status.HTTP_503_SERVICE_UNAVAILABLE)
        answer_id = response.data["answer"]["id"]

        progression.abandon(self.interview)
        complete_json.side_effect = None
        complete_json.return_value = evaluation(6.0)
        response = self.client.post(f"/api/answers/{answer_id}/evaluate/")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["code"], "InterviewEnded")
        self.assertEqual(response.data["answer"]["id"], answer_id)
        self.assertEqual(complete_json.call_count, 1)
        self.assertFalse(Rating.objects.exists())
        self.interview.refresh_from_db()
        self.assertEqual(self.interview.status, InterviewSession.ABANDONED)
        self.assertIsNone(self.interview.completed_at)

    @mock.patch("interviewBot.ai.complete_json")
    def test_abandoned_while_evaluating(self, complete_json):
        def abandon_then_evaluate(*args, **kwargs):
            progression.abandon(self.interview)
            return evaluation(8.0)

        complete_json.side_effect = abandon_then_evaluate
        response = self.submit(self.questions[0])

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["code"], "InterviewEnded")
        self.assertTrue(Answer.objects.filter(pk=response.data["answer"]["id"]).exists())
        self.assertFalse(Rating.objects.exists())
        self.interview.refresh_from_db()
        self.assertEqual(self.interview.status, InterviewSession.ABANDONED)
        self.assertEqual(self.interview.completed_questions, 0)

    def test_question_from_other_interview_rejected(self):
        other = progression.create_session(self.user, "eo", "old", [
            {"competency": "drive_commitment", "question_text": "Other", "difficulty": "beginner"}
        ])
        response = self.client.post("/api/answers/", {
            "interview_id": str(other.pk),
            "question_id": str(self.questions[0].pk),
            "answer_text": ANSWER,
        }, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_other_users_interview_not_found(self):
        User.objects.create_user(username="intruder", password="password123")
        self.client.login(username="intruder", password="password123")

        self.assertEqual(self.submit(self.questions[0]).status_code, status.HTTP_404_NOT_FOUND)
        response = self.client.get(f"/api/interviews/{self.interview.pk}/")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class InterviewNavigationAPITestCase(APITestCase):
    def setUp(self):
        self.user = User.objects.create_user(username="testuser", password="password123")
        self.client.login(username="testuser", password="password123")
        self.interview = progression.create_session(self.user, "eo", "new", [
            {"competency": "leading_and_empowering", "question_text": f"Question {i}", "difficulty": "beginner"}
            for i in range(2)
        ])

    def test_advance_and_go_back(self):
        url = f"/api/interviews/{self.interview.pk}"
        response = self.client.post(f"{url}/advance/")
        self.assertTrue(response.data["changed"])
        self.assertEqual(response.data["interview"]["current_question_index"], 1)
        self.assertEqual(response.data["current_question"]["order"], 1)

        response = self.client.post(f"{url}/advance/")
        self.assertFalse(response.data["changed"])
        self.assertEqual(response.data["interview"]["current_question_index"], 1)

        response = self.client.post(f"{url}/go-back/")
        self.assertEqual(response.data["interview"]["current_question_index"], 0)
        response = self.client.post(f"{url}/go-back/")
        self.assertFalse(response.data["changed"])

    def test_ended_interview_does_not_move(self):
        url = f"/api/interviews/{self.interview.pk}"
        self.client.post(f"{url}/abandon/")

        response = self.client.post(f"{url}/advance/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data["changed"])
        self.assertEqual(response.data["interview"]["current_question_index"], 0)
        self.assertEqual(response.data["interview"]["status"], "abandoned")

    def test_unknown_action(self):
        response = self.client.post(f"/api/interviews/{self.interview.pk}/jump/")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_abandon(self):
        response = self.client.post(f"/api/interviews/{self.interview.pk}/abandon/")
        self.assertEqual(response.data["interview"]["status"], "abandoned")
        self.assertFalse(response.data["interview"]["is_active"])

    def test_list_detail_and_delete(self):
        response = self.client.get("/api/interviews/")
        self.assertEqual(len(response.data), 1)

        response = self.client.get(f"/api/interviews/{self.interview.pk}/")
        self.assertEqual(response.data["interview"]["id"], str(self.interview.pk))
        self.assertEqual(response.data["current_question"]["question_text"], "Question 0")

        response = self.client.get(f"/api/interviews/{self.interview.pk}/questions/")
        self.assertEqual(len(response.data), 2)
        self.assertEqual(response.data[0]["competency_label"], "Leading and Empowering")

        response = self.client.delete(f"/api/interviews/{self.interview.pk}/")
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(InterviewSession.objects.exists())

    def test_export(self):
        question = self.interview.questions.first()
        answer = Answer.objects.create(interview=self.interview, question=question, answer_text=ANSWER)
        progression.record_answer_completion(answer, evaluation(6.5))

        response = self.client.get(f"/api/interviews/{self.interview.pk}/export/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn("attachment", response["Content-Disposition"])
        report = json.loads(response.content)
        self.assertEqual(report["interview"]["grade"], "EO")
        self.assertEqual(report["interview"]["passing_score"], 60)
        self.assertEqual(report["questions"][0]["rating"]["score_percentage"], 65)
        self.assertIsNone(report["questions"][1]["answer"])


class SubscriptionAndSpeechAPITestCase(APITestCase):
    def setUp(self):
        self.user = User.objects.create_user(username="testuser", password="password123")
        self.client.login(username="testuser", password="password123")

    def test_subscription_summary(self):
        response = self.client.get("/api/subscription/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["status"], "free")
        self.assertTrue(response.data["can_start_interview"])

    def test_transcribe_rejects_non_audio(self):
        upload = SimpleUploadedFile("notes.txt", b"hello", content_type="text/plain")
        response = self.client.post("/api/speech/transcribe/", {"audio": upload}, format="multipart")
        self.assertEqual(response.status_code, status.HTTP_415_UNSUPPORTED_MEDIA_TYPE)

    @override_settings(MAX_AUDIO_SIZE=10)
    def test_transcribe_rejects_large_audio(self):
        upload = SimpleUploadedFile("answer.webm", b"x" * 20, content_type="audio/webm")
        response = self.client.post("/api/speech/transcribe/", {"audio": upload}, format="multipart")
        self.assertEqual(response.status_code, status.HTTP_413_REQUEST_ENTITY_TOO_LARGE)

    @mock.patch("interviewBot.ai.get_client")
    def test_transcribe(self, get_client):
        get_client.return_value.audio.transcriptions.create.return_value = mock.Mock(text=" I led the team. ")
        upload = SimpleUploadedFile("answer.webm", b"audio-bytes", content_type="audio/webm")
        response = self.client.post("/api/speech/transcribe/", {"audio": upload}, format="multipart")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["transcript"], "I led the team.")

    @override_settings(GROQ_API_KEY="")
    def test_transcribe_without_provider_is_retryable(self):
        upload = SimpleUploadedFile("answer.webm", b"audio-bytes", content_type="audio/webm")
        response = self.client.post("/api/speech/transcribe/", {"audio": upload}, format="multipart")
        self.assertEqual(response.status_code, status.HTTP_503_SERVICE_UNAVAILABLE)
        self.assertEqual(response.data["code"], "TranscriptionFailed")


class AuthAPITestCase(APITestCase):
    def test_register_login_logout(self):
        response = self.client.post("/api/auth/register/", {
            "username": "newuser", "email": "New@Example.com", "password": "password123",
        }, format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["user"]["email"], "new@example.com")
        self.assertEqual(response.data["subscription"]["status"], "free")

        response = self.client.get("/api/auth/user/")
        self.assertEqual(response.data["user"]["username"], "newuser")

        self.client.post("/api/auth/logout/")
        self.assertEqual(self.client.get("/api/auth/user/").status_code, status.HTTP_401_UNAUTHORIZED)

        response = self.client.post("/api/auth/login/", {"username": "newuser", "password": "password123"},
                                    format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_bad_login(self):
        User.objects.create_user(username="someone", password="password123")
        response = self.client.post("/api/auth/login/", {"username": "someone", "password": "wrong"},
                                    format="json")
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_duplicate_email(self):
        User.objects.create_user(username="someone", email="taken@example.com", password="password123")
        response = self.client.post("/api/auth/register/", {
            "username": "other", "email": "taken@example.com", "password": "password123",
        }, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class PublicAPITestCase(APITestCase):
    def setUp(self):
        cache.clear()

    def test_health(self):
        response = self.client.get("/api/health/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["status"], "ok")

    @mock.patch("interviewBot.ai.complete_json")
    def test_sample_evaluation_without_account(self, complete_json):
        complete_json.return_value = evaluation(6.5)
        response = self.client.post("/api/sample/evaluate/", {
            "question_text": "Describe a time you led a team through change.",
            "answer_text": ANSWER,
        }, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["evaluation"]["overall_score"], 6.5)
        self.assertEqual(response.data["score_percentage"], 65)
        self.assertIn("Team Leadership", complete_json.call_args[0][1])
        self.assertFalse(Answer.objects.exists())
        self.assertFalse(Rating.objects.exists())

    @mock.patch("interviewBot.ai.complete_json")
    def test_sample_evaluation_validates_input(self, complete_json):
        response = self.client.post("/api/sample/evaluate/", {"answer_text": ANSWER}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.post("/api/sample/evaluate/", {
            "question_text": "Describe a time you led a team.",
            "answer_text": "I did it.",
        }, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["code"], "AnswerTooShort")
        complete_json.assert_not_called()

    @mock.patch("interviewBot.ai.complete_json")
    def test_sample_evaluation_provider_failure_is_retryable(self, complete_json):
        complete_json.side_effect = EvaluationUnavailable(EvaluationUnavailable.UNAVAILABLE)
        response = self.client.post("/api/sample/evaluate/", {
            "question_text": "Describe a time you led a team.",
            "answer_text": ANSWER,
        }, format="json")
        self.assertEqual(response.status_code, status.HTTP_503_SERVICE_UNAVAILABLE)
        self.assertTrue(response.data["retryable"])

    @mock.patch.dict(ScopedRateThrottle.THROTTLE_RATES, {"sample_evaluation": "1/minute"})
    @mock.patch("interviewBot.ai.complete_json")
    def test_sample_evaluation_is_throttled(self, complete_json):
        complete_json.return_value = evaluation()
        body = {"question_text": "Describe a time you led a team.", "answer_text": ANSWER}

        self.assertEqual(self.client.post("/api/sample/evaluate/", body, format="json").status_code,
                         status.HTTP_200_OK)
        self.assertEqual(self.client.post("/api/sample/evaluate/", body, format="json").status_code,
                         status.HTTP_429_TOO_MANY_REQUESTS)
        self.assertEqual(complete_json.call_count, 1)

    @override_settings(NOTIFICATIONS_ASYNC=False, SUPPORT_EMAIL="help@example.com")
    @mock.patch("interviewBot.notifications.get_crm_service")
    def test_contact_form(self, get_crm_service):
        response = self.client.post("/api/contact/", {
            "name": "Aoife Byrne",
            "email": "aoife@example.com",
            "subject": "Group pricing",
            "message": "Do you offer a rate for a team of ten?",
        }, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data["success"])
        self.assertEqual(len(mail.outbox), 2)
        support, confirmation = mail.outbox
        self.assertEqual(support.to, ["help@example.com"])
        self.assertEqual(support.reply_to, ["aoife@example.com"])
        self.assertIn("team of ten", support.body)
        self.assertEqual(confirmation.to, ["aoife@example.com"])
        crm = get_crm_service.return_value
        self.assertEqual(crm.update_contact.call_args[0][0], "aoife@example.com")
        self.assertEqual(crm.update_contact.call_args[0][1]["last_feature_used"], "contact_form_submission")

    @override_settings(NOTIFICATIONS_ASYNC=False)
    def test_contact_form_validation(self):
        response = self.client.post("/api/contact/", {
            "name": "Aoife", "email": "not-an-email", "subject": "Hi", "message": "Hello",
        }, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("email", response.data["details"])

        response = self.client.post("/api/contact/", {
            "name": "Aoife", "email": "aoife@example.com", "subject": "Hi", "message": "x" * 2001,
        }, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(len(mail.outbox), 0)

    @override_settings(NOTIFICATIONS_ASYNC=False)
    @mock.patch("interviewBot.notifications.get_crm_service")
    def test_contact_form_needs_no_csrf_token_when_logged_in(self, get_crm_service):
        User.objects.create_user(username="testuser", password="password123")
        client = APIClient(enforce_csrf_checks=True)
        client.login(username="testuser", password="password123")

        response = client.post("/api/contact/", {
            "name": "Aoife", "email": "aoife@example.com", "subject": "Hi", "message": "Hello there",
        }, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
