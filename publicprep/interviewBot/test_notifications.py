from unittest import mock

import requests
from django.contrib.auth.models import User
from django.core import mail
from django.test import TestCase, override_settings

from . import notifications, progression
from .models import Answer, Subscription

ANSWER = "x" * 150


def evaluation(score):
    return {
        "overall_score": score,
        "competency_scores": {},
        "star_method_analysis": {"situation": 7, "task": 7, "action": 7, "result": 7},
        "feedback": "Fine.",
        "strengths": [],
        "improvement_areas": [],
        "improved_answer": "",
    }


class CRMServiceTestCase(TestCase):
    def test_only_enabled_providers_are_registered(self):
        service = notifications.CRMService([
            notifications.HubSpotProvider(api_key="key"),
            notifications.MondayProvider(api_key="key", board_id=""),
        ])
        self.assertEqual([p.name for p in service.providers], ["hubspot"])

    def test_failing_provider_does_not_stop_the_others(self):
        broken = mock.Mock(is_enabled=mock.Mock(return_value=True))
        broken.name = "broken"
        broken.update_contact.side_effect = requests.ConnectionError("down")
        working = mock.Mock(is_enabled=mock.Mock(return_value=True))
        working.name = "working"
        working.update_contact.return_value = True

        service = notifications.CRMService([broken, working])
        self.assertTrue(service.update_contact("someone@example.com", {"plan": "premium"}))
        working.update_contact.assert_called_once_with("someone@example.com", {"plan": "premium"})

    @mock.patch("interviewBot.notifications.requests.patch")
    @mock.patch("interviewBot.notifications.requests.post")
    def test_hubspot_existing_contact_is_updated(self, post, patch):
        post.return_value = mock.Mock(status_code=409)
        patch.return_value = mock.Mock(status_code=200)

        provider = notifications.HubSpotProvider(api_key="key", timeout=5)
        self.assertTrue(provider.create_contact("someone@example.com", {"firstname": "Aoife"}))

        url = patch.call_args[0][0]
        self.assertTrue(url.endswith("/contacts/someone@example.com"))
        self.assertEqual(patch.call_args.kwargs["params"], {"idProperty": "email"})
        self.assertEqual(patch.call_args.kwargs["timeout"], 5)

    @mock.patch("interviewBot.notifications.requests.post")
    def test_monday_graphql_errors_raise(self, post):
        post.return_value = mock.Mock(status_code=200)
        post.return_value.json.return_value = {"errors": [{"message": "bad board"}]}
        provider = notifications.MondayProvider(api_key="key", board_id="1", timeout=5)
        with self.assertRaises(RuntimeError):
            provider.update_contact("someone@example.com", {})


@override_settings(NOTIFICATIONS_ASYNC=False)
class MilestoneNotificationTestCase(TestCase):
    def setUp(self):
        self.crm = mock.Mock()
        patcher = mock.patch("interviewBot.notifications.get_crm_service", return_value=self.crm)
        patcher.start()
        self.addCleanup(patcher.stop)

    def test_registration_creates_contact_and_sends_welcome(self):
        with self.captureOnCommitCallbacks(execute=True):
            User.objects.create_user(username="aoife", email="aoife@example.com", password="password123")

        self.crm.create_contact.assert_called_once()
        self.assertEqual(self.crm.create_contact.call_args[0][0], "aoife@example.com")
        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].to, ["aoife@example.com"])

    def test_failure_never_breaks_registration(self):
        self.crm.create_contact.side_effect = ValueError("unexpected")
        with self.captureOnCommitCallbacks(execute=True):
            user = User.objects.create_user(username="sean", email="sean@example.com", password="password123")
        self.assertTrue(Subscription.objects.filter(user=user).exists())

    def test_first_interview_records_date(self):
        user = User.objects.create_user(username="niamh", email="niamh@example.com", password="password123")
        with self.captureOnCommitCallbacks(execute=True):
            progression.create_session(user, "eo", "old", [
                {"competency": "drive_commitment", "question_text": "Q", "difficulty": "beginner"}
            ])
        properties = self.crm.update_contact.call_args[0][1]
        self.assertIn("first_interview_date", properties)

    def test_completion_email(self):
        user = User.objects.create_user(username="ciara", email="ciara@example.com", password="password123")
        Subscription.objects.filter(user=user).update(status=Subscription.PREMIUM)
        session = progression.create_session(user, "heo", "old", [
            {"competency": "team_leadership", "question_text": f"Q{i}", "difficulty": "advanced"}
            for i in range(2)
        ])
        questions = list(session.questions.all())
        mail.outbox.clear()

        with self.captureOnCommitCallbacks(execute=True):
            for question, score in zip(questions, (6.0, 7.0)):
                answer = Answer.objects.create(interview=session, question=question, answer_text=ANSWER)
                progression.record_answer_completion(answer, evaluation(score))

        self.assertEqual(len(mail.outbox), 1)
        self.assertIn("HEO", mail.outbox[0].subject)
        self.assertIn("6.5/10 (65%)", mail.outbox[0].body)
        self.assertIn("would be a pass", mail.outbox[0].body)


@override_settings(NOTIFICATIONS_ASYNC=True)
class DispatchTestCase(TestCase):
    def setUp(self):
        patcher = mock.patch("interviewBot.notifications._executor")
        executor = patcher.start()
        self.addCleanup(patcher.stop)
        executor.submit.side_effect = lambda fn, *args, **kwargs: fn(*args, **kwargs)

    @mock.patch("interviewBot.notifications.close_old_connections")
    def test_worker_recycles_connections(self, close_old_connections):
        job = mock.Mock(__name__="job")
        notifications.dispatch(job, "someone@example.com")

        job.assert_called_once_with("someone@example.com")
        self.assertEqual(close_old_connections.call_count, 2)

    @mock.patch("interviewBot.notifications.close_old_connections")
    def test_failing_worker_job_still_recycles_connections(self, close_old_connections):
        job = mock.Mock(__name__="job", side_effect=requests.Timeout("slow"))
        notifications.dispatch(job)

        self.assertEqual(close_old_connections.call_count, 2)
