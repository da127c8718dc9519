from datetime import timedelta
from unittest import mock

from django.contrib.auth.models import User
from django.test import TestCase, override_settings
from django.utils import timezone

from . import progression, subscriptions
from .exceptions import InterviewEnded, LimitExceeded, ValidationFailed
from .models import Answer, InterviewSession, Rating, Subscription
from .signals import interview_completed


def question_set(n=3):
    return [
        {"competency": "team_leadership", "question_text": f"Question {i}", "difficulty": "intermediate"}
        for i in range(n)
    ]


def evaluation(score=7.0):
    return {
        "overall_score": score,
        "competency_scores": {"team_leadership": score},
        "star_method_analysis": {"situation": 7, "task": 6, "action": 8, "result": 7},
        "feedback": "Clear structure.",
        "strengths": ["Clear structure"],
        "improvement_areas": ["More metrics"],
        "improved_answer": "Situation: ...",
    }


def set_plan(user, status, **fields):
    Subscription.objects.filter(user=user).update(status=status, **fields)


class SessionStateMachineTestCase(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(username="testuser", password="password123")
        set_plan(self.user, Subscription.PREMIUM)
        self.session = progression.create_session(self.user, "heo", "old", question_set(3))

    def answer(self, question, when=None):
        return Answer.objects.create(
            interview=self.session,
            question=question,
            answer_text="x" * 120,
            answered_at=when or timezone.now(),
        )

    def test_create_round_trip(self):
        session = InterviewSession.objects.get(pk=self.session.pk)
        self.assertEqual(session.grade, "heo")
        self.assertEqual(session.framework, "old")
        self.assertEqual(session.total_questions, 3)
        self.assertEqual(session.questions.count(), 3)
        self.assertEqual([q.order for q in session.questions.all()], [0, 1, 2])
        self.assertEqual(session.current_question_index, 0)
        self.assertEqual(session.completed_questions, 0)
        self.assertTrue(session.is_active)
        self.assertEqual(session.status, InterviewSession.CREATED)

    def test_create_rejects_empty_question_set(self):
        with self.assertRaises(ValidationFailed):
            progression.create_session(self.user, "heo", "old", [])

    def test_create_rejects_unknown_grade(self):
        with self.assertRaises(ValidationFailed):
            progression.create_session(self.user, "xyz", "old", question_set(1))

    def test_index_stays_within_bounds(self):
        self.assertFalse(progression.go_back(self.session))
        self.assertEqual(self.session.current_question_index, 0)

        for expected in (1, 2):
            self.assertTrue(progression.advance(self.session))
            self.assertEqual(self.session.current_question_index, expected)

        self.assertFalse(progression.advance(self.session))
        self.assertEqual(self.session.current_question_index, 2)
        self.assertLessEqual(self.session.current_question_index, self.session.total_questions)

        self.assertTrue(progression.go_back(self.session))
        self.assertEqual(self.session.current_question_index, 1)
        self.assertEqual(self.session.completed_questions, 0)

    def test_advance_marks_in_progress(self):
        progression.advance(self.session)
        self.assertEqual(self.session.status, InterviewSession.IN_PROGRESS)

    def test_completion_is_set_once(self):
        questions = list(self.session.questions.all())
        for question in questions[:2]:
            progression.record_answer_completion(self.answer(question), evaluation(6.0))
            self.session.refresh_from_db()
            self.assertIsNone(self.session.completed_at)
            self.assertTrue(self.session.is_active)

        last = self.answer(questions[2])
        rating, created = progression.record_answer_completion(last, evaluation(9.0))
        self.assertTrue(created)
        self.session.refresh_from_db()
        self.assertEqual(self.session.completed_questions, 3)
        self.assertIsNotNone(self.session.completed_at)
        self.assertFalse(self.session.is_active)
        self.assertEqual(self.session.status, InterviewSession.COMPLETED)
        self.assertEqual(self.session.average_score, 7.0)
        completed_at = self.session.completed_at

        again, created = progression.record_answer_completion(last, evaluation(1.0))
        self.assertFalse(created)
        self.assertEqual(again.pk, rating.pk)
        self.session.refresh_from_db()
        self.assertEqual(self.session.completed_questions, 3)
        self.assertEqual(self.session.completed_at, completed_at)
        self.assertEqual(Rating.objects.filter(answer=last).count(), 1)

    def test_resubmission_counts_question_once_and_latest_wins(self):
        question = self.session.questions.first()
        earlier = timezone.now() - timedelta(minutes=5)
        progression.record_answer_completion(self.answer(question, when=earlier), evaluation(4.0))
        progression.record_answer_completion(self.answer(question), evaluation(8.0))

        self.session.refresh_from_db()
        self.assertEqual(self.session.completed_questions, 1)
        self.assertEqual(Rating.objects.filter(answer__question=question).count(), 2)
        self.assertEqual(progression.latest_average(self.session), 8.0)

    @override_settings(NOTIFICATIONS_ASYNC=False)
    def test_completed_signal_sent_once_after_commit(self):
        handler = mock.Mock()
        interview_completed.connect(handler)
        self.addCleanup(interview_completed.disconnect, handler)

        questions = list(self.session.questions.all())
        with self.captureOnCommitCallbacks(execute=True):
            for question in questions:
                progression.record_answer_completion(self.answer(question), evaluation())
        with self.captureOnCommitCallbacks(execute=True):
            progression.record_answer_completion(self.answer(questions[0]), evaluation())

        self.assertEqual(handler.call_count, 1)

    def test_abandon(self):
        self.assertTrue(progression.abandon(self.session))
        self.assertEqual(self.session.status, InterviewSession.ABANDONED)
        self.assertFalse(self.session.is_active)
        self.assertFalse(progression.abandon(self.session))

    def test_abandoned_session_is_terminal(self):
        questions = list(self.session.questions.all())
        pending = [self.answer(question) for question in questions]
        progression.advance(self.session)
        progression.abandon(self.session)

        for answer in pending:
            with self.assertRaises(InterviewEnded):
                progression.record_answer_completion(answer, evaluation())
        self.assertFalse(progression.advance(self.session))
        self.assertFalse(progression.go_back(self.session))

        self.session.refresh_from_db()
        self.assertEqual(self.session.status, InterviewSession.ABANDONED)
        self.assertEqual(self.session.current_question_index, 1)
        self.assertEqual(self.session.completed_questions, 0)
        self.assertIsNone(self.session.completed_at)
        self.assertFalse(Rating.objects.exists())

    def test_completed_session_does_not_move(self):
        for question in self.session.questions.all():
            progression.record_answer_completion(self.answer(question), evaluation())
        self.session.refresh_from_db()
        self.assertFalse(progression.advance(self.session))
        self.assertEqual(self.session.current_question_index, 0)

    def test_new_session_abandons_active_one(self):
        newer = progression.create_session(self.user, "eo", "new", question_set(2))
        self.session.refresh_from_db()
        self.assertEqual(self.session.status, InterviewSession.ABANDONED)
        self.assertFalse(self.session.is_active)
        self.assertTrue(newer.is_active)

    def test_score_percentage(self):
        question = self.session.questions.first()
        rating, _ = progression.record_answer_completion(self.answer(question), evaluation(7.3))
        self.assertEqual(rating.score_percentage, 73)


class SubscriptionGateTestCase(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(username="gateuser", password="password123")

    def test_subscription_created_for_new_user(self):
        self.assertEqual(self.user.subscription.status, Subscription.FREE)

    def test_free_user_first_interview_allowed(self):
        self.assertEqual(subscriptions.can_start_interview(self.user), subscriptions.ALLOWED)

    def test_free_user_with_prior_session_rejected(self):
        session = progression.create_session(self.user, "eo", "old", question_set(1))
        progression.abandon(session)

        decision = subscriptions.can_start_interview(self.user)
        self.assertFalse(decision.allowed)
        self.assertEqual(decision.reason, LimitExceeded.FREE_LIMIT_REACHED)
        with self.assertRaises(LimitExceeded) as ctx:
            progression.create_session(self.user, "eo", "old", question_set(1))
        self.assertEqual(ctx.exception.reason, LimitExceeded.FREE_LIMIT_REACHED)

    def test_lapsed_plan_treated_as_free(self):
        set_plan(self.user, Subscription.CANCELED)
        progression.create_session(self.user, "eo", "old", question_set(1))
        self.assertEqual(subscriptions.can_start_interview(self.user).reason, LimitExceeded.FREE_LIMIT_REACHED)

    def test_premium_always_allowed(self):
        set_plan(self.user, Subscription.PREMIUM)
        for _ in range(3):
            progression.create_session(self.user, "eo", "old", question_set(1))
        self.assertTrue(subscriptions.can_start_interview(self.user).allowed)

    def test_starter_expired(self):
        set_plan(self.user, Subscription.STARTER, starter_expires_at=timezone.now() - timedelta(days=1))
        decision = subscriptions.can_start_interview(self.user)
        self.assertEqual(decision.reason, LimitExceeded.STARTER_EXPIRED)

    def test_starter_expiry_checked_before_usage(self):
        set_plan(
            self.user, Subscription.STARTER,
            starter_interviews_used=1, starter_expires_at=timezone.now() - timedelta(days=1),
        )
        self.assertEqual(subscriptions.can_start_interview(self.user).reason, LimitExceeded.STARTER_EXPIRED)

    def test_starter_credit_consumed_once(self):
        set_plan(self.user, Subscription.STARTER, starter_expires_at=timezone.now() + timedelta(days=30))
        progression.create_session(self.user, "heo", "old", question_set(2))

        with self.assertRaises(LimitExceeded) as ctx:
            progression.create_session(self.user, "heo", "old", question_set(2))
        self.assertEqual(ctx.exception.reason, LimitExceeded.STARTER_LIMIT_REACHED)

        subscription = Subscription.objects.get(user=self.user)
        self.assertEqual(subscription.starter_interviews_used, 1)
        self.assertEqual(InterviewSession.objects.filter(user=self.user).count(), 1)

    def test_conditional_update_spends_credit_only_once(self):
        set_plan(self.user, Subscription.STARTER)
        self.assertTrue(subscriptions.consume_starter_credit(self.user))
        self.assertFalse(subscriptions.consume_starter_credit(self.user))
        self.assertEqual(Subscription.objects.get(user=self.user).starter_interviews_used, 1)

    def test_racing_start_loses_on_consumed_credit(self):
        # Both requests passed the gate before either spent the credit
        set_plan(self.user, Subscription.STARTER)
        with mock.patch.object(subscriptions, "can_start_interview", return_value=subscriptions.ALLOWED):
            first = progression.create_session(self.user, "heo", "old", question_set(2))
            with self.assertRaises(LimitExceeded) as ctx:
                progression.create_session(self.user, "heo", "old", question_set(2))

        self.assertEqual(ctx.exception.reason, LimitExceeded.STARTER_LIMIT_REACHED)
        self.assertEqual(Subscription.objects.get(user=self.user).starter_interviews_used, 1)
        self.assertEqual(list(InterviewSession.objects.filter(user=self.user)), [first])
        first.refresh_from_db()
        self.assertTrue(first.is_active)

    @override_settings(FREE_INTERVIEW_LIMIT=2)
    def test_free_limit_is_configurable(self):
        progression.create_session(self.user, "eo", "old", question_set(1))
        self.assertTrue(subscriptions.can_start_interview(self.user).allowed)

    def test_summary(self):
        data = subscriptions.summary(self.user)
        self.assertEqual(data["status"], Subscription.FREE)
        self.assertTrue(data["can_start_interview"])
        self.assertIsNone(data["reason"])
