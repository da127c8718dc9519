"""
Interview session state machine.

    created -> in_progress -> completed
                    \\-> abandoned

The session row is the unit of mutual exclusion for the progression fields:
index moves are conditional UPDATEs and answer completion runs under a row
lock, so concurrent tabs cannot lose an update or count a question twice.
"""
import logging

from django.db import transaction
from django.db.models import F
from django.utils import timezone

from . import grades, subscriptions
from .exceptions import InterviewEnded, LimitExceeded, ValidationFailed
from .models import InterviewSession, Question, Rating, Subscription
from .signals import interview_completed

logger = logging.getLogger(__name__)


def create_session(user, grade, framework, question_set, job_title=None):
    """
    Create a session with its ordered questions, consuming plan usage.

    The gate is re-evaluated under a lock on the user's subscription row, and
    the starter credit is spent in the same transaction as the insert.
    """
    grades.get_grade(grade)
    grades.get_framework(framework)
    if not question_set:
        raise ValidationFailed("An interview needs at least one question.")

    with transaction.atomic():
        subscription = subscriptions.get_subscription(user, lock=True)
        subscriptions.ensure_can_start(user, subscription)
        if subscription.status == Subscription.STARTER and not subscriptions.consume_starter_credit(user):
            raise LimitExceeded(LimitExceeded.STARTER_LIMIT_REACHED)

        abandoned = (
            InterviewSession.objects.filter(user=user, is_active=True)
            .exclude(status=InterviewSession.COMPLETED)
            .update(is_active=False, status=InterviewSession.ABANDONED)
        )
        if abandoned:
            logger.info(f"Abandoned {abandoned} active interview(s) for user {user.pk}")

        session = InterviewSession.objects.create(
            user=user,
            job_title=job_title or f"{grade.upper()} Interview",
            grade=grade,
            framework=framework,
            total_questions=len(question_set),
        )
        Question.objects.bulk_create([
            Question(
                interview=session,
                competency=item["competency"],
                question_text=item["question_text"],
                difficulty=item.get("difficulty", "intermediate"),
                order=order,
            )
            for order, item in enumerate(question_set)
        ])

    logger.info(f"Interview {session.pk} created for user {user.pk} with {session.total_questions} questions")
    return session


def advance(session):
    """Move to the next question. No-op on the last one or once the session has ended."""
    moved = InterviewSession.objects.filter(
        pk=session.pk,
        is_active=True,
        current_question_index__lt=F("total_questions") - 1,
    ).update(current_question_index=F("current_question_index") + 1)
    if moved:
        _mark_in_progress(session)
    session.refresh_from_db()
    return bool(moved)


def go_back(session):
    """Move to the previous question. No-op on the first one or once the session has ended."""
    moved = InterviewSession.objects.filter(
        pk=session.pk,
        is_active=True,
        current_question_index__gt=0,
    ).update(current_question_index=F("current_question_index") - 1)
    session.refresh_from_db()
    return bool(moved)


def abandon(session):
    updated = InterviewSession.objects.filter(
        pk=session.pk, is_active=True, completed_at__isnull=True,
    ).update(is_active=False, status=InterviewSession.ABANDONED)
    session.refresh_from_db()
    return bool(updated)


def record_answer_completion(answer, evaluation):
    """
    Persist the Rating for an answer and advance the completion counters.

    Returns (rating, created). An answer that already has a Rating is returned
    unchanged. Re-answering a question adds a Rating but only the first one
    counts towards completed_questions. Abandoned sessions are terminal and
    raise InterviewEnded.
    """
    completed_now = False
    with transaction.atomic():
        session = InterviewSession.objects.select_for_update().get(pk=answer.interview_id)
        if session.status == InterviewSession.ABANDONED:
            raise InterviewEnded()

        existing = Rating.objects.filter(answer=answer).first()
        if existing is not None:
            return existing, False

        first_for_question = not Rating.objects.filter(answer__question_id=answer.question_id).exists()
        rating = Rating.objects.create(
            answer=answer,
            overall_score=evaluation["overall_score"],
            competency_scores=evaluation.get("competency_scores", {}),
            star_method_analysis=evaluation.get("star_method_analysis", {}),
            feedback=evaluation.get("feedback", ""),
            strengths=evaluation.get("strengths", []),
            improvement_areas=evaluation.get("improvement_areas", []),
            improved_answer=evaluation.get("improved_answer", ""),
        )

        if first_for_question:
            InterviewSession.objects.filter(
                pk=session.pk, completed_questions__lt=F("total_questions"),
            ).update(completed_questions=F("completed_questions") + 1)
            session.refresh_from_db()

        if session.status == InterviewSession.CREATED:
            session.status = InterviewSession.IN_PROGRESS
            session.save(update_fields=["status", "updated_at"])

        if session.completed_questions == session.total_questions:
            session.average_score = latest_average(session)
            fields = ["average_score", "updated_at"]
            if session.completed_at is None:
                session.completed_at = timezone.now()
                session.is_active = False
                session.status = InterviewSession.COMPLETED
                fields += ["completed_at", "is_active", "status"]
                completed_now = True
            session.save(update_fields=fields)

    if completed_now:
        logger.info(f"Interview {session.pk} completed with average {session.average_score}")
        transaction.on_commit(lambda: interview_completed.send(sender=InterviewSession, session=session))
    return rating, True


def latest_average(session):
    """Mean overall score over the latest rated answer of each question."""
    latest = {}
    ratings = (
        Rating.objects.filter(answer__interview=session)
        .select_related("answer")
        .order_by("answer__question_id", "-answer__answered_at")
    )
    for rating in ratings:
        latest.setdefault(rating.answer.question_id, rating.overall_score)
    if not latest:
        return None
    return round(sum(latest.values()) / len(latest), 1)


def _mark_in_progress(session):
    InterviewSession.objects.filter(
        pk=session.pk, status=InterviewSession.CREATED,
    ).update(status=InterviewSession.IN_PROGRESS)
