"""
Decides whether a user may start another interview.

The starter credit is consumed with a conditional UPDATE so two concurrent
starts can never both spend it.
"""
import logging
from collections import namedtuple

from django.conf import settings
from django.db.models import F

from .exceptions import LimitExceeded
from .models import InterviewSession, Subscription

logger = logging.getLogger(__name__)

GateDecision = namedtuple("GateDecision", ["allowed", "reason"])
ALLOWED = GateDecision(True, None)


def get_subscription(user, lock=False):
    queryset = Subscription.objects.all()
    if lock:
        queryset = queryset.select_for_update()
    subscription, _ = queryset.get_or_create(user=user)
    return subscription


def can_start_interview(user, subscription=None):
    """
    Evaluate the plan rules in order:

    1. premium: always allowed
    2. starter past its expiry: StarterExpired
    3. starter with its single credit used: StarterLimitReached
    4. anything else (free, unset, lapsed) with an existing interview: FreeLimitReached
    5. otherwise allowed
    """
    if subscription is None:
        subscription = get_subscription(user)

    if subscription.status == Subscription.PREMIUM:
        return ALLOWED

    if subscription.status == Subscription.STARTER:
        if subscription.starter_expired:
            return GateDecision(False, LimitExceeded.STARTER_EXPIRED)
        if subscription.starter_interviews_used >= settings.STARTER_INTERVIEW_LIMIT:
            return GateDecision(False, LimitExceeded.STARTER_LIMIT_REACHED)
        return ALLOWED

    if InterviewSession.objects.filter(user=user).count() >= settings.FREE_INTERVIEW_LIMIT:
        return GateDecision(False, LimitExceeded.FREE_LIMIT_REACHED)
    return ALLOWED


def consume_starter_credit(user):
    """
    Atomically spend one starter interview. Returns False when the credit had
    already been used by the time the UPDATE ran.
    """
    updated = Subscription.objects.filter(
        user=user,
        status=Subscription.STARTER,
        starter_interviews_used__lt=settings.STARTER_INTERVIEW_LIMIT,
    ).update(starter_interviews_used=F("starter_interviews_used") + 1)
    if not updated:
        logger.info(f"Starter credit already consumed for user {user.pk}")
    return bool(updated)


def ensure_can_start(user, subscription=None):
    decision = can_start_interview(user, subscription)
    if not decision.allowed:
        raise LimitExceeded(decision.reason)
    return decision


def summary(user):
    subscription = get_subscription(user)
    decision = can_start_interview(user, subscription)
    return {
        "status": subscription.status,
        "starter_interviews_used": subscription.starter_interviews_used,
        "starter_expires_at": subscription.starter_expires_at,
        "starter_expired": subscription.starter_expired,
        "interviews_started": InterviewSession.objects.filter(user=user).count(),
        "can_start_interview": decision.allowed,
        "reason": decision.reason,
    }
