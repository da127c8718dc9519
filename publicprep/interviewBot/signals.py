# interviewBot/signals.py

import logging

from django.contrib.auth.models import User
from django.db import transaction
from django.db.models.signals import post_save
from django.dispatch import Signal, receiver

from . import notifications
from .models import InterviewSession, Subscription

logger = logging.getLogger(__name__)

# Sent once, after commit, when the last question of a session is rated.
interview_completed = Signal()


@receiver(post_save, sender=User)
def handle_new_user(sender, instance, created, **kwargs):
    if created:
        Subscription.objects.get_or_create(user=instance)
        logger.info(f"New user created: {instance.username}")
        transaction.on_commit(lambda: notifications.dispatch(notifications.user_registered, instance))


@receiver(post_save, sender=InterviewSession)
def handle_new_interview(sender, instance, created, **kwargs):
    if created:
        logger.info(f"New interview created: {instance.pk}")
        transaction.on_commit(lambda: notifications.dispatch(notifications.interview_started, instance))


@receiver(interview_completed)
def handle_interview_completed(sender, session, **kwargs):
    notifications.dispatch(notifications.interview_completed, session)
