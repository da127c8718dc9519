"""
Best-effort CRM and email notifications for user milestones.

Nothing in here may fail a user-facing request: every notification runs
through ``dispatch``, which logs and swallows errors and, unless
NOTIFICATIONS_ASYNC is off, runs the work on a small thread pool.
"""
import json
import logging
from concurrent.futures import ThreadPoolExecutor

import requests
from django.conf import settings
from django.core.mail import EmailMessage, send_mail
from django.db import close_old_connections
from django.utils import timezone

from . import grades

logger = logging.getLogger(__name__)

_executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="notify")


def dispatch(func, *args, **kwargs):
    if settings.NOTIFICATIONS_ASYNC:
        _executor.submit(_run_in_worker, func, *args, **kwargs)
    else:
        _run_safely(func, *args, **kwargs)


def _run_in_worker(func, *args, **kwargs):
    # Worker threads keep their own database connection between jobs.
    close_old_connections()
    try:
        _run_safely(func, *args, **kwargs)
    finally:
        close_old_connections()


def _run_safely(func, *args, **kwargs):
    try:
        func(*args, **kwargs)
    except Exception:
        logger.warning(f"Notification {func.__name__} failed", exc_info=True)


class CRMProvider:
    """Interface shared by the CRM integrations."""

    name = "crm"

    def is_enabled(self):
        raise NotImplementedError

    def create_contact(self, email, properties):
        raise NotImplementedError

    def update_contact(self, email, properties):
        raise NotImplementedError


class HubSpotProvider(CRMProvider):
    name = "hubspot"
    api_url = "https://api.hubapi.com/crm/v3/objects/contacts"

    def __init__(self, api_key=None, timeout=None):
        self.api_key = api_key if api_key is not None else settings.HUBSPOT_API_KEY
        self.timeout = timeout or settings.CRM_TIMEOUT_SECONDS

    def is_enabled(self):
        return bool(self.api_key)

    def _headers(self):
        return {"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"}

    def create_contact(self, email, properties):
        body = {"properties": {"email": email, **properties}}
        resp = requests.post(self.api_url, headers=self._headers(), json=body, timeout=self.timeout)
        if resp.status_code == 409:
            logger.info(f"HubSpot contact already exists for {email}, updating instead")
            return self.update_contact(email, properties)
        resp.raise_for_status()
        return True

    def update_contact(self, email, properties):
        resp = requests.patch(
            f"{self.api_url}/{email}",
            params={"idProperty": "email"},
            headers=self._headers(),
            json={"properties": properties},
            timeout=self.timeout,
        )
        resp.raise_for_status()
        return True


class MondayProvider(CRMProvider):
    """Stores contacts as items on a Monday.com board keyed by an email column."""

    name = "monday"
    api_url = "https://api.monday.com/v2"
    email_column = "contact_email"

    def __init__(self, api_key=None, board_id=None, timeout=None):
        self.api_key = api_key if api_key is not None else settings.MONDAY_API_KEY
        self.board_id = board_id if board_id is not None else settings.MONDAY_BOARD_ID
        self.timeout = timeout or settings.CRM_TIMEOUT_SECONDS

    def is_enabled(self):
        return bool(self.api_key and self.board_id)

    def _query(self, query, variables):
        resp = requests.post(
            self.api_url,
            headers={"Authorization": self.api_key, "Content-Type": "application/json"},
            json={"query": query, "variables": variables},
            timeout=self.timeout,
        )
        resp.raise_for_status()
        data = resp.json()
        if data.get("errors"):
            raise RuntimeError(f"Monday API error: {data['errors']}")
        return data.get("data", {})

    def _find_item(self, email):
        result = self._query(
            """
            query ($boardId: ID!, $email: String!) {
              items_page_by_column_values (limit: 1, board_id: $boardId,
                columns: [{column_id: "contact_email", column_values: [$email]}]) {
                items { id }
              }
            }
            """,
            {"boardId": self.board_id, "email": email},
        )
        items = result.get("items_page_by_column_values", {}).get("items", [])
        return items[0]["id"] if items else None

    def create_contact(self, email, properties):
        if self._find_item(email):
            return self.update_contact(email, properties)
        columns = {self.email_column: {"email": email, "text": email}, **properties}
        self._query(
            """
            mutation ($boardId: ID!, $itemName: String!, $columnValues: JSON!) {
              create_item (board_id: $boardId, item_name: $itemName, column_values: $columnValues) { id }
            }
            """,
            {"boardId": self.board_id, "itemName": email, "columnValues": json.dumps(columns)},
        )
        return True

    def update_contact(self, email, properties):
        item_id = self._find_item(email)
        if item_id is None:
            logger.info(f"Monday item not found for {email}, skipping update")
            return False
        self._query(
            """
            mutation ($boardId: ID!, $itemId: ID!, $columnValues: JSON!) {
              change_multiple_column_values (board_id: $boardId, item_id: $itemId, column_values: $columnValues) { id }
            }
            """,
            {"boardId": self.board_id, "itemId": item_id, "columnValues": json.dumps(properties)},
        )
        return True


class CRMService:
    """Fans a call out to every enabled provider; one provider failing never stops the others."""

    def __init__(self, providers=None):
        self.providers = []
        for provider in providers if providers is not None else [HubSpotProvider(), MondayProvider()]:
            if provider.is_enabled():
                self.providers.append(provider)
                logger.info(f"CRM provider {provider.name} registered and enabled")
            else:
                logger.debug(f"CRM provider {provider.name} is not configured")

    def _fan_out(self, method, email, properties):
        delivered = False
        for provider in self.providers:
            try:
                delivered = getattr(provider, method)(email, properties) or delivered
            except (requests.RequestException, RuntimeError) as e:
                logger.warning(f"CRM provider {provider.name} {method} failed for {email}: {str(e)}")
        return delivered

    def create_contact(self, email, properties):
        return self._fan_out("create_contact", email, properties)

    def update_contact(self, email, properties):
        return self._fan_out("update_contact", email, properties)


def get_crm_service():
    return CRMService()


def user_registered(user):
    if not user.email:
        return
    get_crm_service().create_contact(user.email, {
        "firstname": user.first_name,
        "lastname": user.last_name,
        "lifecyclestage": "lead",
        "subscription_status": "free",
        "lead_source": "direct_registration",
    })
    send_mail(
        "Welcome to Public Prep",
        f"Hi {user.first_name or user.username},\n\n"
        "Your account is ready. Upload your CV and start your first practice interview at "
        f"{settings.APP_BASE_URL}.\n\nGood luck!\nThe Public Prep team",
        settings.DEFAULT_FROM_EMAIL,
        [user.email],
    )


def interview_started(session):
    email = session.user.email
    if not email:
        return
    properties = {"last_feature_used": "interview_started", "last_activity_date": timezone.now().date().isoformat()}
    if session.user.interviews.count() == 1:
        properties["first_interview_date"] = session.started_at.date().isoformat()
    get_crm_service().update_contact(email, properties)


def interview_completed(session):
    email = session.user.email
    if not email:
        return
    grade = grades.get_grade(session.grade)
    passed = grades.passed(session.grade, session.average_score)
    get_crm_service().update_contact(email, {
        "interviews_completed": session.user.interviews.filter(completed_at__isnull=False).count(),
        "last_activity_date": timezone.now().date().isoformat(),
    })
    send_mail(
        f"Your {grade.name} practice interview results",
        f"Hi {session.user.first_name or session.user.username},\n\n"
        f"You completed your {session.job_title} practice interview with an average score of "
        f"{session.average_score}/10 ({round((session.average_score or 0) * 10)}%). "
        f"The pass mark at {grade.name} is {grade.passing_score}%, so this would be a "
        f"{'pass' if passed else 'fail'}.\n\n"
        f"Review your feedback at {settings.APP_BASE_URL}/interviews/{session.pk}.\n\n"
        "The Public Prep team",
        settings.DEFAULT_FROM_EMAIL,
        [email],
    )


def contact_form_submitted(name, email, subject, message):
    EmailMessage(
        f"Contact form: {subject}",
        f"From: {name} <{email}>\n\n{message}",
        settings.DEFAULT_FROM_EMAIL,
        [settings.SUPPORT_EMAIL],
        reply_to=[email],
    ).send()
    send_mail(
        "We received your message",
        f"Hi {name},\n\nThanks for getting in touch about \"{subject}\". "
        "We usually reply within two working days.\n\nThe Public Prep team",
        settings.DEFAULT_FROM_EMAIL,
        [email],
    )
    get_crm_service().update_contact(email, {
        "last_feature_used": "contact_form_submission",
        "last_activity_date": timezone.now().date().isoformat(),
    })
