"""
Best-effort notification port.

Handlers describe *what* happened using plain values (emails, names, numbers);
the port schedules the matching email on FastAPI's BackgroundTasks so delivery
runs after the response is sent. Jobs never touch the request's DB session and
a failed send is only logged.
"""
from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from fastapi import BackgroundTasks
from sqlalchemy.orm import Session

from courtfile.db.models import User, UserRole
from courtfile.services.email_service import email_service

logger = logging.getLogger(__name__)

HEARING_STATUS_NOTIFICATIONS = frozenset({"scheduled", "postponed", "completed", "cancelled"})


def resolve_hearing_notification(
    date_changed: bool, status_changed: bool, new_status: Optional[str]
) -> Optional[str]:
    """
    Pick the hearing email type for an update, or None when neither date nor
    status changed. A date change wins unless the hearing is now cancelled;
    otherwise the new status is mirrored, and unknown statuses map to closed.
    """
    if not (date_changed or status_changed):
        return None
    status = getattr(new_status, "value", new_status)
    if date_changed and status != "cancelled":
        return "postponed"
    if status in HEARING_STATUS_NOTIFICATIONS:
        return status
    return "closed"


def admin_recipients(db: Session) -> List[Tuple[str, str]]:
    rows = (
        db.query(User.email, User.name)
        .filter(User.role == UserRole.admin, User.is_active == True)  # noqa: E712
        .all()
    )
    return [(email, name) for email, name in rows]


def _deliver(job: str, method: str, *args, **kwargs) -> None:
    try:
        sent = getattr(email_service, method)(*args, **kwargs)
    except Exception as e:
        logger.error("Notification %s failed: %s", job, e)
        return
    if not sent:
        logger.warning("Notification %s was not delivered", job)


class Notifier:
    """Fire-and-forget email jobs bound to a request's BackgroundTasks."""

    def __init__(self, background_tasks: Optional[BackgroundTasks] = None):
        self.background_tasks = background_tasks

    def _dispatch(self, job: str, method: str, *args, **kwargs) -> None:
        if self.background_tasks is None:
            _deliver(job, method, *args, **kwargs)
        else:
            self.background_tasks.add_task(_deliver, job, method, *args, **kwargs)

    def welcome(self, email: str, name: str, verification_token: Optional[str] = None) -> None:
        self._dispatch("welcome", "send_welcome_email", email, name, verification_token)

    def verification(self, email: str, name: str, token: str) -> None:
        self._dispatch("verification", "send_verification_email", email, name, token)

    def new_user(self, admins: List[Tuple[str, str]], name: str, email: str, registered_at: str) -> None:
        if not admins:
            return
        self._dispatch(
            "new_user", "send_admin_notification_email", admins, "New User Registration", "new_user",
            {"name": name, "email": email, "registered_at": registered_at},
        )

    def case_filed(
        self,
        admins: List[Tuple[str, str]],
        owner_email: str,
        owner_name: str,
        case_number: str,
        case_title: str,
        case_type: str,
        filing_fee,
    ) -> None:
        if admins:
            self._dispatch(
                "new_case", "send_admin_notification_email", admins, f"New Case Filed: {case_title}",
                "new_case",
                {"case_number": case_number, "case_title": case_title, "case_type": case_type,
                 "filed_by": f"{owner_name} <{owner_email}>"},
            )
        self._dispatch(
            "filing_confirmation", "send_case_filing_confirmation_email",
            owner_email, owner_name, case_number, case_title, filing_fee,
        )

    def case_status(self, email: str, name: str, case_number: str, case_title: str, new_status: str) -> None:
        self._dispatch("case_status", "send_case_status_email", email, name, case_number, case_title, new_status)

    def hearing(
        self,
        email: str,
        name: str,
        case_number: str,
        case_title: str,
        hearing_date,
        hearing_time: str,
        location: str,
        notification_type: str,
        previous_date=None,
        reason: Optional[str] = None,
    ) -> None:
        self._dispatch(
            f"hearing_{notification_type}", "send_hearing_notification_email",
            email, name, case_number, case_title, hearing_date, hearing_time, location,
            notification_type, previous_date, reason,
        )

    def evidence_decision(
        self,
        email: str,
        name: str,
        case_number: str,
        case_title: str,
        evidence_title: str,
        decision: str,
        reason: Optional[str] = None,
    ) -> None:
        self._dispatch(
            f"evidence_{decision}", "send_evidence_status_email",
            email, name, case_number, case_title, evidence_title, decision, reason,
        )


def get_notifier(background_tasks: BackgroundTasks) -> Notifier:
    """FastAPI dependency."""
    return Notifier(background_tasks)
