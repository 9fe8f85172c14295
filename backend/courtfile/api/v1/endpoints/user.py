from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Any, Dict, List

from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlalchemy.orm import Session

from courtfile.api.deps import get_current_user
from courtfile.db.database import get_db
from courtfile.db.models import Case, CasePaymentStatus, CaseStatus, Evidence, Hearing, HearingStatus, User

router = APIRouter()

PAYMENT_DUE_STATUSES = (CasePaymentStatus.unpaid, CasePaymentStatus.pending)
UPCOMING_HEARING_STATUSES = (HearingStatus.scheduled, HearingStatus.postponed)
HEADLINE_CASE_TYPES = ("civil", "criminal", "family")


def _upcoming_hearings(db: Session, user: User, until: date | None = None):
    query = (
        db.query(Hearing)
        .join(Case, Hearing.case_id == Case.id)
        .filter(
            Case.user_id == user.id,
            Hearing.date >= date.today(),
            Hearing.status.in_(UPCOMING_HEARING_STATUSES),
        )
    )
    if until is not None:
        query = query.filter(Hearing.date <= until)
    return query.order_by(Hearing.date.asc(), Hearing.time.asc())


def _hearing_summary(h: Hearing) -> Dict[str, Any]:
    return {
        "id": h.id,
        "title": h.title,
        "date": h.date,
        "time": h.time,
        "location": h.location,
        "status": h.status,
        "case": {"id": h.case.id, "title": h.case.title, "case_number": h.case.case_number},
    }


@router.get("/stats")
def user_stats(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Dict[str, Any]:
    own_cases = db.query(Case).filter(Case.user_id == current_user.id)

    status_counts = dict(
        own_cases.with_entities(Case.status, func.count(Case.id)).group_by(Case.status).all()
    )
    cases_by_status = {s.value: status_counts.get(s, 0) for s in CaseStatus}

    type_counts = dict(
        own_cases.with_entities(Case.case_type, func.count(Case.id)).group_by(Case.case_type).all()
    )
    cases_by_type = {t: type_counts.get(t, 0) for t in HEADLINE_CASE_TYPES}
    cases_by_type["other"] = sum(n for t, n in type_counts.items() if t not in HEADLINE_CASE_TYPES)

    upcoming = _upcoming_hearings(db, current_user)
    recent_cases = own_cases.order_by(Case.updated_at.desc()).limit(5).all()

    return {
        "total_cases": sum(status_counts.values()),
        "cases_by_status": cases_by_status,
        "cases_by_type": cases_by_type,
        "cases_needing_payment": own_cases.filter(Case.payment_status.in_(PAYMENT_DUE_STATUSES)).count(),
        "evidence_count": db.query(func.count(Evidence.id)).filter(Evidence.user_id == current_user.id).scalar(),
        "upcoming_hearings": upcoming.count(),
        "recent_activity": {
            "cases": [
                {
                    "id": c.id,
                    "title": c.title,
                    "case_number": c.case_number,
                    "status": c.status,
                    "updated_at": c.updated_at,
                }
                for c in recent_cases
            ],
            "hearings": [_hearing_summary(h) for h in upcoming.limit(5).all()],
        },
    }


@router.get("/notifications")
def user_notifications(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Dict[str, Any]:
    """
    Notifications are derived on read from cases and hearings; nothing is stored.
    """
    now = datetime.utcnow()
    notifications: List[Dict[str, Any]] = []

    due = (
        db.query(Case)
        .filter(Case.user_id == current_user.id, Case.payment_status.in_(PAYMENT_DUE_STATUSES))
        .all()
    )
    for c in due:
        notifications.append({
            "id": f"payment-{c.id}",
            "type": "payment",
            "title": "Payment Required",
            "message": f"Payment required for case #{c.case_number}: {c.title}",
            "case_id": c.id,
            "created_at": c.created_at,
            "link": f"/user/cases/{c.id}/payment",
        })

    for h in _upcoming_hearings(db, current_user, until=date.today() + timedelta(days=7)).all():
        notifications.append({
            "id": f"hearing-{h.id}",
            "type": "hearing",
            "title": "Upcoming Hearing",
            "message": f"Hearing scheduled for {h.date.isoformat()} at {h.time}: {h.title or h.hearing_type}",
            "hearing_id": h.id,
            "case_id": h.case_id,
            "created_at": h.created_at,
            "link": f"/user/hearings/{h.id}",
        })

    updated = (
        db.query(Case)
        .filter(Case.user_id == current_user.id, Case.updated_at >= now - timedelta(days=7))
        .all()
    )
    for c in updated:
        notifications.append({
            "id": f"case-{c.id}",
            "type": "case",
            "title": "Case Updated",
            "message": f"Case #{c.case_number} status changed to {c.status.value}",
            "case_id": c.id,
            "created_at": c.updated_at,
            "link": f"/user/cases/{c.id}",
        })

    notifications.sort(key=lambda n: n["created_at"], reverse=True)
    return {"notifications": notifications}


@router.delete("/notifications/{notification_id}")
def dismiss_notification(
    notification_id: str,
    current_user: User = Depends(get_current_user),
) -> Dict[str, Any]:
    # Derived notifications have no stored state to remove
    return {"message": "Notification dismissed", "id": notification_id}
