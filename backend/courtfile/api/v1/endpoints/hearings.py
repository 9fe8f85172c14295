"""
Hearing scheduling endpoints. Mutations are admin-only.
"""
from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status as http_status
from sqlalchemy import or_
from sqlalchemy.orm import Session

from courtfile.api.deps import get_current_admin, get_current_user
from courtfile.core.logger import logger
from courtfile.db import schemas
from courtfile.db.database import get_db
from courtfile.db.models import Case, Hearing, HearingStatus, User
from courtfile.services.authorization import authorize, is_admin
from courtfile.services.notifications import Notifier, get_notifier, resolve_hearing_notification
from courtfile.services.transitions import ensure_transition
from courtfile.utils.exceptions import CaseNotFoundError, ResourceNotFoundError, ValidationError

router = APIRouter()

REQUIRED_HEARING_FIELDS = ("case_id", "date", "time", "location", "hearing_type")
NON_NULL_HEARING_FIELDS = frozenset(
    {"case_id", "date", "time", "location", "hearing_type", "status", "duration", "attendees"}
)


def _load_hearing(db: Session, hearing_id: UUID) -> Hearing:
    hearing = db.query(Hearing).filter(Hearing.id == hearing_id).first()
    if not hearing:
        raise ResourceNotFoundError("Hearing")
    return hearing


def _notify_owner(notifier: Notifier, hearing: Hearing, notification_type: str, previous_date=None):
    case = hearing.case
    owner = case.owner
    notifier.hearing(
        owner.email,
        owner.name,
        case.case_number,
        case.title,
        hearing.date,
        hearing.time,
        hearing.location,
        notification_type,
        previous_date=previous_date,
        reason=hearing.notes,
    )


@router.post("", status_code=http_status.HTTP_201_CREATED)
def create_hearing(
    payload: schemas.HearingCreate,
    current_user: User = Depends(get_current_admin),
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
):
    data = payload.model_dump()
    missing = [f for f in REQUIRED_HEARING_FIELDS if data.get(f) in (None, "")]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    case = db.query(Case).filter(Case.id == data["case_id"]).first()
    if not case:
        raise CaseNotFoundError()

    hearing = Hearing(**data, status=HearingStatus.scheduled, created_by=current_user.id)
    db.add(hearing)
    db.commit()
    db.refresh(hearing)
    logger.info("Hearing scheduled for %s on %s %s", case.case_number, hearing.date, hearing.time)

    _notify_owner(notifier, hearing, HearingStatus.scheduled.value)
    return {"message": "Hearing scheduled successfully", "hearing": schemas.HearingOut.model_validate(hearing)}


@router.get("")
def list_hearings(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    status: Optional[str] = Query(None),
    case_id: Optional[UUID] = Query(None),
    search: Optional[str] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    sort: str = Query("date"),
    order: str = Query("asc"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    query = db.query(Hearing)
    if not is_admin(current_user):
        query = query.join(Case, Hearing.case_id == Case.id).filter(Case.user_id == current_user.id)

    if status and status != "all":
        try:
            query = query.filter(Hearing.status == HearingStatus(status))
        except ValueError:
            raise ValidationError(f"Unknown status: {status}")
    if case_id:
        query = query.filter(Hearing.case_id == case_id)
    if start_date:
        query = query.filter(Hearing.date >= start_date)
    if end_date:
        query = query.filter(Hearing.date <= end_date)
    if search:
        search_term = f"%{search.strip()}%"
        query = query.filter(
            or_(
                Hearing.title.ilike(search_term),
                Hearing.location.ilike(search_term),
                Hearing.judge.ilike(search_term),
                Hearing.notes.ilike(search_term),
            )
        )

    sortable_columns = {
        "date": Hearing.date,
        "time": Hearing.time,
        "status": Hearing.status,
        "location": Hearing.location,
        "created_at": Hearing.created_at,
    }
    sort_column = sortable_columns.get(sort, Hearing.date)
    direction = sort_column.desc() if order.lower() == "desc" else sort_column.asc()
    query = query.order_by(direction, Hearing.time.asc())

    total = query.count()
    hearings = query.offset((page - 1) * limit).limit(limit).all()
    return {
        "hearings": [schemas.HearingOut.model_validate(h) for h in hearings],
        "pagination": {
            "total": total,
            "page": page,
            "limit": limit,
            "pages": (total + limit - 1) // limit,
        },
    }


@router.get("/{hearing_id}")
def get_hearing(
    hearing_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    hearing = _load_hearing(db, hearing_id)
    authorize(current_user, hearing.case.user_id)
    return {
        "hearing": schemas.HearingOut.model_validate(hearing),
        "case": schemas.CaseOut.model_validate(hearing.case),
    }


@router.patch("/{hearing_id}")
def update_hearing(
    hearing_id: UUID,
    payload: schemas.HearingUpdate,
    current_user: User = Depends(get_current_admin),
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
):
    """
    Merge the given fields. A change of date or status sends the case owner
    exactly one notification.
    """
    hearing = _load_hearing(db, hearing_id)
    update_data = payload.model_dump(exclude_unset=True)

    if update_data.get("case_id") and update_data["case_id"] != hearing.case_id:
        if not db.query(Case.id).filter(Case.id == update_data["case_id"]).first():
            raise CaseNotFoundError()

    previous_date = hearing.date
    previous_status = hearing.status
    if update_data.get("status") is not None:
        ensure_transition("hearing", previous_status, update_data["status"])

    for field, value in update_data.items():
        if value is None and field in NON_NULL_HEARING_FIELDS:
            continue
        setattr(hearing, field, value)

    db.commit()
    db.refresh(hearing)

    notification_type = resolve_hearing_notification(
        date_changed=hearing.date != previous_date,
        status_changed=hearing.status != previous_status,
        new_status=hearing.status,
    )
    if notification_type:
        logger.info("Hearing %s changed, notifying owner (%s)", hearing.id, notification_type)
        _notify_owner(notifier, hearing, notification_type, previous_date=previous_date)

    return {"message": "Hearing updated successfully", "hearing": schemas.HearingOut.model_validate(hearing)}


@router.delete("/{hearing_id}")
def delete_hearing(
    hearing_id: UUID,
    current_user: User = Depends(get_current_admin),
    db: Session = Depends(get_db),
):
    hearing = _load_hearing(db, hearing_id)
    db.delete(hearing)
    db.commit()
    return {"message": "Hearing deleted successfully"}
