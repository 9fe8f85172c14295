"""
Case filing and management endpoints
"""
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status as http_status
from sqlalchemy import or_
from sqlalchemy.orm import Session

from courtfile.api.deps import get_current_user
from courtfile.core.logger import logger
from courtfile.db import schemas
from courtfile.db.database import get_db
from courtfile.db.models import Case, CasePaymentStatus, CaseStatus, Evidence, Hearing, User
from courtfile.services.authorization import authorize, is_admin
from courtfile.services.case_service import (
    CaseService,
    calculate_filing_fee,
    get_filing_fee_structure,
    missing_required_fields,
    normalize_case_type,
)
from courtfile.services.notifications import Notifier, admin_recipients, get_notifier
from courtfile.utils.exceptions import CaseNotFoundError, ValidationError

router = APIRouter()


def _load_case(db: Session, case_id: UUID) -> Case:
    case = db.query(Case).filter(Case.id == case_id).first()
    if not case:
        raise CaseNotFoundError()
    return case


# ============================================================================
# Create
# ============================================================================

@router.post("", status_code=http_status.HTTP_201_CREATED)
def create_case(
    payload: schemas.CaseCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
):
    """File a new case. Starts pending and unpaid."""
    data = payload.model_dump()
    missing = missing_required_fields(data)
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    case_type = normalize_case_type(data.get("case_type"))
    case = Case(
        case_number=CaseService.unique_case_number(db),
        title=data["title"].strip(),
        description=data.get("description"),
        plaintiffs=data["plaintiffs"].strip(),
        defendants=data["defendants"].strip(),
        case_type=case_type,
        category=data.get("category"),
        court_location=data.get("court_location"),
        relief_sought=data.get("relief_sought"),
        value=data.get("value"),
        filing_fee=calculate_filing_fee(case_type),
        status=CaseStatus.pending,
        payment_status=CasePaymentStatus.unpaid,
        user_id=current_user.id,
    )
    db.add(case)
    db.commit()
    db.refresh(case)
    logger.info("Case filed: %s by %s", case.case_number, current_user.email)

    notifier.case_filed(
        admin_recipients(db),
        current_user.email,
        current_user.name,
        case.case_number,
        case.title,
        case.case_type,
        case.filing_fee,
    )
    return {"message": "Case filed successfully", "case": schemas.CaseOut.model_validate(case)}


@router.get("/fees")
def filing_fees():
    return get_filing_fee_structure()


# ============================================================================
# List & Filter
# ============================================================================

@router.get("")
def list_cases(
    status: Optional[str] = Query(None, description="Filter by status"),
    case_type: Optional[str] = Query(None, description="Filter by case type"),
    payment_status: Optional[str] = Query(None, description="unpaid|pending|paid|failed|payment_required"),
    search: Optional[str] = Query(None),
    sort_field: str = Query("filing_date"),
    sort_order: str = Query("desc"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Admins see every case; everyone else only their own.
    """
    query = db.query(Case)
    if not is_admin(current_user):
        query = query.filter(Case.user_id == current_user.id)

    if status and status != "all":
        try:
            query = query.filter(Case.status == CaseStatus(status))
        except ValueError:
            raise ValidationError(f"Unknown status: {status}")

    if case_type and case_type != "all":
        query = query.filter(Case.case_type == case_type.lower())

    if payment_status and payment_status != "all":
        if payment_status == "payment_required":
            query = query.filter(Case.payment_status.in_([CasePaymentStatus.unpaid, CasePaymentStatus.pending]))
        else:
            try:
                query = query.filter(Case.payment_status == CasePaymentStatus(payment_status))
            except ValueError:
                raise ValidationError(f"Unknown payment status: {payment_status}")

    if search:
        search_term = f"%{search.strip()}%"
        query = query.filter(
            or_(
                Case.title.ilike(search_term),
                Case.case_number.ilike(search_term),
                Case.plaintiffs.ilike(search_term),
                Case.defendants.ilike(search_term),
            )
        )

    sortable_columns = {
        "filing_date": Case.filing_date,
        "created_at": Case.created_at,
        "updated_at": Case.updated_at,
        "title": Case.title,
        "case_number": Case.case_number,
        "status": Case.status,
        "case_type": Case.case_type,
        "payment_status": Case.payment_status,
        "filing_fee": Case.filing_fee,
    }
    sort_column = sortable_columns.get(sort_field, Case.filing_date)
    query = query.order_by(sort_column.asc() if sort_order.lower() == "asc" else sort_column.desc())

    total = query.count()
    cases = query.offset((page - 1) * limit).limit(limit).all()

    return {
        "cases": [schemas.CaseOut.model_validate(c) for c in cases],
        "pagination": {
            "total": total,
            "page": page,
            "limit": limit,
            "total_pages": (total + limit - 1) // limit,
        },
    }


# ============================================================================
# Parties shortcut
# ============================================================================

@router.post("/update-parties")
def update_parties(
    payload: schemas.CasePartiesUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    case = _load_case(db, payload.case_id)
    authorize(current_user, case.user_id)
    CaseService.update_parties(case, payload.plaintiffs, payload.defendants)
    db.commit()
    db.refresh(case)
    return {"message": "Parties updated successfully", "case": schemas.CaseOut.model_validate(case)}


# ============================================================================
# Single case
# ============================================================================

@router.get("/{case_id}")
def get_case(
    case_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    case = _load_case(db, case_id)
    authorize(current_user, case.user_id)

    hearings = (
        db.query(Hearing)
        .filter(Hearing.case_id == case.id)
        .order_by(Hearing.date.asc(), Hearing.time.asc())
        .all()
    )
    evidence = (
        db.query(Evidence)
        .filter(Evidence.case_id == case.id)
        .order_by(Evidence.upload_date.desc())
        .all()
    )
    return {
        "case": schemas.CaseOut.model_validate(case),
        "hearings": [schemas.HearingOut.model_validate(h) for h in hearings],
        "evidence": [schemas.EvidenceOut.model_validate(e) for e in evidence],
    }


@router.patch("/{case_id}")
def update_case(
    case_id: UUID,
    payload: schemas.CaseUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
):
    """
    Owners may edit description, parties, relief sought and value; other
    fields in their payload are ignored. Admins may edit everything,
    including status, which notifies the owner.
    """
    case = _load_case(db, case_id)
    authorize(current_user, case.user_id)

    update_data = CaseService.filter_update(current_user, payload.model_dump(exclude_unset=True))
    new_status = CaseService.apply_update(case, update_data)
    db.commit()
    db.refresh(case)

    if new_status is not None:
        logger.info("Case %s status -> %s", case.case_number, new_status.value)
        owner = case.owner
        notifier.case_status(owner.email, owner.name, case.case_number, case.title, new_status.value)

    return {"message": "Case updated successfully", "case": schemas.CaseOut.model_validate(case)}


@router.delete("/{case_id}")
def delete_case(
    case_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    case = _load_case(db, case_id)
    CaseService.delete_case(db, current_user, case)
    return {"message": "Case deleted successfully"}
