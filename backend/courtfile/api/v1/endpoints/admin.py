"""
Admin console endpoints: user management, dashboard stats and payment oversight.
"""
import csv
import io
from datetime import date, datetime, timedelta
from typing import Any, Dict, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status as http_status
from fastapi.responses import StreamingResponse
from sqlalchemy import case as sql_case, func, or_
from sqlalchemy.orm import Session

from courtfile.api.deps import get_current_admin
from courtfile.core.config import settings
from courtfile.core.logger import logger
from courtfile.core.security import generate_verification_token, get_password_hash, token_expiry
from courtfile.db import schemas
from courtfile.db.database import get_db
from courtfile.db.models import (
    Case,
    CasePaymentStatus,
    CaseStatus,
    Hearing,
    HearingStatus,
    Payment,
    PaymentStatus,
    User,
    UserRole,
)
from courtfile.services.notifications import Notifier, get_notifier
from courtfile.services.transitions import ensure_transition
from courtfile.utils.exceptions import ResourceNotFoundError, ValidationError
from courtfile.utils.helpers import format_date

router = APIRouter()

CSV_COLUMNS = [
    "Payment ID",
    "Transaction ID",
    "User Name",
    "User Email",
    "Case Number",
    "Case Title",
    "Amount",
    "Currency",
    "Payment Method",
    "Status",
    "Payment Date",
    "Razorpay Order ID",
    "Razorpay Payment ID",
    "Description",
    "Notes",
    "Created At",
]

# Case payment status mirrored from a payment the admin moved by hand
CASE_STATUS_FOR_PAYMENT = {
    PaymentStatus.pending: CasePaymentStatus.pending,
    PaymentStatus.completed: CasePaymentStatus.paid,
    PaymentStatus.failed: CasePaymentStatus.failed,
    PaymentStatus.refunded: CasePaymentStatus.unpaid,
}


def _load_user(db: Session, user_id: UUID) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=http_status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


# ============================================================================
# Users
# ============================================================================

@router.get("/users")
def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: Optional[str] = Query(None),
    verified: Optional[bool] = Query(None),
    current_user: User = Depends(get_current_admin),
    db: Session = Depends(get_db),
):
    query = db.query(User)
    if search:
        term = f"%{search.strip()}%"
        query = query.filter(or_(User.name.ilike(term), User.email.ilike(term)))
    if verified is not None:
        query = query.filter(User.is_verified == verified)

    total = query.count()
    users = query.order_by(User.created_at.desc()).offset((page - 1) * limit).limit(limit).all()
    return {
        "users": [schemas.UserOut.model_validate(u) for u in users],
        "pagination": {
            "total": total,
            "page": page,
            "limit": limit,
            "total_pages": (total + limit - 1) // limit,
        },
    }


@router.get("/users/{user_id}", response_model=schemas.UserOut)
def get_user(
    user_id: UUID,
    current_user: User = Depends(get_current_admin),
    db: Session = Depends(get_db),
):
    return _load_user(db, user_id)


@router.patch("/users/{user_id}")
def update_user(
    user_id: UUID,
    payload: schemas.AdminUserUpdate,
    current_user: User = Depends(get_current_admin),
    db: Session = Depends(get_db),
):
    user = _load_user(db, user_id)
    update_data = payload.model_dump(exclude_unset=True)

    if user.id == current_user.id and update_data.get("role") not in (None, UserRole.admin):
        raise ValidationError("You cannot remove your own admin role")

    password = update_data.pop("password", None)
    if password:
        user.password_hash = get_password_hash(password)
        user.password_changed_at = datetime.utcnow()

    for field, value in update_data.items():
        if value is None and field in ("name", "role"):
            continue
        setattr(user, field, value)

    db.commit()
    db.refresh(user)
    logger.info("Admin %s updated user %s", current_user.email, user.email)
    return {"message": "User updated successfully", "user": schemas.UserOut.model_validate(user)}


@router.delete("/users/{user_id}")
def delete_user(
    user_id: UUID,
    current_user: User = Depends(get_current_admin),
    db: Session = Depends(get_db),
):
    user = _load_user(db, user_id)
    if user.id == current_user.id:
        raise ValidationError("You cannot delete your own account")

    email = user.email
    db.delete(user)
    db.commit()
    logger.warning("Admin %s deleted user %s", current_user.email, email)
    return {"message": "User deleted successfully"}


@router.post("/users/verification/manual")
def verify_user_manually(
    body: schemas.UserIdRequest,
    current_user: User = Depends(get_current_admin),
    db: Session = Depends(get_db),
):
    user = _load_user(db, body.user_id)
    user.is_verified = True
    user.verification_token = None
    user.verification_token_expires = None
    db.commit()
    logger.info("Admin %s manually verified %s", current_user.email, user.email)
    return {"message": "User verified successfully", "user": schemas.UserOut.model_validate(user)}


@router.post("/users/verification/resend")
def resend_user_verification(
    body: schemas.UserIdRequest,
    current_user: User = Depends(get_current_admin),
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
):
    user = _load_user(db, body.user_id)
    if user.is_verified:
        raise ValidationError("User is already verified")

    user.verification_token = generate_verification_token()
    user.verification_token_expires = token_expiry(settings.VERIFICATION_TOKEN_EXPIRE_HOURS)
    db.commit()

    notifier.verification(user.email, user.name, user.verification_token)
    return {"message": "Verification email sent"}


# ============================================================================
# Dashboard
# ============================================================================

@router.get("/stats")
def admin_stats(
    current_user: User = Depends(get_current_admin),
    db: Session = Depends(get_db),
):
    week_ago = datetime.utcnow() - timedelta(days=7)
    upcoming_statuses = [HearingStatus.scheduled, HearingStatus.postponed]
    return {
        "users": {
            "total": db.query(func.count(User.id)).scalar(),
            "new_this_week": db.query(func.count(User.id)).filter(User.created_at >= week_ago).scalar(),
        },
        "cases": {
            "total": db.query(func.count(Case.id)).scalar(),
            "pending": db.query(func.count(Case.id)).filter(Case.status == CaseStatus.pending).scalar(),
        },
        "hearings": {
            "total": db.query(func.count(Hearing.id)).scalar(),
            "upcoming": db.query(func.count(Hearing.id))
            .filter(Hearing.date >= date.today(), Hearing.status.in_(upcoming_statuses))
            .scalar(),
        },
        "timestamp": datetime.utcnow(),
    }


# ============================================================================
# Payments
# ============================================================================

def _filtered_payments(
    db: Session,
    status: Optional[str],
    date_from: Optional[date],
    date_to: Optional[date],
    search: Optional[str] = None,
):
    query = db.query(Payment).join(Case, Payment.case_id == Case.id)
    if status and status != "all":
        try:
            query = query.filter(Payment.status == PaymentStatus(status))
        except ValueError:
            raise ValidationError(f"Unknown payment status: {status}")
    if date_from:
        query = query.filter(Payment.payment_date >= datetime.combine(date_from, datetime.min.time()))
    if date_to:
        query = query.filter(Payment.payment_date <= datetime.combine(date_to, datetime.max.time()))
    if search:
        term = f"%{search.strip()}%"
        query = query.filter(
            or_(
                Payment.transaction_id.ilike(term),
                Payment.razorpay_order_id.ilike(term),
                Payment.razorpay_payment_id.ilike(term),
                Case.case_number.ilike(term),
            )
        )
    return query


def _payment_statistics(query) -> Dict[str, Any]:
    completed = Payment.status == PaymentStatus.completed
    row = query.with_entities(
        func.coalesce(func.sum(Payment.amount), 0),
        func.count(Payment.id),
        func.sum(sql_case((completed, 1), else_=0)),
        func.sum(sql_case((Payment.status == PaymentStatus.pending, 1), else_=0)),
        func.sum(sql_case((Payment.status == PaymentStatus.failed, 1), else_=0)),
        func.coalesce(func.sum(sql_case((completed, Payment.amount), else_=0)), 0),
    ).order_by(None).one()
    return {
        "total_amount": float(row[0] or 0),
        "total_payments": row[1] or 0,
        "completed_payments": row[2] or 0,
        "pending_payments": row[3] or 0,
        "failed_payments": row[4] or 0,
        "total_completed_amount": float(row[5] or 0),
    }


def _payment_detail(payment: Payment) -> Dict[str, Any]:
    data = schemas.PaymentOut.model_validate(payment).model_dump()
    data["user"] = {"id": payment.user.id, "name": payment.user.name, "email": payment.user.email}
    data["case"] = {
        "id": payment.case.id,
        "case_number": payment.case.case_number,
        "title": payment.case.title,
        "status": payment.case.status,
        "payment_status": payment.case.payment_status,
    }
    return data


@router.get("/payments")
def list_payments(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status: Optional[str] = Query(None),
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    search: Optional[str] = Query(None),
    sort_by: str = Query("payment_date"),
    sort_order: str = Query("desc"),
    current_user: User = Depends(get_current_admin),
    db: Session = Depends(get_db),
):
    query = _filtered_payments(db, status, date_from, date_to, search)
    statistics = _payment_statistics(query)

    sortable_columns = {
        "payment_date": Payment.payment_date,
        "created_at": Payment.created_at,
        "amount": Payment.amount,
        "status": Payment.status,
    }
    sort_column = sortable_columns.get(sort_by, Payment.payment_date)
    query = query.order_by(sort_column.asc() if sort_order.lower() == "asc" else sort_column.desc())

    total = query.count()
    payments = query.offset((page - 1) * limit).limit(limit).all()
    return {
        "payments": [_payment_detail(p) for p in payments],
        "pagination": {
            "current_page": page,
            "total_pages": (total + limit - 1) // limit,
            "total_payments": total,
            "has_next": page * limit < total,
            "has_prev": page > 1,
        },
        "statistics": statistics,
    }


@router.get("/payments/export")
def export_payments(
    status: Optional[str] = Query(None),
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    current_user: User = Depends(get_current_admin),
    db: Session = Depends(get_db),
):
    payments = _filtered_payments(db, status, date_from, date_to).order_by(Payment.payment_date.desc()).all()

    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(CSV_COLUMNS)
    for p in payments:
        writer.writerow([
            str(p.id),
            p.transaction_id or "",
            p.user.name if p.user else "N/A",
            p.user.email if p.user else "N/A",
            p.case.case_number if p.case else "N/A",
            p.case.title if p.case else "N/A",
            f"{p.amount:.2f}",
            p.currency,
            p.payment_method.value,
            p.status.value,
            format_date(p.payment_date) or "N/A",
            p.razorpay_order_id or "N/A",
            p.razorpay_payment_id or "N/A",
            p.description or "N/A",
            p.notes or "N/A",
            format_date(p.created_at) or "N/A",
        ])
    buffer.seek(0)

    logger.info("Admin %s exported %d payments", current_user.email, len(payments))
    filename = f"payments-{date.today().isoformat()}.csv"
    return StreamingResponse(
        iter([buffer.getvalue()]),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@router.get("/payments/{payment_id}")
def get_payment(
    payment_id: UUID,
    current_user: User = Depends(get_current_admin),
    db: Session = Depends(get_db),
):
    payment = db.query(Payment).filter(Payment.id == payment_id).first()
    if not payment:
        raise ResourceNotFoundError("Payment")
    return {"payment": _payment_detail(payment)}


@router.put("/payments/{payment_id}/status")
def update_payment_status(
    payment_id: UUID,
    payload: schemas.PaymentStatusUpdate,
    current_user: User = Depends(get_current_admin),
    db: Session = Depends(get_db),
):
    """
    Move a payment along the payment state machine and mirror the result onto
    its case. The case stays `paid` while any other completed payment exists.
    """
    payment = db.query(Payment).filter(Payment.id == payment_id).first()
    if not payment:
        raise ResourceNotFoundError("Payment")

    ensure_transition("payment", payment.status, payload.status)
    previous = payment.status
    payment.status = payload.status
    if payload.notes is not None:
        payment.notes = payload.notes
    if payload.status == PaymentStatus.completed and not payment.payment_date:
        payment.payment_date = datetime.utcnow()

    case = payment.case
    other_completed = (
        db.query(Payment.id)
        .filter(
            Payment.case_id == case.id,
            Payment.id != payment.id,
            Payment.status == PaymentStatus.completed,
        )
        .first()
    )
    if payload.status == PaymentStatus.completed:
        case.payment_status = CasePaymentStatus.paid
        case.payment_id = payment.id
    elif other_completed:
        case.payment_status = CasePaymentStatus.paid
        case.payment_id = other_completed[0]
    else:
        case.payment_status = CASE_STATUS_FOR_PAYMENT[payload.status]
        if case.payment_id == payment.id:
            case.payment_id = None

    db.commit()
    db.refresh(payment)
    logger.info(
        "Admin %s moved payment %s from %s to %s",
        current_user.email, payment.id, previous.value, payment.status.value,
    )
    return {"message": "Payment status updated", "payment": _payment_detail(payment)}
