"""
Filing-fee payments through Razorpay, plus invoice download.
"""
from datetime import datetime
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status as http_status
from sqlalchemy.orm import Session

from courtfile.api.deps import get_current_user
from courtfile.core.config import settings
from courtfile.core.logger import logger
from courtfile.db import schemas
from courtfile.db.database import get_db
from courtfile.db.models import Case, CasePaymentStatus, Payment, PaymentMethod, PaymentStatus, User
from courtfile.services.authorization import authorize, is_admin
from courtfile.services.invoice_service import build_invoice_data, invoice_filename, render_invoice_pdf
from courtfile.services.payment_gateway import (
    PaymentGateway,
    build_receipt,
    get_payment_gateway,
    to_minor_units,
)
from courtfile.services.transitions import ensure_transition
from courtfile.utils.exceptions import (
    CaseNotFoundError,
    PaymentVerificationError,
    ResourceNotFoundError,
    ValidationError,
)

router = APIRouter()

INVOICE_PATH = "/api/v1/payment/invoice/{payment_id}"

# Case payment states a new order may move to `pending`
ORDER_OPENS_FROM = (CasePaymentStatus.unpaid, CasePaymentStatus.failed)


def _load_payment(db: Session, payment_id: UUID) -> Payment:
    payment = db.query(Payment).filter(Payment.id == payment_id).first()
    if not payment:
        raise ResourceNotFoundError("Payment")
    return payment


@router.post("/create-order", status_code=http_status.HTTP_201_CREATED)
def create_order(
    payload: schemas.CreateOrderRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    gateway: PaymentGateway = Depends(get_payment_gateway),
):
    """
    Open a Razorpay order for a case's filing fee and record a pending payment.
    The client completes checkout and then calls /verify-payment.
    """
    if payload.amount is None or payload.amount <= 0:
        raise ValidationError("Amount must be greater than zero")

    case = db.query(Case).filter(Case.id == payload.case_id).first()
    if not case:
        raise CaseNotFoundError()
    authorize(current_user, case.user_id, detail="You do not have permission to pay for this case")

    currency = settings.PAYMENT_CURRENCY
    amount_minor = to_minor_units(payload.amount)
    order = gateway.create_order(
        amount_minor,
        currency,
        build_receipt(case.id),
        notes={
            "case_id": str(case.id),
            "case_number": case.case_number,
            "user_id": str(current_user.id),
        },
    )

    payment = Payment(
        case_id=case.id,
        user_id=current_user.id,
        amount=payload.amount,
        currency=currency,
        payment_method=PaymentMethod.razorpay,
        status=PaymentStatus.pending,
        description=f"Filing fee for case {case.case_number}",
        razorpay_order_id=order["id"],
    )
    db.add(payment)
    # A paid case keeps its status while a further order is open
    if case.payment_status in ORDER_OPENS_FROM:
        case.payment_status = CasePaymentStatus.pending
    db.commit()
    db.refresh(payment)
    logger.info("Payment %s opened for %s (order %s)", payment.id, case.case_number, order["id"])

    return {
        "order_id": order["id"],
        "amount": order.get("amount", amount_minor),
        "currency": order.get("currency", currency),
        "key": gateway.key_id,
        "payment_id": str(payment.id),
    }


@router.post("/verify-payment")
def verify_payment(
    payload: schemas.VerifyPaymentRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    gateway: PaymentGateway = Depends(get_payment_gateway),
):
    payment = _load_payment(db, payload.payment_id)
    authorize(current_user, payment.user_id, detail="You do not have permission to verify this payment")

    if payload.razorpay_order_id != payment.razorpay_order_id:
        raise ValidationError("Order id does not match this payment")

    payment.razorpay_payment_id = payload.razorpay_payment_id
    payment.razorpay_signature = payload.razorpay_signature

    if not gateway.verify_signature(
        payment.razorpay_order_id, payload.razorpay_payment_id, payload.razorpay_signature
    ):
        ensure_transition("payment", payment.status, PaymentStatus.failed)
        payment.status = PaymentStatus.failed
        db.commit()
        logger.warning("Payment %s failed signature verification", payment.id)
        raise PaymentVerificationError()

    ensure_transition("payment", payment.status, PaymentStatus.completed)
    payment.status = PaymentStatus.completed
    payment.transaction_id = payload.razorpay_payment_id
    payment.payment_date = datetime.utcnow()
    payment.receipt_url = INVOICE_PATH.format(payment_id=payment.id)

    case = payment.case
    case.payment_status = CasePaymentStatus.paid
    case.payment_id = payment.id
    db.commit()
    db.refresh(payment)
    logger.info("Payment %s completed for %s", payment.id, case.case_number)

    return {
        "message": "Payment verified successfully",
        "payment": schemas.PaymentOut.model_validate(payment),
        "invoice_url": payment.receipt_url,
    }


@router.get("")
def payment_history(
    case_id: Optional[UUID] = Query(None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    query = db.query(Payment)
    if not is_admin(current_user):
        query = query.filter(Payment.user_id == current_user.id)
    if case_id:
        query = query.filter(Payment.case_id == case_id)
    payments = query.order_by(Payment.created_at.desc()).all()
    return {"payments": [schemas.PaymentOut.model_validate(p) for p in payments]}


@router.get("/invoice/{payment_id}")
def download_invoice(
    payment_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    payment = _load_payment(db, payment_id)
    authorize(current_user, payment.user_id)

    case = payment.case
    pdf = render_invoice_pdf(build_invoice_data(payment, case, payment.user))
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f"inline; filename={invoice_filename(case.case_number)}"},
    )
