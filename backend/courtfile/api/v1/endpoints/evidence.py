"""
Evidence upload and review endpoints
"""
from datetime import datetime
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status as http_status
from sqlalchemy import or_
from sqlalchemy.orm import Session

from courtfile.api.deps import get_current_admin, get_current_user
from courtfile.core.config import settings
from courtfile.core.logger import logger
from courtfile.db import schemas
from courtfile.db.database import get_db
from courtfile.db.models import (
    Case,
    CasePaymentStatus,
    Evidence,
    EvidenceReviewStatus,
    EvidenceType,
    User,
)
from courtfile.services.authorization import authorize, is_admin
from courtfile.services.notifications import Notifier, get_notifier
from courtfile.services.storage import BlobStore, StorageError, get_blob_store
from courtfile.services.transitions import ensure_transition
from courtfile.utils.exceptions import (
    CaseNotFoundError,
    ResourceNotFoundError,
    UnauthorizedError,
    UploadFailedError,
    ValidationError,
)
from courtfile.utils.helpers import now_ms, safe_filename
from courtfile.utils.validators import is_allowed_evidence_type

router = APIRouter()

REVIEWABLE_FIELDS = {"is_approved", "notes", "tags"}


def _load_evidence(db: Session, evidence_id: UUID) -> Evidence:
    evidence = db.query(Evidence).filter(Evidence.id == evidence_id).first()
    if not evidence:
        raise ResourceNotFoundError("Evidence")
    return evidence


@router.post("", status_code=http_status.HTTP_201_CREATED)
def upload_evidence(
    case_id: UUID = Form(...),
    title: str = Form(...),
    description: Optional[str] = Form(None),
    evidence_type: str = Form(EvidenceType.document.value),
    file: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    store: BlobStore = Depends(get_blob_store),
):
    """
    Attach a file to a case. Filers can only upload once the filing fee
    has been paid; admins are exempt.
    """
    case = db.query(Case).filter(Case.id == case_id).first()
    if not case:
        raise CaseNotFoundError()
    authorize(current_user, case.user_id, detail="You do not have permission to add evidence to this case")

    if not is_admin(current_user) and case.payment_status != CasePaymentStatus.paid:
        raise UnauthorizedError("Payment must be completed before uploading evidence")

    if not title.strip():
        raise ValidationError("Title is required")
    try:
        kind = EvidenceType((evidence_type or EvidenceType.document.value).lower())
    except ValueError:
        raise ValidationError(f"Unknown evidence type: {evidence_type}")

    content_type = (file.content_type or "").lower()
    if not is_allowed_evidence_type(content_type):
        raise ValidationError(f"File type {content_type or 'unknown'} is not allowed")

    limit = settings.MAX_UPLOAD_SIZE
    too_large = f"File exceeds the {limit // (1024 * 1024)}MB limit"
    if file.size is not None and file.size > limit:
        raise ValidationError(too_large)
    # Bounded read: one byte past the limit is enough to reject
    data = file.file.read(limit + 1)
    if len(data) > limit:
        raise ValidationError(too_large)

    file_name = safe_filename(file.filename or "upload")
    key = f"{case.id}/{now_ms()}-{file_name}"
    try:
        blob = store.put(key, data, content_type)
    except StorageError as e:
        logger.error("Evidence upload failed for case %s: %s", case.case_number, e)
        raise UploadFailedError(str(e))

    evidence = Evidence(
        case_id=case.id,
        user_id=current_user.id,
        title=title.strip(),
        description=description,
        evidence_type=kind,
        file_url=blob.url,
        storage_key=blob.key,
        file_name=file_name,
        file_type=content_type,
        file_size=blob.size_bytes,
        upload_date=datetime.utcnow(),
        is_approved=False,
        review_status=EvidenceReviewStatus.pending,
    )
    db.add(evidence)
    db.commit()
    db.refresh(evidence)
    logger.info("Evidence %s uploaded to case %s (%d bytes)", evidence.id, case.case_number, blob.size_bytes)

    return {"message": "Evidence uploaded successfully", "evidence": schemas.EvidenceOut.model_validate(evidence)}


@router.get("")
def list_evidence(
    case_id: Optional[UUID] = Query(None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    query = db.query(Evidence)
    if case_id:
        case = db.query(Case).filter(Case.id == case_id).first()
        if not case:
            raise CaseNotFoundError()
        authorize(current_user, case.user_id)
        query = query.filter(Evidence.case_id == case_id)
    elif not is_admin(current_user):
        owned_cases = db.query(Case.id).filter(Case.user_id == current_user.id)
        query = query.filter(
            or_(Evidence.user_id == current_user.id, Evidence.case_id.in_(owned_cases))
        )

    evidence = query.order_by(Evidence.upload_date.desc()).all()
    return {"evidence": [schemas.EvidenceOut.model_validate(e) for e in evidence]}


@router.get("/{evidence_id}")
def get_evidence(
    evidence_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    evidence = _load_evidence(db, evidence_id)
    authorize(current_user, [evidence.user_id, evidence.case.user_id])
    return {"evidence": schemas.EvidenceOut.model_validate(evidence)}


@router.patch("/{evidence_id}")
def review_evidence(
    evidence_id: UUID,
    payload: schemas.EvidenceUpdate,
    current_user: User = Depends(get_current_admin),
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
):
    """Approve or reject a piece of evidence and notify the uploader on a decision change."""
    evidence = _load_evidence(db, evidence_id)
    update_data = {
        k: v for k, v in payload.model_dump(exclude_unset=True).items() if k in REVIEWABLE_FIELDS
    }

    previous_review = evidence.review_status
    if update_data.get("is_approved") is not None:
        target = EvidenceReviewStatus.approved if update_data["is_approved"] else EvidenceReviewStatus.rejected
        ensure_transition("evidence", previous_review, target)
        evidence.is_approved = update_data["is_approved"]
        evidence.review_status = target
        evidence.approved_by = current_user.id
        evidence.approval_date = datetime.utcnow()

    if "notes" in update_data:
        evidence.notes = update_data["notes"]
    if update_data.get("tags") is not None:
        evidence.tags = update_data["tags"]

    db.commit()
    db.refresh(evidence)

    if evidence.review_status != previous_review:
        decision = evidence.review_status.value
        logger.info("Evidence %s %s by %s", evidence.id, decision, current_user.email)
        uploader = evidence.uploader
        case = evidence.case
        notifier.evidence_decision(
            uploader.email,
            uploader.name,
            case.case_number,
            case.title,
            evidence.title,
            decision,
            reason=evidence.notes if decision == EvidenceReviewStatus.rejected.value else None,
        )

    return {"message": "Evidence updated successfully", "evidence": schemas.EvidenceOut.model_validate(evidence)}


@router.delete("/{evidence_id}")
def delete_evidence(
    evidence_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    store: BlobStore = Depends(get_blob_store),
):
    evidence = _load_evidence(db, evidence_id)
    uploader_may_delete = (
        evidence.user_id == current_user.id and evidence.review_status == EvidenceReviewStatus.pending
    )
    if not (is_admin(current_user) or uploader_may_delete):
        raise UnauthorizedError("Only pending evidence can be removed by its uploader")

    try:
        removed = store.delete(evidence.storage_key)
    except StorageError as e:
        logger.error("Could not remove blob %s: %s", evidence.storage_key, e)
        raise UploadFailedError(str(e))
    if not removed:
        logger.warning("Blob %s was already missing", evidence.storage_key)

    db.delete(evidence)
    db.commit()
    return {"message": "Evidence deleted successfully"}
