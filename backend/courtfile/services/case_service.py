# courtfile/services/case_service.py
"""
Case business rules: filing fees, case numbers, field filtering and deletion.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from courtfile.core.config import settings
from courtfile.core.logger import logger
from courtfile.db.models import Case, CaseStatus, CaseType, User
from courtfile.services.authorization import authorize, is_admin
from courtfile.services.transitions import ensure_transition
from courtfile.utils.exceptions import UnauthorizedError, ValidationError
from courtfile.utils.helpers import random_base36

HIGH_FEE_CASE_TYPES = frozenset({"criminal", "commercial", "cybercrime"})

# Fields a filer may change on their own case; everything else is admin-only
OWNER_EDITABLE_FIELDS = frozenset({"description", "plaintiffs", "defendants", "relief_sought", "value"})

ADMIN_EDITABLE_FIELDS = frozenset({
    "title", "description", "plaintiffs", "defendants", "case_type", "category",
    "court_location", "relief_sought", "value", "notes", "status",
    "filing_fee", "assigned_to",
})

OWNER_DELETABLE_STATUSES = frozenset({CaseStatus.pending, CaseStatus.draft})

REQUIRED_CREATE_FIELDS = ("title", "plaintiffs", "defendants")


def calculate_filing_fee(case_type: Optional[str]) -> int:
    """Filing fee in major currency units for a case type (case-insensitive)."""
    if (case_type or "").strip().lower() in HIGH_FEE_CASE_TYPES:
        return settings.FILING_FEE_HIGH
    return settings.FILING_FEE_STANDARD


def get_filing_fee_structure() -> Dict[str, Any]:
    return {
        "currency": settings.PAYMENT_CURRENCY,
        "fees": {ct.value: calculate_filing_fee(ct.value) for ct in CaseType},
    }


def generate_case_number(year: Optional[int] = None) -> str:
    year = year or datetime.utcnow().year
    return f"CASE-{year}-{random_base36(6).upper()}"


def normalize_case_type(case_type: Optional[str]) -> str:
    value = (case_type or "").strip().lower()
    return value or CaseType.civil.value


def missing_required_fields(payload: Dict[str, Any]) -> List[str]:
    return [f for f in REQUIRED_CREATE_FIELDS if not (payload.get(f) or "").strip()]


class CaseService:
    """
    Service layer for case-related business logic.
    """

    @staticmethod
    def unique_case_number(db: Session, attempts: int = 5) -> str:
        for _ in range(attempts):
            number = generate_case_number()
            if not db.query(Case.id).filter(Case.case_number == number).first():
                return number
        raise RuntimeError("Could not allocate a unique case number")

    @staticmethod
    def filter_update(user: User, update_data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Drop fields the caller may not change. Non-admin extras are discarded
        silently rather than rejected.
        """
        allowed = ADMIN_EDITABLE_FIELDS if is_admin(user) else OWNER_EDITABLE_FIELDS
        dropped = set(update_data) - allowed
        if dropped:
            logger.info("Ignoring non-editable case fields: %s", sorted(dropped))
        return {k: v for k, v in update_data.items() if k in allowed}

    @staticmethod
    def apply_update(case: Case, update_data: Dict[str, Any]) -> Optional[CaseStatus]:
        """
        Apply an already-filtered update. Returns the new status when the
        status actually changed, else None.
        """
        previous = case.status
        new_status = update_data.get("status")
        if new_status is not None:
            ensure_transition("case", previous, new_status)
            new_status = CaseStatus(new_status)

        if "case_type" in update_data and update_data["case_type"] is not None:
            update_data["case_type"] = normalize_case_type(update_data["case_type"])

        for field, value in update_data.items():
            setattr(case, field, value)

        if new_status is None or new_status == previous:
            return None
        now = datetime.utcnow()
        if new_status == CaseStatus.approved and case.approval_date is None:
            case.approval_date = now
        if new_status in (CaseStatus.completed, CaseStatus.closed) and case.completion_date is None:
            case.completion_date = now
        return new_status

    @staticmethod
    def delete_case(db: Session, user: User, case: Case) -> None:
        """
        Owners may delete while pending/draft; admins always. Hearings, evidence
        and payment rows go with the case. Stored evidence blobs are left in place.
        """
        authorize(user, case.user_id)
        if not is_admin(user) and case.status not in OWNER_DELETABLE_STATUSES:
            raise UnauthorizedError("Cannot delete a case that has been approved or is in progress")

        case_number = case.case_number
        orphaned = [e.storage_key for e in case.evidence]
        db.delete(case)
        db.commit()
        if orphaned:
            logger.warning(
                "Case %s deleted; %d evidence file(s) left in storage: %s",
                case_number, len(orphaned), ", ".join(orphaned),
            )

    @staticmethod
    def update_parties(case: Case, plaintiffs: Optional[str], defendants: Optional[str]) -> None:
        if plaintiffs is None and defendants is None:
            raise ValidationError("No updates specified")
        if plaintiffs is not None:
            case.plaintiffs = plaintiffs
        if defendants is not None:
            case.defendants = defendants
