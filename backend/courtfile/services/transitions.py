"""
Status transition tables for cases, hearings, evidence and payments.

Handlers call `ensure_transition` before mutating a status field so every
lifecycle rule lives in one place. Setting a status to its current value is
always allowed and is not treated as a transition.
"""
from __future__ import annotations

from enum import Enum
from typing import Dict, FrozenSet, Optional

from courtfile.db.models import (
    CaseStatus,
    EvidenceReviewStatus,
    HearingStatus,
    PaymentStatus,
)
from courtfile.utils.exceptions import InvalidTransitionError

# A rejected filing is resubmitted through `pending`; approval may be revoked
# until work starts
CASE_TRANSITIONS: Dict[CaseStatus, FrozenSet[CaseStatus]] = {
    CaseStatus.draft: frozenset({CaseStatus.pending, CaseStatus.closed}),
    CaseStatus.pending: frozenset({CaseStatus.approved, CaseStatus.rejected, CaseStatus.closed}),
    CaseStatus.approved: frozenset({CaseStatus.in_progress, CaseStatus.rejected, CaseStatus.closed}),
    CaseStatus.rejected: frozenset({CaseStatus.pending, CaseStatus.closed}),
    CaseStatus.in_progress: frozenset({CaseStatus.completed, CaseStatus.closed}),
    CaseStatus.completed: frozenset({CaseStatus.closed}),
    CaseStatus.closed: frozenset(),
}

HEARING_TRANSITIONS: Dict[HearingStatus, FrozenSet[HearingStatus]] = {
    HearingStatus.scheduled: frozenset({HearingStatus.postponed, HearingStatus.completed, HearingStatus.cancelled}),
    HearingStatus.postponed: frozenset({HearingStatus.scheduled, HearingStatus.completed, HearingStatus.cancelled}),
    HearingStatus.cancelled: frozenset({HearingStatus.scheduled}),
    HearingStatus.completed: frozenset(),
}

EVIDENCE_TRANSITIONS: Dict[EvidenceReviewStatus, FrozenSet[EvidenceReviewStatus]] = {
    EvidenceReviewStatus.pending: frozenset({EvidenceReviewStatus.approved, EvidenceReviewStatus.rejected}),
    EvidenceReviewStatus.approved: frozenset({EvidenceReviewStatus.rejected}),
    EvidenceReviewStatus.rejected: frozenset({EvidenceReviewStatus.approved}),
}

# completed/failed close the gateway flow; refunds are an admin action
PAYMENT_TRANSITIONS: Dict[PaymentStatus, FrozenSet[PaymentStatus]] = {
    PaymentStatus.pending: frozenset({PaymentStatus.completed, PaymentStatus.failed}),
    PaymentStatus.completed: frozenset({PaymentStatus.refunded}),
    PaymentStatus.failed: frozenset(),
    PaymentStatus.refunded: frozenset(),
}

_TABLES = {
    "case": (CaseStatus, CASE_TRANSITIONS),
    "hearing": (HearingStatus, HEARING_TRANSITIONS),
    "evidence": (EvidenceReviewStatus, EVIDENCE_TRANSITIONS),
    "payment": (PaymentStatus, PAYMENT_TRANSITIONS),
}


def _coerce(enum_cls, value) -> Optional[Enum]:
    if value is None or isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        return None


def can_transition(entity: str, current, target) -> bool:
    enum_cls, table = _TABLES[entity]
    cur, tgt = _coerce(enum_cls, current), _coerce(enum_cls, target)
    if cur is None or tgt is None:
        return False
    if cur == tgt:
        return True
    return tgt in table.get(cur, frozenset())


def ensure_transition(entity: str, current, target) -> None:
    """Raise InvalidTransitionError (400) unless `current -> target` is allowed."""
    if not can_transition(entity, current, target):
        raise InvalidTransitionError(
            entity,
            getattr(current, "value", current),
            getattr(target, "value", target),
        )
