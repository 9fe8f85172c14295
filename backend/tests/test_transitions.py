"""Status transition tables."""

from __future__ import annotations

import pytest
from fastapi import HTTPException

from courtfile.db.models import CaseStatus, HearingStatus, PaymentStatus
from courtfile.services.transitions import can_transition, ensure_transition


@pytest.mark.parametrize(
    "current,target",
    [
        ("pending", "approved"),
        ("approved", "inProgress"),
        ("inProgress", "completed"),
        ("rejected", "pending"),
        ("completed", "closed"),
        ("approved", "rejected"),
    ],
)
def test_allowed_case_transitions(current, target):
    assert can_transition("case", current, target)


@pytest.mark.parametrize(
    "current,target",
    [
        ("closed", "pending"),
        ("completed", "approved"),
        ("pending", "completed"),
        ("draft", "inProgress"),
        ("rejected", "inProgress"),
    ],
)
def test_forbidden_case_transitions(current, target):
    assert not can_transition("case", current, target)


def test_same_status_is_always_allowed():
    assert can_transition("case", CaseStatus.closed, CaseStatus.closed)
    assert can_transition("payment", PaymentStatus.failed, "failed")


def test_unknown_values_are_rejected():
    assert not can_transition("hearing", "scheduled", "adjourned")


def test_payment_state_machine():
    assert can_transition("payment", "pending", "completed")
    assert can_transition("payment", "pending", "failed")
    assert can_transition("payment", "completed", "refunded")
    assert not can_transition("payment", "failed", "completed")
    assert not can_transition("payment", "completed", "pending")


def test_ensure_transition_raises_400():
    with pytest.raises(HTTPException) as exc:
        ensure_transition("hearing", HearingStatus.completed, HearingStatus.scheduled)
    assert exc.value.status_code == 400
