"""Admin user management, stats and payment oversight."""

from __future__ import annotations

import csv
import io
from datetime import date, datetime, timedelta
from unittest.mock import patch

import pytest

from conftest import make_case, make_user
from courtfile.core.security import verify_password
from courtfile.db.models import (
    CasePaymentStatus,
    Hearing,
    HearingStatus,
    Payment,
    PaymentMethod,
    PaymentStatus,
    User,
    UserRole,
)
from courtfile.services.email_service import email_service


class TestUsers:
    def test_non_admin_is_forbidden(self, client, user_headers):
        assert client.get("/api/v1/admin/users", headers=user_headers).status_code == 403

    def test_list_search_and_verified_filter(self, client, db, admin_headers, user):
        make_user(db, "unverified@example.com", name="Pending Person", is_verified=False)

        everyone = client.get("/api/v1/admin/users", headers=admin_headers).json()
        assert everyone["pagination"]["total"] == 3
        assert all("password_hash" not in u for u in everyone["users"])

        unverified = client.get("/api/v1/admin/users?verified=false", headers=admin_headers).json()
        assert [u["email"] for u in unverified["users"]] == ["unverified@example.com"]

        found = client.get("/api/v1/admin/users?search=pending", headers=admin_headers).json()
        assert found["pagination"]["total"] == 1

    def test_patch_rehashes_password(self, client, db, user, admin_headers):
        resp = client.patch(
            f"/api/v1/admin/users/{user.id}",
            json={"name": "Asha F.", "password": "brandnew1"},
            headers=admin_headers,
        )
        assert resp.status_code == 200
        db.refresh(user)
        assert user.name == "Asha F."
        assert verify_password("brandnew1", user.password_hash)
        assert user.password_changed_at is not None

    def test_admin_cannot_demote_self(self, client, admin, admin_headers):
        resp = client.patch(f"/api/v1/admin/users/{admin.id}", json={"role": "user"}, headers=admin_headers)
        assert resp.status_code == 400

    def test_admin_can_promote_others(self, client, db, user, admin_headers):
        resp = client.patch(f"/api/v1/admin/users/{user.id}", json={"role": "admin"}, headers=admin_headers)
        assert resp.status_code == 200
        db.refresh(user)
        assert user.role == UserRole.admin

    def test_delete_user_and_not_self(self, client, db, admin, user, admin_headers):
        assert client.delete(f"/api/v1/admin/users/{admin.id}", headers=admin_headers).status_code == 400
        user_id = user.id
        assert client.delete(f"/api/v1/admin/users/{user_id}", headers=admin_headers).status_code == 200
        assert db.query(User).filter(User.id == user_id).first() is None

    def test_manual_verification(self, client, db, admin_headers):
        pending = make_user(db, "pending@example.com", is_verified=False)
        resp = client.post(
            "/api/v1/admin/users/verification/manual",
            json={"user_id": str(pending.id)},
            headers=admin_headers,
        )
        assert resp.status_code == 200
        db.refresh(pending)
        assert pending.is_verified is True

    def test_resend_verification_for_user(self, client, db, admin_headers):
        pending = make_user(db, "pending@example.com", is_verified=False)
        with patch.object(email_service, "send_verification_email") as send:
            resp = client.post(
                "/api/v1/admin/users/verification/resend",
                json={"user_id": str(pending.id)},
                headers=admin_headers,
            )
        assert resp.status_code == 200
        db.refresh(pending)
        assert pending.verification_token
        send.assert_called_once()


def test_stats(client, db, user, admin_headers):
    case = make_case(db, user)
    db.add_all([
        Hearing(case_id=case.id, hearing_type="first", date=date.today() + timedelta(days=2), time="10:00",
                location="R1"),
        Hearing(case_id=case.id, hearing_type="old", date=date.today() - timedelta(days=30), time="10:00",
                location="R1", status=HearingStatus.completed),
    ])
    db.commit()

    stats = client.get("/api/v1/admin/stats", headers=admin_headers).json()
    assert stats["users"] == {"total": 2, "new_this_week": 2}
    assert stats["cases"] == {"total": 1, "pending": 1}
    assert stats["hearings"] == {"total": 2, "upcoming": 1}


class TestPayments:
    @pytest.fixture()
    def payments(self, db, user):
        case = make_case(db, user, payment_status=CasePaymentStatus.paid, case_number="CASE-2026-PAYADM")
        done = Payment(
            case_id=case.id, user_id=user.id, amount=1000, currency="INR",
            payment_method=PaymentMethod.razorpay, status=PaymentStatus.completed,
            transaction_id="pay_DONE", razorpay_order_id="order_1", payment_date=datetime(2026, 10, 1, 9, 0),
        )
        open_ = Payment(
            case_id=case.id, user_id=user.id, amount=500, currency="INR",
            payment_method=PaymentMethod.razorpay, status=PaymentStatus.pending,
            razorpay_order_id="order_2",
        )
        db.add_all([done, open_])
        db.commit()
        case.payment_id = done.id
        db.commit()
        return case, done, open_

    def test_list_with_statistics(self, client, payments, admin_headers):
        body = client.get("/api/v1/admin/payments", headers=admin_headers).json()
        assert body["pagination"]["total_payments"] == 2
        stats = body["statistics"]
        assert stats["total_payments"] == 2
        assert stats["completed_payments"] == 1
        assert stats["pending_payments"] == 1
        assert stats["total_amount"] == 1500.0
        assert stats["total_completed_amount"] == 1000.0

    def test_search_by_case_number_and_order(self, client, payments, admin_headers):
        by_case = client.get("/api/v1/admin/payments?search=PAYADM", headers=admin_headers).json()
        assert by_case["pagination"]["total_payments"] == 2
        by_order = client.get("/api/v1/admin/payments?search=order_2", headers=admin_headers).json()
        assert by_order["pagination"]["total_payments"] == 1

    def test_detail(self, client, payments, admin_headers):
        _case, done, _open = payments
        body = client.get(f"/api/v1/admin/payments/{done.id}", headers=admin_headers).json()
        assert body["payment"]["case"]["case_number"] == "CASE-2026-PAYADM"
        assert body["payment"]["user"]["email"] == "filer@example.com"

    def test_refund_unpays_case(self, client, db, payments, admin_headers):
        case, done, _open = payments
        resp = client.put(
            f"/api/v1/admin/payments/{done.id}/status",
            json={"status": "refunded", "notes": "Duplicate filing"},
            headers=admin_headers,
        )
        assert resp.status_code == 200
        db.refresh(case)
        assert case.payment_status == CasePaymentStatus.unpaid
        assert case.payment_id is None

    def test_completing_pending_payment_marks_case_paid(self, client, db, payments, admin_headers):
        case, _done, open_ = payments
        resp = client.put(
            f"/api/v1/admin/payments/{open_.id}/status", json={"status": "completed"}, headers=admin_headers
        )
        assert resp.status_code == 200
        db.refresh(case)
        assert case.payment_status == CasePaymentStatus.paid
        assert case.payment_id == open_.id

    def test_invalid_transition_is_400(self, client, payments, admin_headers):
        _case, done, _open = payments
        resp = client.put(f"/api/v1/admin/payments/{done.id}/status", json={"status": "pending"}, headers=admin_headers)
        assert resp.status_code == 400

    def test_csv_export(self, client, payments, admin_headers):
        resp = client.get("/api/v1/admin/payments/export?status=completed", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/csv")
        assert "attachment; filename=payments-" in resp.headers["content-disposition"]
        rows = list(csv.reader(io.StringIO(resp.text)))
        assert rows[0][0] == "Payment ID"
        assert len(rows) == 2
        assert rows[1][1] == "pay_DONE"
        assert rows[1][4] == "CASE-2026-PAYADM"
        assert rows[1][6] == "1000.00"
