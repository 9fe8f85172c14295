"""Evidence upload gating, validation, review and removal."""

from __future__ import annotations

import io
from unittest.mock import patch

import pytest

from conftest import make_case
from courtfile.core.config import settings
from courtfile.db.models import CasePaymentStatus, Evidence, EvidenceReviewStatus
from courtfile.services.email_service import email_service


def _upload(client, headers, case_id, content=b"%PDF-1.4 affidavit", content_type="application/pdf",
            filename="sworn affidavit.pdf", **fields):
    data = {"case_id": str(case_id), "title": "Affidavit", "evidence_type": "document"}
    data.update(fields)
    files = {"file": (filename, io.BytesIO(content), content_type)}
    return client.post("/api/v1/evidence", data=data, files=files, headers=headers)


class TestUpload:
    def test_unpaid_case_is_403_for_owner(self, client, sample_case, user_headers):
        resp = _upload(client, user_headers, sample_case.id)
        assert resp.status_code == 403
        assert resp.json()["detail"] == "Payment must be completed before uploading evidence"

    @pytest.mark.parametrize("payment_status", [CasePaymentStatus.pending, CasePaymentStatus.failed])
    def test_any_non_paid_status_is_403(self, client, db, user, user_headers, payment_status):
        case = make_case(db, user, payment_status=payment_status, case_number="CASE-2026-NOTPAY")
        assert _upload(client, user_headers, case.id).status_code == 403

    def test_admin_bypasses_payment_gate(self, client, sample_case, admin_headers):
        assert _upload(client, admin_headers, sample_case.id).status_code == 201

    def test_paid_case_upload_is_stored(self, client, db, paid_case, user_headers, blob_store):
        resp = _upload(client, user_headers, paid_case.id)
        assert resp.status_code == 201
        evidence = resp.json()["evidence"]
        assert evidence["is_approved"] is False
        assert evidence["review_status"] == "pending"
        assert evidence["file_name"] == "sworn-affidavit.pdf"
        assert evidence["file_url"].startswith(f"/uploads/{paid_case.id}/")
        assert evidence["file_url"].endswith("-sworn-affidavit.pdf")

        row = db.query(Evidence).one()
        assert blob_store.exists(row.storage_key)

    def test_stranger_is_403(self, client, paid_case, other_headers):
        assert _upload(client, other_headers, paid_case.id).status_code == 403

    def test_disallowed_mime_is_400(self, client, paid_case, user_headers):
        resp = _upload(client, user_headers, paid_case.id, content=b"MZ", content_type="application/x-msdownload",
                       filename="tool.exe")
        assert resp.status_code == 400

    def test_oversized_file_is_400(self, client, paid_case, user_headers, monkeypatch):
        monkeypatch.setattr(settings, "MAX_UPLOAD_SIZE", 8)
        resp = _upload(client, user_headers, paid_case.id, content=b"0123456789")
        assert resp.status_code == 400

    def test_oversized_file_never_reaches_storage(self, client, blob_store, paid_case, user_headers, monkeypatch):
        monkeypatch.setattr(settings, "MAX_UPLOAD_SIZE", 8)
        with patch.object(blob_store, "put") as put:
            resp = _upload(client, user_headers, paid_case.id, content=b"x" * 64)
        assert resp.status_code == 400
        put.assert_not_called()

    def test_file_at_size_limit_is_accepted(self, client, paid_case, user_headers, monkeypatch):
        monkeypatch.setattr(settings, "MAX_UPLOAD_SIZE", 8)
        resp = _upload(client, user_headers, paid_case.id, content=b"%PDF-1.4")
        assert resp.status_code == 201
        assert resp.json()["evidence"]["file_size"] == 8

    def test_unknown_case_is_404(self, client, user_headers):
        assert _upload(client, user_headers, "00000000-0000-0000-0000-000000000000").status_code == 404


class TestReadAndReview:
    @pytest.fixture()
    def evidence_id(self, client, paid_case, user_headers):
        return _upload(client, user_headers, paid_case.id).json()["evidence"]["id"]

    def test_owner_and_admin_can_list(self, client, paid_case, evidence_id, user_headers, admin_headers, other_headers):
        assert len(client.get("/api/v1/evidence", headers=user_headers).json()["evidence"]) == 1
        assert len(client.get(f"/api/v1/evidence?case_id={paid_case.id}", headers=admin_headers).json()["evidence"]) == 1
        assert client.get("/api/v1/evidence", headers=other_headers).json()["evidence"] == []
        assert client.get(f"/api/v1/evidence?case_id={paid_case.id}", headers=other_headers).status_code == 403
        assert client.get(f"/api/v1/evidence/{evidence_id}", headers=other_headers).status_code == 403

    def test_approval_emails_uploader(self, client, db, evidence_id, admin, admin_headers):
        with patch.object(email_service, "send_evidence_status_email") as notify:
            resp = client.patch(f"/api/v1/evidence/{evidence_id}", json={"is_approved": True}, headers=admin_headers)
        assert resp.status_code == 200
        body = resp.json()["evidence"]
        assert body["is_approved"] is True
        assert body["review_status"] == "approved"
        assert body["approved_by"] == str(admin.id)
        assert body["approval_date"] is not None
        notify.assert_called_once()
        assert notify.call_args.args[0] == "filer@example.com"
        assert notify.call_args.args[5] == "approved"

    def test_rejection_includes_notes(self, client, evidence_id, admin_headers):
        with patch.object(email_service, "send_evidence_status_email") as notify:
            client.patch(
                f"/api/v1/evidence/{evidence_id}",
                json={"is_approved": False, "notes": "Illegible scan"},
                headers=admin_headers,
            )
        args = notify.call_args.args
        assert args[5] == "rejected"
        assert args[6] == "Illegible scan"

    def test_repeat_decision_sends_no_email(self, client, evidence_id, admin_headers):
        client.patch(f"/api/v1/evidence/{evidence_id}", json={"is_approved": True}, headers=admin_headers)
        with patch.object(email_service, "send_evidence_status_email") as notify:
            resp = client.patch(f"/api/v1/evidence/{evidence_id}", json={"is_approved": True, "tags": ["key"]},
                                headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json()["evidence"]["tags"] == ["key"]
        notify.assert_not_called()

    def test_owner_cannot_review(self, client, evidence_id, user_headers):
        resp = client.patch(f"/api/v1/evidence/{evidence_id}", json={"is_approved": True}, headers=user_headers)
        assert resp.status_code == 403


class TestDelete:
    def test_uploader_deletes_pending_evidence(self, client, db, paid_case, user_headers, blob_store):
        evidence_id = _upload(client, user_headers, paid_case.id).json()["evidence"]["id"]
        key = db.query(Evidence).one().storage_key

        assert client.delete(f"/api/v1/evidence/{evidence_id}", headers=user_headers).status_code == 200
        assert db.query(Evidence).count() == 0
        assert not blob_store.exists(key)

    def test_uploader_cannot_delete_reviewed_evidence(self, client, db, paid_case, user_headers):
        evidence_id = _upload(client, user_headers, paid_case.id).json()["evidence"]["id"]
        row = db.query(Evidence).one()
        row.review_status = EvidenceReviewStatus.approved
        row.is_approved = True
        db.commit()
        assert client.delete(f"/api/v1/evidence/{evidence_id}", headers=user_headers).status_code == 403
