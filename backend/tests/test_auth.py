"""Registration, login, email verification and admin onboarding."""

from __future__ import annotations

import io
from datetime import datetime, timedelta
from unittest.mock import patch

from conftest import SECURITY_CODE, make_user
from courtfile.core.security import decode_access_token, verify_password
from courtfile.db.models import User, UserRole
from courtfile.services.email_service import email_service


def _register(client, **overrides):
    body = {"name": "Meera Das", "email": "Meera@Example.com", "password": "hunter22"}
    body.update(overrides)
    return client.post("/api/v1/auth/register", json=body)


class TestRegister:
    def test_register_creates_verified_user_and_sends_welcome(self, client, db):
        with patch.object(email_service, "send_welcome_email") as welcome:
            resp = _register(client)
        assert resp.status_code == 201
        user = resp.json()["user"]
        assert user["role"] == "user"
        assert user["is_verified"] is True
        assert user["email"] == "meera@example.com"

        stored = db.query(User).filter(User.email == "meera@example.com").one()
        assert stored.verification_token
        assert verify_password("hunter22", stored.password_hash)

        welcome.assert_called_once()
        assert welcome.call_args.args[0] == "meera@example.com"
        assert welcome.call_args.args[2] == stored.verification_token

    def test_admins_are_told_about_new_users(self, client, admin):
        with patch.object(email_service, "send_admin_notification_email") as notify:
            resp = _register(client)
        assert resp.status_code == 201
        notify.assert_called_once()
        recipients, _subject, notification_type, data = notify.call_args.args
        assert ("admin@example.com", "Court Admin") in recipients
        assert notification_type == "new_user"
        assert data["email"] == "meera@example.com"

    def test_duplicate_email_is_400(self, client, user):
        resp = _register(client, email="FILER@example.com")
        assert resp.status_code == 400

    def test_short_password_is_400(self, client):
        resp = _register(client, password="123")
        assert resp.status_code == 400


class TestLogin:
    def test_login_returns_token_and_cookie(self, client, user):
        resp = client.post("/api/v1/auth/login", json={"email": "filer@example.com", "password": "secret123"})
        assert resp.status_code == 200
        body = resp.json()
        claims = decode_access_token(body["access_token"])
        assert claims["sub"] == str(user.id)
        assert claims["role"] == "user"
        assert claims["is_verified"] is True
        assert "access_token" in resp.cookies

    def test_wrong_password_is_401(self, client, user):
        resp = client.post("/api/v1/auth/login", json={"email": "filer@example.com", "password": "nope"})
        assert resp.status_code == 401

    def test_me_and_check_role(self, client, admin_headers):
        me = client.get("/api/v1/auth/me", headers=admin_headers)
        assert me.status_code == 200
        assert me.json()["email"] == "admin@example.com"

        role = client.get("/api/v1/auth/check-role", headers=admin_headers).json()
        assert role == {"role": "admin", "is_admin": True}

    def test_garbage_token_is_401(self, client):
        resp = client.get("/api/v1/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
        assert resp.status_code == 401


class TestEmailVerification:
    def test_verify_email_marks_user_and_redirects(self, client, db):
        user = make_user(db, "new@example.com", is_verified=False)
        user.verification_token = "tok123"
        user.verification_token_expires = datetime.utcnow() + timedelta(hours=1)
        db.commit()

        resp = client.get("/api/v1/auth/verify-email?token=tok123", follow_redirects=False)
        assert resp.status_code == 307
        assert resp.headers["location"] == "/?verified=true"
        db.refresh(user)
        assert user.is_verified is True
        assert user.verification_token is None

    def test_expired_token_is_400(self, client, db):
        user = make_user(db, "late@example.com", is_verified=False)
        user.verification_token = "old"
        user.verification_token_expires = datetime.utcnow() - timedelta(minutes=1)
        db.commit()
        resp = client.get("/api/v1/auth/verify-email?token=old", follow_redirects=False)
        assert resp.status_code == 400

    def test_missing_or_unknown_token_is_400(self, client):
        assert client.get("/api/v1/auth/verify-email", follow_redirects=False).status_code == 400
        assert client.get("/api/v1/auth/verify-email?token=zzz", follow_redirects=False).status_code == 400

    def test_resend_verification(self, client, db):
        make_user(db, "pending@example.com", is_verified=False)
        with patch.object(email_service, "send_verification_email") as send:
            resp = client.post("/api/v1/auth/resend-verification", json={"email": "pending@example.com"})
        assert resp.status_code == 200
        send.assert_called_once()

    def test_resend_error_cases(self, client, user):
        assert client.post("/api/v1/auth/resend-verification", json={}).status_code == 400
        assert client.post("/api/v1/auth/resend-verification", json={"email": "ghost@example.com"}).status_code == 404
        assert client.post("/api/v1/auth/resend-verification", json={"email": "filer@example.com"}).status_code == 400


class TestAdminOnboarding:
    def _form(self, code=SECURITY_CODE, email="newadmin@example.com"):
        return {"name": "New Admin", "email": email, "password": "adminpass", "security_code": code}

    def test_create_admin_with_valid_code(self, client, db, blob_store):
        files = {"id_photo": ("badge.png", io.BytesIO(b"\x89PNG fake"), "image/png")}
        resp = client.post("/api/v1/auth/create-admin", data=self._form(), files=files)
        assert resp.status_code == 201
        assert resp.json()["user"]["role"] == "admin"

        admin = db.query(User).filter(User.email == "newadmin@example.com").one()
        assert admin.role == UserRole.admin
        assert admin.id_photo_url.startswith("/uploads/admin-verification/")
        key = admin.id_photo_url[len("/uploads/"):]
        assert blob_store.exists(key)

    def test_wrong_code_is_403(self, client):
        files = {"id_photo": ("badge.png", io.BytesIO(b"png"), "image/png")}
        resp = client.post("/api/v1/auth/create-admin", data=self._form(code="guess"), files=files)
        assert resp.status_code == 403

    def test_bad_photo_type_is_400(self, client):
        files = {"id_photo": ("badge.exe", io.BytesIO(b"MZ"), "application/x-msdownload")}
        resp = client.post("/api/v1/auth/create-admin", data=self._form(), files=files)
        assert resp.status_code == 400

    def test_verify_code_endpoint(self, client):
        assert client.post("/api/v1/auth/admin/verify-code", json={"security_code": SECURITY_CODE}).json() == {"valid": True}
        assert client.post("/api/v1/auth/admin/verify-code", json={"security_code": "x"}).status_code == 403
