from datetime import datetime, timedelta

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Response, UploadFile, status
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from courtfile.api.deps import get_current_user
from courtfile.core.config import settings
from courtfile.core.logger import logger
from courtfile.core.security import (
    create_access_token,
    generate_verification_token,
    get_password_hash,
    token_expiry,
    verify_password,
    verify_security_code,
)
from courtfile.db import models, schemas
from courtfile.db.database import get_db
from courtfile.db.models import UserRole
from courtfile.services.authorization import is_admin
from courtfile.services.notifications import Notifier, admin_recipients, get_notifier
from courtfile.services.storage import BlobStore, StorageError, get_blob_store
from courtfile.utils.exceptions import UnauthorizedError, UploadFailedError, ValidationError
from courtfile.utils.helpers import now_ms, safe_filename
from courtfile.utils.validators import ALLOWED_ID_PHOTO_TYPES

router = APIRouter()

ADMIN_PHOTO_PREFIX = "admin-verification"
MAX_ID_PHOTO_SIZE = 5 * 1024 * 1024


def _issue_token(user: models.User) -> str:
    return create_access_token(
        data={
            "sub": str(user.id),
            "role": getattr(user.role, "value", user.role),
            "is_verified": bool(user.is_verified),
        },
        expires_delta=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
    )


def _email_taken(db: Session, email: str) -> bool:
    return db.query(models.User.id).filter(models.User.email == email).first() is not None


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(
    payload: schemas.UserRegister,
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
):
    """Register a filer account. Email is stored lowercase."""
    email = payload.email.strip().lower()
    if _email_taken(db, email):
        raise ValidationError("User with this email already exists")

    user = models.User(
        name=payload.name.strip(),
        email=email,
        password_hash=get_password_hash(payload.password),
        phone_number=payload.phone_number,
        address=payload.address,
        role=UserRole.user,
        is_active=True,
        # Allow immediate access; the emailed verification link still works
        is_verified=True,
        verification_token=generate_verification_token(),
        verification_token_expires=token_expiry(settings.VERIFICATION_TOKEN_EXPIRE_HOURS),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("User registered: %s", user.email)

    notifier.welcome(user.email, user.name, user.verification_token)
    notifier.new_user(admin_recipients(db), user.name, user.email, user.created_at.isoformat())

    return {
        "message": "User registered successfully",
        "user": schemas.UserOut.model_validate(user),
    }


@router.post("/login")
def login(form_data: schemas.UserLogin, response: Response, db: Session = Depends(get_db)):
    """Login endpoint. Email is normalized to lowercase for consistency with register."""
    email = (form_data.email or "").strip().lower()
    user = db.query(models.User).filter(models.User.email == email).first()

    if not user or not verify_password(form_data.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password"
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is inactive"
        )

    access_token = _issue_token(user)
    user.last_login_at = datetime.utcnow()
    db.commit()

    response.set_cookie(
        settings.SESSION_COOKIE_NAME,
        access_token,
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        httponly=True,
        samesite="lax",
        secure=not settings.DEBUG,
    )
    return {
        "access_token": access_token,
        "token_type": "bearer",
        "user": schemas.UserOut.model_validate(user),
    }


@router.get("/me", response_model=schemas.UserOut)
def get_current_user_info(current_user: models.User = Depends(get_current_user)):
    """Get current user profile"""
    return current_user


@router.post("/logout")
def logout(response: Response):
    """Stateless JWT: drop the session cookie, the client discards its token"""
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return {"message": "Logged out successfully"}


@router.get("/check-role")
def check_role(current_user: models.User = Depends(get_current_user)):
    return {
        "role": getattr(current_user.role, "value", current_user.role),
        "is_admin": is_admin(current_user),
    }


@router.get("/verify-email")
def verify_email(token: str = Query(None), db: Session = Depends(get_db)):
    if not token:
        raise ValidationError("Verification token is required")

    user = db.query(models.User).filter(models.User.verification_token == token).first()
    if not user:
        raise ValidationError("Invalid verification token")
    if user.verification_token_expires and user.verification_token_expires < datetime.utcnow():
        raise ValidationError("Verification token has expired")

    user.is_verified = True
    user.verification_token = None
    user.verification_token_expires = None
    db.commit()
    logger.info("Email verified for %s", user.email)
    return RedirectResponse(url="/?verified=true", status_code=status.HTTP_307_TEMPORARY_REDIRECT)


@router.post("/resend-verification")
def resend_verification(
    body: schemas.ResendVerificationRequest,
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
):
    email = (body.email or "").strip().lower()
    if not email:
        raise ValidationError("Email is required")

    user = db.query(models.User).filter(models.User.email == email).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    if user.is_verified:
        raise ValidationError("Email is already verified")

    user.verification_token = generate_verification_token()
    user.verification_token_expires = token_expiry(settings.VERIFICATION_TOKEN_EXPIRE_HOURS)
    db.commit()

    notifier.verification(user.email, user.name, user.verification_token)
    return {"message": "Verification email sent"}


@router.post("/create-admin", status_code=status.HTTP_201_CREATED)
def create_admin(
    name: str = Form(...),
    email: str = Form(...),
    password: str = Form(...),
    security_code: str = Form(...),
    id_photo: UploadFile = File(...),
    db: Session = Depends(get_db),
    store: BlobStore = Depends(get_blob_store),
    notifier: Notifier = Depends(get_notifier),
):
    """Self-service admin onboarding gated by the shared security code."""
    if not verify_security_code(security_code):
        raise UnauthorizedError("Invalid security code")

    email = email.strip().lower()
    if len(password) < 6:
        raise ValidationError("Password must be at least 6 characters")
    if _email_taken(db, email):
        raise ValidationError("User with this email already exists")

    content_type = (id_photo.content_type or "").lower()
    if content_type not in ALLOWED_ID_PHOTO_TYPES:
        raise ValidationError("ID photo must be a JPEG, PNG or PDF file")
    data = id_photo.file.read()
    if len(data) > MAX_ID_PHOTO_SIZE:
        raise ValidationError("ID photo exceeds the 5MB limit")

    key = f"{ADMIN_PHOTO_PREFIX}/{now_ms()}-{safe_filename(id_photo.filename)}"
    try:
        blob = store.put(key, data, content_type)
    except StorageError as e:
        logger.error("Failed to store admin ID photo: %s", e)
        raise UploadFailedError(str(e))

    admins = admin_recipients(db)
    user = models.User(
        name=name.strip(),
        email=email,
        password_hash=get_password_hash(password),
        role=UserRole.admin,
        is_active=True,
        is_verified=True,
        id_photo_url=blob.url,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Admin account created: %s", user.email)

    notifier.new_user(admins, user.name, user.email, user.created_at.isoformat())
    return {"message": "Admin account created", "user": schemas.UserOut.model_validate(user)}


@router.post("/admin/verify-code")
def verify_admin_code(body: schemas.SecurityCodeRequest):
    if not verify_security_code(body.security_code):
        raise UnauthorizedError("Invalid security code")
    return {"valid": True}
