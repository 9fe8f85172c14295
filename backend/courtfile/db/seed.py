# backend/courtfile/db/seed.py

"""
Database Seeding Script

Creates the bootstrap admin on startup and, from the CLI, demo data for
development and testing.
"""

from datetime import date, timedelta
from typing import List, Optional

from sqlalchemy.orm import Session

from courtfile.core.config import settings
from courtfile.core.logger import logger
from courtfile.core.security import get_password_hash
from courtfile.db.database import SessionLocal, init_db
from courtfile.db.models import (
    Case,
    CasePaymentStatus,
    CaseStatus,
    Hearing,
    HearingStatus,
    User,
    UserRole,
)
from courtfile.services.case_service import CaseService, calculate_filing_fee

DEMO_FILER_EMAIL = "filer@example.com"
DEMO_FILER_PASSWORD = "filerpass"

# ============================================================================
# Bootstrap admin
# ============================================================================

def ensure_bootstrap_admin(db: Session) -> Optional[User]:
    """Create the configured admin account once. No-op when unconfigured."""
    email = (settings.BOOTSTRAP_ADMIN_EMAIL or "").strip().lower()
    if not email or not settings.BOOTSTRAP_ADMIN_PASSWORD:
        return None

    existing = db.query(User).filter(User.email == email).first()
    if existing:
        return existing

    admin = User(
        name=settings.BOOTSTRAP_ADMIN_NAME,
        email=email,
        password_hash=get_password_hash(settings.BOOTSTRAP_ADMIN_PASSWORD),
        role=UserRole.admin,
        is_active=True,
        is_verified=True,
    )
    db.add(admin)
    db.commit()
    db.refresh(admin)
    logger.info("Bootstrap admin created: %s", admin.email)
    return admin

# ============================================================================
# Demo data
# ============================================================================

def create_demo_filer(db: Session) -> User:
    user = db.query(User).filter(User.email == DEMO_FILER_EMAIL).first()
    if user:
        return user
    user = User(
        name="Demo Filer",
        email=DEMO_FILER_EMAIL,
        password_hash=get_password_hash(DEMO_FILER_PASSWORD),
        phone_number="9876543210",
        role=UserRole.user,
        is_active=True,
        is_verified=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def create_sample_cases(db: Session, user: User) -> List[Case]:
    """One case per interesting status, each with a scheduled hearing."""
    samples = [
        ("Recovery of dues", "civil", CaseStatus.pending, CasePaymentStatus.unpaid),
        ("Breach of supply contract", "commercial", CaseStatus.approved, CasePaymentStatus.paid),
        ("Phishing fraud complaint", "cybercrime", CaseStatus.in_progress, CasePaymentStatus.paid),
    ]
    cases = []
    for offset, (title, case_type, status, payment_status) in enumerate(samples):
        case = Case(
            case_number=CaseService.unique_case_number(db),
            title=title,
            description=f"Demo {case_type} matter",
            plaintiffs=user.name,
            defendants="State of Assam",
            case_type=case_type,
            filing_fee=calculate_filing_fee(case_type),
            status=status,
            payment_status=payment_status,
            user_id=user.id,
        )
        db.add(case)
        db.flush()
        db.add(Hearing(
            case_id=case.id,
            title="First hearing",
            hearing_type="preliminary",
            date=date.today() + timedelta(days=3 + offset * 7),
            time="10:30",
            location="Court Room 4",
            status=HearingStatus.scheduled,
        ))
        cases.append(case)
    db.commit()
    return cases


def seed_database():
    """Create tables, the bootstrap admin and demo data"""
    init_db()
    db = SessionLocal()
    try:
        admin = ensure_bootstrap_admin(db)
        user = create_demo_filer(db)
        cases = create_sample_cases(db, user)
        logger.info(
            "Seeded admin=%s filer=%s cases=%s",
            admin.email if admin else None, user.email, [c.case_number for c in cases],
        )
    except Exception:
        db.rollback()
        logger.exception("Seeding failed")
        raise
    finally:
        db.close()

# ============================================================================
# CLI Entry Point
# ============================================================================

if __name__ == "__main__":
    seed_database()
