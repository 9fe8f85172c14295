"""
SQLAlchemy ORM Models
"""

from __future__ import annotations

import enum
import uuid
from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    Enum as SQLEnum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    TIMESTAMP,
    Uuid,
)
from sqlalchemy.orm import relationship
from sqlalchemy import Index

from courtfile.db.database import Base
from courtfile.utils.helpers import generate_transaction_id

# ============================================================================
# Enums
# ============================================================================

class UserRole(str, enum.Enum):
    """User roles"""
    user = "user"
    admin = "admin"

class CaseStatus(str, enum.Enum):
    """Case lifecycle status"""
    draft = "draft"
    pending = "pending"
    approved = "approved"
    rejected = "rejected"
    in_progress = "inProgress"
    completed = "completed"
    closed = "closed"

class CaseType(str, enum.Enum):
    civil = "civil"
    criminal = "criminal"
    family = "family"
    commercial = "commercial"
    cybercrime = "cybercrime"
    constitutional = "constitutional"
    administrative = "administrative"
    tax = "tax"
    consumer = "consumer"
    election = "election"
    special = "special"
    other = "other"

class CasePaymentStatus(str, enum.Enum):
    """Payment state as seen from the case"""
    unpaid = "unpaid"
    pending = "pending"
    paid = "paid"
    failed = "failed"

class HearingStatus(str, enum.Enum):
    scheduled = "scheduled"
    completed = "completed"
    postponed = "postponed"
    cancelled = "cancelled"

class EvidenceType(str, enum.Enum):
    document = "document"
    image = "image"
    video = "video"
    audio = "audio"
    financial = "financial"
    medical = "medical"
    correspondence = "correspondence"
    receipt = "receipt"
    contract = "contract"
    other = "other"

class EvidenceReviewStatus(str, enum.Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"

class PaymentMethod(str, enum.Enum):
    credit_card = "creditCard"
    debit_card = "debitCard"
    bank_transfer = "bankTransfer"
    cash = "cash"
    other = "other"
    razorpay = "razorpay"

class PaymentStatus(str, enum.Enum):
    pending = "pending"
    completed = "completed"
    failed = "failed"
    refunded = "refunded"


# ============================================================================
# Models
# ============================================================================

class User(Base):
    """Filer or administrator account"""
    __tablename__ = "users"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(SQLEnum(UserRole), nullable=False, default=UserRole.user)
    phone_number = Column(String(20), nullable=True)
    address = Column(Text, nullable=True)
    id_photo_url = Column(Text, nullable=True)

    is_active = Column(Boolean, default=True, nullable=False)
    is_verified = Column(Boolean, default=False, nullable=False)
    verification_token = Column(String(128), nullable=True, index=True)
    verification_token_expires = Column(TIMESTAMP, nullable=True)
    password_changed_at = Column(TIMESTAMP, nullable=True)
    last_login_at = Column(TIMESTAMP, nullable=True)

    created_at = Column(TIMESTAMP, default=datetime.utcnow, nullable=False)
    updated_at = Column(TIMESTAMP, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    cases = relationship("Case", back_populates="owner", foreign_keys="Case.user_id", cascade="all, delete-orphan")
    payments = relationship("Payment", back_populates="user", passive_deletes=True)

    def __repr__(self):
        return f"<User {self.email} ({self.role})>"


class Case(Base):
    """A filed court case"""
    __tablename__ = "cases"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    case_number = Column(String(32), unique=True, nullable=False, index=True)
    title = Column(String(500), nullable=False)
    description = Column(Text, nullable=True)
    plaintiffs = Column(Text, nullable=False)
    defendants = Column(Text, nullable=False)
    case_type = Column(String(50), nullable=False, default=CaseType.civil.value, index=True)
    category = Column(String(100), nullable=True)
    court_location = Column(String(255), nullable=True)
    relief_sought = Column(Text, nullable=True)
    value = Column(Numeric(14, 2), nullable=True)
    notes = Column(Text, nullable=True)

    status = Column(SQLEnum(CaseStatus), nullable=False, default=CaseStatus.pending, index=True)
    payment_status = Column(SQLEnum(CasePaymentStatus), nullable=False, default=CasePaymentStatus.unpaid, index=True)
    filing_fee = Column(Integer, nullable=False, default=0)
    payment_id = Column(Uuid(as_uuid=True), nullable=True)

    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    assigned_to = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    filing_date = Column(TIMESTAMP, default=datetime.utcnow, nullable=False)
    approval_date = Column(TIMESTAMP, nullable=True)
    completion_date = Column(TIMESTAMP, nullable=True)
    created_at = Column(TIMESTAMP, default=datetime.utcnow, nullable=False)
    updated_at = Column(TIMESTAMP, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    owner = relationship("User", back_populates="cases", foreign_keys=[user_id])
    hearings = relationship("Hearing", back_populates="case", cascade="all, delete-orphan")
    evidence = relationship("Evidence", back_populates="case", cascade="all, delete-orphan")
    payments = relationship("Payment", back_populates="case", cascade="all, delete-orphan")

    __table_args__ = (
        Index("idx_cases_user_status", "user_id", "status"),
    )

    def __repr__(self):
        return f"<Case {self.case_number}>"


class Hearing(Base):
    """A scheduled court hearing for a case"""
    __tablename__ = "hearings"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    case_id = Column(Uuid(as_uuid=True), ForeignKey("cases.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=True)
    hearing_type = Column(String(100), nullable=False)
    date = Column(Date, nullable=False, index=True)
    time = Column(String(10), nullable=False)
    duration = Column(Integer, nullable=False, default=60)
    location = Column(String(255), nullable=False)
    judge = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    status = Column(SQLEnum(HearingStatus), nullable=False, default=HearingStatus.scheduled, index=True)
    attendees = Column(JSON, nullable=False, default=list)
    created_by = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    created_at = Column(TIMESTAMP, default=datetime.utcnow, nullable=False)
    updated_at = Column(TIMESTAMP, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    case = relationship("Case", back_populates="hearings")

    def __repr__(self):
        return f"<Hearing {self.date} {self.time} ({self.status})>"


class Evidence(Base):
    """A file submitted in support of a case"""
    __tablename__ = "evidence"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    case_id = Column(Uuid(as_uuid=True), ForeignKey("cases.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    evidence_type = Column(SQLEnum(EvidenceType), nullable=False, default=EvidenceType.document)

    file_url = Column(Text, nullable=False)
    storage_key = Column(Text, nullable=False)
    file_name = Column(String(255), nullable=False)
    file_type = Column(String(100), nullable=False)
    file_size = Column(Integer, nullable=False)
    upload_date = Column(TIMESTAMP, default=datetime.utcnow, nullable=False)

    is_approved = Column(Boolean, default=False, nullable=False)
    review_status = Column(SQLEnum(EvidenceReviewStatus), nullable=False, default=EvidenceReviewStatus.pending)
    approved_by = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    approval_date = Column(TIMESTAMP, nullable=True)
    notes = Column(Text, nullable=True)
    tags = Column(JSON, nullable=False, default=list)

    created_at = Column(TIMESTAMP, default=datetime.utcnow, nullable=False)
    updated_at = Column(TIMESTAMP, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    case = relationship("Case", back_populates="evidence")
    uploader = relationship("User", foreign_keys=[user_id])

    def __repr__(self):
        return f"<Evidence {self.title}>"


class Payment(Base):
    """Filing-fee payment attempt"""
    __tablename__ = "payments"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    case_id = Column(Uuid(as_uuid=True), ForeignKey("cases.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="INR")
    payment_method = Column(SQLEnum(PaymentMethod), nullable=False, default=PaymentMethod.razorpay)
    transaction_id = Column(String(100), unique=True, nullable=False, default=generate_transaction_id)
    status = Column(SQLEnum(PaymentStatus), nullable=False, default=PaymentStatus.pending, index=True)
    payment_date = Column(TIMESTAMP, nullable=True)
    description = Column(Text, nullable=True)
    receipt_url = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)

    razorpay_order_id = Column(String(100), nullable=True, index=True)
    razorpay_payment_id = Column(String(100), nullable=True)
    razorpay_signature = Column(String(255), nullable=True)

    created_at = Column(TIMESTAMP, default=datetime.utcnow, nullable=False)
    updated_at = Column(TIMESTAMP, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    case = relationship("Case", back_populates="payments")
    user = relationship("User", back_populates="payments")

    def __repr__(self):
        return f"<Payment {self.transaction_id} {self.status}>"
