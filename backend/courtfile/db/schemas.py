"""
Pydantic validation schemas
"""
from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional, List
from datetime import date as DateType, datetime
from uuid import UUID

from courtfile.db.models import (
    CasePaymentStatus,
    CaseStatus,
    EvidenceReviewStatus,
    EvidenceType,
    HearingStatus,
    PaymentMethod,
    PaymentStatus,
    UserRole,
)
from courtfile.utils.validators import validate_hearing_time, validate_mobile

# ============================================================================
# User Schemas
# ============================================================================

class UserLogin(BaseModel):
    """Login schema"""
    email: EmailStr
    password: str


class UserRegister(BaseModel):
    """Registration schema"""
    name: str = Field(..., min_length=2, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=100)
    phone_number: Optional[str] = None
    address: Optional[str] = None

    @field_validator("phone_number")
    @classmethod
    def check_phone(cls, v):
        if v and not validate_mobile(v.replace(" ", "")):
            raise ValueError("Invalid mobile number")
        return v


class ResendVerificationRequest(BaseModel):
    email: Optional[str] = None


class SecurityCodeRequest(BaseModel):
    security_code: str = ""


class UserOut(BaseModel):
    id: UUID
    name: str
    email: str
    role: UserRole
    phone_number: Optional[str] = None
    address: Optional[str] = None
    is_active: bool
    is_verified: bool
    created_at: datetime

    class Config:
        from_attributes = True


class AdminUserUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=255)
    role: Optional[UserRole] = None
    phone_number: Optional[str] = None
    address: Optional[str] = None
    password: Optional[str] = Field(None, min_length=6, max_length=100)


class UserIdRequest(BaseModel):
    user_id: UUID

# ============================================================================
# Case Schemas
# ============================================================================

class CaseCreate(BaseModel):
    """Required fields are checked by the handler so the error lists every missing one"""
    title: Optional[str] = None
    description: Optional[str] = None
    plaintiffs: Optional[str] = None
    defendants: Optional[str] = None
    case_type: Optional[str] = None
    category: Optional[str] = None
    court_location: Optional[str] = None
    relief_sought: Optional[str] = None
    value: Optional[float] = None


class CaseUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    plaintiffs: Optional[str] = None
    defendants: Optional[str] = None
    case_type: Optional[str] = None
    category: Optional[str] = None
    court_location: Optional[str] = None
    relief_sought: Optional[str] = None
    value: Optional[float] = None
    notes: Optional[str] = None
    status: Optional[CaseStatus] = None
    filing_fee: Optional[int] = Field(None, ge=0)
    assigned_to: Optional[UUID] = None


class CasePartiesUpdate(BaseModel):
    case_id: UUID
    plaintiffs: Optional[str] = None
    defendants: Optional[str] = None


class CaseOut(BaseModel):
    id: UUID
    case_number: str
    title: str
    description: Optional[str] = None
    plaintiffs: str
    defendants: str
    case_type: str
    category: Optional[str] = None
    court_location: Optional[str] = None
    relief_sought: Optional[str] = None
    value: Optional[float] = None
    notes: Optional[str] = None
    status: CaseStatus
    payment_status: CasePaymentStatus
    filing_fee: int
    payment_id: Optional[UUID] = None
    user_id: UUID
    assigned_to: Optional[UUID] = None
    filing_date: datetime
    approval_date: Optional[datetime] = None
    completion_date: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

# ============================================================================
# Hearing Schemas
# ============================================================================

class HearingCreate(BaseModel):
    case_id: Optional[UUID] = None
    title: Optional[str] = None
    hearing_type: Optional[str] = None
    date: Optional[DateType] = None
    time: Optional[str] = None
    duration: int = Field(60, ge=1, le=1440)
    location: Optional[str] = None
    judge: Optional[str] = None
    description: Optional[str] = None
    notes: Optional[str] = None
    attendees: List[str] = Field(default_factory=list)

    @field_validator("time")
    @classmethod
    def check_time(cls, v):
        if v is not None and not validate_hearing_time(v):
            raise ValueError("Time must be HH:MM")
        return v


class HearingUpdate(BaseModel):
    case_id: Optional[UUID] = None
    title: Optional[str] = None
    hearing_type: Optional[str] = None
    date: Optional[DateType] = None
    time: Optional[str] = None
    duration: Optional[int] = Field(None, ge=1, le=1440)
    location: Optional[str] = None
    judge: Optional[str] = None
    description: Optional[str] = None
    notes: Optional[str] = None
    status: Optional[HearingStatus] = None
    attendees: Optional[List[str]] = None

    @field_validator("time")
    @classmethod
    def check_time(cls, v):
        if v is not None and not validate_hearing_time(v):
            raise ValueError("Time must be HH:MM")
        return v


class HearingOut(BaseModel):
    id: UUID
    case_id: UUID
    title: Optional[str] = None
    hearing_type: str
    date: DateType
    time: str
    duration: int
    location: str
    judge: Optional[str] = None
    description: Optional[str] = None
    notes: Optional[str] = None
    status: HearingStatus
    attendees: List[str] = []
    created_by: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

# ============================================================================
# Evidence Schemas
# ============================================================================

class EvidenceUpdate(BaseModel):
    """Admin review. Anything outside these fields is ignored."""
    is_approved: Optional[bool] = None
    notes: Optional[str] = None
    tags: Optional[List[str]] = None


class EvidenceOut(BaseModel):
    id: UUID
    case_id: UUID
    user_id: UUID
    title: str
    description: Optional[str] = None
    evidence_type: EvidenceType
    file_url: str
    file_name: str
    file_type: str
    file_size: int
    upload_date: datetime
    is_approved: bool
    review_status: EvidenceReviewStatus
    approved_by: Optional[UUID] = None
    approval_date: Optional[datetime] = None
    notes: Optional[str] = None
    tags: List[str] = []

    class Config:
        from_attributes = True

# ============================================================================
# Payment Schemas
# ============================================================================

class CreateOrderRequest(BaseModel):
    case_id: UUID
    amount: float


class VerifyPaymentRequest(BaseModel):
    payment_id: UUID
    razorpay_payment_id: str
    razorpay_order_id: str
    razorpay_signature: str


class PaymentStatusUpdate(BaseModel):
    status: PaymentStatus
    notes: Optional[str] = None


class PaymentOut(BaseModel):
    id: UUID
    case_id: UUID
    user_id: UUID
    amount: float
    currency: str
    payment_method: PaymentMethod
    transaction_id: str
    status: PaymentStatus
    payment_date: Optional[datetime] = None
    description: Optional[str] = None
    receipt_url: Optional[str] = None
    notes: Optional[str] = None
    razorpay_order_id: Optional[str] = None
    razorpay_payment_id: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True
