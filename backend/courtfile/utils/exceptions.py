"""
Custom exception classes
"""
from fastapi import HTTPException


class ValidationError(HTTPException):
    """Raised on missing or malformed input"""
    def __init__(self, detail: str):
        super().__init__(status_code=400, detail=detail)


class CaseNotFoundError(HTTPException):
    """Raised when case doesn't exist"""
    def __init__(self, case_id=None):
        super().__init__(
            status_code=404,
            detail="Case not found" if case_id is None else f"Case {case_id} not found"
        )


class ResourceNotFoundError(HTTPException):
    """Raised when a hearing, evidence, payment or user doesn't exist"""
    def __init__(self, resource: str):
        super().__init__(status_code=404, detail=f"{resource} not found")


class UnauthorizedError(HTTPException):
    """Raised when user doesn't own resource or lacks the role"""
    def __init__(self, detail: str = "You don't have permission to access this resource"):
        super().__init__(status_code=403, detail=detail)


class InvalidTransitionError(HTTPException):
    """Raised when a status change isn't allowed from the current state"""
    def __init__(self, entity: str, current: str, target: str):
        super().__init__(
            status_code=400,
            detail=f"Invalid {entity} status transition from '{current}' to '{target}'"
        )


class UploadFailedError(HTTPException):
    """Raised when blob storage fails"""
    def __init__(self, reason: str = "Unknown error"):
        super().__init__(
            status_code=500,
            detail=f"Upload failed: {reason}"
        )


class PaymentGatewayError(HTTPException):
    """Raised when the payment gateway call fails"""
    def __init__(self, reason: str = "Payment gateway unavailable"):
        super().__init__(
            status_code=500,
            detail=f"Payment gateway error: {reason}"
        )


class PaymentVerificationError(HTTPException):
    """Raised when a gateway signature doesn't match"""
    def __init__(self):
        super().__init__(
            status_code=400,
            detail="Payment verification failed. Invalid signature."
        )
