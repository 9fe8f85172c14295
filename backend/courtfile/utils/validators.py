"""
Custom validators
"""
import re

CASE_NUMBER_PATTERN = re.compile(r'^CASE-\d{4}-[A-Z0-9]{6}$')
HEARING_TIME_PATTERN = re.compile(r'^([01]?\d|2[0-3]):[0-5]\d$')

# Evidence MIME allow-list
ALLOWED_EVIDENCE_TYPES = frozenset({
    # Documents
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "application/vnd.ms-powerpoint",
    "application/vnd.openxmlformats-officedocument.presentationml.presentation",
    "text/plain",
    "application/rtf",
    # Images
    "image/jpeg",
    "image/png",
    "image/gif",
    "image/bmp",
    "image/tiff",
    # Video
    "video/mp4",
    "video/quicktime",
    "video/x-msvideo",
    "video/x-ms-wmv",
    # Audio
    "audio/mpeg",
    "audio/wav",
    "audio/ogg",
})

ALLOWED_ID_PHOTO_TYPES = frozenset({"image/jpeg", "image/png", "application/pdf"})


def validate_case_number(case_number: str) -> bool:
    """
    Validate generated case number format
    Example: CASE-2026-K3X9QZ
    """
    return bool(CASE_NUMBER_PATTERN.match(case_number or ""))


def validate_hearing_time(value: str) -> bool:
    """24h HH:MM"""
    return bool(HEARING_TIME_PATTERN.match(value or ""))


def validate_mobile(mobile: str) -> bool:
    """
    Validate Indian mobile number
    Accepts: +919876543210 or 9876543210
    """
    pattern = r'^(\+91)?[6-9]\d{9}$'
    return bool(re.match(pattern, mobile))


def is_allowed_evidence_type(content_type: str) -> bool:
    return (content_type or "").split(";")[0].strip().lower() in ALLOWED_EVIDENCE_TYPES
