"""
Utility helper functions
"""
from datetime import datetime
import re
import secrets
import time
import uuid
from typing import Optional

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def to_base36(value: int) -> str:
    """Encode a non-negative integer in lowercase base36"""
    if value < 0:
        raise ValueError("base36 encoding requires a non-negative integer")
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def random_base36(length: int) -> str:
    return "".join(secrets.choice(_BASE36) for _ in range(length))


def now_ms() -> int:
    return int(time.time() * 1000)


def generate_transaction_id() -> str:
    """TXN-<base36 ms timestamp>-<5 random base36 chars>, uppercased"""
    return f"TXN-{to_base36(now_ms())}-{random_base36(5)}".upper()


def parse_uuid(value) -> Optional[uuid.UUID]:
    """Return a UUID or None when the value isn't one"""
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (ValueError, TypeError, AttributeError):
        return None


def format_date(date: datetime, format_str: str = "%Y-%m-%d") -> Optional[str]:
    """Format datetime object"""
    if not date:
        return None
    return date.strftime(format_str)


def format_currency(amount, currency: str = "INR") -> str:
    """Format an amount with Indian digit grouping, e.g. 123456.5 -> ₹1,23,456.50"""
    value = float(amount or 0)
    negative = value < 0
    whole, frac = f"{abs(value):.2f}".split(".")
    if len(whole) > 3:
        head, tail = whole[:-3], whole[-3:]
        groups = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        whole = ",".join(groups + [tail])
    symbol = "₹" if currency.upper() == "INR" else f"{currency.upper()} "
    return f"{'-' if negative else ''}{symbol}{whole}.{frac}"


def safe_filename(name: str) -> str:
    """Replace whitespace runs with '-' and drop path separators"""
    name = (name or "file").replace("\\", "/").split("/")[-1]
    return re.sub(r"\s+", "-", name.strip()) or "file"


def truncate_text(text: str, length: int = 100) -> str:
    """Truncate text to specified length"""
    if len(text) <= length:
        return text
    return text[:length] + "..."
