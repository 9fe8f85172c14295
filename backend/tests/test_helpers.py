"""Small formatting and validation helpers."""

from __future__ import annotations

import re

import pytest

from courtfile.utils.helpers import format_currency, generate_transaction_id, safe_filename, to_base36
from courtfile.utils.validators import is_allowed_evidence_type, validate_hearing_time, validate_mobile


def test_base36():
    assert to_base36(0) == "0"
    assert to_base36(35) == "z"
    assert to_base36(36) == "10"


def test_transaction_id_shape():
    assert re.fullmatch(r"TXN-[0-9A-Z]+-[0-9A-Z]{5}", generate_transaction_id())


def test_indian_currency_grouping():
    assert format_currency(1234567.5) == "₹12,34,567.50"
    assert format_currency(500) == "₹500.00"


@pytest.mark.parametrize(
    "name,expected",
    [("my deed.pdf", "my-deed.pdf"), ("../../etc/passwd", "passwd"), ("C:\\docs\\a b.png", "a-b.png")],
)
def test_safe_filename(name, expected):
    assert safe_filename(name) == expected


@pytest.mark.parametrize("value", ["09:30", "9:05", "23:59"])
def test_valid_hearing_times(value):
    assert validate_hearing_time(value)


@pytest.mark.parametrize("value", ["24:00", "12:60", "noon"])
def test_invalid_hearing_times(value):
    assert not validate_hearing_time(value)


def test_mobile_numbers():
    assert validate_mobile("9876543210")
    assert not validate_mobile("12345")


@pytest.mark.parametrize("mime", ["application/pdf", "image/png", "video/mp4", "audio/mpeg", "text/plain"])
def test_allowed_evidence_types(mime):
    assert is_allowed_evidence_type(mime)


@pytest.mark.parametrize("mime", ["application/x-msdownload", "application/zip", ""])
def test_disallowed_evidence_types(mime):
    assert not is_allowed_evidence_type(mime)
