"""
Razorpay order creation and signature verification.
"""
from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Optional

import razorpay
import requests
from razorpay.errors import BadRequestError, GatewayError, ServerError, SignatureVerificationError

from courtfile.core.config import settings
from courtfile.utils.exceptions import PaymentGatewayError
from courtfile.utils.helpers import now_ms, to_base36

logger = logging.getLogger(__name__)

RECEIPT_MAX_LENGTH = 40


def to_minor_units(amount) -> int:
    """Major units (rupees) to minor units (paise), half-up."""
    return int((Decimal(str(amount)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def build_receipt(case_id) -> str:
    receipt = f"rcpt_{to_base36(now_ms())}_{str(case_id)[-6:]}"
    return receipt[:RECEIPT_MAX_LENGTH]


class PaymentGateway:
    def __init__(self, key_id: Optional[str] = None, key_secret: Optional[str] = None):
        self.key_id = key_id if key_id is not None else settings.RAZORPAY_KEY_ID
        self.key_secret = key_secret if key_secret is not None else settings.RAZORPAY_KEY_SECRET
        self._client: Optional[razorpay.Client] = None

    @property
    def client(self) -> razorpay.Client:
        if self._client is None:
            if not self.key_id or not self.key_secret:
                raise PaymentGatewayError("Razorpay credentials are not configured")
            self._client = razorpay.Client(auth=(self.key_id, self.key_secret))
        return self._client

    def create_order(
        self, amount_minor: int, currency: str, receipt: str, notes: Optional[Dict[str, str]] = None
    ) -> Dict[str, Any]:
        if amount_minor <= 0:
            raise ValueError("Amount must be greater than zero")
        if not currency or not receipt:
            raise ValueError("Currency and receipt are required")
        try:
            order = self.client.order.create({
                "amount": amount_minor,
                "currency": currency,
                "receipt": receipt[:RECEIPT_MAX_LENGTH],
                "notes": notes or {},
            })
        except (BadRequestError, GatewayError, ServerError, requests.RequestException) as e:
            logger.error("Razorpay order creation failed: %s", e)
            raise PaymentGatewayError(str(e)) from e
        logger.info("Razorpay order %s created for receipt %s", order.get("id"), receipt)
        return order

    def verify_signature(self, order_id: str, payment_id: str, signature: str) -> bool:
        """True when the gateway signature matches order_id|payment_id."""
        try:
            self.client.utility.verify_payment_signature({
                "razorpay_order_id": order_id,
                "razorpay_payment_id": payment_id,
                "razorpay_signature": signature,
            })
        except SignatureVerificationError:
            logger.warning("Signature mismatch for order %s payment %s", order_id, payment_id)
            return False
        return True


_gateway: Optional[PaymentGateway] = None


def get_payment_gateway() -> PaymentGateway:
    """FastAPI dependency."""
    global _gateway
    if _gateway is None:
        _gateway = PaymentGateway()
    return _gateway
