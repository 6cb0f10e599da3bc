"""Payment processing interface and its mock implementation.

In production this would integrate with Stripe, PayPal or another processor.
"""
import asyncio
import logging
import random
import secrets
from datetime import datetime, timezone
from typing import List, Optional, Protocol

from app.core.config import settings
from app.core.errors import PaymentDeclined
from app.schemas.services import PaymentMethod, PaymentRequest, PaymentResult, Receipt

logger = logging.getLogger(__name__)

PAYMENT_METHODS = [
    PaymentMethod(id="card", name="Credit/Debit Card", type="card", icon="credit-card",
                  description="Visa, Mastercard, American Express", popular=True),
    PaymentMethod(id="paypal", name="PayPal", type="paypal", icon="paypal",
                  description="Pay with your PayPal account", popular=True),
    PaymentMethod(id="apple_pay", name="Apple Pay", type="apple_pay", icon="apple",
                  description="Pay with Touch ID or Face ID"),
    PaymentMethod(id="google_pay", name="Google Pay", type="google_pay", icon="google",
                  description="Pay with Google Pay"),
]

SERVICE_DESCRIPTIONS = {
    "carfax": "Carfax Vehicle History Report",
    "premium_analysis": "Premium Market Analysis",
    "extended_warranty": "Extended Warranty Information",
    "inspection_guide": "Professional Inspection Guide",
}
DEFAULT_SERVICE_DESCRIPTION = "CarBuyGuru Service"


def service_description(service_type: str) -> str:
    return SERVICE_DESCRIPTIONS.get(service_type, DEFAULT_SERVICE_DESCRIPTION)


class PaymentProcessor(Protocol):
    def methods(self) -> List[PaymentMethod]:
        ...

    async def process(self, request: PaymentRequest) -> PaymentResult:
        ...


class MockPaymentProcessor:
    def __init__(
        self,
        rng: Optional[random.Random] = None,
        success_rate: float = None,
        min_delay: float = None,
        max_delay: float = None,
    ):
        self.rng = rng or random.Random()
        self.success_rate = settings.PAYMENT_SUCCESS_RATE if success_rate is None else success_rate
        self.min_delay = settings.PAYMENT_MIN_DELAY_SECONDS if min_delay is None else min_delay
        self.max_delay = settings.PAYMENT_MAX_DELAY_SECONDS if max_delay is None else max_delay

    def methods(self) -> List[PaymentMethod]:
        return [m for m in PAYMENT_METHODS if m.enabled]

    async def process(self, request: PaymentRequest) -> PaymentResult:
        transaction_id = secrets.token_hex(16)

        # Simulated processor latency
        if self.max_delay > 0:
            await asyncio.sleep(self.rng.uniform(self.min_delay, self.max_delay))

        if self.rng.random() >= self.success_rate:
            logger.warning(f"Payment {transaction_id} declined ({request.service_type}, {request.amount})")
            raise PaymentDeclined()

        base_url = settings.PUBLIC_BASE_URL
        result = PaymentResult(
            transaction_id=transaction_id,
            status="completed",
            amount=request.amount,
            currency=request.currency.upper(),
            payment_method=request.payment_method,
            service_type=request.service_type,
            description=service_description(request.service_type),
            processed_at=datetime.now(timezone.utc),
            evaluation_id=request.evaluation_id,
            receipt=Receipt(
                receipt_id=secrets.token_hex(8),
                receipt_url=f"{base_url}/receipts/{transaction_id}",
                download_url=f"{base_url}/receipts/{transaction_id}/download",
            ),
        )
        logger.info(f"Payment {transaction_id} completed for {request.service_type}")
        return result
