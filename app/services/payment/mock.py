"""
Mock Payment Service Implementation

Simulates Stripe payment intents without making real API calls.
Used in development mode (ENV_MODE=development) and by the tests to:
    - Exercise the complete checkout flow locally
    - Develop without a Stripe account or internet connectivity

Behavior:
    - Optional simulated response time
    - Optional random declines (failure_rate)
    - Generates Stripe-like IDs and client secrets (pi_xxx_secret_xxx)
    - Records every request in ``requests`` for inspection
"""

import asyncio
import random
import uuid
import logging
from typing import Optional

from app.services.payment.base import (
    BasePaymentService,
    PaymentResult,
)

logger = logging.getLogger(__name__)


class MockPaymentService(BasePaymentService):
    """
    Mock implementation of the payment service.

    Attributes:
        failure_rate: Probability of simulated decline (0.0-1.0)
        min_latency: Minimum simulated response time in seconds
        max_latency: Maximum simulated response time in seconds
        requests: Keyword arguments of every create_payment_intent call

    Example:
        >>> service = MockPaymentService()
        >>> result = await service.create_payment_intent(1999)
        >>> result.client_secret
        'pi_mock_..._secret_mock'
    """

    # Simulated failure reasons (mimics real Stripe decline codes)
    DECLINE_REASONS = [
        ("card_declined", "Your card was declined."),
        ("processing_error", "An error occurred while processing your card."),
        ("rate_limit", "Too many requests hit the API too quickly."),
    ]

    def __init__(
        self,
        failure_rate: float = 0.0,
        min_latency: float = 0.0,
        max_latency: float = 0.0,
    ):
        self.failure_rate = failure_rate
        self.min_latency = min_latency
        self.max_latency = max_latency
        self.requests: list[dict] = []

        logger.info(
            f"MockPaymentService initialized "
            f"(failure_rate={failure_rate:.0%}, "
            f"latency={min_latency}-{max_latency}s)"
        )

    @property
    def provider_name(self) -> str:
        """Return the provider name."""
        return "mock"

    def _generate_payment_intent_id(self) -> str:
        """Generate a Stripe-like payment intent ID."""
        return f"pi_mock_{uuid.uuid4().hex[:24]}"

    async def _simulate_latency(self) -> float:
        """
        Simulate network latency.

        Returns:
            float: Actual latency in milliseconds
        """
        latency = random.uniform(self.min_latency, self.max_latency)
        if latency > 0:
            await asyncio.sleep(latency)
        return latency * 1000

    def _should_fail(self) -> bool:
        """Determine if this request should simulate a failure."""
        return random.random() < self.failure_rate

    async def create_payment_intent(
        self,
        amount: int,
        currency: str = "usd",
        payment_method_types: tuple[str, ...] = ("card",),
        metadata: Optional[dict] = None,
    ) -> PaymentResult:
        """
        Simulate creating a payment intent.

        The mock returns a fake client_secret that won't work with Stripe.js.
        """
        self.requests.append({
            "amount": amount,
            "currency": currency,
            "payment_method_types": list(payment_method_types),
            "metadata": metadata or {},
        })

        latency_ms = await self._simulate_latency()

        if amount <= 0:
            return PaymentResult(
                success=False,
                error_message="Amount must be greater than 0",
                error_code="invalid_amount",
                response_time_ms=latency_ms,
            )

        if self._should_fail():
            error_code, error_message = random.choice(self.DECLINE_REASONS)
            logger.debug(f"Mock: Payment intent declined - {error_code}")
            return PaymentResult(
                success=False,
                amount=amount,
                currency=currency,
                error_message=error_message,
                error_code=error_code,
                response_time_ms=latency_ms,
            )

        payment_intent_id = self._generate_payment_intent_id()

        logger.debug(f"Mock: Created payment intent {payment_intent_id} ({amount} {currency})")

        return PaymentResult(
            success=True,
            payment_intent_id=payment_intent_id,
            client_secret=f"{payment_intent_id}_secret_mock",
            amount=amount,
            currency=currency,
            response_time_ms=latency_ms,
        )

    async def health_check(self) -> bool:
        """Mock health check always returns True."""
        logger.debug("Mock: Health check passed")
        return True
