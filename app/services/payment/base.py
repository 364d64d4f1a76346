"""
Payment Service Abstract Base Class

Defines the interface contract for all payment service implementations.
Both MockPaymentService and StripePaymentService must implement these methods,
ensuring consistent behavior regardless of which service is active.

Design Pattern: Strategy Pattern
    - Allows runtime switching between payment providers
    - Facilitates testing with mock implementations
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Optional, Union


def to_minor_units(amount: Union[float, int, str, Decimal]) -> int:
    """
    Convert a major-unit price into the processor's integer minor units.

    Rounds half-up on the decimal value so that binary float artifacts
    never drop a cent (19.99 → 1999, 19.995 → 2000).

    Raises:
        ValueError: If the amount is not a finite number
    """
    try:
        value = Decimal(str(amount))
    except InvalidOperation:
        raise ValueError(f"Invalid amount: {amount!r}")
    if not value.is_finite():
        raise ValueError(f"Invalid amount: {amount!r}")
    return int((value * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


@dataclass
class PaymentResult:
    """
    Standardized result from creating a payment intent.

    Attributes:
        success: Whether the processor accepted the request
        payment_intent_id: Processor identifier (Stripe format: pi_xxx)
        client_secret: Opaque secret the client uses to confirm the payment
        amount: Amount in minor units (cents for USD)
        currency: Currency code (e.g., "usd")
        error_message: Error description if the request failed
        error_code: Machine-readable error code
        response_time_ms: Time taken by the processor
    """
    success: bool
    payment_intent_id: Optional[str] = None
    client_secret: Optional[str] = None
    amount: Optional[int] = None
    currency: str = "usd"
    error_message: Optional[str] = None
    error_code: Optional[str] = None
    response_time_ms: float = 0.0

    def to_dict(self) -> dict:
        """Convert to dictionary for logging (client secret redacted)."""
        return {
            "success": self.success,
            "payment_intent_id": self.payment_intent_id,
            "amount": self.amount,
            "currency": self.currency,
            "error_message": self.error_message,
            "error_code": self.error_code,
            "response_time_ms": self.response_time_ms,
        }


class BasePaymentService(ABC):
    """
    Abstract base class for payment services.

    Example:
        >>> service = get_payment_service()  # Returns Mock or Stripe
        >>> result = await service.create_payment_intent(amount=1999)
        >>> if result.success:
        ...     print(result.client_secret)
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """
        Return the name of the payment provider.

        Returns:
            str: Provider name (e.g., "mock", "stripe")
        """
        pass

    @abstractmethod
    async def create_payment_intent(
        self,
        amount: int,
        currency: str = "usd",
        payment_method_types: tuple[str, ...] = ("card",),
        metadata: Optional[dict] = None,
    ) -> PaymentResult:
        """
        Create a payment intent for client-side confirmation.

        Args:
            amount: Amount in minor units (see to_minor_units)
            currency: Three-letter currency code
            payment_method_types: Payment methods the intent accepts
            metadata: Additional data to attach

        Returns:
            PaymentResult: Contains client_secret for the frontend
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """
        Verify connectivity to the payment service.

        Returns:
            bool: True if service is reachable and operational
        """
        pass
