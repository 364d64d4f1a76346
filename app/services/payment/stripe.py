"""
Stripe Payment Service Implementation

Production implementation using the official Stripe Python SDK.
Used when ENV_MODE=production or ENV_MODE=staging.

Requirements:
    - PAYMENT_SECRET_KEY (or STRIPE_SECRET_KEY) must be set in environment

Security Notes:
    - Never log client secrets
    - Card details never reach this server; the client confirms the
      intent with Stripe.js using the returned client secret
"""

import asyncio
import logging
from datetime import datetime
from typing import Optional

import stripe
from stripe import (
    StripeError,
    CardError,
    InvalidRequestError,
    AuthenticationError,
    APIConnectionError,
)

from app.core.config import get_settings
from app.services.payment.base import (
    BasePaymentService,
    PaymentResult,
)

logger = logging.getLogger(__name__)


class StripePaymentService(BasePaymentService):
    """
    Production Stripe payment service implementation.

    Example:
        >>> service = StripePaymentService()
        >>> result = await service.create_payment_intent(1999)
        >>> result.client_secret
    """

    def __init__(self, api_key: Optional[str] = None, currency: Optional[str] = None):
        """
        Initialize Stripe with API key from settings.

        Raises:
            ValueError: If no Stripe secret key is configured
        """
        settings = get_settings()
        api_key = api_key or settings.stripe_secret_key

        if not api_key:
            raise ValueError(
                "PAYMENT_SECRET_KEY is required for production mode. "
                "Set it in your .env file or environment variables."
            )

        stripe.api_key = api_key
        self._currency = currency or settings.stripe_currency

        logger.info("StripePaymentService initialized")

    @property
    def provider_name(self) -> str:
        """Return the provider name."""
        return "stripe"

    async def create_payment_intent(
        self,
        amount: int,
        currency: str = "usd",
        payment_method_types: tuple[str, ...] = ("card",),
        metadata: Optional[dict] = None,
    ) -> PaymentResult:
        """
        Create a PaymentIntent for client-side confirmation.

        The SDK call is blocking, so it runs in a worker thread.
        """
        start_time = datetime.now()

        try:
            intent = await asyncio.to_thread(
                stripe.PaymentIntent.create,
                amount=amount,
                currency=currency or self._currency,
                payment_method_types=list(payment_method_types),
                metadata=metadata or {},
            )

            elapsed_ms = (datetime.now() - start_time).total_seconds() * 1000

            logger.info(
                f"Stripe: PaymentIntent created - {intent.id} - "
                f"status={intent.status}"
            )

            return PaymentResult(
                success=True,
                payment_intent_id=intent.id,
                client_secret=intent.client_secret,
                amount=intent.amount,
                currency=intent.currency,
                response_time_ms=elapsed_ms,
            )

        except CardError as e:
            elapsed_ms = (datetime.now() - start_time).total_seconds() * 1000
            logger.warning(f"Stripe: Card declined - {e.code}: {e.user_message}")

            return PaymentResult(
                success=False,
                error_message=e.user_message,
                error_code=e.code,
                response_time_ms=elapsed_ms,
            )

        except InvalidRequestError as e:
            elapsed_ms = (datetime.now() - start_time).total_seconds() * 1000
            logger.error(f"Stripe: Invalid request - {e}")

            return PaymentResult(
                success=False,
                error_message=str(e),
                error_code="invalid_request",
                response_time_ms=elapsed_ms,
            )

        except AuthenticationError as e:
            logger.critical(f"Stripe: Authentication failed - {e}")

            return PaymentResult(
                success=False,
                error_message="Payment service configuration error",
                error_code="authentication_error",
            )

        except APIConnectionError as e:
            elapsed_ms = (datetime.now() - start_time).total_seconds() * 1000
            logger.error(f"Stripe: Connection error - {e}")

            return PaymentResult(
                success=False,
                error_message="Payment service temporarily unavailable",
                error_code="connection_error",
                response_time_ms=elapsed_ms,
            )

        except StripeError as e:
            elapsed_ms = (datetime.now() - start_time).total_seconds() * 1000
            logger.error(f"Stripe: Failed to create PaymentIntent - {e}")

            return PaymentResult(
                success=False,
                error_message="Payment processing error",
                error_code="stripe_error",
                response_time_ms=elapsed_ms,
            )

    async def health_check(self) -> bool:
        """
        Verify Stripe API connectivity.

        Makes a lightweight API call to verify credentials and connectivity.
        """
        try:
            await asyncio.to_thread(stripe.Account.retrieve)
            logger.debug("Stripe: Health check passed")
            return True

        except StripeError as e:
            logger.error(f"Stripe: Health check failed - {e}")
            return False
