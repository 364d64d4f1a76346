"""
Payment Service Factory

Provides a single entry point for obtaining a payment service instance.
The factory pattern allows the rest of the application to remain agnostic
about which implementation is being used.

Usage:
    from app.services.payment import get_payment_service

    # Returns MockPaymentService or StripePaymentService based on ENV_MODE
    payment_service = get_payment_service()

    result = await payment_service.create_payment_intent(1999)

Environment Switching:
    - ENV_MODE=development → MockPaymentService (no API calls)
    - ENV_MODE=staging → StripePaymentService (test keys)
    - ENV_MODE=production → StripePaymentService (live keys)
"""

import logging
from functools import lru_cache

from app.core.config import get_settings
from app.services.payment.base import (
    BasePaymentService,
    PaymentResult,
    to_minor_units,
)
from app.services.payment.mock import MockPaymentService
from app.services.payment.stripe import StripePaymentService

logger = logging.getLogger(__name__)


@lru_cache()
def get_payment_service() -> BasePaymentService:
    """
    Get the configured payment service instance (cached singleton).

    Raises:
        ValueError: If real services are required but no Stripe key is set
    """
    settings = get_settings()

    if settings.is_development:
        logger.info("Payment Service: Using MockPaymentService (development mode)")
        return MockPaymentService(failure_rate=settings.mock_payment_failure_rate)
    else:
        logger.info(
            f"Payment Service: Using StripePaymentService "
            f"({settings.env_mode.value} mode)"
        )
        return StripePaymentService()


def reset_payment_service() -> None:
    """
    Clear the cached payment service instance.

    The next call to get_payment_service() will create a new instance.
    """
    get_payment_service.cache_clear()
    logger.debug("Payment service cache cleared")


__all__ = [
    "get_payment_service",
    "reset_payment_service",
    "BasePaymentService",
    "PaymentResult",
    "MockPaymentService",
    "StripePaymentService",
    "to_minor_units",
]
