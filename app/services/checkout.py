"""
Payment Orchestrator

Two-step checkout:
    1. create_intent: stage a card payment with the processor and hand the
       client secret back to the browser, which confirms it with Stripe.js.
    2. record_payment: once the client reports a confirmed payment, store
       the payment and clear the cart entries it paid for.

record_payment is NOT atomic. The insert and the cart cleanup are two
independent store calls. A failed insert propagates and nothing is
deleted. A failed cleanup is logged, the payment is flagged
``cleanupPending`` and the insert result is still returned.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from app.core.config import get_settings
from app.core.exceptions import InvalidArgument, PaymentProviderError, StoreError
from app.services.payment import BasePaymentService, to_minor_units
from app.services.resources import CARTS, PAYMENTS
from app.services.store import BaseDocumentStore, parse_object_id

logger = logging.getLogger(__name__)


class PaymentOrchestrator:
    """
    Coordinates the payment processor and the document store for checkout.

    Example:
        >>> orchestrator = PaymentOrchestrator(store, get_payment_service())
        >>> secret = await orchestrator.create_intent(19.99)
    """

    def __init__(
        self,
        store: BaseDocumentStore,
        payment_service: BasePaymentService,
        currency: Optional[str] = None,
    ):
        self.store = store
        self.payment_service = payment_service
        self.currency = currency or get_settings().stripe_currency

    async def create_intent(self, price: Any) -> str:
        """
        Stage a card payment for ``price`` and return its client secret.

        Raises:
            InvalidArgument: Price missing, not a number, or not positive
            PaymentProviderError: The processor rejected the request
        """
        if isinstance(price, bool) or not isinstance(price, (int, float)):
            raise InvalidArgument("price must be a number")
        try:
            amount = to_minor_units(price)
        except ValueError:
            raise InvalidArgument("price must be a finite number")
        if amount <= 0:
            raise InvalidArgument("price must be greater than 0")

        logger.info(f"Creating payment intent: price={price} amount={amount} {self.currency}")

        result = await self.payment_service.create_payment_intent(
            amount=amount,
            currency=self.currency,
            payment_method_types=("card",),
        )

        if not result.success:
            logger.warning(f"Payment intent rejected: {result.to_dict()}")
            raise PaymentProviderError(result.error_message or "Payment processing error")

        return result.client_secret

    async def record_payment(self, payment: dict) -> dict:
        """
        Persist a completed payment and delete the cart items it covers.

        Returns:
            dict: {"insertResult": ..., "deleteResult": ...}; deleteResult is
            None when the cart cleanup failed

        Raises:
            InvalidArgument: A cart or menu item id is malformed
            StoreError: The payment insert failed
        """
        document = dict(payment)
        cart_ids = [parse_object_id(i) for i in document.get("cartItems") or []]
        document["cartItems"] = cart_ids
        document["menuItems"] = [parse_object_id(i) for i in document.get("menuItems") or []]
        document.setdefault("date", datetime.now(timezone.utc))

        insert_result = await self.store.insert_one(PAYMENTS, document)
        logger.info(
            f"Recorded payment {insert_result.inserted_id} "
            f"(price={document.get('price')}, cart_items={len(cart_ids)})"
        )

        try:
            delete_result = await self.store.delete_many(CARTS, {"_id": {"$in": cart_ids}})
        except StoreError:
            logger.exception(f"Cart cleanup failed for payment {insert_result.inserted_id}")
            await self._flag_cleanup_pending(insert_result.inserted_id)
            return {"insertResult": insert_result, "deleteResult": None}

        logger.debug(f"Removed {delete_result.deleted_count} cart items")
        return {"insertResult": insert_result, "deleteResult": delete_result}

    async def _flag_cleanup_pending(self, payment_id: Any) -> None:
        try:
            await self.store.update_one(
                PAYMENTS,
                {"_id": payment_id},
                {"$set": {"cleanupPending": True}},
            )
        except StoreError:
            logger.error(f"Could not flag payment {payment_id} for cart cleanup")
