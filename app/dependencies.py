"""
Request Dependencies

Dependency providers for the store, the handlers and the services, plus
the two authorization gates:

    verify_token   Authorization: Bearer <token> → Identity, else 401
    require_admin  verified Identity whose user has role "admin", else 403

require_admin depends on verify_token, so it can never run on an
unverified request. The verified Identity is returned to the route as a
parameter; nothing is attached to the request object.
"""

import logging
from typing import Optional

from fastapi import Depends, Header

from app.core.exceptions import Forbidden, Unauthenticated
from app.core.security import Identity, TokenService, get_token_service
from app.services.analytics import AnalyticsAggregator
from app.services.checkout import PaymentOrchestrator
from app.services.payment import BasePaymentService, get_payment_service
from app.services.resources import CartHandler, MenuHandler, ReviewHandler, UserHandler
from app.services.store import BaseDocumentStore, get_document_store

logger = logging.getLogger(__name__)


# =============================================================================
# SERVICES
# =============================================================================

def get_store() -> BaseDocumentStore:
    return get_document_store()


def get_payments() -> BasePaymentService:
    return get_payment_service()


def get_tokens() -> TokenService:
    return get_token_service()


def get_user_handler(store: BaseDocumentStore = Depends(get_store)) -> UserHandler:
    return UserHandler(store)


def get_menu_handler(store: BaseDocumentStore = Depends(get_store)) -> MenuHandler:
    return MenuHandler(store)


def get_review_handler(store: BaseDocumentStore = Depends(get_store)) -> ReviewHandler:
    return ReviewHandler(store)


def get_cart_handler(store: BaseDocumentStore = Depends(get_store)) -> CartHandler:
    return CartHandler(store)


def get_orchestrator(
    store: BaseDocumentStore = Depends(get_store),
    payments: BasePaymentService = Depends(get_payments),
) -> PaymentOrchestrator:
    return PaymentOrchestrator(store, payments)


def get_analytics(store: BaseDocumentStore = Depends(get_store)) -> AnalyticsAggregator:
    return AnalyticsAggregator(store)


# =============================================================================
# GATES
# =============================================================================

def verify_token(
    authorization: Optional[str] = Header(None),
    tokens: TokenService = Depends(get_tokens),
) -> Identity:
    """Verify the bearer token and return the identity it asserts."""
    if not authorization:
        raise Unauthenticated()

    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise Unauthenticated()

    return tokens.verify(token.strip())


async def require_admin(
    identity: Identity = Depends(verify_token),
    users: UserHandler = Depends(get_user_handler),
) -> Identity:
    """Let the request through only if the verified caller is an admin."""
    if not await users.is_admin(identity.email):
        logger.warning(f"Admin access denied for {identity.email}")
        raise Forbidden()
    return identity
