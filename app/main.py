"""
FastAPI Application Entry Point

Bistro Boss Server - restaurant ordering backend.

Endpoints:
    - POST /jwt: Issue an access token
    - /users: Registration, admin checks and user administration
    - /menu, /dashboard/update-menu/{id}: Menu catalog
    - /reviews: Customer reviews
    - /carts: Shopping carts
    - POST /create-payment-intent, POST /payments: Checkout
    - GET /admin-stats, GET /order-stats: Dashboard analytics
    - GET /health: System health check
"""

import logging
from datetime import datetime
from typing import Any, Optional
from contextlib import asynccontextmanager

from fastapi import FastAPI, Depends, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import get_settings, setup_logging
from app.core.exceptions import ApiError, Forbidden
from app.core.security import Identity, TokenService
from app.dependencies import (
    get_analytics,
    get_cart_handler,
    get_menu_handler,
    get_orchestrator,
    get_payments,
    get_review_handler,
    get_store,
    get_tokens,
    get_user_handler,
    require_admin,
    verify_token,
)
from app.schemas import (
    AdminCheckResponse,
    AdminStatsResponse,
    CartItemCreate,
    CategoryStat,
    ErrorResponse,
    HealthResponse,
    MenuItemIn,
    PaymentCreate,
    PaymentIntentRequest,
    PaymentIntentResponse,
    TokenRequest,
    TokenResponse,
    UserCreate,
)
from app.services.analytics import AnalyticsAggregator
from app.services.checkout import PaymentOrchestrator
from app.services.payment import BasePaymentService, get_payment_service
from app.services.resources import CartHandler, MenuHandler, ReviewHandler, UserHandler
from app.services.store import BaseDocumentStore, get_document_store

# Initialize configuration and logging
settings = get_settings()
setup_logging()
logger = logging.getLogger(__name__)

AUTH_ERRORS = {401: {"model": ErrorResponse}}
ADMIN_ERRORS = {401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}}


# =============================================================================
# APPLICATION LIFECYCLE
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application startup and shutdown events.
    """
    logger.info("=" * 60)
    logger.info(f"🚀 Starting {settings.app_name}")
    logger.info(f"   Version: {settings.app_version}")
    logger.info(f"   Environment: {settings.env_mode.value}")
    logger.info(f"   Debug: {settings.debug}")
    logger.info("=" * 60)

    store = get_document_store()
    await store.connect()
    logger.info(f"✅ Document Store: {store.provider_name}")

    payment_service = get_payment_service()
    logger.info(f"✅ Payment Service: {payment_service.provider_name}")

    if settings.use_real_services:
        missing = settings.validate_production_config()
        if missing:
            logger.warning(f"⚠️ Missing production config: {missing}")

    logger.info("✅ Application ready!")

    yield

    logger.info("Shutting down...")
    await store.close()
    logger.info("✅ Cleanup complete")


# =============================================================================
# APPLICATION INSTANCE
# =============================================================================

app = FastAPI(
    title=settings.app_name,
    description="Restaurant ordering backend: menu, carts, checkout and admin analytics.",
    version=settings.app_version,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def ack(result: Any) -> Any:
    """Render a store acknowledgement (or a plain dict) as a JSON body."""
    return result.to_dict() if hasattr(result, "to_dict") else result


# =============================================================================
# ROOT, HEALTH & TOKENS
# =============================================================================

@app.get("/", response_class=PlainTextResponse, tags=["Root"])
async def root() -> str:
    return "server is running"


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check(
    store: BaseDocumentStore = Depends(get_store),
    payments: BasePaymentService = Depends(get_payments),
) -> HealthResponse:
    """Verify the document store and the payment processor are reachable."""
    database = "healthy" if await store.ping() else "unhealthy"
    payment = "healthy" if await payments.health_check() else "unhealthy"

    return HealthResponse(
        status="operational" if database == payment == "healthy" else "degraded",
        database=database,
        payment=payment,
        timestamp=datetime.now(),
    )


@app.post("/jwt", response_model=TokenResponse, tags=["Auth"])
async def issue_token(
    claims: TokenRequest,
    tokens: TokenService = Depends(get_tokens),
) -> TokenResponse:
    """Sign a one-hour access token for the posted identity claims."""
    return TokenResponse(token=tokens.issue(claims.model_dump(exclude_none=True)))


# =============================================================================
# USERS
# =============================================================================

@app.get(
    "/users/admin/{email}",
    response_model=AdminCheckResponse,
    responses=AUTH_ERRORS,
    tags=["Users"],
)
async def check_admin(
    email: str,
    identity: Identity = Depends(verify_token),
    users: UserHandler = Depends(get_user_handler),
) -> AdminCheckResponse:
    # Callers may only ask about themselves
    if identity.email != email:
        return AdminCheckResponse(admin=False)
    return AdminCheckResponse(admin=await users.is_admin(email))


@app.post("/users", tags=["Users"])
async def register_user(
    user: UserCreate,
    users: UserHandler = Depends(get_user_handler),
) -> dict[str, Any]:
    """Register a user on first sign-in; a known email is a no-op."""
    return ack(await users.register(user.model_dump(exclude_none=True)))


@app.get("/users", responses=ADMIN_ERRORS, tags=["Users"])
async def list_users(
    _: Identity = Depends(require_admin),
    users: UserHandler = Depends(get_user_handler),
) -> list[dict[str, Any]]:
    return await users.list()


@app.delete("/users/{id}", responses=ADMIN_ERRORS, tags=["Users"])
async def delete_user(
    id: str,
    _: Identity = Depends(require_admin),
    users: UserHandler = Depends(get_user_handler),
) -> dict[str, Any]:
    return ack(await users.delete(id))


@app.patch("/users/admin/{id}", responses=ADMIN_ERRORS, tags=["Users"])
async def promote_user(
    id: str,
    identity: Identity = Depends(require_admin),
    users: UserHandler = Depends(get_user_handler),
) -> dict[str, Any]:
    logger.info(f"{identity.email} promotes user {id}")
    return ack(await users.promote(id))


# =============================================================================
# MENU & REVIEWS
# =============================================================================

@app.get("/menu", tags=["Menu"])
async def list_menu(menu: MenuHandler = Depends(get_menu_handler)) -> list[dict[str, Any]]:
    return await menu.list()


@app.get("/dashboard/update-menu/{id}", tags=["Menu"])
async def get_menu_item(
    id: str,
    menu: MenuHandler = Depends(get_menu_handler),
) -> Optional[dict[str, Any]]:
    return await menu.get(id)


@app.put("/dashboard/update-menu/{id}", responses=ADMIN_ERRORS, tags=["Menu"])
async def update_menu_item(
    id: str,
    item: MenuItemIn,
    _: Identity = Depends(require_admin),
    menu: MenuHandler = Depends(get_menu_handler),
) -> dict[str, Any]:
    return ack(await menu.replace_fields(id, item.model_dump()))


@app.post("/menu", responses=ADMIN_ERRORS, tags=["Menu"])
async def create_menu_item(
    item: MenuItemIn,
    _: Identity = Depends(require_admin),
    menu: MenuHandler = Depends(get_menu_handler),
) -> dict[str, Any]:
    return ack(await menu.create(item.model_dump(exclude_none=True)))


@app.delete("/menu/{id}", responses=ADMIN_ERRORS, tags=["Menu"])
async def delete_menu_item(
    id: str,
    _: Identity = Depends(require_admin),
    menu: MenuHandler = Depends(get_menu_handler),
) -> dict[str, Any]:
    return ack(await menu.delete(id))


@app.get("/reviews", tags=["Reviews"])
async def list_reviews(
    reviews: ReviewHandler = Depends(get_review_handler),
) -> list[dict[str, Any]]:
    return await reviews.list()


# =============================================================================
# CARTS
# =============================================================================

@app.get("/carts", responses=ADMIN_ERRORS, tags=["Carts"])
async def list_cart(
    email: Optional[str] = Query(None),
    identity: Identity = Depends(verify_token),
    carts: CartHandler = Depends(get_cart_handler),
) -> list[dict[str, Any]]:
    if not email:
        return []
    if email != identity.email:
        raise Forbidden()
    return await carts.list_for(email)


@app.post("/carts", tags=["Carts"])
async def add_to_cart(
    item: CartItemCreate,
    carts: CartHandler = Depends(get_cart_handler),
) -> dict[str, Any]:
    return ack(await carts.create(item.model_dump(exclude_none=True)))


@app.delete("/carts/{id}", tags=["Carts"])
async def remove_from_cart(
    id: str,
    carts: CartHandler = Depends(get_cart_handler),
) -> dict[str, Any]:
    return ack(await carts.delete(id))


# =============================================================================
# CHECKOUT
# =============================================================================

@app.post(
    "/create-payment-intent",
    response_model=PaymentIntentResponse,
    responses=AUTH_ERRORS,
    tags=["Payments"],
)
async def create_payment_intent(
    body: PaymentIntentRequest,
    _: Identity = Depends(verify_token),
    orchestrator: PaymentOrchestrator = Depends(get_orchestrator),
) -> PaymentIntentResponse:
    client_secret = await orchestrator.create_intent(body.price)
    return PaymentIntentResponse(clientSecret=client_secret)


@app.post("/payments", responses=AUTH_ERRORS, tags=["Payments"])
async def record_payment(
    payment: PaymentCreate,
    identity: Identity = Depends(verify_token),
    orchestrator: PaymentOrchestrator = Depends(get_orchestrator),
) -> dict[str, Any]:
    logger.info(f"Recording payment for {identity.email}")
    result = await orchestrator.record_payment(payment.model_dump(exclude_none=True))
    return {
        "insertResult": ack(result["insertResult"]),
        "deleteResult": ack(result["deleteResult"]),
    }


# =============================================================================
# ANALYTICS
# =============================================================================

@app.get(
    "/admin-stats",
    response_model=AdminStatsResponse,
    responses=ADMIN_ERRORS,
    tags=["Analytics"],
)
async def admin_stats(
    _: Identity = Depends(require_admin),
    analytics: AnalyticsAggregator = Depends(get_analytics),
) -> dict[str, Any]:
    return await analytics.admin_stats()


@app.get("/order-stats", response_model=list[CategoryStat], tags=["Analytics"])
async def order_stats(analytics: AnalyticsAggregator = Depends(get_analytics)):
    try:
        return await analytics.order_stats()
    except Exception as e:
        logger.exception(f"Error occurred during aggregation: {e}")
        return PlainTextResponse("An error occurred during aggregation", status_code=500)


# =============================================================================
# ERROR HANDLERS
# =============================================================================

@app.exception_handler(ApiError)
async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    """Render taxonomy errors as {"error": true, "message": ...}."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies are an InvalidArgument."""
    message = "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg')}" for err in exc.errors()
    )
    return JSONResponse(status_code=400, content={"error": True, "message": message})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all exception handler."""
    logger.exception(f"Unhandled exception: {exc}")

    return JSONResponse(
        status_code=500,
        content={
            "error": True,
            "message": str(exc) if settings.debug else "An unexpected error occurred",
        },
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.main:app", host=settings.api_host, port=settings.api_port)
