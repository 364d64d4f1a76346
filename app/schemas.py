"""
Pydantic Schemas for Request/Response Validation

Request bodies accept extra client fields (names, photos, images,
transaction ids...) and keep them, since each document is stored as the
client sent it.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class OpenDocument(BaseModel):
    """Base for request bodies stored verbatim, extra fields included."""
    model_config = ConfigDict(extra="allow")


# =============================================================================
# REQUEST SCHEMAS
# =============================================================================

class TokenRequest(OpenDocument):
    """Identity claims to embed in an access token."""
    email: str = Field(..., min_length=3, examples=["diner@example.com"])


class UserCreate(OpenDocument):
    email: str = Field(..., min_length=3, examples=["diner@example.com"])
    name: Optional[str] = Field(None, examples=["Jane Doe"])


class MenuItemIn(OpenDocument):
    name: str = Field(..., min_length=1, examples=["Margherita Pizza"])
    price: float = Field(..., ge=0, examples=[14.5])
    category: str = Field(..., min_length=1, examples=["pizza"])
    recipe: Optional[str] = Field(None, examples=["Tomato, mozzarella, basil"])
    image: Optional[str] = None


class CartItemCreate(OpenDocument):
    email: str = Field(..., examples=["diner@example.com"])
    menuItemId: Optional[str] = Field(None, examples=["642c155b2c4774f05c36eeb1"])
    name: Optional[str] = None
    price: float = Field(..., ge=0, examples=[14.5])
    image: Optional[str] = None


class PaymentIntentRequest(BaseModel):
    # Validated by the orchestrator so that a bad price yields InvalidArgument
    price: Any = Field(None, examples=[19.99])


class PaymentCreate(OpenDocument):
    email: Optional[str] = None
    price: float = Field(..., gt=0, examples=[19.99])
    transactionId: Optional[str] = None
    date: Optional[datetime] = None
    cartItems: list[str] = Field(default_factory=list)
    menuItems: list[str] = Field(default_factory=list)


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================

class TokenResponse(BaseModel):
    token: str


class AdminCheckResponse(BaseModel):
    admin: bool


class MessageResponse(BaseModel):
    message: str


class PaymentIntentResponse(BaseModel):
    clientSecret: str


class AdminStatsResponse(BaseModel):
    revenue: float
    users: int
    products: int
    orders: int


class CategoryStat(BaseModel):
    category: Optional[str]
    count: int
    totalPrice: float


class ErrorResponse(BaseModel):
    error: bool = True
    message: str


class HealthResponse(BaseModel):
    status: str
    database: str
    payment: str
    timestamp: datetime
