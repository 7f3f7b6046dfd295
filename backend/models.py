"""
Pydantic models for request validation.
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import Dict, Optional

from domain.enums import OrderStatus, PaymentMethod


class ApiBase(BaseModel):
    """Shared base — allows construction by Python name or camelCase alias."""
    model_config = ConfigDict(populate_by_name=True, from_attributes=True)


# ── Auth Models ─────────────────────────────────────────────────────

class RegisterRequest(ApiBase):
    """The email comes from the verified ID token, never from the body."""
    id_token: str = Field(..., alias="idToken", min_length=16, max_length=8192)
    name: str = Field(..., min_length=1, max_length=100)
    phone: Optional[str] = Field(default=None, max_length=20)


class LoginRequest(ApiBase):
    id_token: str = Field(..., alias="idToken", min_length=16, max_length=8192)


# ── Catalog Models ──────────────────────────────────────────────────

class ServiceCreateRequest(ApiBase):
    name: str = Field(..., min_length=2, max_length=200)
    description: Optional[str] = Field(default=None, max_length=2000)
    price_per_cloth: Dict[str, int] = Field(..., alias="pricePerCloth", min_length=1)


# ── Order Models ────────────────────────────────────────────────────

class ClothQuantity(ApiBase):
    """Garment counts; every kind defaults to 0."""
    shirt: int = Field(0, ge=0, le=500)
    pant: int = Field(0, ge=0, le=500)
    dress: int = Field(0, ge=0, le=500)
    jacket: int = Field(0, ge=0, le=500)


class OrderCreateRequest(ApiBase):
    service_id: str = Field(..., alias="serviceId", min_length=1, max_length=100)
    clothes: ClothQuantity
    phone: str = Field(..., min_length=1, max_length=20)
    address: str = Field(..., min_length=1, max_length=500)
    payment_method: PaymentMethod = Field(..., alias="paymentMethod")


class StatusUpdateRequest(ApiBase):
    """Omit ``status`` to advance to the next stage."""
    status: Optional[OrderStatus] = None
    notes: Optional[str] = Field(default=None, max_length=2000)


class NotesUpdateRequest(ApiBase):
    notes: str = Field(..., max_length=2000)


class ReportCreateRequest(ApiBase):
    reason: str = Field(..., min_length=3, max_length=2000)
