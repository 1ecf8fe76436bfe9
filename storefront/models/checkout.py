# storefront/models/checkout.py
from typing import Optional
from pydantic import BaseModel, EmailStr, Field, field_validator
from .product import ProductType
from .purchase import PaymentMethod, PaymentStatus, PaymentVerdict, Purchase

class CheckoutRequest(BaseModel):
    """Buyer input for a checkout attempt"""
    product_id: str = Field(min_length=1)
    product_type: ProductType
    buyer_name: str = Field(min_length=3)
    buyer_email: EmailStr
    buyer_phone: Optional[str] = Field(default=None, min_length=9)
    buyer_address: Optional[str] = Field(default=None, min_length=5)
    payment_method: PaymentMethod
    discount_code: Optional[str] = None

    # Price the caller displayed; informational only, never trusted
    expected_price: Optional[int] = None

    @field_validator("buyer_name", "buyer_phone", "buyer_address", mode="before")
    @classmethod
    def strip_text(cls, value):
        if isinstance(value, str):
            value = value.strip()
            return value or None
        return value

    @field_validator("discount_code", mode="before")
    @classmethod
    def normalize_code(cls, value):
        if isinstance(value, str):
            value = value.strip().upper()
            return value or None
        return value

class CheckoutResult(BaseModel):
    """Routing decision handed back to the caller"""
    purchase_id: str
    status: PaymentStatus
    final_price: int
    verdict: PaymentVerdict
    purchase: Purchase

    @property
    def succeeded(self) -> bool:
        return self.status == PaymentStatus.COMPLETED
