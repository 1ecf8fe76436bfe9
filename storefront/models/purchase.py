# storefront/models/purchase.py
from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field

class PaymentStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not PaymentStatus.PENDING

class PaymentMethod(str, Enum):
    CARD = "card"
    BANK_TRANSFER = "bank_transfer"
    CASH = "cash"

class PaymentVerdict(str, Enum):
    APPROVED = "approved"
    REJECTED = "rejected"

class Purchase(BaseModel):
    """One buyer's transaction record against a product"""
    id: str
    product_id: str
    customer_name: str
    customer_email: str
    customer_phone: Optional[str] = None
    customer_address: Optional[str] = None
    original_price: int = Field(ge=0)
    final_price: int = Field(ge=0)
    discount_code: Optional[str] = None
    payment_method: PaymentMethod
    payment_status: PaymentStatus = PaymentStatus.PENDING
    payment_date: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @property
    def is_completed(self) -> bool:
        return self.payment_status == PaymentStatus.COMPLETED

    @property
    def discount_amount(self) -> int:
        return self.original_price - self.final_price

class CustomerInfo(BaseModel):
    """Buyer contact data frozen on the purchase"""
    name: str
    email: str
    phone: Optional[str] = None
    address: Optional[str] = None
