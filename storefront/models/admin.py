# storefront/models/admin.py
from typing import List, Optional
from pydantic import BaseModel, EmailStr, Field, field_validator
from .product import CatalogEntry, ProductType
from .purchase import Purchase

class AuthContext(BaseModel):
    """Identity of the caller of an admin operation"""
    user_id: Optional[str] = None
    is_authenticated: bool = False

    @classmethod
    def anonymous(cls) -> "AuthContext":
        return cls()

    @classmethod
    def authenticated(cls, user_id: str) -> "AuthContext":
        return cls(user_id=user_id, is_authenticated=True)

class ClientRegistration(BaseModel):
    """Offline client registered by the seller"""
    name: str = Field(min_length=3)
    email: EmailStr
    phone: Optional[str] = None
    address: Optional[str] = None

    @field_validator("name", "phone", "address", mode="before")
    @classmethod
    def strip_text(cls, value):
        if isinstance(value, str):
            value = value.strip()
            return value or None
        return value

class RegistrationResult(BaseModel):
    purchase: Purchase
    payment_link: str
    remaining_capacity: Optional[int] = None

class PurchaseListing(BaseModel):
    """Purchase row as shown in the admin purchases table"""
    purchase: Purchase
    product_title: Optional[str] = None
    product_type: Optional[ProductType] = None

class PurchaseSummary(BaseModel):
    total: int = 0
    completed: int = 0
    failed: int = 0
    pending: int = 0
    revenue: int = 0

class ProductPurchases(BaseModel):
    """A product with every purchase made against it"""
    entry: CatalogEntry
    purchases: List[Purchase]
    summary: PurchaseSummary
