# storefront/models/discount.py
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field, field_validator

class DiscountCode(BaseModel):
    """Percentage-off code, independently activatable"""
    id: str
    code: str
    discount_percentage: int = Field(ge=1, le=100)
    active: bool = True
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

class DiscountCodeInput(BaseModel):
    """Admin form for a new discount code"""
    code: str = Field(min_length=3, max_length=32)
    discount_percentage: int = Field(default=10, ge=1, le=100)

    @field_validator("code", mode="before")
    @classmethod
    def normalize_code(cls, value):
        if isinstance(value, str):
            return value.strip().upper()
        return value

class PricePreview(BaseModel):
    """Price shown to the buyer after applying a code"""
    product_id: str
    code: str
    discount_percentage: int
    original_price: int
    discounted_price: int
