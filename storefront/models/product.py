# storefront/models/product.py
from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, AnyHttpUrl, field_validator
from .base import TimeStampedModel

class ProductType(str, Enum):
    EVENT = "event"
    DIGITAL_CONTENT = "digital_content"

class Product(TimeStampedModel):
    """Catalog entry owned by the seller"""
    id: str
    type: ProductType
    title: str
    description: Optional[str] = None
    price: int = Field(ge=0)  # smallest currency unit

class EventDetails(BaseModel):
    """Schedule and access details of an event product"""
    id: str
    product_id: str
    event_date: datetime
    duration_minutes: int = Field(ge=1)
    capacity: Optional[int] = Field(default=None, ge=1)  # None means unlimited
    location: Optional[str] = None
    meeting_url: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

class DigitalContentDetails(BaseModel):
    """File backing a digital content product"""
    id: str
    product_id: str
    file_name: str
    file_url: str

    model_config = ConfigDict(from_attributes=True)

class CatalogEntry(BaseModel):
    """Product together with its type specific details"""
    product: Product
    event: Optional[EventDetails] = None
    digital_content: Optional[DigitalContentDetails] = None

    # Not stored in DB, populated for event listings
    remaining_capacity: Optional[int] = None

    @property
    def is_sold_out(self) -> bool:
        return (
            self.event is not None
            and self.event.capacity is not None
            and self.remaining_capacity is not None
            and self.remaining_capacity <= 0
        )

class ProductInput(BaseModel):
    """Fields shared by both product authoring forms"""
    title: str = Field(min_length=3)
    description: Optional[str] = None
    price: int = Field(ge=0)

    @field_validator("title")
    @classmethod
    def strip_title(cls, value: str) -> str:
        value = value.strip()
        if len(value) < 3:
            raise ValueError("title must have at least 3 characters")
        return value

    @field_validator("description")
    @classmethod
    def blank_description_is_none(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value.strip():
            return None
        return value

class EventInput(ProductInput):
    """Event authoring form"""
    event_date: datetime
    duration_minutes: int = Field(default=60, ge=1)
    capacity: Optional[int] = Field(default=None, ge=1)
    location: Optional[str] = None
    meeting_url: Optional[AnyHttpUrl] = None

    @field_validator("location", mode="before")
    @classmethod
    def blank_location_is_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("meeting_url", mode="before")
    @classmethod
    def blank_url_is_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

class DigitalContentInput(ProductInput):
    """Digital content authoring form, the file travels separately"""
    pass
