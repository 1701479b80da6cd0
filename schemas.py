"""
Database Schemas

Pydantic models for request payloads. Each resource maps to one MongoDB
collection, named after the lowercased model:
- Product -> "product" collection
- Category -> "category" collection
- FlashSale -> "flashsale" collection

*Create models validate full payloads; *Update models are partial and only
the fields the client actually sent are written.
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

URL_PATTERN = r"^https?://\S+$"
EMAIL_PATTERN = r"^[^\s@]+@[^\s@]+\.[^\s@]+$"


class Payload(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)


# Auth

class AdminCredentials(Payload):
    """Credentials payload for admin login"""
    email: str = Field(..., pattern=EMAIL_PATTERN, description="Admin email")
    password: str = Field(..., min_length=6)


# Products

class ProductCreate(Payload):
    """
    Products collection schema
    Collection name: "product"
    """
    name: str = Field(..., min_length=3, max_length=200, description="Product name")
    description: Optional[str] = Field(None, description="Detailed product description")
    price: Optional[float] = Field(None, ge=0, description="Current selling price")
    before_price: float = Field(..., ge=0, description="Price before discount")
    after_price: float = Field(..., ge=0, description="Price after discount, used by price filters")
    discount_price: float = Field(..., ge=0)
    has_offer: bool = Field(..., description="Listed under /products/offers")
    stock: Optional[int] = Field(None, ge=0, description="Plain counter, no reservations")
    category_id: Optional[str] = Field(None, description="Category id this product belongs to")
    section_id: str = Field(..., description="Storefront section")
    image_url: Optional[str] = Field(None, pattern=URL_PATTERN)
    is_active: bool = True


class ProductUpdate(Payload):
    name: Optional[str] = Field(None, min_length=3, max_length=200)
    description: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    before_price: Optional[float] = Field(None, ge=0)
    after_price: Optional[float] = Field(None, ge=0)
    discount_price: Optional[float] = Field(None, ge=0)
    has_offer: Optional[bool] = None
    stock: Optional[int] = Field(None, ge=0)
    category_id: Optional[str] = None
    section_id: Optional[str] = None
    is_active: Optional[bool] = None


# Categories

class CategoryCreate(Payload):
    """
    Product categories
    Collection name: "category"
    """
    name: str = Field(..., min_length=2, max_length=100, description="Category name, the slug is derived from it")
    description: str = Field(..., description="Description for the category")
    image_url: Optional[str] = Field(None, pattern=URL_PATTERN)
    is_active: bool = True


class CategoryUpdate(Payload):
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    description: Optional[str] = None
    is_active: Optional[bool] = None


# Banners

class BannerCreate(Payload):
    """
    Homepage banners
    Collection name: "banner"
    """
    title: str = Field(..., min_length=3, max_length=200)
    subtitle: Optional[str] = None
    image_url: Optional[str] = Field(None, pattern=URL_PATTERN)
    is_active: bool = True


class BannerUpdate(Payload):
    title: Optional[str] = Field(None, min_length=3, max_length=200)
    subtitle: Optional[str] = None
    is_active: Optional[bool] = None


# Coupons

class CouponCreate(Payload):
    """
    Discount coupons, keyed by code
    Collection name: "coupon"
    """
    code: str = Field(..., min_length=3, max_length=50)
    discount_amount: float = Field(..., ge=0)
    valid_from: datetime
    valid_to: datetime
    is_active: bool = True

    @field_validator("code")
    @classmethod
    def upper_code(cls, v: str) -> str:
        return v.upper()


class CouponUpdate(Payload):
    code: Optional[str] = Field(None, min_length=3, max_length=50)
    discount_amount: Optional[float] = Field(None, ge=0)
    valid_from: Optional[datetime] = None
    valid_to: Optional[datetime] = None
    is_active: Optional[bool] = None

    @field_validator("code")
    @classmethod
    def upper_code(cls, v: Optional[str]) -> Optional[str]:
        return v.upper() if v else v


class CouponCheck(Payload):
    code: str = Field(..., min_length=1)


# Flash sales

class FlashSaleCreate(Payload):
    """
    Time-boxed offers on a single product
    Collection name: "flashsale"
    """
    product_id: str = Field(..., min_length=1)
    flash_price: float = Field(..., ge=0)
    max_stock: int = Field(..., ge=0, description="Ceiling for current_stock")
    start_time: datetime
    end_time: datetime
    is_active: bool = True


class FlashSaleUpdate(Payload):
    product_id: Optional[str] = None
    flash_price: Optional[float] = Field(None, ge=0)
    current_stock: Optional[int] = Field(None, ge=0)
    max_stock: Optional[int] = Field(None, ge=0)
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    is_active: Optional[bool] = None


class StockIncrement(Payload):
    quantity: int = Field(1, ge=1)


# Orders

class OrderStatus(str, Enum):
    pending = "pending"
    confirmed = "confirmed"
    processing = "processing"
    sent = "sent"
    on_the_way = "on_the_way"
    out_for_delivery = "out_for_delivery"
    shipped = "shipped"
    delivered = "delivered"
    received = "received"
    reached = "reached"
    cancelled = "cancelled"


class OrderItem(Payload):
    """Product snapshot taken when the order is placed"""
    product_id: str
    name: str
    price: float = Field(..., ge=0)
    quantity: int = Field(..., ge=1)
    image_url: str


class OrderCreate(Payload):
    """
    Customer orders
    Collection name: "order"
    """
    user_id: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    name: str = Field(..., min_length=1)
    phone: Union[str, int]
    district: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    address: str = Field(..., min_length=1)
    description: str
    items: List[OrderItem]
    total_amount: Optional[float] = Field(None, ge=0, description="Computed from items when omitted")


class OrderStatusUpdate(Payload):
    status: OrderStatus
    note: Optional[str] = None
    location: Optional[str] = None
