# lumbarong/schemas/catalog.py
# Схемы каталога товаров и уведомлений.
from datetime import datetime
from decimal import Decimal

from pydantic import Field

from lumbarong.models.notification import NotificationType
from lumbarong.schemas.common import ApiModel


class ProductCreate(ApiModel):
    name: str = Field(min_length=1)
    description: str | None = None
    price: Decimal = Field(ge=0)
    stock: int = Field(ge=0)
    low_stock_threshold: int = Field(default=5, ge=0)
    category: str | None = None


class StockUpdate(ApiModel):
    stock: int = Field(ge=0)


class ProductOut(ApiModel):
    id: int
    seller_id: int
    name: str
    description: str | None = None
    price: float
    stock: int
    low_stock_threshold: int
    category: str | None = None
    created_at: datetime | None = None


class NotificationOut(ApiModel):
    id: int
    message: str
    type: NotificationType
    is_read: bool
    created_at: datetime | None = None


class ProductUpdate(ApiModel):
    name: str | None = Field(default=None, min_length=1)
    description: str | None = None
    price: Decimal | None = Field(default=None, ge=0)
    stock: int | None = Field(default=None, ge=0)
    low_stock_threshold: int | None = Field(default=None, ge=0)
    category: str | None = None


class WishlistAdd(ApiModel):
    product_id: int


class WishlistItemOut(ApiModel):
    id: int
    product_id: int
    created_at: datetime | None = None
    product: ProductOut | None = None


class WishlistAddResponse(ApiModel):
    message: str
    item: WishlistItemOut
