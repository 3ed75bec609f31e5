# lumbarong/schemas/order.py
# Схемы запросов и ответов для заказов. Поля в JSON — camelCase (totalAmount, paymentMethod...).
from datetime import datetime
from decimal import Decimal

from pydantic import Field

from lumbarong.models.order import OrderStatus, PaymentMethod, ReturnStatus
from lumbarong.schemas.common import ApiModel


class OrderItemIn(ApiModel):
    product: int
    quantity: int = Field(gt=0)
    price: Decimal = Field(ge=0)


class OrderCreate(ApiModel):
    # Пустой список проверяет движок заказов, чтобы вернуть "No items in order"
    items: list[OrderItemIn] = []
    total_amount: Decimal = Field(ge=0)
    payment_method: PaymentMethod
    shipping_address: str
    reference_number: str | None = None
    receipt_image: str | None = None


class StatusUpdate(ApiModel):
    status: OrderStatus


class PaymentProofIn(ApiModel):
    reference_number: str
    receipt_image: str


class VerifyPaymentIn(ApiModel):
    is_verified: bool


class ReviewIn(ApiModel):
    rating: int
    comment: str | None = None
    images: list[str] = []


class ReturnRequestIn(ApiModel):
    reason: str
    proof_images: list[str] = []
    proof_video: str | None = None


class ProductSummary(ApiModel):
    id: int
    name: str
    price: float
    seller_id: int


class CustomerSummary(ApiModel):
    id: int
    name: str
    email: str
    address: str | None = None


class OrderItemOut(ApiModel):
    id: int
    product_id: int | None = None
    quantity: int
    price: float
    product: ProductSummary | None = None


class ReturnRequestOut(ApiModel):
    id: int
    reason: str
    proof_images: list[str] | None = None
    proof_video: str | None = None
    status: ReturnStatus
    requested_at: datetime | None = None


class OrderOut(ApiModel):
    id: int
    customer_id: int
    total_amount: float
    payment_method: PaymentMethod
    status: OrderStatus
    shipping_address: str
    reference_number: str | None = None
    receipt_image: str | None = None
    is_payment_verified: bool
    payment_verified_at: datetime | None = None
    rating: int | None = None
    review_comment: str | None = None
    review_images: list[str] | None = None
    review_created_at: datetime | None = None
    created_at: datetime | None = None
    items: list[OrderItemOut] = []
    customer: CustomerSummary | None = None
    return_request: ReturnRequestOut | None = None


class OrderActionResponse(ApiModel):
    message: str
    order: OrderOut
