# lumbarong/models/order.py
# Модели Order, OrderItem и ReturnRequest: сумма заказа, статус, оплата, отзыв и возврат.
from sqlalchemy import Column, Integer, ForeignKey, Numeric, DateTime, Enum, Text, String, Boolean, JSON, CheckConstraint
from sqlalchemy.orm import relationship
from datetime import datetime
from lumbarong.db.base import Base
import enum

class OrderStatus(str, enum.Enum):
    pending = "Pending"
    processing = "Processing"
    to_ship = "To Ship"
    shipped = "Shipped"
    to_be_delivered = "To Be Delivered"
    delivered = "Delivered"
    completed = "Completed"
    cancellation_requested = "Cancellation Requested"
    cancelled = "Cancelled"
    return_requested = "Return Requested"

class PaymentMethod(str, enum.Enum):
    gcash = "GCash"
    cash_on_delivery = "COD"

class ReturnStatus(str, enum.Enum):
    pending = "Pending"
    approved = "Approved"
    rejected = "Rejected"

class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    # Снимок суммы на момент оформления, позже не пересчитывается
    total_amount = Column(Numeric(10, 2), nullable=False)
    payment_method = Column(Enum(PaymentMethod), nullable=False)
    status = Column(Enum(OrderStatus), default=OrderStatus.pending, nullable=False, index=True)
    shipping_address = Column(Text, nullable=False)

    reference_number = Column(String(255), nullable=True)
    receipt_image = Column(String(1024), nullable=True)
    is_payment_verified = Column(Boolean, default=False, nullable=False)
    payment_verified_at = Column(DateTime, nullable=True)

    rating = Column(Integer, nullable=True)
    review_comment = Column(Text, nullable=True)
    review_images = Column(JSON, nullable=True)
    review_created_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    customer = relationship("User")
    items = relationship("OrderItem", back_populates="order", order_by="OrderItem.id")
    return_request = relationship("ReturnRequest", back_populates="order", uselist=False)

class OrderItem(Base):
    __tablename__ = "order_items"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_order_items_quantity_positive"),
    )

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    # NULL, если товар удалён из каталога: история заказа сохраняется
    product_id = Column(Integer, ForeignKey("products.id", ondelete="SET NULL"), nullable=True, index=True)
    quantity = Column(Integer, nullable=False)
    # Цена за единицу на момент заказа
    price = Column(Numeric(10, 2), nullable=False)

    order = relationship("Order", back_populates="items")
    product = relationship("Product")

class ReturnRequest(Base):
    __tablename__ = "return_requests"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, unique=True)
    reason = Column(Text, nullable=False)
    proof_images = Column(JSON, nullable=True)
    proof_video = Column(String(1024), nullable=True)
    status = Column(Enum(ReturnStatus), default=ReturnStatus.pending, nullable=False)
    requested_at = Column(DateTime, default=datetime.utcnow)

    order = relationship("Order", back_populates="return_request")
