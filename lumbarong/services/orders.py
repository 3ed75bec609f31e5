# lumbarong/services/orders.py
# Движок заказов: резервирование остатков при оформлении, машина состояний заказа,
# оплата, отзыв и возврат. Все проверки выполняются до изменений; уведомления и
# realtime-события отправляются после commit и не влияют на результат операции.

import logging
from collections import defaultdict
from contextlib import contextmanager
from datetime import datetime

from sqlalchemy import select, update, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from lumbarong.core.errors import (
    MarketplaceError,
    ValidationFault,
    BusinessRuleError,
    InsufficientStockError,
    InvalidTransitionError,
    AuthorizationError,
    NotFoundError,
    PersistenceError,
)
from lumbarong.core.security import Principal
from lumbarong.models.notification import NotificationType
from lumbarong.models.order import Order, OrderItem, OrderStatus, ReturnRequest, ReturnStatus
from lumbarong.models.product import Product
from lumbarong.models.user import RoleEnum
from lumbarong.schemas.order import OrderCreate
from lumbarong.services.notifications import NotificationSink, EventBroadcaster, DASHBOARD_UPDATE

logger = logging.getLogger(__name__)

# Отмена невозможна, как только заказ отправлен
CANCEL_LOCKED = {OrderStatus.shipped, OrderStatus.delivered, OrderStatus.completed}

CANCEL_REQUEST_LOCKED = {
    OrderStatus.shipped,
    OrderStatus.to_be_delivered,
    OrderStatus.delivered,
    OrderStatus.completed,
    OrderStatus.return_requested,
}

# Прямые записи статуса (PUT /orders/{id}/status)
ALLOWED_TRANSITIONS: dict[OrderStatus, set[OrderStatus]] = {
    OrderStatus.pending: {OrderStatus.processing, OrderStatus.cancelled},
    OrderStatus.processing: {OrderStatus.to_ship, OrderStatus.cancelled},
    OrderStatus.to_ship: {OrderStatus.shipped, OrderStatus.cancelled},
    OrderStatus.shipped: {OrderStatus.to_be_delivered, OrderStatus.delivered},
    OrderStatus.to_be_delivered: {OrderStatus.delivered},
    OrderStatus.cancellation_requested: {
        OrderStatus.cancelled,
        OrderStatus.pending,
        OrderStatus.processing,
        OrderStatus.to_ship,
    },
}

RETURNABLE = {OrderStatus.delivered, OrderStatus.completed}


class OrderService:
    """
    Операции над заказами от имени аутентифицированного Principal.

    Экземпляр живёт один запрос: сессия БД, приёмник уведомлений и
    broadcaster передаются снаружи (см. lumbarong/api/deps.py).
    """

    def __init__(self, db: Session, notifier: NotificationSink, broadcaster: EventBroadcaster):
        self.db = db
        self.notifier = notifier
        self.broadcaster = broadcaster

    # --- Чтение ---

    @staticmethod
    def _detail_query():
        """Заказ -> позиции -> товар, покупатель и заявка на возврат одним набором запросов."""
        return select(Order).options(
            selectinload(Order.items).selectinload(OrderItem.product),
            selectinload(Order.customer),
            selectinload(Order.return_request),
        )

    def get_order_detail(self, order_id: int) -> Order:
        order = self.db.execute(
            self._detail_query().where(Order.id == order_id).execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if order is None:
            raise NotFoundError("Order not found")
        return order

    def get_order_for(self, principal: Principal, order_id: int) -> Order:
        order = self.get_order_detail(order_id)
        if principal.is_customer and order.customer_id != principal.user_id:
            raise AuthorizationError("Unauthorized")
        return order

    def list_orders_for(self, principal: Principal) -> list[Order]:
        """
        Покупатель видит свои заказы; продавец — заказы со своими товарами
        и заказы, где он сам покупатель; администратор — все.
        """
        query = self._detail_query()
        if principal.role == RoleEnum.customer:
            query = query.where(Order.customer_id == principal.user_id)
        elif principal.role == RoleEnum.seller:
            seller_order_ids = (
                select(OrderItem.order_id)
                .join(Product, Product.id == OrderItem.product_id)
                .where(Product.seller_id == principal.user_id)
            )
            query = query.where(or_(Order.customer_id == principal.user_id, Order.id.in_(seller_order_ids)))
        query = query.order_by(Order.created_at.desc(), Order.id.desc())
        return list(self.db.execute(query).scalars().all())

    # --- Оформление заказа ---

    def create_order(self, principal: Principal, payload: OrderCreate) -> Order:
        """
        Резервирует остатки по всем позициям и создаёт заказ в одной транзакции.

        Строки товаров блокируются (SELECT ... FOR UPDATE) по возрастанию id до
        любых изменений; если хотя бы одного товара нет или не хватает остатка,
        транзакция откатывается целиком.
        """
        if not payload.items:
            raise ValidationFault("No items in order")
        if not payload.shipping_address or not payload.shipping_address.strip():
            raise ValidationFault("Shipping address is required")

        # Повторяющиеся позиции одного товара резервируются суммарно
        requested: dict[int, int] = defaultdict(int)
        for item in payload.items:
            requested[item.product] += item.quantity
        product_ids = sorted(requested)

        with self._unit_of_work("create order"):
            products = self._lock_products(product_ids)
            for product_id in product_ids:
                product = products.get(product_id)
                if product is None or product.stock < requested[product_id]:
                    raise InsufficientStockError(product_id, product.name if product else None)

            for product_id in product_ids:
                self._decrement_stock(products[product_id], requested[product_id])

            # Цена и сумма от клиента сохраняются как есть, без сверки с каталогом
            order = Order(
                customer_id=principal.user_id,
                total_amount=payload.total_amount,
                payment_method=payload.payment_method,
                shipping_address=payload.shipping_address,
                reference_number=payload.reference_number,
                receipt_image=payload.receipt_image,
                is_payment_verified=False,
                status=OrderStatus.pending,
            )
            order.items = [
                OrderItem(product_id=item.product, quantity=item.quantity, price=item.price)
                for item in payload.items
            ]
            self.db.add(order)
            self.db.flush()
            order_id = order.id

            by_seller: dict[int, list[str]] = defaultdict(list)
            for product_id in product_ids:
                product = products[product_id]
                by_seller[product.seller_id].append(product.name)

        logger.info(f"Order {order_id} created by customer {principal.user_id} ({len(payload.items)} lines)")

        for seller_id, names in by_seller.items():
            self._notify(seller_id, f"New order received for {', '.join(names)}", NotificationType.order)
        self._notify(principal.user_id, "Your order has been placed successfully. Mabuhay!", NotificationType.order)
        self._broadcast()

        return self.get_order_detail(order_id)

    def _lock_products(self, product_ids: list[int]) -> dict[int, Product]:
        rows = self.db.execute(
            select(Product)
            .where(Product.id.in_(product_ids))
            .order_by(Product.id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalars().all()
        return {product.id: product for product in rows}

    def _decrement_stock(self, product: Product, quantity: int) -> None:
        # Условие stock >= quantity защищает от перепродажи и там, где нет блокировок строк
        result = self.db.execute(
            update(Product)
            .where(Product.id == product.id, Product.stock >= quantity)
            .values(stock=Product.stock - quantity)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise InsufficientStockError(product.id, product.name)

    def _restore_stock(self, order: Order) -> None:
        """Возвращает на склад количество каждой позиции; отсутствующие товары пропускаются."""
        restored: dict[int, int] = defaultdict(int)
        for item in order.items:
            if item.product_id is None:
                logger.warning(f"Order {order.id}: item {item.id} refers to a removed product, stock not restored")
                continue
            restored[item.product_id] += item.quantity
        if not restored:
            return

        products = self._lock_products(sorted(restored))
        for product_id in sorted(restored):
            if product_id not in products:
                logger.warning(f"Order {order.id}: product {product_id} no longer exists, stock not restored")
                continue
            self.db.execute(
                update(Product)
                .where(Product.id == product_id)
                .values(stock=Product.stock + restored[product_id])
                .execution_options(synchronize_session=False)
            )

    # --- Машина состояний ---

    def update_order_status(self, principal: Principal, order_id: int, new_status: OrderStatus) -> Order:
        """
        Прямая запись статуса. Покупатель может только отменить свой заказ;
        переход в Cancelled возвращает остатки в той же транзакции (ровно один раз).
        """
        if principal.is_customer and new_status != OrderStatus.cancelled:
            raise AuthorizationError("Not authorized")

        with self._unit_of_work("update order status"):
            order = self._get_order_locked(order_id)
            if principal.is_customer and order.customer_id != principal.user_id:
                raise AuthorizationError("Not authorized")

            current = order.status
            if new_status == OrderStatus.cancelled and current in CANCEL_LOCKED:
                raise BusinessRuleError("Cannot cancel. Order is already on the way or completed.")
            if new_status != current and new_status not in ALLOWED_TRANSITIONS.get(current, set()):
                raise InvalidTransitionError(current.value, new_status.value)

            if new_status != current:
                self._set_status(order, current, new_status)
                if new_status == OrderStatus.cancelled:
                    self._restore_stock(order)
            customer_id = order.customer_id

        logger.info(f"Order {order_id}: {current.value} -> {new_status.value} by {principal.role.value} {principal.user_id}")
        self._notify(customer_id, f"Your order status has been updated to: {new_status.value}", NotificationType.order)
        self._broadcast()
        return self.get_order_detail(order_id)

    def request_cancellation(self, principal: Principal, order_id: int) -> Order:
        """Заявка покупателя на отмену. Остатки возвращаются только после одобрения продавцом."""
        with self._unit_of_work("request cancellation"):
            order = self._get_order_locked(order_id)
            self._require_owner(order, principal, "Not authorized")
            if order.status in CANCEL_REQUEST_LOCKED:
                raise BusinessRuleError("Order cannot be cancelled once it has been shipped.")
            if order.status == OrderStatus.cancelled:
                raise BusinessRuleError("Order is already cancelled.")
            if order.status != OrderStatus.cancellation_requested:
                self._set_status(order, order.status, OrderStatus.cancellation_requested)

        logger.info(f"Order {order_id}: cancellation requested by customer {principal.user_id}")
        self._notify_sellers(order_id, "Cancellation requested for an order", NotificationType.order)
        return self.get_order_detail(order_id)

    def complete_order(self, principal: Principal, order_id: int) -> Order:
        """Покупатель подтверждает получение: Delivered -> Completed."""
        with self._unit_of_work("complete order"):
            order = self._get_order_locked(order_id)
            self._require_owner(order, principal, "Not authorized")
            if order.status != OrderStatus.delivered:
                raise BusinessRuleError("Order must be delivered before marking as completed")
            self._set_status(order, OrderStatus.delivered, OrderStatus.completed)

        logger.info(f"Order {order_id} completed by customer {principal.user_id}")
        self._broadcast()
        return self.get_order_detail(order_id)

    # --- Оплата ---

    def submit_payment_proof(self, principal: Principal, order_id: int,
                             reference_number: str, receipt_image: str) -> Order:
        if not reference_number or not receipt_image:
            raise ValidationFault("referenceNumber and receiptImage are required")

        with self._unit_of_work("submit payment proof"):
            order = self._get_order_locked(order_id)
            self._require_owner(order, principal, "Unauthorized")
            order.reference_number = reference_number
            order.receipt_image = receipt_image
            order.is_payment_verified = False
            order.payment_verified_at = None

        logger.info(f"Order {order_id}: payment proof submitted")
        self._notify_sellers(order_id, "Payment proof submitted for an order", NotificationType.order)
        return self.get_order_detail(order_id)

    def verify_payment(self, principal: Principal, order_id: int, is_verified: bool) -> Order:
        """
        Продавец/администратор подтверждает или отклоняет оплату.
        Подтверждение переводит ожидающий заказ в Processing.
        """
        if principal.is_customer:
            raise AuthorizationError("Unauthorized")

        with self._unit_of_work("verify payment"):
            order = self._get_order_locked(order_id)
            order.is_payment_verified = is_verified
            order.payment_verified_at = datetime.utcnow() if is_verified else None
            if is_verified and order.status == OrderStatus.pending:
                self._set_status(order, OrderStatus.pending, OrderStatus.processing)
            customer_id = order.customer_id
            method = order.payment_method.value

        status_msg = "verified" if is_verified else "rejected"
        logger.info(f"Order {order_id}: payment {status_msg} by {principal.role.value} {principal.user_id}")
        self._notify(customer_id, f"Your {method} payment has been {status_msg}.", NotificationType.order)
        return self.get_order_detail(order_id)

    # --- Отзыв и возврат ---

    def submit_review(self, principal: Principal, order_id: int, rating: int,
                      comment: str | None, images: list[str] | None) -> Order:
        with self._unit_of_work("submit review"):
            order = self._get_order_locked(order_id)
            self._require_owner(order, principal, "Unauthorized")
            if order.status != OrderStatus.completed:
                raise BusinessRuleError("Order must be completed before rating")
            if not 1 <= rating <= 5:
                raise ValidationFault("Rating must be between 1 and 5")
            order.rating = rating
            order.review_comment = comment
            order.review_images = list(images or [])
            order.review_created_at = datetime.utcnow()

        logger.info(f"Order {order_id} rated {rating}")
        self._notify_sellers(order_id, "An order has been rated and completed!", NotificationType.review)
        return self.get_order_detail(order_id)

    def submit_return_request(self, principal: Principal, order_id: int, reason: str,
                              proof_images: list[str] | None, proof_video: str | None = None) -> Order:
        if not reason or not reason.strip():
            raise ValidationFault("Reason is required")

        with self._unit_of_work("submit return request"):
            order = self._get_order_locked(order_id)
            self._require_owner(order, principal, "Unauthorized")
            if order.status not in RETURNABLE:
                raise BusinessRuleError("Return can only be requested for delivered items")
            if order.return_request is not None:
                raise BusinessRuleError("A return has already been requested for this order")
            self.db.add(ReturnRequest(
                order_id=order.id,
                reason=reason,
                proof_images=list(proof_images or []),
                proof_video=proof_video,
                status=ReturnStatus.pending,
                requested_at=datetime.utcnow(),
            ))
            self._set_status(order, order.status, OrderStatus.return_requested)

        logger.info(f"Order {order_id}: return requested by customer {principal.user_id}")
        self._notify_sellers(order_id, "Return requested for an order", NotificationType.order)
        return self.get_order_detail(order_id)

    # --- Служебное ---

    @contextmanager
    def _unit_of_work(self, action: str):
        """Commit при успехе; откат при любой ошибке, сбои БД превращаются в PersistenceError."""
        try:
            yield
            self.db.commit()
        except MarketplaceError as e:
            self.db.rollback()
            logger.info(f"{action} rejected: {e.message}")
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.warning(f"{action} rolled back: {e}")
            raise PersistenceError() from e

    def _get_order_locked(self, order_id: int) -> Order:
        order = self.db.execute(
            select(Order)
            .where(Order.id == order_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if order is None:
            raise NotFoundError("Order not found")
        return order

    def _set_status(self, order: Order, expected: OrderStatus, new_status: OrderStatus) -> None:
        # compare-and-set: конкурирующий запрос, изменивший статус раньше, выигрывает
        result = self.db.execute(
            update(Order)
            .where(Order.id == order.id, Order.status == expected)
            .values(status=new_status, updated_at=datetime.utcnow())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise PersistenceError("Order was modified concurrently, please retry the request")

    @staticmethod
    def _require_owner(order: Order, principal: Principal, message: str) -> None:
        if order.customer_id != principal.user_id:
            raise AuthorizationError(message)

    def _notify(self, user_id: int, message: str, type: NotificationType) -> None:
        try:
            self.notifier.send(user_id, message, type)
        except Exception:
            logger.error(f"Notification to {user_id} failed", exc_info=True)

    def _notify_sellers(self, order_id: int, message: str, type: NotificationType) -> None:
        try:
            seller_ids = self.db.execute(
                select(Product.seller_id)
                .join(OrderItem, OrderItem.product_id == Product.id)
                .where(OrderItem.order_id == order_id)
                .distinct()
            ).scalars().all()
        except SQLAlchemyError:
            logger.error(f"Could not resolve sellers of order {order_id}", exc_info=True)
            return
        for seller_id in seller_ids:
            self._notify(seller_id, message, type)

    def _broadcast(self) -> None:
        try:
            self.broadcaster.publish(DASHBOARD_UPDATE)
        except Exception:
            logger.error("Dashboard broadcast failed", exc_info=True)
