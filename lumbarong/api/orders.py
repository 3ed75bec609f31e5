# lumbarong/api/orders.py
# Роуты заказов. Роли проверяются зависимостями, правила переходов — в OrderService.
from fastapi import APIRouter, Depends, status

from lumbarong.api.deps import get_order_service
from lumbarong.core.security import Principal, require_roles
from lumbarong.models.user import RoleEnum
from lumbarong.schemas.order import (
    OrderActionResponse,
    OrderCreate,
    OrderOut,
    PaymentProofIn,
    ReturnRequestIn,
    ReviewIn,
    StatusUpdate,
    VerifyPaymentIn,
)
from lumbarong.services.orders import OrderService

router = APIRouter()

customer_only = require_roles(RoleEnum.customer)
staff_only = require_roles(RoleEnum.seller, RoleEnum.admin)
any_role = require_roles(RoleEnum.customer, RoleEnum.seller, RoleEnum.admin)


@router.post("", response_model=OrderOut, status_code=status.HTTP_201_CREATED)
def create_order(
    payload: OrderCreate,
    principal: Principal = Depends(customer_only),
    service: OrderService = Depends(get_order_service),
):
    """Оформление заказа с резервированием остатков."""
    return service.create_order(principal, payload)


@router.get("", response_model=list[OrderOut])
def list_orders(principal: Principal = Depends(any_role), service: OrderService = Depends(get_order_service)):
    return service.list_orders_for(principal)


@router.get("/{order_id}", response_model=OrderOut)
def get_order(
    order_id: int,
    principal: Principal = Depends(any_role),
    service: OrderService = Depends(get_order_service),
):
    return service.get_order_for(principal, order_id)


@router.put("/{order_id}/status", response_model=OrderOut)
def update_order_status(
    order_id: int,
    payload: StatusUpdate,
    principal: Principal = Depends(any_role),
    service: OrderService = Depends(get_order_service),
):
    """Продавец/админ двигают заказ по статусам; покупатель может только отменить свой заказ."""
    return service.update_order_status(principal, order_id, payload.status)


@router.post("/{order_id}/cancel-request", response_model=OrderActionResponse)
def request_cancellation(
    order_id: int,
    principal: Principal = Depends(customer_only),
    service: OrderService = Depends(get_order_service),
):
    order = service.request_cancellation(principal, order_id)
    return {"message": "Cancellation request sent", "order": order}


@router.post("/{order_id}/payment-proof", response_model=OrderActionResponse)
def submit_payment_proof(
    order_id: int,
    payload: PaymentProofIn,
    principal: Principal = Depends(customer_only),
    service: OrderService = Depends(get_order_service),
):
    order = service.submit_payment_proof(principal, order_id, payload.reference_number, payload.receipt_image)
    return {"message": "Payment proof submitted successfully", "order": order}


@router.put("/{order_id}/verify-payment", response_model=OrderActionResponse)
def verify_payment(
    order_id: int,
    payload: VerifyPaymentIn,
    principal: Principal = Depends(staff_only),
    service: OrderService = Depends(get_order_service),
):
    order = service.verify_payment(principal, order_id, payload.is_verified)
    status_msg = "verified" if payload.is_verified else "rejected"
    return {"message": f"Payment {status_msg} successfully", "order": order}


@router.post("/{order_id}/review", response_model=OrderActionResponse)
def submit_review(
    order_id: int,
    payload: ReviewIn,
    principal: Principal = Depends(customer_only),
    service: OrderService = Depends(get_order_service),
):
    order = service.submit_review(principal, order_id, payload.rating, payload.comment, payload.images)
    return {"message": "Review submitted successfully", "order": order}


@router.post("/{order_id}/complete", response_model=OrderActionResponse)
def complete_order(
    order_id: int,
    principal: Principal = Depends(customer_only),
    service: OrderService = Depends(get_order_service),
):
    order = service.complete_order(principal, order_id)
    return {"message": "Order marked as completed", "order": order}


@router.post("/{order_id}/return-request", response_model=OrderActionResponse)
def submit_return_request(
    order_id: int,
    payload: ReturnRequestIn,
    principal: Principal = Depends(customer_only),
    service: OrderService = Depends(get_order_service),
):
    order = service.submit_return_request(
        principal, order_id, payload.reason, payload.proof_images, payload.proof_video
    )
    return {"message": "Return request submitted", "order": order}
