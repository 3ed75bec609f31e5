# lumbarong/api/wishlist.py
# Список желаний: просматривать может любой вошедший, менять — только покупатель.
from fastapi import APIRouter, Depends, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from lumbarong.core.errors import BusinessRuleError, NotFoundError
from lumbarong.core.security import Principal, get_db, require_roles
from lumbarong.models.product import Product
from lumbarong.models.user import RoleEnum
from lumbarong.models.wishlist import WishlistItem
from lumbarong.schemas.catalog import WishlistAdd, WishlistAddResponse, WishlistItemOut
from lumbarong.schemas.common import MessageResponse

router = APIRouter()

customer_only = require_roles(RoleEnum.customer)
any_role = require_roles(RoleEnum.customer, RoleEnum.seller, RoleEnum.admin)


@router.get("", response_model=list[WishlistItemOut])
def get_wishlist(principal: Principal = Depends(any_role), db: Session = Depends(get_db)):
    query = (
        select(WishlistItem)
        .options(selectinload(WishlistItem.product))
        .where(WishlistItem.user_id == principal.user_id)
        .order_by(WishlistItem.id)
    )
    return db.execute(query).scalars().all()


@router.post("", response_model=WishlistAddResponse, status_code=status.HTTP_201_CREATED)
def add_to_wishlist(
    payload: WishlistAdd,
    principal: Principal = Depends(customer_only),
    db: Session = Depends(get_db),
):
    if db.get(Product, payload.product_id) is None:
        raise NotFoundError("Product not found")
    existing = db.execute(
        select(WishlistItem).where(
            WishlistItem.user_id == principal.user_id, WishlistItem.product_id == payload.product_id
        )
    ).scalar_one_or_none()
    if existing is not None:
        raise BusinessRuleError("Product already in wishlist")

    item = WishlistItem(user_id=principal.user_id, product_id=payload.product_id)
    db.add(item)
    try:
        db.commit()
    except IntegrityError:
        # Параллельный запрос успел добавить ту же пару
        db.rollback()
        raise BusinessRuleError("Product already in wishlist")
    db.refresh(item)
    return {"message": "Added to wishlist", "item": item}


@router.delete("/{product_id}", response_model=MessageResponse)
def remove_from_wishlist(
    product_id: int,
    principal: Principal = Depends(customer_only),
    db: Session = Depends(get_db),
):
    item = db.execute(
        select(WishlistItem).where(WishlistItem.user_id == principal.user_id, WishlistItem.product_id == product_id)
    ).scalar_one_or_none()
    if item is None:
        raise NotFoundError("Item not found in wishlist")
    db.delete(item)
    db.commit()
    return {"message": "Removed from wishlist"}
