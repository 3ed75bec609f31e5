# lumbarong/api/products.py
# Каталог: список и карточка товара, создание, правка и удаление товара продавцом, ручная правка остатка.
from fastapi import APIRouter, Depends, status
from sqlalchemy import select, or_
from sqlalchemy.orm import Session

from lumbarong.core.errors import AuthorizationError, NotFoundError
from lumbarong.core.security import Principal, get_db, require_roles
from lumbarong.models.product import Product
from lumbarong.models.user import RoleEnum, User
from lumbarong.schemas.catalog import ProductCreate, ProductOut, ProductUpdate, StockUpdate
from lumbarong.schemas.common import MessageResponse
from lumbarong.services.catalog import remove_product

router = APIRouter()

staff_only = require_roles(RoleEnum.seller, RoleEnum.admin)


@router.get("", response_model=list[ProductOut])
def list_products(
    seller: int | None = None,
    category: str | None = None,
    search: str | None = None,
    db: Session = Depends(get_db),
):
    query = select(Product)
    if seller is not None:
        query = query.where(Product.seller_id == seller)
    if category:
        query = query.where(Product.category == category)
    if search:
        pattern = f"%{search}%"
        query = query.where(or_(Product.name.like(pattern), Product.description.like(pattern)))
    return db.execute(query.order_by(Product.id)).scalars().all()


@router.get("/{product_id}", response_model=ProductOut)
def get_product(product_id: int, db: Session = Depends(get_db)):
    product = db.get(Product, product_id)
    if product is None:
        raise NotFoundError("Product not found")
    return product


@router.post("", response_model=ProductOut, status_code=status.HTTP_201_CREATED)
def create_product(
    payload: ProductCreate,
    principal: Principal = Depends(staff_only),
    db: Session = Depends(get_db),
):
    """Неподтверждённый продавец не может выставлять товары."""
    user = db.get(User, principal.user_id)
    if user is None:
        raise AuthorizationError("Artisan permissions required to showcase work.")
    if user.role == RoleEnum.seller and not user.is_verified:
        raise AuthorizationError("Your shop is pending approval. You cannot list products yet.")
    product = Product(seller_id=principal.user_id, **payload.model_dump())
    db.add(product)
    db.commit()
    db.refresh(product)
    return product


def _get_owned_product(db: Session, product_id: int, principal: Principal) -> Product:
    """Товар, который вправе менять вызывающий: его владелец или администратор."""
    product = db.get(Product, product_id, with_for_update=True)
    if product is None:
        raise NotFoundError("Product not found")
    if product.seller_id != principal.user_id and principal.role != RoleEnum.admin:
        raise AuthorizationError("Not authorized")
    return product


@router.patch("/{product_id}/stock", response_model=ProductOut)
def update_stock(
    product_id: int,
    payload: StockUpdate,
    principal: Principal = Depends(staff_only),
    db: Session = Depends(get_db),
):
    product = _get_owned_product(db, product_id, principal)
    product.stock = payload.stock
    db.commit()
    db.refresh(product)
    return product


@router.put("/{product_id}", response_model=ProductOut)
def update_product(
    product_id: int,
    payload: ProductUpdate,
    principal: Principal = Depends(staff_only),
    db: Session = Depends(get_db),
):
    """Меняются только переданные поля."""
    product = _get_owned_product(db, product_id, principal)
    for field, value in payload.model_dump(exclude_unset=True).items():
        # null для обязательной колонки означает "не менять"
        if value is None and not Product.__table__.c[field].nullable:
            continue
        setattr(product, field, value)
    db.commit()
    db.refresh(product)
    return product


@router.delete("/{product_id}", response_model=MessageResponse)
def delete_product(
    product_id: int,
    principal: Principal = Depends(staff_only),
    db: Session = Depends(get_db),
):
    product = _get_owned_product(db, product_id, principal)
    remove_product(db, product)
    return {"message": "Product deleted"}
