# lumbarong/api/auth.py
# Роуты для регистрации и получения JWT токена, администрирование продавцов.
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.orm import Session
from datetime import timedelta

from lumbarong.core import security
from lumbarong.core.config import settings
from lumbarong.core.errors import NotFoundError
from lumbarong.models.product import Product
from lumbarong.models.user import User, RoleEnum
from lumbarong.schemas.auth import (
    CreateSellerRequest,
    LoginRequest,
    RegisterRequest,
    SellerCreatedResponse,
    SellerOut,
    TokenResponse,
)
from lumbarong.schemas.common import MessageResponse

logger = logging.getLogger(__name__)

router = APIRouter()

admin_only = security.require_roles(RoleEnum.admin)

def _issue_token(user: User) -> str:
    access_token_expires = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    return security.create_access_token(
        subject=str(user.id), role=user.role.value, expires_delta=access_token_expires
    )

@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
def register(payload: RegisterRequest, db: Session = Depends(security.get_db)):
    """
    Регистрация пользователя: email + password.
    Роль seller только по явному запросу, иначе customer.
    Покупатели подтверждены сразу, продавцы ждут одобрения администратора.
    """
    existing = db.query(User).filter(User.email == payload.email).first()
    if existing:
        raise HTTPException(status_code=400, detail="User already exists")
    role = RoleEnum.seller if payload.role == RoleEnum.seller else RoleEnum.customer
    user = User(
        name=payload.name,
        email=payload.email,
        hashed_password=security.get_password_hash(payload.password),
        role=role,
        is_verified=role == RoleEnum.customer,
        shop_name=payload.shop_name if role == RoleEnum.seller else None,
        address=payload.address,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return {"token": _issue_token(user), "user": user}

@router.post("/login", response_model=TokenResponse)
def login(payload: LoginRequest, db: Session = Depends(security.get_db)):
    """Логин: возвращает token (JWT) и профиль пользователя."""
    user = db.query(User).filter(User.email == payload.email).first()
    if not user or not security.verify_password(payload.password, user.hashed_password):
        raise HTTPException(status_code=400, detail="Invalid credentials")
    return {"token": _issue_token(user), "user": user}

def _seller_out(user: User, product_count: int = 0) -> SellerOut:
    seller = SellerOut.model_validate(user)
    seller.product_count = product_count
    return seller

def _get_seller(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if user is None or user.role != RoleEnum.seller:
        raise NotFoundError("Seller not found")
    return user

@router.get("/sellers", response_model=list[SellerOut])
def list_sellers(
    verified: bool | None = None,
    principal: security.Principal = Depends(admin_only),
    db: Session = Depends(security.get_db),
):
    """Продавцы с числом товаров; ?verified=false — очередь на одобрение."""
    product_count = (
        select(Product.seller_id, func.count(Product.id).label("total"))
        .group_by(Product.seller_id)
        .subquery()
    )
    query = (
        select(User, func.coalesce(product_count.c.total, 0))
        .outerjoin(product_count, product_count.c.seller_id == User.id)
        .where(User.role == RoleEnum.seller)
        .order_by(User.id)
    )
    if verified is not None:
        query = query.where(User.is_verified == verified)
    return [_seller_out(user, total) for user, total in db.execute(query).all()]

@router.post("/create-seller", response_model=SellerCreatedResponse, status_code=status.HTTP_201_CREATED)
def create_seller(
    payload: CreateSellerRequest,
    principal: security.Principal = Depends(admin_only),
    db: Session = Depends(security.get_db),
):
    """Продавец, заведённый администратором, подтверждён сразу."""
    if db.query(User).filter(User.email == payload.email).first():
        raise HTTPException(status_code=400, detail="Email already registered")
    seller = User(
        name=payload.name,
        email=payload.email,
        hashed_password=security.get_password_hash(payload.password),
        role=RoleEnum.seller,
        is_verified=True,
        shop_name=payload.shop_name,
        address=payload.address,
    )
    db.add(seller)
    db.commit()
    db.refresh(seller)
    logger.info(f"Seller {seller.id} created by admin {principal.user_id}")
    return {"message": "Seller created successfully", "seller": _seller_out(seller)}

@router.put("/approve-seller/{user_id}", response_model=MessageResponse)
def approve_seller(
    user_id: int,
    principal: security.Principal = Depends(admin_only),
    db: Session = Depends(security.get_db),
):
    seller = _get_seller(db, user_id)
    seller.is_verified = True
    db.commit()
    logger.info(f"Seller {user_id} approved by admin {principal.user_id}")
    return {"message": "Seller approved successfully"}

@router.put("/revoke-seller/{user_id}", response_model=MessageResponse)
def revoke_seller(
    user_id: int,
    principal: security.Principal = Depends(admin_only),
    db: Session = Depends(security.get_db),
):
    seller = _get_seller(db, user_id)
    seller.is_verified = False
    db.commit()
    logger.info(f"Seller {user_id} verification revoked by admin {principal.user_id}")
    return {"message": "Seller verification revoked successfully"}
