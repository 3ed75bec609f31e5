# lumbarong/models/user.py
# Модель пользователя: email, hashed_password, role, is_verified.
from sqlalchemy import Column, Integer, String, Boolean, DateTime, Enum
from datetime import datetime
from lumbarong.db.base import Base
import enum

class RoleEnum(str, enum.Enum):
    customer = "customer"
    seller = "seller"
    admin = "admin"

class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    role = Column(Enum(RoleEnum), default=RoleEnum.customer, nullable=False)
    # Покупатели подтверждены сразу, продавцы ждут одобрения администратора
    is_verified = Column(Boolean, default=False, nullable=False)
    shop_name = Column(String(255), nullable=True)
    address = Column(String(512), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
