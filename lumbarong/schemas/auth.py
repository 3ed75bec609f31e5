# lumbarong/schemas/auth.py
# Схемы регистрации и логина.
from pydantic import Field

from lumbarong.models.user import RoleEnum
from lumbarong.schemas.common import ApiModel

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class RegisterRequest(ApiModel):
    name: str = Field(min_length=1)
    email: str = Field(pattern=EMAIL_PATTERN)
    password: str = Field(min_length=6)
    role: RoleEnum | None = None
    shop_name: str | None = None
    address: str | None = None


class LoginRequest(ApiModel):
    email: str = Field(pattern=EMAIL_PATTERN)
    password: str = Field(min_length=1)


class UserOut(ApiModel):
    id: int
    name: str
    email: str
    role: RoleEnum
    is_verified: bool


class TokenResponse(ApiModel):
    token: str
    user: UserOut


class CreateSellerRequest(ApiModel):
    name: str = Field(min_length=1)
    email: str = Field(pattern=EMAIL_PATTERN)
    password: str = Field(min_length=6)
    shop_name: str | None = None
    address: str | None = None


class SellerOut(UserOut):
    shop_name: str | None = None
    product_count: int = 0


class SellerCreatedResponse(ApiModel):
    message: str
    seller: SellerOut
