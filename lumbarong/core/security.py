# lumbarong/core/security.py
# Хеширование паролей, выпуск и проверка JWT, зависимости FastAPI для сессии БД и ролей.
from dataclasses import dataclass
from datetime import datetime, timedelta

from fastapi import Depends, Header
from fastapi.security import OAuth2PasswordBearer
from jose import jwt, JWTError
from passlib.context import CryptContext

from lumbarong.core.config import settings
from lumbarong.core.errors import AuthenticationError, AuthorizationError
from lumbarong.db.session import SessionLocal
from lumbarong.models.user import RoleEnum

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login", auto_error=False)


@dataclass(frozen=True)
class Principal:
    """Аутентифицированный вызывающий: id пользователя и его роль из токена."""

    user_id: int
    role: RoleEnum

    @property
    def is_customer(self) -> bool:
        return self.role == RoleEnum.customer


def get_password_hash(password: str) -> str:
    """Хешируем пароль для хранения в БД."""
    return pwd_context.hash(password)

def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Проверяем пароль при логине."""
    return pwd_context.verify(plain_password, hashed_password)

def create_access_token(subject: str, role: str, expires_delta: timedelta | None = None) -> str:
    """Создаём JWT токен с полями sub (id пользователя) и role."""
    to_encode = {"sub": str(subject), "role": str(role)}
    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

def decode_access_token(token: str) -> Principal:
    """Разбирает токен в Principal или бросает AuthenticationError."""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        user_id = payload.get("sub")
        role = payload.get("role")
        if user_id is None or role is None:
            raise AuthenticationError("Token is not valid")
        return Principal(user_id=int(user_id), role=RoleEnum(role))
    except (JWTError, ValueError):
        raise AuthenticationError("Token is not valid")

def get_db():
    """Зависимость для получения сессии БД в эндпоинтах."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def get_current_principal(
    token: str | None = Depends(oauth2_scheme),
    x_auth_token: str | None = Header(default=None),
) -> Principal:
    """Возвращает вызывающего по Bearer-токену (или заголовку x-auth-token), иначе 401."""
    token = x_auth_token or token
    if not token:
        raise AuthenticationError("No token, authorization denied")
    return decode_access_token(token)

def require_roles(*roles: RoleEnum):
    """Фабрика зависимости: пропускает только перечисленные роли."""
    def _checker(principal: Principal = Depends(get_current_principal)) -> Principal:
        if principal.role not in roles:
            raise AuthorizationError("Access denied: Unauthorized role")
        return principal
    return _checker
