# lumbarong/main.py
# Точка входа FastAPI. Создание таблиц выполняется при старте с повторными попытками.

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from starlette.exceptions import HTTPException as StarletteHTTPException

from lumbarong.api import admin as admin_router
from lumbarong.api import auth as auth_router
from lumbarong.api import notifications as notifications_router
from lumbarong.api import orders as orders_router
from lumbarong.api import products as products_router
from lumbarong.api import realtime as realtime_router
from lumbarong.api import wishlist as wishlist_router
from lumbarong.core.config import settings
from lumbarong.core.errors import MarketplaceError
from lumbarong.db.base import Base
from lumbarong.db.session import engine

# Импорт моделей, чтобы SQLAlchemy видел их определения
import lumbarong.models.user
import lumbarong.models.product
import lumbarong.models.order
import lumbarong.models.notification
import lumbarong.models.wishlist

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


def try_create_tables(retries: int = 5, delay: int = 2) -> bool:
    """
    Пытаемся создать таблицы с повторными попытками.
    Если БД недоступна, логируем ошибку и пробуем снова.

    Returns:
        True если таблицы созданы/существуют, False если все попытки исчерпаны
    """
    for attempt in range(1, retries + 1):
        try:
            logger.info(f"Попытка создания таблиц ({attempt}/{retries})...")
            Base.metadata.create_all(bind=engine)
            logger.info("✅ Database tables created (or already exist).")
            return True
        except Exception as e:
            logger.warning(f"❌ Attempt {attempt}/{retries} failed to create tables: {e}")
            if attempt < retries:
                time.sleep(delay)
    logger.error(f"❌ Could not create tables after {retries} retries.")
    return False


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("🚀 LumBarong API starting up...")
    settings.validate()
    if not try_create_tables(retries=5, delay=2):
        if settings.is_production:
            raise RuntimeError("Cannot start application: database tables creation failed")
        logger.error("⚠️ Failed to create database tables. Application may not work correctly.")

    yield

    logger.info("🛑 LumBarong API shutting down...")
    engine.dispose()


app = FastAPI(
    title="LumBarong API",
    description="Marketplace API: artisan sellers, customers and the admin console",
    version="1.0.0",
    lifespan=lifespan,
)

if settings.ENVIRONMENT == "development":
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
else:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
        allow_headers=["Content-Type", "Authorization", "x-auth-token"],
    )

app.include_router(auth_router.router, prefix="/api/v1/auth", tags=["auth"])
app.include_router(products_router.router, prefix="/api/v1/products", tags=["products"])
app.include_router(orders_router.router, prefix="/api/v1/orders", tags=["orders"])
app.include_router(notifications_router.router, prefix="/api/v1/notifications", tags=["notifications"])
app.include_router(wishlist_router.router, prefix="/api/v1/wishlist", tags=["wishlist"])
app.include_router(admin_router.router, prefix="/api/v1/admin", tags=["admin"])
app.include_router(realtime_router.router, tags=["realtime"])


@app.get("/", tags=["health"])
async def root():
    return {"status": "ok", "service": "LumBarong API", "environment": settings.ENVIRONMENT}


@app.get("/api/v1/health", tags=["health"])
def health():
    """Проверка соединения с БД."""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"Health check failed: {e}")
        return JSONResponse(status_code=503, content={"status": "Error", "database": "Disconnected"})
    return {"status": "OK", "database": "Connected"}


@app.exception_handler(MarketplaceError)
async def marketplace_error_handler(request: Request, exc: MarketplaceError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"message": str(exc.detail)}, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Ошибки схемы запроса — 400 с перечнем полей."""
    fields = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        fields.append(f"{location}: {error.get('msg')}" if location else error.get("msg", "invalid"))
    return JSONResponse(status_code=400, content={"message": "; ".join(fields) or "Invalid request"})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(status_code=500, content={"message": "Internal server error"})


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "lumbarong.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.ENVIRONMENT == "development",
        log_level=settings.LOG_LEVEL.lower(),
    )
