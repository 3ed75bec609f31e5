# lumbarong/db/session.py
# Инициализация SQLAlchemy engine и фабрики сессий.
# Поддерживает MySQL (продакшен) и SQLite (тесты/локальная разработка).

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from lumbarong.core.config import settings


def build_engine(url: str, lock_timeout: int = settings.LOCK_TIMEOUT_SECONDS) -> Engine:
    """
    Создаёт engine с ограниченным ожиданием блокировок.

    Для SQLite ожидание задаётся busy timeout драйвера, для MySQL —
    innodb_lock_wait_timeout на каждом новом соединении.
    """
    if url.startswith("sqlite"):
        connect_args = {"check_same_thread": False, "timeout": lock_timeout}
    else:
        connect_args = {}

    # pool_pre_ping полезен для долгоживущих соединений с MySQL
    engine = create_engine(url, connect_args=connect_args, pool_pre_ping=True)

    if engine.dialect.name == "mysql":
        @event.listens_for(engine, "connect")
        def _set_lock_wait_timeout(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute(f"SET SESSION innodb_lock_wait_timeout = {int(lock_timeout)}")
            cursor.close()

    return engine


engine = build_engine(settings.DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
