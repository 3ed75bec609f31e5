# lumbarong/services/notifications.py
# Побочные каналы движка заказов: журнал уведомлений и realtime-рассылка для дашбордов.
# Оба вызываются после commit и никогда не роняют родительскую операцию.

import asyncio
import logging
import threading
from typing import Protocol

from fastapi import WebSocket
from sqlalchemy.orm import sessionmaker

from lumbarong.models.notification import Notification, NotificationType

logger = logging.getLogger(__name__)

DASHBOARD_UPDATE = "dashboard_update"


class NotificationSink(Protocol):
    def send(self, user_id: int, message: str, type: NotificationType = NotificationType.system) -> None:
        ...


class EventBroadcaster(Protocol):
    def publish(self, event: str) -> None:
        ...


class DatabaseNotificationSink:
    """Пишет уведомления в таблицу notifications в собственной сессии."""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def send(self, user_id: int, message: str, type: NotificationType = NotificationType.system) -> None:
        try:
            with self._session_factory() as session:
                session.add(Notification(user_id=user_id, message=message, type=type))
                session.commit()
            logger.info(f"Notification sent to {user_id}: {message}")
        except Exception:
            logger.error(f"Error sending notification to {user_id}", exc_info=True)


class DashboardBroadcaster:
    """
    Рассылка событий подключённым WebSocket-дашбордам.

    publish() можно вызывать из синхронных обработчиков (threadpool FastAPI):
    отправка планируется в event loop, в котором были приняты соединения,
    и вызывающий не ждёт её завершения.
    """

    def __init__(self):
        self._connections: set[WebSocket] = set()
        self._lock = threading.Lock()
        self._loop: asyncio.AbstractEventLoop | None = None

    @property
    def connection_count(self) -> int:
        with self._lock:
            return len(self._connections)

    async def connect(self, websocket: WebSocket) -> None:
        with self._lock:
            self._loop = asyncio.get_running_loop()
            self._connections.add(websocket)
        await websocket.accept()
        logger.info(f"Dashboard connected ({self.connection_count} live)")

    def disconnect(self, websocket: WebSocket) -> None:
        with self._lock:
            self._connections.discard(websocket)
        logger.info(f"Dashboard disconnected ({self.connection_count} live)")

    def publish(self, event: str) -> None:
        with self._lock:
            loop = self._loop
            has_connections = bool(self._connections)
        if loop is None or not has_connections or loop.is_closed():
            return
        try:
            asyncio.run_coroutine_threadsafe(self.broadcast(event), loop)
        except RuntimeError:
            logger.error(f"Failed to schedule broadcast of {event}", exc_info=True)

    async def broadcast(self, event: str) -> None:
        with self._lock:
            targets = list(self._connections)
        for websocket in targets:
            try:
                await websocket.send_json({"event": event})
            except Exception:
                logger.warning("Dropping dead dashboard connection", exc_info=True)
                self.disconnect(websocket)


# Один broadcaster на процесс: WebSocket-эндпоинт и обработчики заказов делят его
dashboard_broadcaster = DashboardBroadcaster()
