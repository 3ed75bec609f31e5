# lumbarong/api/deps.py
# Зависимости FastAPI для сборки движка заказов и его побочных каналов.
from fastapi import Depends
from sqlalchemy.orm import Session

from lumbarong.core.security import get_db
from lumbarong.db.session import SessionLocal
from lumbarong.services.notifications import (
    DatabaseNotificationSink,
    EventBroadcaster,
    NotificationSink,
    dashboard_broadcaster,
)
from lumbarong.services.orders import OrderService


def get_notification_sink() -> NotificationSink:
    return DatabaseNotificationSink(SessionLocal)

def get_broadcaster() -> EventBroadcaster:
    return dashboard_broadcaster

def get_order_service(
    db: Session = Depends(get_db),
    notifier: NotificationSink = Depends(get_notification_sink),
    broadcaster: EventBroadcaster = Depends(get_broadcaster),
) -> OrderService:
    return OrderService(db, notifier, broadcaster)
