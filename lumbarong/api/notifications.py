# lumbarong/api/notifications.py
# Уведомления текущего пользователя.
from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.orm import Session

from lumbarong.core.errors import NotFoundError
from lumbarong.core.security import Principal, get_current_principal, get_db
from lumbarong.models.notification import Notification
from lumbarong.schemas.catalog import NotificationOut

router = APIRouter()


@router.get("", response_model=list[NotificationOut])
def list_notifications(principal: Principal = Depends(get_current_principal), db: Session = Depends(get_db)):
    query = (
        select(Notification)
        .where(Notification.user_id == principal.user_id)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
    )
    return db.execute(query).scalars().all()


@router.put("/{notification_id}/read", response_model=NotificationOut)
def mark_read(
    notification_id: int,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    notification = db.get(Notification, notification_id)
    # Чужие уведомления неотличимы от несуществующих
    if notification is None or notification.user_id != principal.user_id:
        raise NotFoundError("Notification not found")
    notification.is_read = True
    db.commit()
    db.refresh(notification)
    return notification
