# lumbarong/models/notification.py
# Модель Notification — журнал уведомлений, привязанный к получателю.
from sqlalchemy import Column, Integer, Boolean, DateTime, ForeignKey, Text, Enum
from datetime import datetime
from lumbarong.db.base import Base
import enum

class NotificationType(str, enum.Enum):
    order = "order"
    review = "review"
    system = "system"

class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    message = Column(Text, nullable=False)
    type = Column(Enum(NotificationType), default=NotificationType.system, nullable=False)
    is_read = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
