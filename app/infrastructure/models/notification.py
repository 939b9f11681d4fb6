"""SQLAlchemy model for persisted notifications."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, JSON, String, Text
from sqlalchemy.orm import relationship

from app.infrastructure.database import Base
from app.utils import now_in_app_naive_datetime


class NotificationModel(Base):
    """Database representation for user notifications."""

    __tablename__ = "notification"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("user.id"), nullable=False, index=True)
    actor_id = Column(Integer, ForeignKey("user.id"), nullable=True)
    event_type = Column(String(50), nullable=False)
    title = Column(String(120), nullable=False)
    message = Column(Text, nullable=False)
    ticket_id = Column(String(64), nullable=True, index=True)
    ticket_number = Column(String(32), nullable=True)
    ticket_subject = Column(String(255), nullable=True)
    comment_id = Column(String(64), nullable=True)
    payload = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime(), nullable=False, default=now_in_app_naive_datetime)
    read_at = Column(DateTime(), nullable=True, index=True)

    user = relationship("UserModel", foreign_keys=[user_id])
    actor = relationship("UserModel", foreign_keys=[actor_id], lazy="joined")


__all__ = ["NotificationModel"]
