"""Persistence helpers for notification entities."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Iterable

from sqlalchemy.orm import Session

from app.domain.entities import Notification, NotificationActor
from app.infrastructure.models import NotificationModel
from app.utils import (
    ensure_app_naive_datetime,
    ensure_app_timezone,
    now_in_app_timezone,
)


class NotificationRepository:
    """Provide CRUD operations for :class:`Notification` objects."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, notification_id: int) -> Notification | None:
        model = self.session.get(NotificationModel, notification_id)
        return self._to_entity(model) if model else None

    def list_for_user(
        self,
        user_id: int,
        *,
        unread_only: bool = False,
        limit: int | None = 50,
        offset: int = 0,
    ) -> Sequence[Notification]:
        query = self.session.query(NotificationModel)
        query = query.filter(NotificationModel.user_id == user_id)
        if unread_only:
            query = query.filter(NotificationModel.read_at.is_(None))
        query = query.order_by(
            NotificationModel.created_at.desc(), NotificationModel.id.desc()
        )
        if offset:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)
        return [self._to_entity(model) for model in query.all()]

    def count_unread(self, user_id: int) -> int:
        return (
            self.session.query(NotificationModel)
            .filter(NotificationModel.user_id == user_id)
            .filter(NotificationModel.read_at.is_(None))
            .count()
        )

    def create(self, notification: Notification) -> Notification:
        model = NotificationModel()
        self._apply_entity_to_model(model, notification)
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def mark_as_read(self, notification_ids: Iterable[int], *, user_id: int) -> int:
        """Mark the given notifications of ``user_id`` as read.

        Returns the number of rows that changed. Identifiers belonging to other
        users are ignored.
        """

        ids = [notification_id for notification_id in notification_ids if notification_id is not None]
        if not ids:
            return 0
        updated = (
            self.session.query(NotificationModel)
            .filter(
                NotificationModel.id.in_(ids),
                NotificationModel.user_id == user_id,
                NotificationModel.read_at.is_(None),
            )
            .update(
                {NotificationModel.read_at: self._now_naive()},
                synchronize_session=False,
            )
        )
        self.session.commit()
        return updated

    def mark_all_as_read(self, user_id: int) -> int:
        updated = (
            self.session.query(NotificationModel)
            .filter(
                NotificationModel.user_id == user_id,
                NotificationModel.read_at.is_(None),
            )
            .update(
                {NotificationModel.read_at: self._now_naive()},
                synchronize_session=False,
            )
        )
        self.session.commit()
        return updated

    def delete_read_older_than(self, cutoff: datetime) -> int:
        deleted = (
            self.session.query(NotificationModel)
            .filter(
                NotificationModel.read_at.is_not(None),
                NotificationModel.created_at < ensure_app_naive_datetime(cutoff),
            )
            .delete(synchronize_session=False)
        )
        self.session.commit()
        return deleted

    @staticmethod
    def _now_naive() -> datetime | None:
        return ensure_app_naive_datetime(now_in_app_timezone())

    @staticmethod
    def _apply_entity_to_model(
        model: NotificationModel, notification: Notification
    ) -> None:
        model.created_at = (
            ensure_app_naive_datetime(notification.created_at)
            or ensure_app_naive_datetime(now_in_app_timezone())
        )
        model.user_id = notification.user_id
        model.actor_id = notification.actor_id
        model.event_type = notification.event_type
        model.title = notification.title
        model.message = notification.message
        model.ticket_id = notification.ticket_id
        model.ticket_number = notification.ticket_number
        model.ticket_subject = notification.ticket_subject
        model.comment_id = notification.comment_id
        model.payload = notification.payload or {}
        model.read_at = ensure_app_naive_datetime(notification.read_at)

    @staticmethod
    def _to_entity(model: NotificationModel) -> Notification:
        actor = None
        if model.actor is not None:
            actor = NotificationActor(
                id=model.actor.id, name=model.actor.name, email=model.actor.email
            )
        return Notification(
            id=model.id,
            user_id=model.user_id,
            actor_id=model.actor_id,
            event_type=model.event_type,
            title=model.title,
            message=model.message,
            ticket_id=model.ticket_id,
            ticket_number=model.ticket_number,
            ticket_subject=model.ticket_subject,
            comment_id=model.comment_id,
            payload=model.payload or {},
            created_at=ensure_app_timezone(model.created_at),
            read_at=ensure_app_timezone(model.read_at),
            actor=actor,
        )


__all__ = ["NotificationRepository"]
