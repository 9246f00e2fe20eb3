from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlmodel import Session, func, select

from clientportal.core.errors import NotFoundError
from clientportal.models.notification import Notification
from clientportal.realtime.hub import ChangeEvent, RealtimeHub, get_hub
from clientportal.schemas.common import to_record
from clientportal.schemas.notification import NotificationRead

TABLE = "portal_notifications"


class NotificationService:
    def __init__(self, session: Session, hub: RealtimeHub | None = None) -> None:
        self.session = session
        self.hub = hub or get_hub()

    def list_notifications(
        self,
        *,
        user_id: UUID,
        limit: int = 20,
        offset: int = 0,
        only_unread: bool = False,
    ) -> tuple[list[Notification], int]:
        query = select(Notification).where(Notification.user_id == user_id)
        if only_unread:
            query = query.where(Notification.is_read.is_(False))
        query = query.order_by(Notification.created_at.desc()).offset(offset).limit(limit)
        items = list(self.session.exec(query).all())

        unread_query = (
            select(func.count())
            .select_from(Notification)
            .where(Notification.user_id == user_id)
            .where(Notification.is_read.is_(False))
        )
        unread_count = self.session.exec(unread_query).one()

        return items, int(unread_count or 0)

    def create_notification(
        self,
        *,
        user_id: UUID,
        type: str,
        title: str,
        message: str | None = None,
        link: str | None = None,
    ) -> Notification:
        notification = Notification(user_id=user_id, type=type, title=title, message=message, link=link)
        self.session.add(notification)
        self.session.commit()
        self.session.refresh(notification)
        self._publish(ChangeEvent.INSERT, notification)
        return notification

    def mark_as_read(self, *, user_id: UUID, notification_id: UUID) -> Notification:
        notification = self.session.get(Notification, notification_id)
        if not notification or notification.user_id != user_id:
            raise NotFoundError("Notificação não encontrada")
        if not notification.is_read:
            notification.is_read = True
            notification.read_at = datetime.utcnow()
            notification.touch()
            self.session.add(notification)
            self.session.commit()
            self.session.refresh(notification)
            self._publish(ChangeEvent.UPDATE, notification)
        return notification

    def mark_all_as_read(self, *, user_id: UUID) -> int:
        pending = self.session.exec(
            select(Notification).where(Notification.user_id == user_id).where(Notification.is_read.is_(False))
        ).all()
        if not pending:
            return 0
        now = datetime.utcnow()
        for item in pending:
            item.is_read = True
            item.read_at = now
            item.updated_at = now
            self.session.add(item)
        self.session.commit()
        for item in pending:
            self.session.refresh(item)
            self._publish(ChangeEvent.UPDATE, item)
        return len(pending)

    def dismiss(self, *, user_id: UUID, notification_id: UUID) -> Notification:
        # Remoção lógica: a notificação some da lista de não lidas
        return self.mark_as_read(user_id=user_id, notification_id=notification_id)

    def _publish(self, event: ChangeEvent, notification: Notification) -> None:
        self.hub.publish_change(TABLE, event, to_record(NotificationRead, notification))
