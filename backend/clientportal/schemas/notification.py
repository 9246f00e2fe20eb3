from datetime import datetime
from uuid import UUID

from pydantic import BaseModel

from clientportal.schemas.common import IDModel, Timestamped


class NotificationRead(IDModel, Timestamped):
    user_id: UUID
    type: str
    title: str
    message: str | None = None
    link: str | None = None
    is_read: bool
    read_at: datetime | None = None


class NotificationList(BaseModel):
    items: list[NotificationRead]
    unread_count: int


class NotificationMarkAllResponse(BaseModel):
    updated: int
