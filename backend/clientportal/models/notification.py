from datetime import datetime
from uuid import UUID

from sqlmodel import Field

from clientportal.models.base import TimestampedModel, UUIDModel


class Notification(UUIDModel, TimestampedModel, table=True):
    __tablename__ = "portal_notifications"

    user_id: UUID = Field(index=True)
    type: str = Field(max_length=64)
    title: str = Field(max_length=255)
    message: str | None = Field(default=None)
    link: str | None = Field(default=None, max_length=512)
    is_read: bool = Field(default=False)
    read_at: datetime | None = Field(default=None, index=True)
