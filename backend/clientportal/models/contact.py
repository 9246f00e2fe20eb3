from __future__ import annotations

from sqlmodel import Field

from clientportal.models.base import TimestampedModel, UUIDModel


class ContactMessage(UUIDModel, TimestampedModel, table=True):
    __tablename__ = "contact_messages"

    name: str = Field(max_length=180)
    email: str = Field(max_length=255)
    subject: str = Field(max_length=255)
    message: str
    read: bool = Field(default=False)
