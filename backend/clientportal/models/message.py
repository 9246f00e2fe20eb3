from __future__ import annotations

from datetime import datetime
from enum import Enum
from uuid import UUID

from sqlalchemy import UniqueConstraint
from sqlmodel import Field

from clientportal.models.base import TimestampedModel, UUIDModel


class SenderType(str, Enum):
    CLIENT = "client"
    ADMIN = "admin"


class Message(UUIDModel, TimestampedModel, table=True):
    __tablename__ = "portal_messages"
    __table_args__ = (UniqueConstraint("project_id", "client_ref", name="uq_portal_messages_client_ref"),)

    project_id: UUID = Field(foreign_key="portal_projects.id", index=True)
    sender_id: UUID | None = Field(default=None)
    sender_type: str = Field(default=SenderType.CLIENT.value, max_length=16)
    message: str
    # Id de correlação gerado por quem envia (envio otimista + eco realtime)
    client_ref: str | None = Field(default=None, max_length=64)
    is_read: bool = Field(default=False)
    read_at: datetime | None = Field(default=None)
