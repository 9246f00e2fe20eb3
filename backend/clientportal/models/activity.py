from uuid import UUID

from sqlalchemy import JSON
from sqlmodel import Field

from clientportal.models.base import TimestampedModel, UUIDModel


class ActivityLog(UUIDModel, TimestampedModel, table=True):
    __tablename__ = "portal_activity_logs"

    user_id: UUID | None = Field(default=None, index=True)
    user_type: str | None = Field(default=None, max_length=16)
    action: str = Field(max_length=255)
    entity_type: str | None = Field(default=None, max_length=32)
    entity_id: UUID | None = Field(default=None, index=True)
    details: dict | None = Field(default=None, sa_type=JSON)
