from __future__ import annotations

from datetime import datetime
from enum import Enum
from uuid import UUID

from sqlmodel import Field

from clientportal.models.base import TimestampedModel, UUIDModel


class DeliveryStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    REVISION_REQUESTED = "revision_requested"


class Delivery(UUIDModel, TimestampedModel, table=True):
    __tablename__ = "portal_deliveries"

    project_id: UUID = Field(foreign_key="portal_projects.id", index=True)
    task_id: UUID | None = Field(default=None, foreign_key="portal_tasks.id")
    title: str = Field(max_length=255)
    description: str | None = Field(default=None)
    staging_url: str | None = Field(default=None, max_length=512)
    status: str = Field(default=DeliveryStatus.PENDING.value, max_length=32)
    client_feedback: str | None = Field(default=None)
    reviewed_at: datetime | None = Field(default=None)
