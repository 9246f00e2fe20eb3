from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from clientportal.schemas.common import IDModel, Timestamped


class DeliveryCreate(BaseModel):
    project_id: UUID
    task_id: UUID | None = None
    title: str = Field(min_length=1, max_length=255)
    description: str | None = None
    staging_url: str | None = None


class DeliveryRead(IDModel, Timestamped):
    project_id: UUID
    task_id: UUID | None = None
    title: str
    description: str | None = None
    staging_url: str | None = None
    status: str
    client_feedback: str | None = None
    reviewed_at: datetime | None = None


class DeliveryReview(BaseModel):
    feedback: str | None = None
