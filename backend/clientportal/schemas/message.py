from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from clientportal.schemas.common import IDModel, Timestamped


class MessageCreate(BaseModel):
    message: str = Field(min_length=1)
    client_ref: str | None = Field(default=None, max_length=64)


class MessageRead(IDModel, Timestamped):
    project_id: UUID
    sender_id: UUID | None = None
    sender_type: str
    message: str
    client_ref: str | None = None
    is_read: bool
    read_at: datetime | None = None


class MessageMarkAllResponse(BaseModel):
    updated: int
