from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class ContactMessageCreate(BaseModel):
    name: str = Field(min_length=1, max_length=180)
    email: str
    subject: str = Field(min_length=1, max_length=255)
    message: str = Field(min_length=1)


class ContactMessageRead(BaseModel):
    id: UUID
    name: str
    email: str
    subject: str
    message: str
    read: bool
    created_at: datetime | None = None

    class Config:
        from_attributes = True
