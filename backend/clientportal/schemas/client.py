from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field

from clientportal.schemas.common import IDModel, Timestamped


class ClientBase(BaseModel):
    name: str = Field(min_length=1, max_length=180)
    email: str
    company_name: str | None = None
    phone: str | None = None
    document: str | None = None
    notes: str | None = None


class ClientCreate(ClientBase):
    pass


class ClientUpdate(BaseModel):
    name: str | None = None
    email: str | None = None
    company_name: str | None = None
    phone: str | None = None
    document: str | None = None
    notes: str | None = None
    is_active: bool | None = None


class ClientRead(ClientBase, IDModel, Timestamped):
    user_id: UUID | None = None
    total_billed: Decimal
    total_paid: Decimal
    is_active: bool
    last_login: datetime | None = None


class ClientAdminRead(ClientRead):
    portal_token: str | None = None
    portal_url: str | None = None


class ClientList(BaseModel):
    items: list[ClientRead]
    total: int
    page: int
    limit: int


class MagicLinkResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    client: ClientRead
