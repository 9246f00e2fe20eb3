from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlmodel import Field

from clientportal.models.base import TimestampedModel, UUIDModel, money_field


class Client(UUIDModel, TimestampedModel, table=True):
    __tablename__ = "portal_clients"

    user_id: UUID | None = Field(default=None, index=True, unique=True)
    name: str = Field(max_length=180)
    email: str = Field(max_length=255, index=True)
    company_name: str | None = Field(default=None, max_length=180)
    phone: str | None = Field(default=None, max_length=32)
    document: str | None = Field(default=None, max_length=32)
    notes: str | None = Field(default=None)
    total_billed: Decimal = money_field()
    total_paid: Decimal = money_field()
    is_active: bool = Field(default=True)
    # Magic link de uso único
    portal_token: str | None = Field(default=None, max_length=64, index=True)
    last_login: datetime | None = Field(default=None)
