from datetime import datetime
from decimal import Decimal
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel

MONEY_ZERO = Decimal("0.00")


class TimestampedModel(SQLModel):
    created_at: datetime = Field(default_factory=datetime.utcnow, nullable=False, index=True)
    updated_at: datetime | None = Field(default=None, nullable=True)

    def touch(self) -> None:
        self.updated_at = datetime.utcnow()


class UUIDModel(SQLModel):
    id: UUID = Field(default_factory=uuid4, primary_key=True, index=True)


def money_field(**kwargs) -> Decimal:
    return Field(default=MONEY_ZERO, max_digits=12, decimal_places=2, **kwargs)
