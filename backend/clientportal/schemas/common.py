from datetime import datetime
from typing import Any, Generic, TypeVar
from uuid import UUID

from pydantic import BaseModel, ConfigDict

T = TypeVar("T")


class Timestamped(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    created_at: datetime
    updated_at: datetime | None = None


class IDModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID


class ResourceEnvelope(BaseModel, Generic[T]):
    data: T
    loading: bool = False
    error: str | None = None


class MessageResponse(BaseModel):
    detail: str


def to_record(schema: type[BaseModel], item: Any) -> dict[str, Any]:
    """Serializa uma linha para o formato enviado pelo realtime."""
    return schema.model_validate(item).model_dump(mode="json")
