from typing import Any
from uuid import UUID

from clientportal.schemas.common import IDModel, Timestamped


class ActivityRead(IDModel, Timestamped):
    user_id: UUID | None = None
    user_type: str | None = None
    action: str
    entity_type: str | None = None
    entity_id: UUID | None = None
    details: dict[str, Any] | None = None
