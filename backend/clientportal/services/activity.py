from __future__ import annotations

from typing import Any
from uuid import UUID

from sqlmodel import Session, select

from clientportal.models.activity import ActivityLog


class ActivityLogService:
    def __init__(self, session: Session) -> None:
        self.session = session

    def record(
        self,
        *,
        action: str,
        user_id: UUID | None = None,
        user_type: str | None = None,
        entity_type: str | None = None,
        entity_id: UUID | None = None,
        details: dict[str, Any] | None = None,
        commit: bool = True,
    ) -> ActivityLog:
        entry = ActivityLog(
            action=action,
            user_id=user_id,
            user_type=user_type,
            entity_type=entity_type,
            entity_id=entity_id,
            details=details,
        )
        self.session.add(entry)
        if commit:
            self.session.commit()
            self.session.refresh(entry)
        return entry

    def list_for_user(self, user_id: UUID, limit: int = 10) -> list[ActivityLog]:
        statement = (
            select(ActivityLog)
            .where(ActivityLog.user_id == user_id)
            .order_by(ActivityLog.created_at.desc())
            .limit(max(limit, 1))
        )
        return list(self.session.exec(statement).all())

    def list_for_entity(self, entity_type: str, entity_id: UUID) -> list[ActivityLog]:
        statement = (
            select(ActivityLog)
            .where(ActivityLog.entity_type == entity_type)
            .where(ActivityLog.entity_id == entity_id)
            .order_by(ActivityLog.created_at.desc())
        )
        return list(self.session.exec(statement).all())
