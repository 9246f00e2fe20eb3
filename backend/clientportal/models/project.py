from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from sqlmodel import Field

from clientportal.models.base import TimestampedModel, UUIDModel, money_field


class ProjectStatus(str, Enum):
    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class MilestoneStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class TaskStatus(str, Enum):
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    IN_REVIEW = "in_review"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Project(UUIDModel, TimestampedModel, table=True):
    __tablename__ = "portal_projects"

    client_id: UUID = Field(foreign_key="portal_clients.id", index=True)
    name: str = Field(max_length=180)
    description: str | None = Field(default=None)
    status: str = Field(default=ProjectStatus.ACTIVE.value, max_length=32)
    priority: str = Field(default="medium", max_length=16)
    progress: int = Field(default=0, ge=0, le=100)
    budget: Decimal = money_field()
    currency: str = Field(default="BRL", max_length=8)
    start_date: datetime | None = Field(default=None)
    end_date: datetime | None = Field(default=None)


class Milestone(UUIDModel, TimestampedModel, table=True):
    __tablename__ = "portal_milestones"

    project_id: UUID = Field(foreign_key="portal_projects.id", index=True)
    name: str = Field(max_length=180)
    description: str | None = Field(default=None)
    order_index: int = Field(default=0)
    status: str = Field(default=MilestoneStatus.PENDING.value, max_length=32)
    progress: int = Field(default=0, ge=0, le=100)
    due_date: datetime | None = Field(default=None)
    completed_at: datetime | None = Field(default=None)


class Task(UUIDModel, TimestampedModel, table=True):
    __tablename__ = "portal_tasks"

    project_id: UUID = Field(foreign_key="portal_projects.id", index=True)
    milestone_id: UUID | None = Field(default=None, foreign_key="portal_milestones.id", index=True)
    title: str = Field(max_length=255)
    description: str | None = Field(default=None)
    status: str = Field(default=TaskStatus.TODO.value, max_length=32)
    priority: str = Field(default="medium", max_length=16)
    due_date: datetime | None = Field(default=None)
    completed_at: datetime | None = Field(default=None)
    order_index: int = Field(default=0)
