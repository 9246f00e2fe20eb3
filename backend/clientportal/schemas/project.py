from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field

from clientportal.models.project import MilestoneStatus, ProjectStatus, TaskStatus
from clientportal.schemas.common import IDModel, Timestamped


class ProjectCreate(BaseModel):
    client_id: UUID
    name: str = Field(min_length=1, max_length=180)
    description: str | None = None
    status: ProjectStatus = ProjectStatus.ACTIVE
    priority: str = "medium"
    progress: int = Field(default=0, ge=0, le=100)
    budget: Decimal = Decimal("0")
    currency: str = "BRL"
    start_date: datetime | None = None
    end_date: datetime | None = None


class ProjectUpdate(BaseModel):
    name: str | None = None
    description: str | None = None
    status: ProjectStatus | None = None
    priority: str | None = None
    progress: int | None = Field(default=None, ge=0, le=100)
    budget: Decimal | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None


class ProjectRead(IDModel, Timestamped):
    client_id: UUID
    name: str
    description: str | None = None
    status: str
    priority: str
    progress: int
    budget: Decimal
    currency: str
    start_date: datetime | None = None
    end_date: datetime | None = None


class MilestoneCreate(BaseModel):
    name: str = Field(min_length=1, max_length=180)
    description: str | None = None
    order_index: int = 0
    status: MilestoneStatus = MilestoneStatus.PENDING
    due_date: datetime | None = None


class MilestoneUpdate(BaseModel):
    name: str | None = None
    description: str | None = None
    order_index: int | None = None
    status: MilestoneStatus | None = None
    progress: int | None = Field(default=None, ge=0, le=100)
    due_date: datetime | None = None


class MilestoneRead(IDModel, Timestamped):
    project_id: UUID
    name: str
    description: str | None = None
    order_index: int
    status: str
    progress: int
    due_date: datetime | None = None
    completed_at: datetime | None = None


class TaskCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: str | None = None
    milestone_id: UUID | None = None
    status: TaskStatus = TaskStatus.TODO
    priority: str = "medium"
    due_date: datetime | None = None
    order_index: int = 0


class TaskUpdate(BaseModel):
    title: str | None = None
    description: str | None = None
    milestone_id: UUID | None = None
    status: TaskStatus | None = None
    priority: str | None = None
    due_date: datetime | None = None
    order_index: int | None = None


class TaskRead(IDModel, Timestamped):
    project_id: UUID
    milestone_id: UUID | None = None
    title: str
    description: str | None = None
    status: str
    priority: str
    due_date: datetime | None = None
    completed_at: datetime | None = None
    order_index: int


class ProjectDetail(ProjectRead):
    milestones: list[MilestoneRead] = []
    tasks: list[TaskRead] = []
