from decimal import Decimal

from pydantic import BaseModel

from clientportal.schemas.activity import ActivityRead
from clientportal.schemas.billing import InvoiceRead
from clientportal.schemas.client import ClientRead
from clientportal.schemas.notification import NotificationRead
from clientportal.schemas.project import ProjectRead, TaskRead


class DashboardStats(BaseModel):
    active_projects: int = 0
    completed_tasks: int = 0
    upcoming_deadlines: int = 0
    pending_amount: Decimal = Decimal("0")


class DashboardData(BaseModel):
    stats: DashboardStats
    projects: list[ProjectRead] = []
    recent_tasks: list[TaskRead] = []
    pending_invoices: list[InvoiceRead] = []
    notifications: list[NotificationRead] = []
    activities: list[ActivityRead] = []
    client: ClientRead | None = None
    error: str | None = None


class AdminStats(BaseModel):
    total_clients: int = 0
    active_clients: int = 0
    inactive_clients: int = 0
    total_projects: int = 0
    active_projects: int = 0
    total_billed: Decimal = Decimal("0")
    total_paid: Decimal = Decimal("0")
    pending_amount: Decimal = Decimal("0")
    pending_invoices: int = 0
