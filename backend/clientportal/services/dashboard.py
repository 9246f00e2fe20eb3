from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Iterable, Sequence
from uuid import UUID

from sqlmodel import Session

from clientportal.core.logging_setup import logger
from clientportal.models.base import MONEY_ZERO
from clientportal.models.billing import Invoice, InvoiceStatus
from clientportal.models.client import Client
from clientportal.models.project import Project, ProjectStatus, Task, TaskStatus
from clientportal.schemas.activity import ActivityRead
from clientportal.schemas.billing import InvoiceRead
from clientportal.schemas.client import ClientRead
from clientportal.schemas.dashboard import AdminStats, DashboardData, DashboardStats
from clientportal.schemas.notification import NotificationRead
from clientportal.schemas.project import ProjectRead, TaskRead
from clientportal.services.activity import ActivityLogService
from clientportal.services.clients import ClientService
from clientportal.services.invoices import InvoiceService
from clientportal.services.notifications import NotificationService
from clientportal.services.projects import ProjectService

DEADLINE_WINDOW = timedelta(days=7)
RECENT_TASKS_LIMIT = 5
NOTIFICATIONS_LIMIT = 5
ACTIVITIES_LIMIT = 10
PENDING_INVOICE_STATUSES = frozenset({InvoiceStatus.PENDING.value, InvoiceStatus.OVERDUE.value})


def active_projects(projects: Iterable[Project]) -> int:
    return sum(1 for project in projects if project.status == ProjectStatus.ACTIVE.value)


def completed_tasks(tasks: Iterable[Task]) -> int:
    return sum(1 for task in tasks if task.status == TaskStatus.COMPLETED.value)


def upcoming_deadlines(tasks: Iterable[Task], now: datetime) -> list[Task]:
    """Tarefas com prazo entre agora e agora + 7 dias (inclusive)."""
    limit = now + DEADLINE_WINDOW
    return [task for task in tasks if task.due_date is not None and now <= task.due_date <= limit]


def pending_amount(client: Client | None) -> Decimal:
    if client is None:
        return MONEY_ZERO
    return Decimal(client.total_billed or 0) - Decimal(client.total_paid or 0)


def recent_tasks(tasks: Iterable[Task], limit: int = RECENT_TASKS_LIMIT) -> list[Task]:
    done = [
        task
        for task in tasks
        if task.status == TaskStatus.COMPLETED.value and task.completed_at is not None
    ]
    done.sort(key=lambda task: task.completed_at, reverse=True)
    return done[:limit]


def pending_invoices(invoices: Iterable[Invoice]) -> list[Invoice]:
    selected = [invoice for invoice in invoices if invoice.status in PENDING_INVOICE_STATUSES]
    selected.sort(key=lambda invoice: invoice.due_date, reverse=True)
    return selected


def compute_stats(
    client: Client | None,
    projects: Sequence[Project],
    tasks: Sequence[Task],
    now: datetime,
) -> DashboardStats:
    return DashboardStats(
        active_projects=active_projects(projects),
        completed_tasks=completed_tasks(tasks),
        upcoming_deadlines=len(upcoming_deadlines(tasks, now)),
        pending_amount=pending_amount(client),
    )


def compute_admin_stats(
    clients: Sequence[Client],
    projects: Sequence[Project],
    invoices: Sequence[Invoice],
) -> AdminStats:
    active_clients = sum(1 for client in clients if client.is_active)
    billed = sum((Decimal(invoice.total) for invoice in invoices), MONEY_ZERO)
    paid = sum(
        (Decimal(invoice.total) for invoice in invoices if invoice.status == InvoiceStatus.PAID.value),
        MONEY_ZERO,
    )
    pending = [invoice for invoice in invoices if invoice.status in PENDING_INVOICE_STATUSES]
    return AdminStats(
        total_clients=len(clients),
        active_clients=active_clients,
        inactive_clients=len(clients) - active_clients,
        total_projects=len(projects),
        active_projects=active_projects(projects),
        total_billed=billed,
        total_paid=paid,
        pending_amount=sum((Decimal(invoice.total) for invoice in pending), MONEY_ZERO),
        pending_invoices=len(pending),
    )


class DashboardService:
    def __init__(self, session: Session) -> None:
        self.session = session

    def build_for_user(self, user_id: UUID | None, now: datetime | None = None) -> DashboardData:
        current = now or datetime.utcnow()
        if user_id is None:
            return DashboardData(stats=DashboardStats(), error="Usuário não autenticado")

        client = ClientService(self.session).get_by_user_id(user_id)
        if client is None:
            logger.warning(f"[DASHBOARD] nenhum cliente vinculado ao usuário {user_id}")
            return DashboardData(stats=DashboardStats(), error="Cliente não encontrado")

        projects_service = ProjectService(self.session)
        projects = projects_service.list_projects(client.id)
        tasks = projects_service.list_tasks_for_projects(project.id for project in projects)
        invoices = InvoiceService(self.session).list_invoices(client.id)
        notifications, _ = NotificationService(self.session).list_notifications(
            user_id=user_id, limit=NOTIFICATIONS_LIMIT, only_unread=True
        )
        activities = ActivityLogService(self.session).list_for_user(user_id, limit=ACTIVITIES_LIMIT)

        return DashboardData(
            stats=compute_stats(client, projects, tasks, current),
            projects=[ProjectRead.model_validate(item) for item in projects],
            recent_tasks=[TaskRead.model_validate(item) for item in recent_tasks(tasks)],
            pending_invoices=[InvoiceRead.model_validate(item) for item in pending_invoices(invoices)],
            notifications=[NotificationRead.model_validate(item) for item in notifications],
            activities=[ActivityRead.model_validate(item) for item in activities],
            client=ClientRead.model_validate(client),
        )
