from datetime import timedelta
from decimal import Decimal
from uuid import uuid4

from clientportal.models.billing import Invoice
from clientportal.models.client import Client
from clientportal.models.notification import Notification
from clientportal.models.project import Project, Task
from clientportal.services.dashboard import (
    DashboardService,
    active_projects,
    completed_tasks,
    compute_admin_stats,
    pending_amount,
    pending_invoices,
    recent_tasks,
    upcoming_deadlines,
)


def _task(status="todo", due=None, completed_at=None) -> Task:
    return Task(project_id=uuid4(), title=f"Tarefa {uuid4().hex[:4]}", status=status, due_date=due, completed_at=completed_at)


def _invoice(status, due, total="100.00") -> Invoice:
    return Invoice(
        invoice_number=uuid4().hex[:10],
        client_id=uuid4(),
        due_date=due,
        status=status,
        total=Decimal(total),
    )


def test_active_projects_counts_only_active():
    client_id = uuid4()
    projects = [
        Project(client_id=client_id, name="A", status="active"),
        Project(client_id=client_id, name="B", status="paused"),
        Project(client_id=client_id, name="C", status="active"),
        Project(client_id=client_id, name="D", status="completed"),
    ]
    assert active_projects(projects) == 2
    assert active_projects([]) == 0


def test_completed_tasks_counts_status_completed():
    tasks = [_task("completed"), _task("in_review"), _task("completed"), _task("todo")]
    assert completed_tasks(tasks) == 2


def test_upcoming_deadlines_window_is_inclusive_and_skips_overdue(fixed_now, days):
    inside = [
        _task(due=fixed_now),
        _task(due=days(3)),
        _task(due=days(7)),
    ]
    outside = [
        _task(due=days(-1)),
        _task(due=days(7) + timedelta(seconds=1)),
        _task(due=None),
    ]

    result = upcoming_deadlines(inside + outside, fixed_now)

    assert result == inside


def test_pending_amount_is_not_clamped():
    assert pending_amount(Client(name="x", email="x@example.com", total_billed=Decimal("500"), total_paid=Decimal("120.50"))) == Decimal("379.50")
    assert pending_amount(Client(name="x", email="x@example.com", total_billed=Decimal("100"), total_paid=Decimal("150"))) == Decimal("-50")
    assert pending_amount(None) == Decimal("0")


def test_recent_tasks_sorted_desc_and_capped(days):
    done = [_task("completed", completed_at=days(-index)) for index in range(7)]
    ignored = [_task("completed", completed_at=None), _task("in_progress", completed_at=days(1))]

    result = recent_tasks(list(reversed(done)) + ignored)

    assert len(result) == 5
    assert [task.completed_at for task in result] == [days(-index) for index in range(5)]


def test_pending_invoices_filters_status_and_sorts_by_due_date_desc(days):
    early = _invoice("pending", days(1))
    late = _invoice("overdue", days(10))
    middle = _invoice("pending", days(5))
    invoices = [early, _invoice("paid", days(20)), late, _invoice("draft", days(30)), middle]

    assert pending_invoices(invoices) == [late, middle, early]


def test_compute_admin_stats(days):
    clients = [
        Client(name="A", email="a@example.com", is_active=True),
        Client(name="B", email="b@example.com", is_active=False),
        Client(name="C", email="c@example.com", is_active=True),
    ]
    projects = [Project(client_id=uuid4(), name="P1", status="active"), Project(client_id=uuid4(), name="P2", status="paused")]
    invoices = [
        _invoice("paid", days(1), "300.00"),
        _invoice("pending", days(2), "200.00"),
        _invoice("overdue", days(3), "50.00"),
        _invoice("cancelled", days(4), "10.00"),
    ]

    stats = compute_admin_stats(clients, projects, invoices)

    assert stats.total_clients == 3
    assert stats.active_clients == 2
    assert stats.inactive_clients == 1
    assert stats.total_projects == 2
    assert stats.active_projects == 1
    assert stats.total_billed == Decimal("560.00")
    assert stats.total_paid == Decimal("300.00")
    assert stats.pending_amount == Decimal("250.00")
    assert stats.pending_invoices == 2


def test_build_for_user_without_client_returns_error_and_zeroed_stats(db_session, fixed_now):
    data = DashboardService(db_session).build_for_user(uuid4(), fixed_now)

    assert data.error == "Cliente não encontrado"
    assert data.stats.active_projects == 0
    assert data.stats.completed_tasks == 0
    assert data.stats.upcoming_deadlines == 0
    assert data.stats.pending_amount == Decimal("0")
    assert data.projects == []
    assert data.client is None


def test_build_for_user_composes_dashboard(db_session, make_client, make_project, fixed_now, days):
    client = make_client()
    client.total_billed = Decimal("1000.00")
    client.total_paid = Decimal("400.00")
    db_session.add(client)
    project = make_project(client)
    make_project(client, name="Pausado", status="paused")
    db_session.add_all(
        [
            Task(project_id=project.id, title="Layout", status="completed", completed_at=days(-1)),
            Task(project_id=project.id, title="Deploy", status="todo", due_date=days(2)),
            Task(project_id=project.id, title="Atrasada", status="todo", due_date=days(-2)),
            Invoice(invoice_number="2025030001", client_id=client.id, due_date=days(5), status="pending", total=Decimal("600")),
            Invoice(invoice_number="2025030002", client_id=client.id, due_date=days(1), status="paid", total=Decimal("400")),
        ]
    )
    for index in range(7):
        db_session.add(Notification(user_id=client.user_id, type="info", title=f"Aviso {index}"))
    db_session.add(Notification(user_id=client.user_id, type="info", title="Lida", is_read=True))
    db_session.commit()

    data = DashboardService(db_session).build_for_user(client.user_id, fixed_now)

    assert data.error is None
    assert data.client.id == client.id
    assert data.stats.active_projects == 1
    assert data.stats.completed_tasks == 1
    assert data.stats.upcoming_deadlines == 1
    assert data.stats.pending_amount == Decimal("600.00")
    assert len(data.projects) == 2
    assert [task.title for task in data.recent_tasks] == ["Layout"]
    assert [invoice.invoice_number for invoice in data.pending_invoices] == ["2025030001"]
    assert len(data.notifications) == 5
    assert all(not item.is_read for item in data.notifications)
