from datetime import datetime, timedelta
from decimal import Decimal
from uuid import uuid4

import pytest
from sqlmodel import select

from clientportal.core.errors import NotFoundError
from clientportal.models.billing import Invoice
from clientportal.models.delivery import Delivery
from clientportal.models.message import Message
from clientportal.models.project import Milestone, Project, Task
from clientportal.services.projects import ProjectService


def _populate(session, project):
    milestone = Milestone(project_id=project.id, name="Layout")
    session.add(milestone)
    session.flush()
    task = Task(project_id=project.id, milestone_id=milestone.id, title="Home")
    session.add(task)
    session.flush()
    delivery = Delivery(project_id=project.id, task_id=task.id, title="Home publicada")
    message = Message(project_id=project.id, message="Tudo certo?")
    invoice = Invoice(
        invoice_number=f"T{uuid4().hex[:8]}",
        client_id=project.client_id,
        project_id=project.id,
        due_date=datetime.utcnow() + timedelta(days=5),
        total=Decimal("500"),
    )
    session.add_all([delivery, message, invoice])
    session.commit()
    return milestone, task, delivery, invoice


def test_delete_project_removes_children_and_keeps_invoice(db_session, make_client, make_project):
    project = make_project(make_client())
    milestone, task, delivery, invoice = _populate(db_session, project)
    project_id, invoice_id = project.id, invoice.id

    ProjectService(db_session).delete_project(project)

    assert db_session.get(Project, project_id) is None
    assert db_session.exec(select(Milestone).where(Milestone.project_id == project_id)).all() == []
    assert db_session.exec(select(Task).where(Task.project_id == project_id)).all() == []
    assert db_session.exec(select(Delivery).where(Delivery.project_id == project_id)).all() == []
    assert db_session.exec(select(Message).where(Message.project_id == project_id)).all() == []
    kept = db_session.get(Invoice, invoice_id)
    assert kept is not None
    assert kept.project_id is None


def test_delete_milestone_detaches_tasks(db_session, make_client, make_project):
    project = make_project(make_client())
    milestone, task, _, _ = _populate(db_session, project)
    service = ProjectService(db_session)

    service.delete_milestone(milestone.id)

    assert service.list_milestones(project.id) == []
    remaining = service.list_tasks(project.id)
    assert [item.id for item in remaining] == [task.id]
    assert remaining[0].milestone_id is None
    with pytest.raises(NotFoundError):
        service.delete_milestone(milestone.id)


def test_delete_task_keeps_delivery(db_session, make_client, make_project):
    project = make_project(make_client())
    _, task, delivery, _ = _populate(db_session, project)
    service = ProjectService(db_session)

    service.delete_task(task.id)

    assert service.list_tasks(project.id) == []
    db_session.refresh(delivery)
    assert delivery.task_id is None
    with pytest.raises(NotFoundError):
        service.delete_task(uuid4())
