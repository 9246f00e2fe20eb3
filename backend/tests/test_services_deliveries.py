from uuid import uuid4

import pytest

from clientportal.core.errors import ConflictError, ValidationError
from clientportal.models.delivery import Delivery
from clientportal.schemas.delivery import DeliveryCreate
from clientportal.services.activity import ActivityLogService
from clientportal.services.deliveries import DeliveryService
from clientportal.services.notifications import NotificationService
from clientportal.realtime.hub import RealtimeHub


class SessionSpy:
    """Sessão que falha se for tocada."""

    def __getattr__(self, name):
        raise AssertionError(f"session.{name} não deveria ser chamado")


def _service(session) -> DeliveryService:
    return DeliveryService(session, notifications=NotificationService(session, hub=RealtimeHub()))


@pytest.mark.parametrize("feedback", [None, "", "   "])
@pytest.mark.parametrize("action", ["reject", "request_revision"])
def test_feedback_required_before_any_database_call(action, feedback):
    service = DeliveryService(SessionSpy(), notifications=object(), activity=object())
    calls = []
    service._update = lambda delivery, changes: calls.append(changes)

    with pytest.raises(ValidationError):
        getattr(service, action)(uuid4(), feedback)

    assert calls == []


def test_approve_without_feedback(db_session, make_client, make_project):
    project = make_project(make_client())
    delivery = _service(db_session).create_delivery(DeliveryCreate(project_id=project.id, title="Landing page"))

    approved = _service(db_session).approve(delivery.id)

    assert approved.status == "approved"
    assert approved.client_feedback is None
    assert approved.reviewed_at is not None


def test_reject_stores_trimmed_feedback_and_logs_activity(db_session, make_client, make_project):
    client = make_client()
    project = make_project(client)
    delivery = _service(db_session).create_delivery(DeliveryCreate(project_id=project.id, title="Landing page"))

    rejected = _service(db_session).reject(delivery.id, "  cores erradas  ", reviewer_id=client.user_id)

    assert rejected.status == "rejected"
    assert rejected.client_feedback == "cores erradas"
    entries = ActivityLogService(db_session).list_for_entity("delivery", delivery.id)
    assert [entry.action for entry in entries] == ["Entrega rejeitada"]
    assert entries[0].user_id == client.user_id


def test_request_revision_sets_status(db_session, make_client, make_project):
    project = make_project(make_client())
    delivery = _service(db_session).create_delivery(DeliveryCreate(project_id=project.id, title="API"))

    revised = _service(db_session).request_revision(delivery.id, "Ajustar o rodapé")

    assert revised.status == "revision_requested"
    assert revised.client_feedback == "Ajustar o rodapé"


def test_review_is_one_directional(db_session, make_client, make_project):
    project = make_project(make_client())
    service = _service(db_session)
    delivery = service.create_delivery(DeliveryCreate(project_id=project.id, title="App"))
    service.approve(delivery.id)

    with pytest.raises(ConflictError):
        service.reject(delivery.id, "mudei de ideia")

    assert db_session.get(Delivery, delivery.id).status == "approved"


def test_create_delivery_notifies_client_user(db_session, make_client, make_project):
    client = make_client()
    project = make_project(client)

    _service(db_session).create_delivery(DeliveryCreate(project_id=project.id, title="Protótipo"))

    items, unread = NotificationService(db_session, hub=RealtimeHub()).list_notifications(user_id=client.user_id)
    assert unread == 1
    assert items[0].type == "delivery_created"


def test_list_deliveries_is_scoped_to_client(db_session, make_client, make_project):
    owner = make_client("Dono")
    other = make_client("Outro")
    service = _service(db_session)
    service.create_delivery(DeliveryCreate(project_id=make_project(owner).id, title="Minha"))
    service.create_delivery(DeliveryCreate(project_id=make_project(other).id, title="Alheia"))

    assert [item.title for item in service.list_deliveries(owner.id)] == ["Minha"]
