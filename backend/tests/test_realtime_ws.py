import asyncio

import pytest
from starlette.websockets import WebSocketDisconnect

from clientportal.api.routes.realtime import _run_until_disconnect
from clientportal.services.messages import MessageService
from clientportal.services.notifications import NotificationService


def _token(headers: dict[str, str]) -> str:
    return headers["Authorization"].split(" ", 1)[1]


def test_socket_without_valid_token_is_closed(client, api):
    with pytest.raises(WebSocketDisconnect) as exc:
        with client.websocket_connect(f"{api}/portal/notifications/ws?token=invalido"):
            pass

    assert exc.value.code == 1008


def test_message_socket_rejects_foreign_project(client, portal_login, make_client, make_project, api):
    _, headers = portal_login()
    foreign = make_project(make_client("Outro"))

    with pytest.raises(WebSocketDisconnect):
        with client.websocket_connect(f"{api}/portal/projects/{foreign.id}/messages/ws?token={_token(headers)}"):
            pass


def test_message_socket_sends_snapshot_then_echoes_sent_message(client, portal_login, make_project, db_session, api):
    portal_client, headers = portal_login()
    project = make_project(portal_client)
    MessageService(db_session).send_message(
        project_id=project.id, sender_id=None, sender_type="admin", content="Bem-vindo ao projeto"
    )

    url = f"{api}/portal/projects/{project.id}/messages/ws?token={_token(headers)}"
    with client.websocket_connect(url) as websocket:
        snapshot = websocket.receive_json()
        assert snapshot["type"] == "snapshot"
        assert snapshot["loading"] is False
        assert [item["message"] for item in snapshot["data"]] == ["Bem-vindo ao projeto"]

        websocket.send_json({"type": "send", "message": "Recebido!", "client_ref": "ref-ws"})
        frame = websocket.receive_json()

    assert frame["type"] == "change"
    assert frame["event"] == "INSERT"
    assert frame["table"] == "portal_messages"
    assert frame["record"]["client_ref"] == "ref-ws"
    assert frame["record"]["sender_type"] == "client"


def test_message_socket_reports_send_errors(client, portal_login, make_project, api):
    portal_client, headers = portal_login()
    project = make_project(portal_client)

    url = f"{api}/portal/projects/{project.id}/messages/ws?token={_token(headers)}"
    with client.websocket_connect(url) as websocket:
        websocket.receive_json()
        websocket.send_json({"type": "send", "message": "   ", "client_ref": "vazio"})
        frame = websocket.receive_json()

    assert frame == {"type": "error", "detail": "A mensagem não pode ficar vazia.", "client_ref": "vazio"}


def test_notification_socket_alerts_on_insert(client, portal_login, db_session, api):
    portal_client, headers = portal_login()
    service = NotificationService(db_session)
    service.create_notification(user_id=portal_client.user_id, type="info", title="Antiga")

    with client.websocket_connect(f"{api}/portal/notifications/ws?token={_token(headers)}") as websocket:
        snapshot = websocket.receive_json()
        assert snapshot["unread_count"] == 1
        assert [item["title"] for item in snapshot["data"]] == ["Antiga"]

        service.create_notification(user_id=portal_client.user_id, type="delivery_created", title="Nova entrega")
        alert = websocket.receive_json()
        change = websocket.receive_json()

    assert alert["type"] == "alert"
    assert alert["sound"] == "chime"
    assert alert["notification"]["title"] == "Nova entrega"
    assert change["type"] == "change"
    assert change["event"] == "INSERT"


def test_chime_endpoint(client, api):
    response = client.get(f"{api}/portal/notifications/chime.wav")

    assert response.status_code == 200
    assert response.headers["content-type"] == "audio/wav"
    assert response.content[:4] == b"RIFF"


def test_socket_shutdown_tolerates_cancelled_receiver():
    async def cancelled_receiver() -> None:
        raise asyncio.CancelledError()

    async def scenario() -> None:
        await _run_until_disconnect(object(), asyncio.Queue(), cancelled_receiver)

    asyncio.run(scenario())
