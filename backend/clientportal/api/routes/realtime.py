from __future__ import annotations

import asyncio
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response, WebSocket, WebSocketDisconnect, status
from fastapi.concurrency import run_in_threadpool
from sqlmodel import Session

from clientportal.api.deps import get_db, resolve_portal_user
from clientportal.core.errors import PortalError
from clientportal.core.logging_setup import logger
from clientportal.models.message import SenderType
from clientportal.realtime.chime import chime_wav
from clientportal.realtime.feeds import MessageFeed, NotificationFeed, RealtimeFeed
from clientportal.realtime.hub import RowChange, get_hub
from clientportal.schemas.common import to_record
from clientportal.schemas.message import MessageRead
from clientportal.schemas.notification import NotificationRead
from clientportal.services.clients import ClientService
from clientportal.services.messages import MessageService
from clientportal.services.notifications import NotificationService
from clientportal.services.projects import ProjectService

router = APIRouter(prefix="/portal", tags=["realtime"])

POLICY_VIOLATION = 1008
NOTIFICATION_SNAPSHOT_LIMIT = 50


def _change_frame(change: RowChange) -> dict[str, Any]:
    return {"type": "change", "event": change.event.value, "table": change.table, "record": change.record}


def _bridge(feed: RealtimeFeed, queue: asyncio.Queue) -> None:
    """Leva as mudanças (entregues em outra thread) para a fila do loop."""
    loop = asyncio.get_running_loop()
    feed.add_listener(lambda change: loop.call_soon_threadsafe(queue.put_nowait, _change_frame(change)))


async def _pump(websocket: WebSocket, queue: asyncio.Queue) -> None:
    while True:
        frame = await queue.get()
        await websocket.send_json(frame)


async def _run_until_disconnect(websocket: WebSocket, queue: asyncio.Queue, receiver) -> None:
    pump = asyncio.create_task(_pump(websocket, queue))
    receive = asyncio.create_task(receiver())
    try:
        done, _ = await asyncio.wait({pump, receive}, return_when=asyncio.FIRST_COMPLETED)
        for task in done:
            if task.cancelled():
                continue
            exc = task.exception()
            if exc is not None and not isinstance(exc, WebSocketDisconnect):
                raise exc
    finally:
        for task in (pump, receive):
            task.cancel()
        await asyncio.gather(pump, receive, return_exceptions=True)


@router.websocket("/projects/{project_id}/messages/ws")
async def messages_socket(
    websocket: WebSocket,
    project_id: UUID,
    token: str | None = Query(None),
    session: Session = Depends(get_db),
) -> None:
    try:
        user_id = resolve_portal_user(token)
    except HTTPException:
        await websocket.close(code=POLICY_VIOLATION)
        return

    client = await run_in_threadpool(ClientService(session).get_by_user_id, user_id)
    project = await run_in_threadpool(ProjectService(session).get_project, project_id)
    if client is None or project is None or project.client_id != client.id:
        await websocket.close(code=POLICY_VIOLATION)
        return

    service = MessageService(session)

    def load(scope: UUID) -> list[dict[str, Any]]:
        return [to_record(MessageRead, item) for item in service.list_messages(scope)]

    def send(**kwargs: Any) -> dict[str, Any]:
        return to_record(MessageRead, service.send_message(**kwargs))

    await websocket.accept()
    queue: asyncio.Queue = asyncio.Queue()
    feed = MessageFeed(get_hub(), load, send)
    _bridge(feed, queue)

    async def receiver() -> None:
        while True:
            data = await websocket.receive_json()
            if not isinstance(data, dict) or data.get("type") != "send":
                continue
            try:
                await run_in_threadpool(
                    feed.send,
                    str(data.get("message") or ""),
                    sender_id=client.user_id,
                    sender_type=SenderType.CLIENT.value,
                    client_ref=data.get("client_ref"),
                )
            except PortalError as exc:
                await queue.put({"type": "error", "detail": exc.message, "client_ref": data.get("client_ref")})

    try:
        state = await run_in_threadpool(feed.start, project.id)
        await websocket.send_json({"type": "snapshot", **state})
        await _run_until_disconnect(websocket, queue, receiver)
    except (WebSocketDisconnect, asyncio.CancelledError):
        # Cancelamento no encerramento do servidor equivale a desconexão
        pass
    finally:
        feed.close()
        logger.info(f"[REALTIME] socket de mensagens encerrado projeto={project_id}")


@router.websocket("/notifications/ws")
async def notifications_socket(
    websocket: WebSocket,
    token: str | None = Query(None),
    session: Session = Depends(get_db),
) -> None:
    try:
        user_id = resolve_portal_user(token)
    except HTTPException:
        await websocket.close(code=POLICY_VIOLATION)
        return

    service = NotificationService(session)

    def load(scope: UUID) -> list[dict[str, Any]]:
        items, _ = service.list_notifications(user_id=scope, limit=NOTIFICATION_SNAPSHOT_LIMIT)
        return [to_record(NotificationRead, item) for item in items]

    await websocket.accept()
    loop = asyncio.get_running_loop()
    queue: asyncio.Queue = asyncio.Queue()

    def alert(record: dict[str, Any]) -> None:
        loop.call_soon_threadsafe(queue.put_nowait, {"type": "alert", "sound": "chime", "notification": record})

    feed = NotificationFeed(get_hub(), load, alert=alert)
    _bridge(feed, queue)

    async def receiver() -> None:
        while True:
            await websocket.receive_text()

    try:
        state = await run_in_threadpool(feed.start, user_id)
        await websocket.send_json({"type": "snapshot", "unread_count": feed.unread_count(), **state})
        await _run_until_disconnect(websocket, queue, receiver)
    except (WebSocketDisconnect, asyncio.CancelledError):
        # Cancelamento no encerramento do servidor equivale a desconexão
        pass
    finally:
        feed.close()
        logger.info(f"[REALTIME] socket de notificações encerrado usuário={user_id}")


@router.get("/notifications/chime.wav", include_in_schema=False)
def notification_chime() -> Response:
    return Response(content=chime_wav(), media_type="audio/wav", status_code=status.HTTP_200_OK)
