from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session

from clientportal.api.deps import get_db, http_error, require_admin
from clientportal.core.errors import PortalError
from clientportal.models.message import SenderType
from clientportal.schemas.common import MessageResponse
from clientportal.schemas.contact import ContactMessageRead
from clientportal.schemas.delivery import DeliveryCreate, DeliveryRead
from clientportal.schemas.message import MessageCreate, MessageMarkAllResponse, MessageRead
from clientportal.services.contact import ContactService
from clientportal.services.deliveries import DeliveryService
from clientportal.services.messages import MessageService

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])


# Entregas


@router.get("/projects/{project_id}/deliveries", response_model=list[DeliveryRead])
def list_project_deliveries(project_id: UUID, session: Session = Depends(get_db)) -> list[DeliveryRead]:
    return [DeliveryRead.model_validate(item) for item in DeliveryService(session).list_for_project(project_id)]


@router.post("/deliveries", response_model=DeliveryRead, status_code=status.HTTP_201_CREATED)
def create_delivery(payload: DeliveryCreate, session: Session = Depends(get_db)) -> DeliveryRead:
    try:
        delivery = DeliveryService(session).create_delivery(payload)
    except PortalError as exc:
        raise http_error(exc) from exc
    return DeliveryRead.model_validate(delivery)


# Mensagens


@router.get("/projects/{project_id}/messages", response_model=list[MessageRead])
def list_project_messages(project_id: UUID, session: Session = Depends(get_db)) -> list[MessageRead]:
    return [MessageRead.model_validate(item) for item in MessageService(session).list_messages(project_id)]


@router.post("/projects/{project_id}/messages", response_model=MessageRead, status_code=status.HTTP_201_CREATED)
def send_admin_message(project_id: UUID, payload: MessageCreate, session: Session = Depends(get_db)) -> MessageRead:
    try:
        message = MessageService(session).send_message(
            project_id=project_id,
            sender_id=None,
            sender_type=SenderType.ADMIN,
            content=payload.message,
            client_ref=payload.client_ref,
        )
    except PortalError as exc:
        raise http_error(exc) from exc
    return MessageRead.model_validate(message)


@router.post("/projects/{project_id}/messages/read-all", response_model=MessageMarkAllResponse)
def mark_project_messages_read(project_id: UUID, session: Session = Depends(get_db)) -> MessageMarkAllResponse:
    updated = MessageService(session).mark_all_as_read(project_id, SenderType.ADMIN)
    return MessageMarkAllResponse(updated=updated)


# Formulário de contato


@router.get("/contacts", response_model=list[ContactMessageRead])
def list_contacts(
    q: str = Query(""),
    only_unread: bool = Query(False),
    limit: int = Query(50, ge=1, le=200),
    session: Session = Depends(get_db),
) -> list[ContactMessageRead]:
    entries = ContactService(session).search(q.strip(), limit, only_unread=only_unread)
    return [ContactMessageRead.model_validate(entry, from_attributes=True) for entry in entries]


@router.post("/contacts/{message_id}/read", response_model=ContactMessageRead)
def mark_contact_read(message_id: UUID, session: Session = Depends(get_db)) -> ContactMessageRead:
    try:
        entry = ContactService(session).mark_read(message_id)
    except PortalError as exc:
        raise http_error(exc) from exc
    return ContactMessageRead.model_validate(entry, from_attributes=True)


@router.delete("/contacts/{message_id}", response_model=MessageResponse)
def delete_contact(message_id: UUID, session: Session = Depends(get_db)) -> MessageResponse:
    try:
        ContactService(session).delete(message_id)
    except PortalError as exc:
        raise http_error(exc) from exc
    return MessageResponse(detail="Mensagem removida")
