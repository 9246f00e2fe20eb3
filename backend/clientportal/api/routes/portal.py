from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlmodel import Session

from clientportal.api.deps import get_current_client, get_current_portal_user, get_db, http_error
from clientportal.api.routes.admin_invoices import build_invoice_detail
from clientportal.core.errors import PortalError
from clientportal.models.client import Client
from clientportal.models.message import SenderType
from clientportal.models.project import Project
from clientportal.portal.resources import load_resource
from clientportal.schemas.billing import InvoiceDetail, InvoiceRead
from clientportal.schemas.client import ClientRead, MagicLinkResponse
from clientportal.schemas.common import ResourceEnvelope
from clientportal.schemas.dashboard import DashboardData
from clientportal.schemas.delivery import DeliveryRead, DeliveryReview
from clientportal.schemas.message import MessageCreate, MessageMarkAllResponse, MessageRead
from clientportal.schemas.notification import NotificationList, NotificationMarkAllResponse, NotificationRead
from clientportal.schemas.project import MilestoneRead, ProjectDetail, ProjectRead, TaskRead
from clientportal.services.clients import ClientService
from clientportal.services.dashboard import DashboardService
from clientportal.services.deliveries import DeliveryService
from clientportal.services.invoices import InvoiceService
from clientportal.services.messages import MessageService
from clientportal.services.notifications import NotificationService
from clientportal.services.projects import ProjectService
from clientportal.utils.security import create_access_token

router = APIRouter(prefix="/portal", tags=["portal"])


def owned_project(session: Session, client: Client, project_id: UUID) -> Project:
    project = ProjectService(session).get_project(project_id)
    if not project or project.client_id != client.id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Projeto não encontrado")
    return project


@router.post("/magic-link/{token}", response_model=MagicLinkResponse)
def redeem_magic_link(token: str, session: Session = Depends(get_db)) -> MagicLinkResponse:
    try:
        client = ClientService(session).redeem_magic_link(token)
    except PortalError as exc:
        raise http_error(exc) from exc
    access_token = create_access_token(str(client.user_id), extra_claims={"client_id": str(client.id)})
    return MagicLinkResponse(access_token=access_token, client=ClientRead.model_validate(client))


@router.get("/me", response_model=ClientRead)
def read_me(client: Client = Depends(get_current_client)) -> ClientRead:
    return ClientRead.model_validate(client)


@router.get("/dashboard", response_model=DashboardData)
def read_dashboard(
    user_id: UUID = Depends(get_current_portal_user),
    session: Session = Depends(get_db),
) -> DashboardData:
    return DashboardService(session).build_for_user(user_id)


@router.get("/projects", response_model=ResourceEnvelope[list[ProjectRead]])
def list_projects(
    client: Client = Depends(get_current_client),
    session: Session = Depends(get_db),
) -> dict:
    service = ProjectService(session)
    state = load_resource(
        client.id,
        lambda client_id: [ProjectRead.model_validate(item) for item in service.list_projects(client_id)],
        error_message="Erro ao carregar projetos",
    )
    return state.as_dict()


@router.get("/projects/{project_id}", response_model=ResourceEnvelope[ProjectDetail | None])
def read_project(
    project_id: UUID,
    client: Client = Depends(get_current_client),
    session: Session = Depends(get_db),
) -> dict:
    project = owned_project(session, client, project_id)
    service = ProjectService(session)

    def fetch(identifier: UUID) -> ProjectDetail:
        detail = ProjectDetail.model_validate(project)
        detail.milestones = [MilestoneRead.model_validate(item) for item in service.list_milestones(identifier)]
        detail.tasks = [TaskRead.model_validate(item) for item in service.list_tasks(identifier)]
        return detail

    state = load_resource(project.id, fetch, empty=lambda: None, error_message="Erro ao carregar projeto")
    return state.as_dict()


@router.get("/projects/{project_id}/milestones", response_model=ResourceEnvelope[list[MilestoneRead]])
def list_milestones(
    project_id: UUID,
    client: Client = Depends(get_current_client),
    session: Session = Depends(get_db),
) -> dict:
    project = owned_project(session, client, project_id)
    service = ProjectService(session)
    state = load_resource(
        project.id,
        lambda identifier: [MilestoneRead.model_validate(item) for item in service.list_milestones(identifier)],
        error_message="Erro ao carregar etapas",
    )
    return state.as_dict()


@router.get("/projects/{project_id}/tasks", response_model=ResourceEnvelope[list[TaskRead]])
def list_tasks(
    project_id: UUID,
    milestone_id: UUID | None = Query(None),
    client: Client = Depends(get_current_client),
    session: Session = Depends(get_db),
) -> dict:
    project = owned_project(session, client, project_id)
    service = ProjectService(session)
    state = load_resource(
        project.id,
        lambda identifier: [TaskRead.model_validate(item) for item in service.list_tasks(identifier, milestone_id)],
        error_message="Erro ao carregar tarefas",
    )
    return state.as_dict()


@router.get("/invoices", response_model=ResourceEnvelope[list[InvoiceRead]])
def list_invoices(
    client: Client = Depends(get_current_client),
    session: Session = Depends(get_db),
) -> dict:
    service = InvoiceService(session)
    state = load_resource(
        client.id,
        lambda client_id: [InvoiceRead.model_validate(item) for item in service.list_invoices(client_id)],
        error_message="Erro ao carregar faturas",
    )
    return state.as_dict()


@router.get("/invoices/{invoice_id}", response_model=ResourceEnvelope[InvoiceDetail | None])
def read_invoice(
    invoice_id: UUID,
    client: Client = Depends(get_current_client),
    session: Session = Depends(get_db),
) -> dict:
    service = InvoiceService(session)
    invoice = service.get_invoice(invoice_id)
    if not invoice or invoice.client_id != client.id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Fatura não encontrada")
    state = load_resource(
        invoice.id,
        lambda identifier: build_invoice_detail(service, identifier),
        empty=lambda: None,
        error_message="Erro ao carregar fatura",
    )
    return state.as_dict()


@router.get("/deliveries", response_model=ResourceEnvelope[list[DeliveryRead]])
def list_deliveries(
    client: Client = Depends(get_current_client),
    session: Session = Depends(get_db),
) -> dict:
    service = DeliveryService(session)
    state = load_resource(
        client.id,
        lambda client_id: [DeliveryRead.model_validate(item) for item in service.list_deliveries(client_id)],
        error_message="Erro ao carregar entregas",
    )
    return state.as_dict()


def _owned_delivery(session: Session, client: Client, delivery_id: UUID) -> None:
    delivery = DeliveryService(session).get_delivery(delivery_id)
    if delivery is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Entrega não encontrada")
    owned_project(session, client, delivery.project_id)


@router.post("/deliveries/{delivery_id}/approve", response_model=DeliveryRead)
def approve_delivery(
    delivery_id: UUID,
    payload: DeliveryReview | None = None,
    client: Client = Depends(get_current_client),
    session: Session = Depends(get_db),
) -> DeliveryRead:
    _owned_delivery(session, client, delivery_id)
    try:
        delivery = DeliveryService(session).approve(
            delivery_id, payload.feedback if payload else None, reviewer_id=client.user_id
        )
    except PortalError as exc:
        raise http_error(exc) from exc
    return DeliveryRead.model_validate(delivery)


@router.post("/deliveries/{delivery_id}/reject", response_model=DeliveryRead)
def reject_delivery(
    delivery_id: UUID,
    payload: DeliveryReview,
    client: Client = Depends(get_current_client),
    session: Session = Depends(get_db),
) -> DeliveryRead:
    service = DeliveryService(session)
    try:
        # Comentário obrigatório é validado antes de consultar a entrega
        service.require_feedback(payload.feedback)
        _owned_delivery(session, client, delivery_id)
        delivery = service.reject(delivery_id, payload.feedback, reviewer_id=client.user_id)
    except PortalError as exc:
        raise http_error(exc) from exc
    return DeliveryRead.model_validate(delivery)


@router.post("/deliveries/{delivery_id}/request-revision", response_model=DeliveryRead)
def request_delivery_revision(
    delivery_id: UUID,
    payload: DeliveryReview,
    client: Client = Depends(get_current_client),
    session: Session = Depends(get_db),
) -> DeliveryRead:
    service = DeliveryService(session)
    try:
        service.require_feedback(payload.feedback)
        _owned_delivery(session, client, delivery_id)
        delivery = service.request_revision(delivery_id, payload.feedback, reviewer_id=client.user_id)
    except PortalError as exc:
        raise http_error(exc) from exc
    return DeliveryRead.model_validate(delivery)


@router.get("/projects/{project_id}/messages", response_model=ResourceEnvelope[list[MessageRead]])
def list_messages(
    project_id: UUID,
    client: Client = Depends(get_current_client),
    session: Session = Depends(get_db),
) -> dict:
    project = owned_project(session, client, project_id)
    service = MessageService(session)
    state = load_resource(
        project.id,
        lambda identifier: [MessageRead.model_validate(item) for item in service.list_messages(identifier)],
        error_message="Erro ao carregar mensagens",
    )
    return state.as_dict()


@router.post("/projects/{project_id}/messages", response_model=MessageRead, status_code=status.HTTP_201_CREATED)
def send_message(
    project_id: UUID,
    payload: MessageCreate,
    client: Client = Depends(get_current_client),
    session: Session = Depends(get_db),
) -> MessageRead:
    project = owned_project(session, client, project_id)
    try:
        message = MessageService(session).send_message(
            project_id=project.id,
            sender_id=client.user_id,
            sender_type=SenderType.CLIENT,
            content=payload.message,
            client_ref=payload.client_ref,
        )
    except PortalError as exc:
        raise http_error(exc) from exc
    return MessageRead.model_validate(message)


@router.post("/projects/{project_id}/messages/read-all", response_model=MessageMarkAllResponse)
def mark_messages_read(
    project_id: UUID,
    client: Client = Depends(get_current_client),
    session: Session = Depends(get_db),
) -> MessageMarkAllResponse:
    project = owned_project(session, client, project_id)
    updated = MessageService(session).mark_all_as_read(project.id, SenderType.CLIENT)
    return MessageMarkAllResponse(updated=updated)


@router.post("/messages/{message_id}/read", response_model=MessageRead)
def mark_message_read(
    message_id: UUID,
    client: Client = Depends(get_current_client),
    session: Session = Depends(get_db),
) -> MessageRead:
    service = MessageService(session)
    message = service.get_message(message_id)
    if not message:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Mensagem não encontrada")
    owned_project(session, client, message.project_id)
    return MessageRead.model_validate(service.mark_as_read(message_id))


@router.get("/notifications", response_model=ResourceEnvelope[NotificationList | None])
def list_notifications(
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    only_unread: bool = Query(default=False),
    user_id: UUID = Depends(get_current_portal_user),
    session: Session = Depends(get_db),
) -> dict:
    service = NotificationService(session)

    def fetch(identifier: UUID) -> NotificationList:
        items, unread_count = service.list_notifications(
            user_id=identifier, limit=limit, offset=offset, only_unread=only_unread
        )
        return NotificationList(
            items=[NotificationRead.model_validate(item) for item in items],
            unread_count=unread_count,
        )

    state = load_resource(user_id, fetch, empty=lambda: None, error_message="Erro ao carregar notificações")
    return state.as_dict()


@router.post("/notifications/read-all", response_model=NotificationMarkAllResponse)
def mark_all_notifications_as_read(
    user_id: UUID = Depends(get_current_portal_user),
    session: Session = Depends(get_db),
) -> NotificationMarkAllResponse:
    updated = NotificationService(session).mark_all_as_read(user_id=user_id)
    return NotificationMarkAllResponse(updated=updated)


@router.post("/notifications/{notification_id}/read", response_model=NotificationRead)
def mark_notification_as_read(
    notification_id: UUID,
    user_id: UUID = Depends(get_current_portal_user),
    session: Session = Depends(get_db),
) -> NotificationRead:
    try:
        updated = NotificationService(session).mark_as_read(user_id=user_id, notification_id=notification_id)
    except PortalError as exc:
        raise http_error(exc) from exc
    return NotificationRead.model_validate(updated)


@router.delete("/notifications/{notification_id}", response_model=NotificationRead)
def dismiss_notification(
    notification_id: UUID,
    user_id: UUID = Depends(get_current_portal_user),
    session: Session = Depends(get_db),
) -> NotificationRead:
    try:
        updated = NotificationService(session).dismiss(user_id=user_id, notification_id=notification_id)
    except PortalError as exc:
        raise http_error(exc) from exc
    return NotificationRead.model_validate(updated)
