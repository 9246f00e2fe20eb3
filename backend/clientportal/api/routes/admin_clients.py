from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlmodel import Session

from clientportal.api.deps import get_db, http_error, require_admin
from clientportal.core.errors import PortalError
from clientportal.models.client import Client
from clientportal.schemas.client import ClientAdminRead, ClientCreate, ClientList, ClientRead, ClientUpdate
from clientportal.schemas.common import MessageResponse
from clientportal.schemas.dashboard import AdminStats
from clientportal.services.clients import ClientService, build_portal_url
from clientportal.services.dashboard import compute_admin_stats
from clientportal.services.invoices import InvoiceService
from clientportal.services.projects import ProjectService

router = APIRouter(prefix="/admin/clients", tags=["admin"], dependencies=[Depends(require_admin)])


def _service(session: Session) -> ClientService:
    return ClientService(session)


def _to_admin_schema(client: Client) -> ClientAdminRead:
    data = ClientAdminRead.model_validate(client)
    if client.portal_token:
        data.portal_url = build_portal_url(client.portal_token)
    return data


def _require_client(service: ClientService, client_id: UUID) -> Client:
    client = service.get_client(client_id)
    if not client:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Cliente não encontrado")
    return client


@router.get("", response_model=ClientList)
def list_clients(
    search: str = Query(""),
    is_active: bool | None = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    session: Session = Depends(get_db),
) -> ClientList:
    items, total = _service(session).list_clients(search=search, is_active=is_active, page=page, limit=limit)
    return ClientList(items=[ClientRead.model_validate(item) for item in items], total=total, page=page, limit=limit)


@router.get("/stats", response_model=AdminStats)
def client_stats(session: Session = Depends(get_db)) -> AdminStats:
    return compute_admin_stats(
        _service(session).list_all(),
        ProjectService(session).list_projects(),
        InvoiceService(session).list_invoices(),
    )


@router.post("", response_model=ClientAdminRead, status_code=status.HTTP_201_CREATED)
def create_client(payload: ClientCreate, session: Session = Depends(get_db)) -> ClientAdminRead:
    try:
        client = _service(session).create_client(payload)
    except PortalError as exc:
        raise http_error(exc) from exc
    return _to_admin_schema(client)


@router.get("/{client_id}", response_model=ClientAdminRead)
def get_client(client_id: UUID, session: Session = Depends(get_db)) -> ClientAdminRead:
    return _to_admin_schema(_require_client(_service(session), client_id))


@router.patch("/{client_id}", response_model=ClientAdminRead)
def update_client(client_id: UUID, payload: ClientUpdate, session: Session = Depends(get_db)) -> ClientAdminRead:
    service = _service(session)
    client = _require_client(service, client_id)
    try:
        client = service.update_client(client, payload)
    except PortalError as exc:
        raise http_error(exc) from exc
    return _to_admin_schema(client)


@router.post("/{client_id}/portal-link", response_model=ClientAdminRead)
def reissue_portal_link(client_id: UUID, session: Session = Depends(get_db)) -> ClientAdminRead:
    service = _service(session)
    client = service.reissue_portal_token(_require_client(service, client_id))
    return _to_admin_schema(client)


@router.delete("/{client_id}", response_model=MessageResponse)
def delete_client(
    client_id: UUID,
    permanently: bool = Query(False),
    session: Session = Depends(get_db),
) -> MessageResponse:
    service = _service(session)
    service.delete_client(_require_client(service, client_id), permanently=permanently)
    if permanently:
        return MessageResponse(detail="Cliente deletado permanentemente")
    return MessageResponse(detail="Cliente desativado com sucesso")
