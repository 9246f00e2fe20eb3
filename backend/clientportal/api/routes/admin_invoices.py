from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlmodel import Session

from clientportal.api.deps import get_db, http_error, require_admin
from clientportal.core.errors import PortalError
from clientportal.schemas.billing import (
    InvoiceCreate,
    InvoiceDetail,
    InvoiceItemCreate,
    InvoiceItemRead,
    InvoiceRead,
    InvoiceUpdate,
    PaymentCreate,
    PaymentRead,
)
from clientportal.services.invoices import InvoiceService

router = APIRouter(prefix="/admin/invoices", tags=["admin"], dependencies=[Depends(require_admin)])


def _service(session: Session) -> InvoiceService:
    return InvoiceService(session)


def build_invoice_detail(service: InvoiceService, invoice_id: UUID) -> InvoiceDetail | None:
    detail = service.get_invoice_detail(invoice_id)
    if detail is None:
        return None
    schema = InvoiceDetail.model_validate(detail["invoice"])
    schema.items = [InvoiceItemRead.model_validate(item) for item in detail["items"]]
    schema.payments = [PaymentRead.model_validate(item) for item in detail["payments"]]
    schema.amount_paid = detail["amount_paid"]
    schema.amount_due = detail["amount_due"]
    return schema


@router.get("", response_model=list[InvoiceRead])
def list_invoices(client_id: UUID | None = Query(None), session: Session = Depends(get_db)) -> list[InvoiceRead]:
    return [InvoiceRead.model_validate(item) for item in _service(session).list_invoices(client_id)]


@router.post("", response_model=InvoiceRead, status_code=status.HTTP_201_CREATED)
def create_invoice(payload: InvoiceCreate, session: Session = Depends(get_db)) -> InvoiceRead:
    try:
        invoice = _service(session).create_invoice(payload)
    except PortalError as exc:
        raise http_error(exc) from exc
    return InvoiceRead.model_validate(invoice)


@router.get("/{invoice_id}", response_model=InvoiceDetail)
def get_invoice(invoice_id: UUID, session: Session = Depends(get_db)) -> InvoiceDetail:
    detail = build_invoice_detail(_service(session), invoice_id)
    if detail is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Fatura não encontrada")
    return detail


@router.patch("/{invoice_id}", response_model=InvoiceRead)
def update_invoice(invoice_id: UUID, payload: InvoiceUpdate, session: Session = Depends(get_db)) -> InvoiceRead:
    service = _service(session)
    invoice = service.get_invoice(invoice_id)
    if not invoice:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Fatura não encontrada")
    return InvoiceRead.model_validate(service.update_invoice(invoice, payload))


@router.post("/{invoice_id}/items", response_model=InvoiceItemRead, status_code=status.HTTP_201_CREATED)
def add_item(invoice_id: UUID, payload: InvoiceItemCreate, session: Session = Depends(get_db)) -> InvoiceItemRead:
    try:
        item = _service(session).add_item(invoice_id, payload)
    except PortalError as exc:
        raise http_error(exc) from exc
    return InvoiceItemRead.model_validate(item)


@router.delete("/{invoice_id}/items/{item_id}", response_model=InvoiceRead)
def remove_item(invoice_id: UUID, item_id: UUID, session: Session = Depends(get_db)) -> InvoiceRead:
    try:
        invoice = _service(session).remove_item(invoice_id, item_id)
    except PortalError as exc:
        raise http_error(exc) from exc
    return InvoiceRead.model_validate(invoice)


@router.get("/{invoice_id}/payments", response_model=list[PaymentRead])
def list_payments(invoice_id: UUID, session: Session = Depends(get_db)) -> list[PaymentRead]:
    return [PaymentRead.model_validate(item) for item in _service(session).list_payments(invoice_id)]


@router.post("/{invoice_id}/payments", response_model=PaymentRead, status_code=status.HTTP_201_CREATED)
def register_payment(invoice_id: UUID, payload: PaymentCreate, session: Session = Depends(get_db)) -> PaymentRead:
    try:
        payment = _service(session).register_payment(invoice_id, payload)
    except PortalError as exc:
        raise http_error(exc) from exc
    return PaymentRead.model_validate(payment)
