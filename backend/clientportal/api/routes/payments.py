from decimal import Decimal
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Session

from clientportal.api.deps import get_current_client, get_db, get_payments
from clientportal.core.config import settings
from clientportal.models.billing import InvoiceStatus
from clientportal.models.client import Client
from clientportal.schemas.payment import PaymentInitRequest, PaymentProvider, PaymentResult
from clientportal.services.invoices import InvoiceService
from clientportal.services.payments import PaymentClient

router = APIRouter(prefix="/portal", tags=["payments"])

NOT_PAYABLE = {InvoiceStatus.PAID.value, InvoiceStatus.CANCELLED.value, InvoiceStatus.DRAFT.value}


@router.post("/invoices/{invoice_id}/pay/{provider}", response_model=PaymentResult)
def start_payment(
    invoice_id: UUID,
    provider: PaymentProvider,
    payload: PaymentInitRequest | None = None,
    client: Client = Depends(get_current_client),
    session: Session = Depends(get_db),
    payments: PaymentClient = Depends(get_payments),
) -> PaymentResult:
    invoice = InvoiceService(session).get_invoice(invoice_id)
    if not invoice or invoice.client_id != client.id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Fatura não encontrada")
    if invoice.status in NOT_PAYABLE:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Fatura não está disponível para pagamento")

    amount = Decimal(invoice.total) - Decimal(invoice.paid_amount or 0)
    return_base_url = (payload.return_base_url if payload else None) or settings.resolved_public_app_url()

    if provider == PaymentProvider.STRIPE:
        return payments.create_stripe_session(invoice.id, amount, return_base_url)
    if provider == PaymentProvider.MERCADOPAGO:
        return payments.create_mercadopago_preference(invoice.id, amount, return_base_url)
    return payments.generate_pix(invoice.id, amount)


@router.get("/payments/{transaction_id}/status", response_model=PaymentResult)
def payment_status(
    transaction_id: str,
    client: Client = Depends(get_current_client),
    payments: PaymentClient = Depends(get_payments),
) -> PaymentResult:
    return payments.check_status(transaction_id)
