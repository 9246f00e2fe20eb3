from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlmodel import Session, func, select

from clientportal.core.errors import NotFoundError, ValidationError
from clientportal.core.logging_setup import logger
from clientportal.models.base import MONEY_ZERO
from clientportal.models.billing import Invoice, InvoiceItem, InvoiceStatus, Payment, PaymentStatus
from clientportal.models.client import Client
from clientportal.schemas.billing import InvoiceCreate, InvoiceItemCreate, InvoiceUpdate, PaymentCreate
from clientportal.services.activity import ActivityLogService
from clientportal.services.notifications import NotificationService

CENT = Decimal("0.01")


def format_money(amount: Decimal, currency: str = "BRL") -> str:
    """Formata no padrão pt-BR (R$ 1.234,56)."""
    value = Decimal(amount or 0).quantize(CENT)
    text = f"{value:,.2f}".replace(",", "_").replace(".", ",").replace("_", ".")
    symbol = "R$" if currency == "BRL" else currency
    return f"{symbol} {text}"


def item_subtotal(quantity: Decimal, unit_price: Decimal, discount: Decimal) -> Decimal:
    return (Decimal(quantity) * Decimal(unit_price) - Decimal(discount or 0)).quantize(CENT)


class InvoiceService:
    def __init__(
        self,
        session: Session,
        notifications: NotificationService | None = None,
        activity: ActivityLogService | None = None,
    ) -> None:
        self.session = session
        self.notifications = notifications or NotificationService(session)
        self.activity = activity or ActivityLogService(session)

    def list_invoices(self, client_id: UUID | None = None) -> list[Invoice]:
        statement = select(Invoice)
        if client_id is not None:
            statement = statement.where(Invoice.client_id == client_id)
        return list(self.session.exec(statement.order_by(Invoice.issue_date.desc())).all())

    def get_invoice(self, invoice_id: UUID) -> Invoice | None:
        return self.session.get(Invoice, invoice_id)

    def list_items(self, invoice_id: UUID) -> list[InvoiceItem]:
        statement = (
            select(InvoiceItem)
            .where(InvoiceItem.invoice_id == invoice_id)
            .order_by(InvoiceItem.order_index.asc(), InvoiceItem.created_at.asc())
        )
        return list(self.session.exec(statement).all())

    def list_payments(self, invoice_id: UUID) -> list[Payment]:
        statement = select(Payment).where(Payment.invoice_id == invoice_id).order_by(Payment.created_at.desc())
        return list(self.session.exec(statement).all())

    def get_invoice_detail(self, invoice_id: UUID) -> dict[str, object] | None:
        invoice = self.get_invoice(invoice_id)
        if not invoice:
            return None
        payments = self.list_payments(invoice_id)
        amount_paid = self._completed_total(payments)
        return {
            "invoice": invoice,
            "items": self.list_items(invoice_id),
            "payments": payments,
            "amount_paid": amount_paid,
            "amount_due": Decimal(invoice.total) - amount_paid,
        }

    def generate_invoice_number(self, now: datetime | None = None) -> str:
        """Próximo número sequencial do mês no formato AAAAMM####."""
        prefix = (now or datetime.utcnow()).strftime("%Y%m")
        last = self.session.exec(
            select(Invoice.invoice_number)
            .where(Invoice.invoice_number.like(f"{prefix}%"))
            .order_by(Invoice.invoice_number.desc())
            .limit(1)
        ).first()
        sequence = 1
        if last:
            try:
                sequence = int(last[-4:]) + 1
            except ValueError:
                sequence = 1
        return f"{prefix}{sequence:04d}"

    def create_invoice(self, payload: InvoiceCreate, *, now: datetime | None = None) -> Invoice:
        client = self.session.get(Client, payload.client_id)
        if not client:
            raise NotFoundError("Cliente não encontrado")

        invoice = Invoice(
            invoice_number=self.generate_invoice_number(now),
            client_id=payload.client_id,
            project_id=payload.project_id,
            due_date=payload.due_date,
            tax=payload.tax,
            discount=payload.discount,
            currency=payload.currency,
            notes=payload.notes,
        )
        self.session.add(invoice)
        self.session.flush()

        for index, item in enumerate(payload.items):
            self.session.add(self._build_item(invoice.id, item, index))
        self.session.flush()
        self._recompute_totals(invoice)

        client.total_billed = Decimal(client.total_billed or 0) + Decimal(invoice.total)
        client.touch()
        self.session.add(client)
        self.activity.record(
            action=f"Fatura {invoice.invoice_number} criada",
            entity_type="invoice",
            entity_id=invoice.id,
            details={"client_id": str(client.id)},
            commit=False,
        )
        self.session.commit()
        self.session.refresh(invoice)
        logger.info(f"[INVOICES] fatura {invoice.invoice_number} criada para cliente id={client.id}")

        self._notify(
            client,
            type="invoice_created",
            title="Nova Fatura",
            message=(
                f"Fatura {invoice.invoice_number} no valor de "
                f"{format_money(invoice.total, invoice.currency)} foi gerada."
            ),
            link=f"/portal/invoices/{invoice.id}",
        )
        return invoice

    def update_invoice(self, invoice: Invoice, payload: InvoiceUpdate) -> Invoice:
        data = payload.model_dump(exclude_unset=True)
        previous_total = Decimal(invoice.total)
        for key, value in data.items():
            if key == "status" and value is not None:
                value = value.value
            setattr(invoice, key, value)
        if "tax" in data or "discount" in data:
            self._recompute_totals(invoice)
            self._adjust_billed(invoice, previous_total)
        invoice.touch()
        self.session.add(invoice)
        self.session.commit()
        self.session.refresh(invoice)
        return invoice

    def add_item(self, invoice_id: UUID, payload: InvoiceItemCreate) -> InvoiceItem:
        invoice = self._require_invoice(invoice_id)
        previous_total = Decimal(invoice.total)
        count = self.session.exec(
            select(func.count()).select_from(InvoiceItem).where(InvoiceItem.invoice_id == invoice_id)
        ).one()
        item = self._build_item(invoice_id, payload, int(count or 0))
        self.session.add(item)
        self.session.flush()
        self._recompute_totals(invoice)
        self._adjust_billed(invoice, previous_total)
        self.session.commit()
        self.session.refresh(item)
        return item

    def remove_item(self, invoice_id: UUID, item_id: UUID) -> Invoice:
        invoice = self._require_invoice(invoice_id)
        item = self.session.get(InvoiceItem, item_id)
        if not item or item.invoice_id != invoice_id:
            raise NotFoundError("Item não encontrado")
        previous_total = Decimal(invoice.total)
        self.session.delete(item)
        self.session.flush()
        self._recompute_totals(invoice)
        self._adjust_billed(invoice, previous_total)
        self.session.commit()
        self.session.refresh(invoice)
        return invoice

    def register_payment(self, invoice_id: UUID, payload: PaymentCreate) -> Payment:
        """Registra um pagamento e, se concluído, recalcula a situação da fatura.

        Soma dos pagamentos concluídos >= total da fatura: `paid`.
        Soma > 0: `partial`. O total pago do cliente acompanha a diferença.
        """
        invoice = self._require_invoice(invoice_id)
        if invoice.status == InvoiceStatus.CANCELLED.value:
            raise ValidationError("Fatura cancelada não aceita pagamentos")

        payment = Payment(
            invoice_id=invoice_id,
            gateway=payload.gateway,
            gateway_payment_id=payload.gateway_payment_id,
            amount=payload.amount,
            currency=invoice.currency,
            status=payload.status.value,
            paid_at=payload.paid_at,
        )
        completed = payment.status == PaymentStatus.COMPLETED.value
        if completed and payment.paid_at is None:
            payment.paid_at = datetime.utcnow()
        self.session.add(payment)
        self.session.flush()

        client = self.session.get(Client, invoice.client_id)
        if completed:
            previous_paid = Decimal(invoice.paid_amount or 0)
            total_paid = self._completed_total(self.list_payments(invoice_id))
            invoice.paid_amount = total_paid
            if total_paid >= Decimal(invoice.total):
                invoice.status = InvoiceStatus.PAID.value
                invoice.paid_at = payment.paid_at
            elif total_paid > 0:
                invoice.status = InvoiceStatus.PARTIAL.value
            invoice.payment_method = payment.gateway
            invoice.touch()
            self.session.add(invoice)
            if client:
                client.total_paid = Decimal(client.total_paid or 0) + (total_paid - previous_paid)
                client.touch()
                self.session.add(client)

        self.activity.record(
            action=f"Pagamento registrado na fatura {invoice.invoice_number}",
            entity_type="invoice",
            entity_id=invoice.id,
            details={"amount": str(payment.amount), "gateway": payment.gateway, "status": payment.status},
            commit=False,
        )
        self.session.commit()
        self.session.refresh(payment)

        if completed and client:
            self._notify(
                client,
                type="payment_confirmed",
                title="Pagamento Confirmado",
                message=(
                    f"Pagamento de {format_money(payment.amount, invoice.currency)} "
                    f"recebido para a fatura {invoice.invoice_number}."
                ),
                link=f"/portal/invoices/{invoice.id}",
            )
        return payment

    def _require_invoice(self, invoice_id: UUID) -> Invoice:
        invoice = self.session.get(Invoice, invoice_id)
        if not invoice:
            raise NotFoundError("Fatura não encontrada")
        return invoice

    @staticmethod
    def _build_item(invoice_id: UUID, payload: InvoiceItemCreate, order_index: int) -> InvoiceItem:
        return InvoiceItem(
            invoice_id=invoice_id,
            description=payload.description,
            quantity=payload.quantity,
            unit_price=payload.unit_price,
            discount=payload.discount,
            subtotal=item_subtotal(payload.quantity, payload.unit_price, payload.discount),
            order_index=order_index,
        )

    def _recompute_totals(self, invoice: Invoice) -> None:
        subtotal = sum((Decimal(item.subtotal) for item in self.list_items(invoice.id)), MONEY_ZERO)
        invoice.subtotal = subtotal
        invoice.total = (subtotal + Decimal(invoice.tax or 0) - Decimal(invoice.discount or 0)).quantize(CENT)
        invoice.touch()
        self.session.add(invoice)

    def _adjust_billed(self, invoice: Invoice, previous_total: Decimal) -> None:
        client = self.session.get(Client, invoice.client_id)
        if client is None:
            return
        client.total_billed = Decimal(client.total_billed or 0) + (Decimal(invoice.total) - previous_total)
        client.touch()
        self.session.add(client)

    @staticmethod
    def _completed_total(payments: list[Payment]) -> Decimal:
        return sum(
            (Decimal(item.amount) for item in payments if item.status == PaymentStatus.COMPLETED.value),
            MONEY_ZERO,
        )

    def _notify(self, client: Client, **kwargs: str) -> None:
        if client.user_id is None:
            logger.info(f"[INVOICES] cliente id={client.id} ainda sem acesso ao portal; notificação ignorada")
            return
        self.notifications.create_notification(user_id=client.user_id, **kwargs)
