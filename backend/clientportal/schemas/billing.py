from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field

from clientportal.models.billing import InvoiceStatus, PaymentStatus
from clientportal.schemas.common import IDModel, Timestamped


class InvoiceItemCreate(BaseModel):
    description: str = Field(min_length=1, max_length=255)
    quantity: Decimal = Field(default=Decimal("1"), gt=0)
    unit_price: Decimal = Field(ge=0)
    discount: Decimal = Field(default=Decimal("0"), ge=0)


class InvoiceItemRead(IDModel):
    invoice_id: UUID
    description: str
    quantity: Decimal
    unit_price: Decimal
    discount: Decimal
    subtotal: Decimal
    order_index: int


class InvoiceCreate(BaseModel):
    client_id: UUID
    project_id: UUID | None = None
    due_date: datetime
    tax: Decimal = Field(default=Decimal("0"), ge=0)
    discount: Decimal = Field(default=Decimal("0"), ge=0)
    currency: str = "BRL"
    notes: str | None = None
    items: list[InvoiceItemCreate] = []


class InvoiceUpdate(BaseModel):
    due_date: datetime | None = None
    tax: Decimal | None = Field(default=None, ge=0)
    discount: Decimal | None = Field(default=None, ge=0)
    status: InvoiceStatus | None = None
    payment_method: str | None = None
    notes: str | None = None


class InvoiceRead(IDModel, Timestamped):
    invoice_number: str
    client_id: UUID
    project_id: UUID | None = None
    issue_date: datetime
    due_date: datetime
    subtotal: Decimal
    tax: Decimal
    discount: Decimal
    total: Decimal
    paid_amount: Decimal
    currency: str
    status: str
    payment_method: str | None = None
    notes: str | None = None
    paid_at: datetime | None = None


class PaymentCreate(BaseModel):
    amount: Decimal = Field(gt=0)
    gateway: str = "manual"
    gateway_payment_id: str | None = None
    status: PaymentStatus = PaymentStatus.COMPLETED
    paid_at: datetime | None = None


class PaymentRead(IDModel, Timestamped):
    invoice_id: UUID
    gateway: str
    gateway_payment_id: str | None = None
    amount: Decimal
    currency: str
    status: str
    paid_at: datetime | None = None


class InvoiceDetail(InvoiceRead):
    items: list[InvoiceItemRead] = []
    payments: list[PaymentRead] = []
    amount_paid: Decimal = Decimal("0")
    amount_due: Decimal = Decimal("0")
