from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from sqlmodel import Field

from clientportal.models.base import TimestampedModel, UUIDModel, money_field


class InvoiceStatus(str, Enum):
    DRAFT = "draft"
    PENDING = "pending"
    PARTIAL = "partial"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


class Invoice(UUIDModel, TimestampedModel, table=True):
    __tablename__ = "portal_invoices"

    invoice_number: str = Field(max_length=32, index=True, unique=True)
    client_id: UUID = Field(foreign_key="portal_clients.id", index=True)
    project_id: UUID | None = Field(default=None, foreign_key="portal_projects.id", index=True)
    issue_date: datetime = Field(default_factory=datetime.utcnow)
    due_date: datetime
    subtotal: Decimal = money_field()
    tax: Decimal = money_field()
    discount: Decimal = money_field()
    total: Decimal = money_field()
    paid_amount: Decimal = money_field()
    currency: str = Field(default="BRL", max_length=8)
    status: str = Field(default=InvoiceStatus.PENDING.value, max_length=16)
    payment_method: str | None = Field(default=None, max_length=32)
    notes: str | None = Field(default=None)
    paid_at: datetime | None = Field(default=None)


class InvoiceItem(UUIDModel, TimestampedModel, table=True):
    __tablename__ = "portal_invoice_items"

    invoice_id: UUID = Field(foreign_key="portal_invoices.id", index=True)
    description: str = Field(max_length=255)
    quantity: Decimal = Field(default=Decimal("1"), max_digits=10, decimal_places=2)
    unit_price: Decimal = money_field()
    discount: Decimal = money_field()
    subtotal: Decimal = money_field()
    order_index: int = Field(default=0)


class Payment(UUIDModel, TimestampedModel, table=True):
    __tablename__ = "portal_payments"

    invoice_id: UUID = Field(foreign_key="portal_invoices.id", index=True)
    gateway: str = Field(default="manual", max_length=16)
    gateway_payment_id: str | None = Field(default=None, max_length=128, index=True)
    amount: Decimal = money_field()
    currency: str = Field(default="BRL", max_length=8)
    status: str = Field(default=PaymentStatus.COMPLETED.value, max_length=16)
    paid_at: datetime | None = Field(default=None)
