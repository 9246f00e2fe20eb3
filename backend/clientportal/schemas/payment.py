from enum import Enum

from pydantic import BaseModel


class PaymentProvider(str, Enum):
    STRIPE = "stripe"
    MERCADOPAGO = "mercadopago"
    PIX = "pix"


class PaymentResult(BaseModel):
    success: bool
    redirect_url: str | None = None
    qr_code: str | None = None
    pix_key: str | None = None
    transaction_id: str | None = None
    status: str | None = None
    error: str | None = None


class PaymentInitRequest(BaseModel):
    return_base_url: str | None = None
