from __future__ import annotations

from decimal import Decimal
from typing import Any
from uuid import UUID

import httpx

from clientportal.core.config import settings
from clientportal.core.logging_setup import logger
from clientportal.schemas.payment import PaymentResult

PAYMENT_STATUSES = frozenset({"pending", "approved", "rejected"})


class PaymentClientError(RuntimeError):
    """Falha ao falar com o backend de pagamentos."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class PaymentClient:
    """Cliente HTTP para o backend que cria as cobranças nos provedores.

    Uma única ida e volta por operação, sem novas tentativas.
    """

    def __init__(
        self,
        base_url: str | None = None,
        *,
        timeout_seconds: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._base_url = (base_url or settings.payments_api_url or "").rstrip("/")
        self._timeout = timeout_seconds or settings.payments_timeout_seconds or 15.0
        self._transport = transport

    def _request(self, method: str, path: str, *, json: dict[str, Any] | None = None) -> dict[str, Any]:
        if not self._base_url:
            raise PaymentClientError("URL do backend de pagamentos não configurada.")
        try:
            with httpx.Client(base_url=self._base_url, timeout=self._timeout, transport=self._transport) as client:
                response = client.request(method, path, json=json)
        except httpx.RequestError as exc:
            raise PaymentClientError(f"Falha ao conectar com o backend de pagamentos: {exc}") from exc

        if response.status_code >= 400:
            raise PaymentClientError(
                f"Backend de pagamentos respondeu {response.status_code}: {response.text[:200]}",
                status_code=response.status_code,
            )
        try:
            payload = response.json()
        except ValueError as exc:
            raise PaymentClientError("Resposta inválida do backend de pagamentos.") from exc
        if not isinstance(payload, dict):
            raise PaymentClientError("Resposta inválida do backend de pagamentos.")
        return payload

    def _call(self, error_message: str, method: str, path: str, json: dict[str, Any] | None = None) -> dict[str, Any] | PaymentResult:
        try:
            return self._request(method, path, json=json)
        except PaymentClientError as exc:
            logger.error(f"[PAYMENTS] {method} {path} falhou: {exc}")
            return PaymentResult(success=False, error=error_message)

    @staticmethod
    def invoice_return_url(return_base_url: str, invoice_id: UUID | str, outcome: str) -> str:
        base = (return_base_url or "").rstrip("/")
        return f"{base}/portal/invoices/{invoice_id}?payment={outcome}"

    def create_stripe_session(self, invoice_id: UUID | str, amount: Decimal, return_base_url: str) -> PaymentResult:
        body = {
            "invoiceId": str(invoice_id),
            "amount": float(amount),
            "successUrl": self.invoice_return_url(return_base_url, invoice_id, "success"),
            "cancelUrl": self.invoice_return_url(return_base_url, invoice_id, "cancelled"),
        }
        payload = self._call("Erro ao criar sessão de pagamento", "POST", "/api/payments/stripe/create-session", body)
        if isinstance(payload, PaymentResult):
            return payload
        return PaymentResult(
            success=True,
            redirect_url=payload.get("sessionUrl"),
            transaction_id=payload.get("sessionId"),
        )

    def create_mercadopago_preference(
        self,
        invoice_id: UUID | str,
        amount: Decimal,
        return_base_url: str,
    ) -> PaymentResult:
        body = {
            "invoiceId": str(invoice_id),
            "amount": float(amount),
            "backUrls": {
                "success": self.invoice_return_url(return_base_url, invoice_id, "success"),
                "failure": self.invoice_return_url(return_base_url, invoice_id, "failure"),
                "pending": self.invoice_return_url(return_base_url, invoice_id, "pending"),
            },
        }
        payload = self._call(
            "Erro ao criar preferência de pagamento", "POST", "/api/payments/mercadopago/create-preference", body
        )
        if isinstance(payload, PaymentResult):
            return payload
        return PaymentResult(
            success=True,
            redirect_url=payload.get("initPoint"),
            transaction_id=payload.get("preferenceId"),
        )

    def generate_pix(self, invoice_id: UUID | str, amount: Decimal) -> PaymentResult:
        body = {"invoiceId": str(invoice_id), "amount": float(amount)}
        payload = self._call("Erro ao gerar QR Code PIX", "POST", "/api/payments/pix/generate", body)
        if isinstance(payload, PaymentResult):
            return payload
        return PaymentResult(
            success=True,
            qr_code=payload.get("qrCode"),
            pix_key=payload.get("pixKey"),
            transaction_id=payload.get("transactionId"),
        )

    def check_status(self, transaction_id: str) -> PaymentResult:
        payload = self._call("Erro ao verificar status do pagamento", "GET", f"/api/payments/status/{transaction_id}")
        if isinstance(payload, PaymentResult):
            return payload
        status = str(payload.get("status") or "").lower()
        if status not in PAYMENT_STATUSES:
            logger.warning(f"[PAYMENTS] status desconhecido para {transaction_id}: {status!r}")
            return PaymentResult(success=False, transaction_id=transaction_id, error="Status de pagamento desconhecido")
        return PaymentResult(success=True, transaction_id=transaction_id, status=status)


def get_payment_client() -> PaymentClient:
    return PaymentClient()
