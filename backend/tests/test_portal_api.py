from datetime import datetime, timedelta
from decimal import Decimal

import httpx
import pytest
from fastapi import status

from clientportal.api.deps import get_payments
from clientportal.main import app
from clientportal.schemas.billing import InvoiceCreate, InvoiceItemCreate, InvoiceUpdate
from clientportal.schemas.delivery import DeliveryCreate
from clientportal.services.deliveries import DeliveryService
from clientportal.services.invoices import InvoiceService
from clientportal.services.messages import MessageService
from clientportal.services.notifications import NotificationService
from clientportal.services.payments import PaymentClient


def _invoice(db_session, client, amount="500.00"):
    return InvoiceService(db_session).create_invoice(
        InvoiceCreate(
            client_id=client.id,
            due_date=datetime.utcnow() + timedelta(days=10),
            items=[InvoiceItemCreate(description="Desenvolvimento", unit_price=Decimal(amount))],
        )
    )


@pytest.fixture()
def payments_backend():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        if request.url.path.endswith("/pix/generate"):
            return httpx.Response(200, json={"qrCode": "qr", "pixKey": "chave", "transactionId": "tx-pix"})
        if request.url.path.startswith("/api/payments/status/"):
            return httpx.Response(200, json={"status": "pending"})
        return httpx.Response(200, json={"sessionUrl": "https://checkout.test", "sessionId": "cs_1"})

    app.dependency_overrides[get_payments] = lambda: PaymentClient(
        "http://payments.test", transport=httpx.MockTransport(handler)
    )
    yield calls
    app.dependency_overrides.pop(get_payments, None)


def test_magic_link_is_single_use(client, make_client, api):
    portal_client = make_client(redeemed=False)
    token = portal_client.portal_token

    first = client.post(f"{api}/portal/magic-link/{token}")
    second = client.post(f"{api}/portal/magic-link/{token}")

    assert first.status_code == status.HTTP_200_OK
    assert first.json()["token_type"] == "bearer"
    assert first.json()["client"]["email"] == portal_client.email
    assert second.status_code == status.HTTP_404_NOT_FOUND


def test_portal_requires_token(client, api):
    assert client.get(f"{api}/portal/me").status_code == status.HTTP_401_UNAUTHORIZED
    response = client.get(f"{api}/portal/me", headers={"Authorization": "Bearer lixo"})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_me_and_dashboard(client, portal_login, make_project, api):
    portal_client, headers = portal_login("Ana Souza")
    make_project(portal_client)

    me = client.get(f"{api}/portal/me", headers=headers)
    assert me.status_code == status.HTTP_200_OK
    assert me.json()["name"] == "Ana Souza"

    dashboard = client.get(f"{api}/portal/dashboard", headers=headers)
    assert dashboard.status_code == status.HTTP_200_OK
    body = dashboard.json()
    assert body["error"] is None
    assert body["stats"]["active_projects"] == 1
    assert len(body["projects"]) == 1


def test_projects_are_wrapped_and_scoped_to_owner(client, portal_login, make_client, make_project, api):
    portal_client, headers = portal_login()
    own = make_project(portal_client, name="Meu site")
    other = make_project(make_client("Outro"), name="Site de outro")

    listing = client.get(f"{api}/portal/projects", headers=headers)
    assert listing.status_code == status.HTTP_200_OK
    body = listing.json()
    assert body["loading"] is False
    assert body["error"] is None
    assert [item["name"] for item in body["data"]] == ["Meu site"]

    detail = client.get(f"{api}/portal/projects/{own.id}", headers=headers)
    assert detail.json()["data"]["name"] == "Meu site"
    assert detail.json()["data"]["milestones"] == []

    forbidden = client.get(f"{api}/portal/projects/{other.id}", headers=headers)
    assert forbidden.status_code == status.HTTP_404_NOT_FOUND


def test_delivery_review_flow(client, portal_login, make_project, db_session, api):
    portal_client, headers = portal_login()
    project = make_project(portal_client)
    service = DeliveryService(db_session)
    first = service.create_delivery(DeliveryCreate(project_id=project.id, title="Home"))
    second = service.create_delivery(DeliveryCreate(project_id=project.id, title="Contato"))

    missing_feedback = client.post(f"{api}/portal/deliveries/{first.id}/reject", json={"feedback": "  "}, headers=headers)
    assert missing_feedback.status_code == 422

    rejected = client.post(f"{api}/portal/deliveries/{first.id}/reject", json={"feedback": "Fonte ilegível"}, headers=headers)
    assert rejected.status_code == status.HTTP_200_OK
    assert rejected.json()["status"] == "rejected"
    assert rejected.json()["client_feedback"] == "Fonte ilegível"

    again = client.post(f"{api}/portal/deliveries/{first.id}/approve", headers=headers)
    assert again.status_code == status.HTTP_409_CONFLICT

    approved = client.post(f"{api}/portal/deliveries/{second.id}/approve", headers=headers)
    assert approved.json()["status"] == "approved"

    listing = client.get(f"{api}/portal/deliveries", headers=headers).json()
    assert {item["title"]: item["status"] for item in listing["data"]} == {"Home": "rejected", "Contato": "approved"}


def test_messages_endpoints(client, portal_login, make_project, db_session, api):
    portal_client, headers = portal_login()
    project = make_project(portal_client)
    MessageService(db_session).send_message(
        project_id=project.id, sender_id=None, sender_type="admin", content="Primeira versão no ar"
    )

    sent = client.post(
        f"{api}/portal/projects/{project.id}/messages",
        json={"message": "Vou revisar", "client_ref": "ref-42"},
        headers=headers,
    )
    assert sent.status_code == status.HTTP_201_CREATED
    assert sent.json()["sender_type"] == "client"

    repeated = client.post(
        f"{api}/portal/projects/{project.id}/messages",
        json={"message": "Vou revisar", "client_ref": "ref-42"},
        headers=headers,
    )
    assert repeated.json()["id"] == sent.json()["id"]

    read_all = client.post(f"{api}/portal/projects/{project.id}/messages/read-all", headers=headers)
    assert read_all.json() == {"updated": 1}

    listing = client.get(f"{api}/portal/projects/{project.id}/messages", headers=headers).json()
    assert [item["message"] for item in listing["data"]] == ["Primeira versão no ar", "Vou revisar"]

    empty = client.post(f"{api}/portal/projects/{project.id}/messages", json={"message": "   "}, headers=headers)
    assert empty.status_code == 422


def test_notifications_endpoints(client, portal_login, db_session, api):
    portal_client, headers = portal_login()
    service = NotificationService(db_session)
    first = service.create_notification(user_id=portal_client.user_id, type="info", title="Bem-vindo")
    service.create_notification(user_id=portal_client.user_id, type="info", title="Nova entrega")

    listing = client.get(f"{api}/portal/notifications", headers=headers).json()
    assert listing["data"]["unread_count"] == 2
    assert len(listing["data"]["items"]) == 2

    read = client.post(f"{api}/portal/notifications/{first.id}/read", headers=headers)
    assert read.json()["is_read"] is True

    assert client.post(f"{api}/portal/notifications/read-all", headers=headers).json() == {"updated": 1}

    _, other_headers = portal_login("Outro cliente")
    foreign = client.delete(f"{api}/portal/notifications/{first.id}", headers=other_headers)
    assert foreign.status_code == status.HTTP_404_NOT_FOUND


def test_invoice_detail_is_scoped(client, portal_login, db_session, api):
    portal_client, headers = portal_login()
    invoice = _invoice(db_session, portal_client)
    _, other_headers = portal_login("Outro")

    detail = client.get(f"{api}/portal/invoices/{invoice.id}", headers=headers)
    assert detail.status_code == status.HTTP_200_OK
    assert Decimal(detail.json()["data"]["amount_due"]) == Decimal("500")
    assert len(detail.json()["data"]["items"]) == 1

    assert client.get(f"{api}/portal/invoices/{invoice.id}", headers=other_headers).status_code == 404


def test_start_payment_charges_remaining_amount(client, portal_login, db_session, payments_backend, api):
    portal_client, headers = portal_login()
    invoice = _invoice(db_session, portal_client)

    response = client.post(
        f"{api}/portal/invoices/{invoice.id}/pay/pix",
        json={"return_base_url": "https://cliente.test"},
        headers=headers,
    )

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["qr_code"] == "qr"
    assert payments_backend[0].url.path == "/api/payments/pix/generate"

    status_response = client.get(f"{api}/portal/payments/tx-pix/status", headers=headers)
    assert status_response.json()["status"] == "pending"


def test_paid_invoice_cannot_be_charged(client, portal_login, db_session, payments_backend, api):
    portal_client, headers = portal_login()
    service = InvoiceService(db_session)
    invoice = _invoice(db_session, portal_client)
    service.update_invoice(invoice, InvoiceUpdate(status="paid"))

    response = client.post(f"{api}/portal/invoices/{invoice.id}/pay/stripe", headers=headers)

    assert response.status_code == status.HTTP_409_CONFLICT
    assert payments_backend == []


def test_unknown_provider_is_rejected(client, portal_login, db_session, payments_backend, api):
    portal_client, headers = portal_login()
    invoice = _invoice(db_session, portal_client)

    response = client.post(f"{api}/portal/invoices/{invoice.id}/pay/boleto", headers=headers)

    assert response.status_code == 422
