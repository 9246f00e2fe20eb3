import time
from datetime import datetime, timedelta
from decimal import Decimal

from fastapi import Depends, status
from fastapi.testclient import TestClient

from clientportal.api.deps import get_admin_gate, get_admin_store
from clientportal.main import app
from clientportal.services.admin_session import AUTH_KEY, AUTH_TIME_KEY, AdminAuthGate, SignedCookieStore


def test_admin_routes_require_session(client, api):
    assert client.get(f"{api}/admin/clients").status_code == status.HTTP_401_UNAUTHORIZED
    assert client.get(f"{api}/admin/contacts").status_code == status.HTTP_401_UNAUTHORIZED


def test_tampered_cookie_is_rejected(client, api):
    client.cookies.set(AUTH_KEY, "true.assinatura-falsa")

    assert client.get(f"{api}/admin/clients").status_code == status.HTTP_401_UNAUTHORIZED


def test_logout_closes_session(admin_client, api):
    assert admin_client.get(f"{api}/admin/clients").status_code == status.HTTP_200_OK

    response = admin_client.delete(f"{api}/admin/session")

    assert response.json()["authenticated"] is False
    assert admin_client.get(f"{api}/admin/clients").status_code == status.HTTP_401_UNAUTHORIZED


def test_expired_session_clears_cookies(admin_client, api):
    def expired_gate(store: SignedCookieStore = Depends(get_admin_store)) -> AdminAuthGate:
        later = int(time.time() * 1000) + 25 * 3600 * 1000
        return AdminAuthGate(store, clock=lambda: later)

    app.dependency_overrides[get_admin_gate] = expired_gate
    try:
        response = admin_client.get(f"{api}/admin/clients")
    finally:
        app.dependency_overrides.pop(get_admin_gate, None)

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    cleared = [header for header in response.headers.get_list("set-cookie") if "Max-Age=0" in header]
    assert {header.split("=", 1)[0] for header in cleared} == {AUTH_KEY, AUTH_TIME_KEY}


def test_client_crud_and_portal_link(admin_client, api):
    created = admin_client.post(
        f"{api}/admin/clients",
        json={"name": "Padaria Central", "email": "Contato@Example.com", "company_name": "Padaria Central LTDA"},
    )
    assert created.status_code == status.HTTP_201_CREATED
    body = created.json()
    assert body["email"] == "contato@example.com"
    assert body["portal_url"].endswith(f"/portal/acesso/{body['portal_token']}")

    duplicate = admin_client.post(f"{api}/admin/clients", json={"name": "Outra", "email": "contato@example.com"})
    assert duplicate.status_code == status.HTTP_409_CONFLICT

    client_id = body["id"]
    updated = admin_client.patch(f"{api}/admin/clients/{client_id}", json={"phone": "11 99999-0000"})
    assert updated.json()["phone"] == "11 99999-0000"

    reissued = admin_client.post(f"{api}/admin/clients/{client_id}/portal-link")
    assert reissued.json()["portal_token"] != body["portal_token"]

    listing = admin_client.get(f"{api}/admin/clients", params={"search": "padaria"}).json()
    assert listing["total"] == 1

    deactivated = admin_client.delete(f"{api}/admin/clients/{client_id}")
    assert deactivated.json()["detail"] == "Cliente desativado com sucesso"
    assert admin_client.get(f"{api}/admin/clients/{client_id}").json()["is_active"] is False

    removed = admin_client.delete(f"{api}/admin/clients/{client_id}", params={"permanently": True})
    assert removed.json()["detail"] == "Cliente deletado permanentemente"
    assert admin_client.get(f"{api}/admin/clients/{client_id}").status_code == status.HTTP_404_NOT_FOUND


def test_projects_milestones_and_tasks(admin_client, make_client, api):
    owner = make_client()
    project = admin_client.post(f"{api}/admin/projects", json={"client_id": str(owner.id), "name": "E-commerce"})
    assert project.status_code == status.HTTP_201_CREATED
    project_id = project.json()["id"]

    admin_client.post(f"{api}/admin/projects/{project_id}/milestones", json={"name": "Entrega final", "order_index": 2})
    admin_client.post(f"{api}/admin/projects/{project_id}/milestones", json={"name": "Protótipo", "order_index": 1})
    task = admin_client.post(f"{api}/admin/projects/{project_id}/tasks", json={"title": "Checkout"}).json()

    done = admin_client.patch(f"{api}/admin/projects/tasks/{task['id']}", json={"status": "completed"})
    assert done.json()["completed_at"] is not None
    reopened = admin_client.patch(f"{api}/admin/projects/tasks/{task['id']}", json={"status": "in_progress"})
    assert reopened.json()["completed_at"] is None

    detail = admin_client.get(f"{api}/admin/projects/{project_id}").json()
    assert [item["name"] for item in detail["milestones"]] == ["Protótipo", "Entrega final"]
    assert len(detail["tasks"]) == 1


def test_delete_milestone_and_task(admin_client, make_client, api):
    owner = make_client()
    project_id = admin_client.post(f"{api}/admin/projects", json={"client_id": str(owner.id), "name": "Blog"}).json()["id"]
    milestone = admin_client.post(f"{api}/admin/projects/{project_id}/milestones", json={"name": "Conteúdo"}).json()
    task = admin_client.post(
        f"{api}/admin/projects/{project_id}/tasks", json={"title": "Posts", "milestone_id": milestone["id"]}
    ).json()

    removed = admin_client.delete(f"{api}/admin/projects/milestones/{milestone['id']}")
    assert removed.status_code == status.HTTP_204_NO_CONTENT
    detail = admin_client.get(f"{api}/admin/projects/{project_id}").json()
    assert detail["milestones"] == []
    assert detail["tasks"][0]["milestone_id"] is None
    missing = admin_client.delete(f"{api}/admin/projects/milestones/{milestone['id']}")
    assert missing.status_code == status.HTTP_404_NOT_FOUND

    assert admin_client.delete(f"{api}/admin/projects/tasks/{task['id']}").status_code == status.HTTP_204_NO_CONTENT
    assert admin_client.get(f"{api}/admin/projects/{project_id}").json()["tasks"] == []
    assert admin_client.delete(f"{api}/admin/projects/tasks/{task['id']}").status_code == status.HTTP_404_NOT_FOUND


def test_delete_project_keeps_invoice(admin_client, make_client, make_project, api):
    project = make_project(make_client())
    admin_client.post(f"{api}/admin/projects/{project.id}/tasks", json={"title": "Deploy"})
    admin_client.post(f"{api}/admin/projects/{project.id}/messages", json={"message": "Quase lá"})
    invoice = admin_client.post(
        f"{api}/admin/invoices",
        json={
            "client_id": str(project.client_id),
            "project_id": str(project.id),
            "due_date": (datetime.utcnow() + timedelta(days=5)).isoformat(),
        },
    ).json()

    assert admin_client.delete(f"{api}/admin/projects/{project.id}").status_code == status.HTTP_204_NO_CONTENT

    assert admin_client.get(f"{api}/admin/projects/{project.id}").status_code == status.HTTP_404_NOT_FOUND
    assert admin_client.get(f"{api}/admin/invoices/{invoice['id']}").json()["project_id"] is None


def test_delete_client_with_projects_and_invoices(admin_client, portal_login, make_project, api):
    owner, headers = portal_login("Estúdio Norte")
    project = make_project(owner)
    invoice = admin_client.post(
        f"{api}/admin/invoices",
        json={
            "client_id": str(owner.id),
            "project_id": str(project.id),
            "due_date": (datetime.utcnow() + timedelta(days=5)).isoformat(),
            "items": [{"description": "Identidade visual", "unit_price": "800.00"}],
        },
    ).json()
    admin_client.post(f"{api}/admin/invoices/{invoice['id']}/payments", json={"amount": "200.00"})

    assert admin_client.delete(f"{api}/admin/clients/{owner.id}").status_code == status.HTTP_200_OK
    assert admin_client.get(f"{api}/admin/projects/{project.id}").status_code == status.HTTP_200_OK
    assert admin_client.get(f"{api}/admin/invoices/{invoice['id']}").status_code == status.HTTP_200_OK
    assert admin_client.get(f"{api}/portal/me", headers=headers).status_code == status.HTTP_403_FORBIDDEN

    removed = admin_client.delete(f"{api}/admin/clients/{owner.id}", params={"permanently": True})
    assert removed.status_code == status.HTTP_200_OK
    assert admin_client.get(f"{api}/admin/projects/{project.id}").status_code == status.HTTP_404_NOT_FOUND
    assert admin_client.get(f"{api}/admin/invoices/{invoice['id']}").status_code == status.HTTP_404_NOT_FOUND
    assert admin_client.get(f"{api}/portal/me", headers=headers).status_code == status.HTTP_404_NOT_FOUND


def test_invoice_and_payment_flow(admin_client, make_client, api):
    owner = make_client()
    created = admin_client.post(
        f"{api}/admin/invoices",
        json={
            "client_id": str(owner.id),
            "due_date": (datetime.utcnow() + timedelta(days=15)).isoformat(),
            "items": [{"description": "Hospedagem anual", "quantity": "2", "unit_price": "300.00"}],
        },
    )
    assert created.status_code == status.HTTP_201_CREATED
    invoice = created.json()
    assert Decimal(invoice["total"]) == Decimal("600")
    assert invoice["status"] == "pending"

    payment = admin_client.post(f"{api}/admin/invoices/{invoice['id']}/payments", json={"amount": "600.00"})
    assert payment.status_code == status.HTTP_201_CREATED

    detail = admin_client.get(f"{api}/admin/invoices/{invoice['id']}").json()
    assert detail["status"] == "paid"
    assert Decimal(detail["amount_due"]) == Decimal("0")
    assert len(detail["payments"]) == 1

    stats = admin_client.get(f"{api}/admin/clients/stats").json()
    assert Decimal(stats["total_paid"]) == Decimal("600")
    assert stats["pending_invoices"] == 0


def test_admin_delivery_and_message(admin_client, make_client, make_project, api):
    project = make_project(make_client())

    delivery = admin_client.post(f"{api}/admin/deliveries", json={"project_id": str(project.id), "title": "Blog"})
    assert delivery.status_code == status.HTTP_201_CREATED
    assert delivery.json()["status"] == "pending"

    message = admin_client.post(f"{api}/admin/projects/{project.id}/messages", json={"message": "Publicado!"})
    assert message.json()["sender_type"] == "admin"
    assert len(admin_client.get(f"{api}/admin/projects/{project.id}/messages").json()) == 1


def test_contact_form_reaches_admin(admin_client, api):
    public = TestClient(app)
    sent = public.post(
        f"{api}/contact",
        json={"name": "Carla", "email": "carla@example.com", "subject": "Orçamento", "message": "Quero um site"},
    )
    assert sent.status_code == status.HTTP_201_CREATED
    contact_id = sent.json()["id"]

    listing = admin_client.get(f"{api}/admin/contacts", params={"only_unread": True}).json()
    assert [item["name"] for item in listing] == ["Carla"]

    assert admin_client.post(f"{api}/admin/contacts/{contact_id}/read").json()["read"] is True
    assert admin_client.delete(f"{api}/admin/contacts/{contact_id}").status_code == status.HTTP_200_OK
    assert admin_client.get(f"{api}/admin/contacts").json() == []


def test_health(client):
    assert client.get("/health/live").json() == {"status": "ok"}
    assert client.get("/health/ready").status_code == status.HTTP_200_OK
