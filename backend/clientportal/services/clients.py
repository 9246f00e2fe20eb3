from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlmodel import Session, func, select

from clientportal.core.config import settings
from clientportal.core.errors import ConflictError, NotFoundError, ValidationError
from clientportal.core.logging_setup import logger
from clientportal.models.billing import Invoice, InvoiceItem, Payment
from clientportal.models.client import Client
from clientportal.models.notification import Notification
from clientportal.schemas.client import ClientCreate, ClientUpdate
from clientportal.services.activity import ActivityLogService
from clientportal.services.projects import ProjectService
from clientportal.utils.email_validation import normalize_email
from clientportal.utils.security import generate_portal_token


def build_portal_url(token: str) -> str:
    base = settings.resolved_public_app_url() or "http://localhost:5173"
    return f"{base}/portal/acesso/{token}"


class ClientService:
    def __init__(self, session: Session) -> None:
        self.session = session

    def list_clients(
        self,
        *,
        search: str = "",
        is_active: bool | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> tuple[list[Client], int]:
        statement = select(Client)
        count_statement = select(func.count()).select_from(Client)
        if search:
            pattern = f"%{search.strip().lower()}%"
            condition = (
                func.lower(Client.name).like(pattern)
                | func.lower(Client.email).like(pattern)
                | func.lower(Client.company_name).like(pattern)
            )
            statement = statement.where(condition)
            count_statement = count_statement.where(condition)
        if is_active is not None:
            statement = statement.where(Client.is_active == is_active)
            count_statement = count_statement.where(Client.is_active == is_active)

        page = max(page, 1)
        limit = max(limit, 1)
        statement = statement.order_by(Client.created_at.desc()).offset((page - 1) * limit).limit(limit)
        items = list(self.session.exec(statement).all())
        total = self.session.exec(count_statement).one()
        return items, int(total or 0)

    def list_all(self) -> list[Client]:
        return list(self.session.exec(select(Client)).all())

    def get_client(self, client_id: UUID) -> Client | None:
        return self.session.get(Client, client_id)

    def get_by_user_id(self, user_id: UUID) -> Client | None:
        return self.session.exec(select(Client).where(Client.user_id == user_id)).first()

    def get_by_portal_token(self, token: str) -> Client | None:
        if not token:
            return None
        return self.session.exec(select(Client).where(Client.portal_token == token)).first()

    def create_client(self, payload: ClientCreate) -> Client:
        try:
            email = normalize_email(payload.email)
        except ValueError as exc:
            raise ValidationError(str(exc)) from exc

        exists = self.session.exec(select(Client).where(func.lower(Client.email) == email)).first()
        if exists:
            raise ConflictError("Já existe um cliente com este e-mail")

        client = Client(
            name=payload.name.strip(),
            email=email,
            company_name=payload.company_name,
            phone=payload.phone,
            document=payload.document,
            notes=payload.notes,
            portal_token=generate_portal_token(),
        )
        self.session.add(client)
        self.session.commit()
        self.session.refresh(client)
        logger.info(f"[CLIENTS] cliente criado id={client.id}")
        return client

    def update_client(self, client: Client, payload: ClientUpdate) -> Client:
        data = payload.model_dump(exclude_unset=True)
        if "email" in data and data["email"] is not None:
            try:
                data["email"] = normalize_email(data["email"])
            except ValueError as exc:
                raise ValidationError(str(exc)) from exc
        for key, value in data.items():
            setattr(client, key, value)
        client.touch()
        self.session.add(client)
        self.session.commit()
        self.session.refresh(client)
        return client

    def delete_client(self, client: Client, *, permanently: bool = False) -> Client | None:
        """Desativa o cliente; com `permanently` remove também tudo o que é dele."""
        if not permanently:
            client.is_active = False
            client.touch()
            self.session.add(client)
            ActivityLogService(self.session).record(
                action=f"Cliente {client.name} desativado",
                entity_type="client",
                entity_id=client.id,
                commit=False,
            )
            self.session.commit()
            self.session.refresh(client)
            logger.info(f"[CLIENTS] cliente desativado id={client.id}")
            return client

        client_id = client.id
        projects = ProjectService(self.session)
        for project in projects.list_projects(client_id):
            projects.delete_project(project, commit=False)

        for invoice in self.session.exec(select(Invoice).where(Invoice.client_id == client_id)).all():
            for payment in self.session.exec(select(Payment).where(Payment.invoice_id == invoice.id)).all():
                self.session.delete(payment)
            for item in self.session.exec(select(InvoiceItem).where(InvoiceItem.invoice_id == invoice.id)).all():
                self.session.delete(item)
            self.session.flush()
            self.session.delete(invoice)
        self.session.flush()

        if client.user_id is not None:
            for notification in self.session.exec(
                select(Notification).where(Notification.user_id == client.user_id)
            ).all():
                self.session.delete(notification)

        self.session.delete(client)
        self.session.commit()
        logger.info(f"[CLIENTS] cliente removido permanentemente id={client_id}")
        return None

    def reissue_portal_token(self, client: Client) -> Client:
        client.portal_token = generate_portal_token()
        client.touch()
        self.session.add(client)
        self.session.commit()
        self.session.refresh(client)
        return client

    def redeem_magic_link(self, token: str) -> Client:
        """Consome o link de acesso: vincula um usuário e invalida o token."""
        client = self.get_by_portal_token((token or "").strip())
        if not client:
            raise NotFoundError("Link de acesso inválido ou já utilizado")
        if not client.is_active:
            raise ConflictError("Cliente inativo")
        if client.user_id is None:
            client.user_id = uuid4()
        client.portal_token = None
        client.last_login = datetime.utcnow()
        client.touch()
        self.session.add(client)
        self.session.commit()
        self.session.refresh(client)
        logger.info(f"[CLIENTS] link de acesso utilizado pelo cliente id={client.id}")
        return client
