from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlmodel import Session, select

from clientportal.core.errors import ConflictError, NotFoundError, ValidationError
from clientportal.core.logging_setup import logger
from clientportal.models.client import Client
from clientportal.models.delivery import Delivery, DeliveryStatus
from clientportal.models.project import Project
from clientportal.schemas.delivery import DeliveryCreate
from clientportal.services.activity import ActivityLogService
from clientportal.services.notifications import NotificationService

REVIEW_ACTIONS = {
    DeliveryStatus.APPROVED: "Entrega aprovada",
    DeliveryStatus.REJECTED: "Entrega rejeitada",
    DeliveryStatus.REVISION_REQUESTED: "Revisão solicitada",
}


class DeliveryService:
    """Entregas do projeto e a revisão feita pelo cliente.

    A revisão só parte de `pending` e não há caminho de volta.
    Rejeitar ou pedir revisão exige um comentário; a validação acontece
    antes de qualquer leitura ou escrita no banco.
    """

    def __init__(
        self,
        session: Session,
        notifications: NotificationService | None = None,
        activity: ActivityLogService | None = None,
    ) -> None:
        self.session = session
        self.notifications = notifications or NotificationService(session)
        self.activity = activity or ActivityLogService(session)

    def list_deliveries(self, client_id: UUID) -> list[Delivery]:
        statement = (
            select(Delivery)
            .join(Project, Project.id == Delivery.project_id)
            .where(Project.client_id == client_id)
            .order_by(Delivery.created_at.desc())
        )
        return list(self.session.exec(statement).all())

    def list_for_project(self, project_id: UUID) -> list[Delivery]:
        statement = select(Delivery).where(Delivery.project_id == project_id).order_by(Delivery.created_at.desc())
        return list(self.session.exec(statement).all())

    def get_delivery(self, delivery_id: UUID) -> Delivery | None:
        return self.session.get(Delivery, delivery_id)

    def create_delivery(self, payload: DeliveryCreate) -> Delivery:
        project = self.session.get(Project, payload.project_id)
        if not project:
            raise NotFoundError("Projeto não encontrado")
        delivery = Delivery(**payload.model_dump())
        self.session.add(delivery)
        self.session.commit()
        self.session.refresh(delivery)

        client = self.session.get(Client, project.client_id)
        if client and client.user_id:
            self.notifications.create_notification(
                user_id=client.user_id,
                type="delivery_created",
                title="Nova Entrega",
                message=f"A entrega \"{delivery.title}\" está disponível para revisão.",
                link=f"/portal/deliveries/{delivery.id}",
            )
        return delivery

    def approve(self, delivery_id: UUID, feedback: str | None = None, *, reviewer_id: UUID | None = None) -> Delivery:
        return self._review(delivery_id, DeliveryStatus.APPROVED, (feedback or "").strip() or None, reviewer_id)

    def reject(self, delivery_id: UUID, feedback: str | None, *, reviewer_id: UUID | None = None) -> Delivery:
        text = self.require_feedback(feedback)
        return self._review(delivery_id, DeliveryStatus.REJECTED, text, reviewer_id)

    def request_revision(self, delivery_id: UUID, feedback: str | None, *, reviewer_id: UUID | None = None) -> Delivery:
        text = self.require_feedback(feedback)
        return self._review(delivery_id, DeliveryStatus.REVISION_REQUESTED, text, reviewer_id)

    @staticmethod
    def require_feedback(feedback: str | None) -> str:
        text = (feedback or "").strip()
        if not text:
            raise ValidationError("Informe o motivo da rejeição ou da revisão.")
        return text

    def _review(
        self,
        delivery_id: UUID,
        status: DeliveryStatus,
        feedback: str | None,
        reviewer_id: UUID | None,
    ) -> Delivery:
        delivery = self.session.get(Delivery, delivery_id)
        if not delivery:
            raise NotFoundError("Entrega não encontrada")
        if delivery.status != DeliveryStatus.PENDING.value:
            raise ConflictError("Esta entrega já foi revisada")

        updated = self._update(
            delivery,
            {
                "status": status.value,
                "client_feedback": feedback,
                "reviewed_at": datetime.utcnow(),
            },
        )
        self.activity.record(
            action=REVIEW_ACTIONS[status],
            user_id=reviewer_id,
            user_type="client",
            entity_type="delivery",
            entity_id=updated.id,
            details={"feedback": feedback} if feedback else None,
        )
        logger.info(f"[DELIVERIES] entrega id={updated.id} -> {status.value}")
        return updated

    def _update(self, delivery: Delivery, changes: dict[str, Any]) -> Delivery:
        for key, value in changes.items():
            setattr(delivery, key, value)
        delivery.touch()
        self.session.add(delivery)
        self.session.commit()
        self.session.refresh(delivery)
        return delivery
