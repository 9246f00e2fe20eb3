from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlmodel import Session, select

from clientportal.core.errors import NotFoundError, ValidationError
from clientportal.models.message import Message, SenderType
from clientportal.models.project import Project
from clientportal.realtime.hub import ChangeEvent, RealtimeHub, get_hub
from clientportal.schemas.common import to_record
from clientportal.schemas.message import MessageRead

TABLE = "portal_messages"


class MessageService:
    def __init__(self, session: Session, hub: RealtimeHub | None = None) -> None:
        self.session = session
        self.hub = hub or get_hub()

    def list_messages(self, project_id: UUID) -> list[Message]:
        statement = (
            select(Message)
            .where(Message.project_id == project_id)
            .order_by(Message.created_at.asc())
        )
        return list(self.session.exec(statement).all())

    def get_message(self, message_id: UUID) -> Message | None:
        return self.session.get(Message, message_id)

    def send_message(
        self,
        *,
        project_id: UUID,
        sender_id: UUID | None,
        sender_type: SenderType | str,
        content: str,
        client_ref: str | None = None,
    ) -> Message:
        """Grava a mensagem; reenvios com o mesmo `client_ref` devolvem a original."""
        text = (content or "").strip()
        if not text:
            raise ValidationError("A mensagem não pode ficar vazia.")
        if not self.session.get(Project, project_id):
            raise NotFoundError("Projeto não encontrado")

        ref = (client_ref or "").strip() or None
        if ref:
            existing = self.session.exec(
                select(Message).where(Message.project_id == project_id).where(Message.client_ref == ref)
            ).first()
            if existing:
                return existing

        message = Message(
            project_id=project_id,
            sender_id=sender_id,
            sender_type=SenderType(sender_type).value,
            message=text,
            client_ref=ref,
        )
        self.session.add(message)
        self.session.commit()
        self.session.refresh(message)
        self._publish(ChangeEvent.INSERT, message)
        return message

    def mark_as_read(self, message_id: UUID) -> Message:
        message = self.session.get(Message, message_id)
        if not message:
            raise NotFoundError("Mensagem não encontrada")
        if not message.is_read:
            message.is_read = True
            message.read_at = datetime.utcnow()
            message.touch()
            self.session.add(message)
            self.session.commit()
            self.session.refresh(message)
            self._publish(ChangeEvent.UPDATE, message)
        return message

    def mark_all_as_read(self, project_id: UUID, reader_type: SenderType | str) -> int:
        """Marca como lidas as mensagens enviadas pelo outro lado da conversa."""
        reader = SenderType(reader_type)
        pending = self.session.exec(
            select(Message)
            .where(Message.project_id == project_id)
            .where(Message.sender_type != reader.value)
            .where(Message.is_read.is_(False))
        ).all()
        if not pending:
            return 0
        now = datetime.utcnow()
        for item in pending:
            item.is_read = True
            item.read_at = now
            item.updated_at = now
            self.session.add(item)
        self.session.commit()
        for item in pending:
            self.session.refresh(item)
            self._publish(ChangeEvent.UPDATE, item)
        return len(pending)

    def _publish(self, event: ChangeEvent, message: Message) -> None:
        self.hub.publish_change(TABLE, event, to_record(MessageRead, message))
