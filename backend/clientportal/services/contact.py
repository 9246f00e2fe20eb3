from __future__ import annotations

from uuid import UUID

from sqlmodel import Session, func, select

from clientportal.core.errors import NotFoundError, ValidationError
from clientportal.core.logging_setup import logger
from clientportal.models.contact import ContactMessage
from clientportal.schemas.contact import ContactMessageCreate
from clientportal.utils.email_validation import normalize_email


class ContactService:
    def __init__(self, session: Session) -> None:
        self.session = session

    def submit(self, payload: ContactMessageCreate) -> ContactMessage:
        try:
            email = normalize_email(payload.email)
        except ValueError as exc:
            raise ValidationError(str(exc)) from exc
        entry = ContactMessage(
            name=payload.name.strip(),
            email=email,
            subject=payload.subject.strip(),
            message=payload.message.strip(),
        )
        self.session.add(entry)
        self.session.commit()
        self.session.refresh(entry)
        logger.info(f"[CONTACT] nova mensagem de contato id={entry.id}")
        return entry

    def search(self, query: str = "", limit: int = 50, only_unread: bool = False) -> list[ContactMessage]:
        statement = select(ContactMessage)
        if query:
            pattern = f"%{query.lower()}%"
            statement = statement.where(
                func.lower(ContactMessage.name).like(pattern)
                | func.lower(ContactMessage.email).like(pattern)
                | func.lower(ContactMessage.subject).like(pattern)
            )
        if only_unread:
            statement = statement.where(ContactMessage.read.is_(False))
        statement = statement.order_by(ContactMessage.created_at.desc()).limit(max(limit, 1))
        return list(self.session.exec(statement).all())

    def mark_read(self, message_id: UUID, read: bool = True) -> ContactMessage:
        entry = self._require(message_id)
        entry.read = read
        entry.touch()
        self.session.add(entry)
        self.session.commit()
        self.session.refresh(entry)
        return entry

    def delete(self, message_id: UUID) -> None:
        entry = self._require(message_id)
        self.session.delete(entry)
        self.session.commit()

    def _require(self, message_id: UUID) -> ContactMessage:
        entry = self.session.get(ContactMessage, message_id)
        if not entry:
            raise NotFoundError("Mensagem de contato não encontrada")
        return entry
