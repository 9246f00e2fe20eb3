from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Session

from clientportal.api.deps import get_db, http_error
from clientportal.core.errors import PortalError
from clientportal.schemas.contact import ContactMessageCreate, ContactMessageRead
from clientportal.services.contact import ContactService

router = APIRouter(prefix="/contact", tags=["contact"])


@router.post("", response_model=ContactMessageRead, status_code=status.HTTP_201_CREATED)
def submit_contact(payload: ContactMessageCreate, session: Session = Depends(get_db)) -> ContactMessageRead:
    service = ContactService(session)
    try:
        entry = service.submit(payload)
    except PortalError as exc:
        raise http_error(exc) from exc
    return ContactMessageRead.model_validate(entry, from_attributes=True)
