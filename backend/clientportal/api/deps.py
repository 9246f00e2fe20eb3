from typing import Annotated
from uuid import UUID

from fastapi import Depends, HTTPException, Request, Response, status
from fastapi.security import OAuth2PasswordBearer
from sqlmodel import Session

from clientportal.core.config import settings
from clientportal.core.errors import PortalError
from clientportal.db.session import get_session
from clientportal.models.client import Client
from clientportal.services.admin_session import SESSION_KEYS, AdminAuthGate, SignedCookieStore
from clientportal.services.clients import ClientService
from clientportal.services.payments import PaymentClient, get_payment_client
from clientportal.utils.security import TokenType, decode_token

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.api_v1_str}/portal/magic-link")


def get_db() -> Session:
    yield from get_session()


def http_error(exc: PortalError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=exc.message)


def resolve_portal_user(token: str | None) -> UUID:
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    try:
        payload = decode_token(token)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token") from exc

    if payload.get("token_type") != TokenType.ACCESS.value:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    try:
        return UUID(str(payload["sub"]))
    except (KeyError, ValueError, TypeError) as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token subject") from exc


def get_current_portal_user(token: Annotated[str, Depends(oauth2_scheme)]) -> UUID:
    return resolve_portal_user(token)


def get_current_client(
    user_id: Annotated[UUID, Depends(get_current_portal_user)],
    session: Annotated[Session, Depends(get_db)],
) -> Client:
    client = ClientService(session).get_by_user_id(user_id)
    if not client:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Cliente não encontrado")
    if not client.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Cliente inativo")
    return client


def get_admin_store(request: Request) -> SignedCookieStore:
    return SignedCookieStore(request.cookies)


def get_admin_gate(store: Annotated[SignedCookieStore, Depends(get_admin_store)]) -> AdminAuthGate:
    return AdminAuthGate(store)


class AdminSessionRequired(HTTPException):
    """401 do painel; leva junto as remoções de cookie de uma sessão vencida."""

    def __init__(self, store: SignedCookieStore) -> None:
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Sessão administrativa expirada ou inexistente",
        )
        self.store = store


def require_admin(gate: Annotated[AdminAuthGate, Depends(get_admin_gate)]) -> AdminAuthGate:
    # Revalida a cada acesso; sessão vencida é tratada como deslogada
    if not gate.is_authenticated():
        raise AdminSessionRequired(gate.store)
    return gate


def apply_session_cookies(response: Response, store: SignedCookieStore) -> None:
    max_age = settings.admin_session_ttl_hours * 3600
    secure = settings.environment.strip().lower() != "development"
    for key in SESSION_KEYS:
        if key not in store.pending:
            continue
        value = store.pending[key]
        if value is None:
            response.delete_cookie(key, path="/")
        else:
            response.set_cookie(
                key,
                store.signed(value),
                max_age=max_age,
                httponly=True,
                samesite="lax",
                secure=secure,
                path="/",
            )


def get_payments() -> PaymentClient:
    return get_payment_client()
