from fastapi import APIRouter, Depends, Response

from clientportal.api.deps import apply_session_cookies, get_admin_gate, get_admin_store, http_error
from clientportal.core.errors import PortalError
from clientportal.schemas.admin import AdminLoginRequest, AdminSessionRead
from clientportal.services.admin_session import AdminAuthGate, SignedCookieStore

router = APIRouter(prefix="/admin/session", tags=["admin"])


def _to_schema(gate: AdminAuthGate) -> AdminSessionRead:
    return AdminSessionRead(authenticated=gate.session.authenticated, expires_at=gate.session.expires_at)


@router.post("", response_model=AdminSessionRead)
def login(
    payload: AdminLoginRequest,
    response: Response,
    store: SignedCookieStore = Depends(get_admin_store),
    gate: AdminAuthGate = Depends(get_admin_gate),
) -> AdminSessionRead:
    try:
        gate.login(payload.password)
    except PortalError as exc:
        raise http_error(exc) from exc
    apply_session_cookies(response, store)
    return _to_schema(gate)


@router.get("", response_model=AdminSessionRead)
def current_session(
    response: Response,
    store: SignedCookieStore = Depends(get_admin_store),
    gate: AdminAuthGate = Depends(get_admin_gate),
) -> AdminSessionRead:
    gate.load()
    apply_session_cookies(response, store)
    return _to_schema(gate)


@router.delete("", response_model=AdminSessionRead)
def logout(
    response: Response,
    store: SignedCookieStore = Depends(get_admin_store),
    gate: AdminAuthGate = Depends(get_admin_gate),
) -> AdminSessionRead:
    gate.logout()
    apply_session_cookies(response, store)
    return _to_schema(gate)
