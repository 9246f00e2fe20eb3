import base64
import hashlib
import hmac
import secrets
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Mapping
from uuid import uuid4

from jose import JWTError, jwt

from clientportal.core.config import settings


class TokenType(str, Enum):
    ACCESS = "access"


def create_access_token(subject: str, extra_claims: Mapping[str, Any] | None = None) -> str:
    expire = datetime.utcnow() + timedelta(minutes=settings.access_token_expire_minutes)
    to_encode = {
        "sub": subject,
        "exp": expire,
        "token_type": TokenType.ACCESS.value,
        "jti": str(uuid4()),
    }
    if extra_claims:
        to_encode.update(extra_claims)
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def decode_token(token: str) -> dict[str, Any]:
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError as exc:
        raise ValueError("Invalid token") from exc
    if "token_type" not in payload:
        raise ValueError("Invalid token payload")
    return payload


def generate_portal_token() -> str:
    return secrets.token_urlsafe(32)


def _signature(value: str, secret: str) -> str:
    digest = hmac.new(secret.encode("utf-8"), value.encode("utf-8"), hashlib.sha256).digest()
    return base64.urlsafe_b64encode(digest).decode("ascii").rstrip("=")


def sign_value(value: str, secret: str | None = None) -> str:
    """Anexa uma assinatura HMAC-SHA256 ao valor (`valor.assinatura`)."""
    return f"{value}.{_signature(value, secret or settings.secret_key)}"


def unsign_value(signed: str | None, secret: str | None = None) -> str | None:
    """Retorna o valor original ou None quando a assinatura não confere."""
    if not signed or "." not in signed:
        return None
    value, _, signature = signed.rpartition(".")
    expected = _signature(value, secret or settings.secret_key)
    if not hmac.compare_digest(signature, expected):
        return None
    return value
