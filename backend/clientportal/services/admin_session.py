from __future__ import annotations

import hmac
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Mapping, MutableMapping, Protocol

from clientportal.core.config import settings
from clientportal.core.errors import AuthenticationError, ValidationError
from clientportal.core.logging_setup import logger
from clientportal.utils.security import sign_value, unsign_value

AUTH_KEY = "admin-auth"
AUTH_TIME_KEY = "admin-auth-time"
SESSION_KEYS = (AUTH_KEY, AUTH_TIME_KEY)


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class AdminSession:
    authenticated: bool
    expires_at: datetime | None = None

    def is_valid(self, now: datetime | None = None) -> bool:
        if not self.authenticated or self.expires_at is None:
            return False
        return (now or datetime.now(timezone.utc)) < self.expires_at


ANONYMOUS = AdminSession(authenticated=False)


class SessionStore(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class MemorySessionStore:
    def __init__(self, initial: Mapping[str, str] | None = None) -> None:
        self.values: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self.values.get(key)

    def set(self, key: str, value: str) -> None:
        self.values[key] = value

    def delete(self, key: str) -> None:
        self.values.pop(key, None)


class SignedCookieStore:
    """Lê cookies recebidos e acumula as alterações a aplicar na resposta.

    Valores são assinados com HMAC; um cookie adulterado é tratado como ausente.
    """

    def __init__(self, cookies: Mapping[str, str], secret: str | None = None) -> None:
        self._cookies = cookies
        self._secret = secret or settings.secret_key
        self.pending: MutableMapping[str, str | None] = {}

    def get(self, key: str) -> str | None:
        if key in self.pending:
            return self.pending[key]
        return unsign_value(self._cookies.get(key), self._secret)

    def set(self, key: str, value: str) -> None:
        self.pending[key] = value

    def delete(self, key: str) -> None:
        self.pending[key] = None

    def signed(self, value: str) -> str:
        return sign_value(value, self._secret)


class AdminAuthGate:
    """Controle de acesso ao painel administrativo (senha única, sessão de 24h)."""

    def __init__(
        self,
        store: SessionStore,
        *,
        password: str | None = None,
        ttl: timedelta | None = None,
        clock: Callable[[], int] = _now_ms,
    ) -> None:
        self.store = store
        self.password = settings.admin_password if password is None else password
        self.ttl = ttl or timedelta(hours=settings.admin_session_ttl_hours)
        self.clock = clock
        self.session = ANONYMOUS

    def load(self) -> AdminSession:
        """Revalida a sessão gravada; expirada ou inválida apaga as duas chaves."""
        flag = self.store.get(AUTH_KEY)
        raw_time = self.store.get(AUTH_TIME_KEY)
        if flag is None and raw_time is None:
            self.session = ANONYMOUS
            return self.session

        try:
            issued_ms = int(raw_time or "")
        except ValueError:
            issued_ms = None

        now_ms = self.clock()
        ttl_ms = int(self.ttl.total_seconds() * 1000)
        if flag != "true" or issued_ms is None or now_ms - issued_ms >= ttl_ms:
            self._clear()
            self.session = ANONYMOUS
            return self.session

        self.session = AdminSession(authenticated=True, expires_at=_from_ms(issued_ms + ttl_ms))
        return self.session

    def login(self, password: str | None) -> AdminSession:
        candidate = (password or "").strip()
        if not candidate:
            raise ValidationError("Informe a senha.")
        if not hmac.compare_digest(candidate.encode("utf-8"), (self.password or "").encode("utf-8")):
            logger.warning("[ADMIN] tentativa de login com senha incorreta")
            raise AuthenticationError("Senha incorreta")

        issued_ms = self.clock()
        self.store.set(AUTH_KEY, "true")
        self.store.set(AUTH_TIME_KEY, str(issued_ms))
        self.session = AdminSession(
            authenticated=True,
            expires_at=_from_ms(issued_ms + int(self.ttl.total_seconds() * 1000)),
        )
        logger.info("[ADMIN] sessão administrativa iniciada")
        return self.session

    def logout(self) -> AdminSession:
        self._clear()
        self.session = ANONYMOUS
        logger.info("[ADMIN] sessão administrativa encerrada")
        return self.session

    def is_authenticated(self) -> bool:
        return self.load().is_valid(_from_ms(self.clock()))

    def _clear(self) -> None:
        for key in SESSION_KEYS:
            self.store.delete(key)


def _from_ms(value: int) -> datetime:
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
