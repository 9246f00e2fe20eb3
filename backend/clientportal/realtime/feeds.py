from __future__ import annotations

import threading
from datetime import datetime
from typing import Any, Callable
from uuid import UUID, uuid4

from clientportal.core.logging_setup import logger
from clientportal.portal.resources import CancellationToken
from clientportal.realtime.hub import ChangeEvent, RealtimeHub, RowChange, RowFilter, Subscription
from clientportal.realtime.mirror import RealtimeMirror

Loader = Callable[[Any], list[dict[str, Any]]]
Listener = Callable[[RowChange], None]


class RealtimeFeed:
    """Lista inicial + mudanças em tempo real de um escopo (projeto, usuário).

    A inscrição é feita antes da consulta inicial; eventos que chegam durante
    a carga ficam em espera e são reaplicados depois, na ordem de chegada.
    Existe no máximo uma inscrição ativa por feed.
    """

    table: str = ""
    column: str = ""
    channel_prefix: str = ""
    error_message = "Erro ao carregar dados"

    def __init__(self, hub: RealtimeHub, loader: Loader, *, correlation_key: str | None = None) -> None:
        self.hub = hub
        self.loader = loader
        self.mirror = RealtimeMirror(correlation_key=correlation_key)
        self.scope: Any = None
        self.loading = False
        self.error: str | None = None
        self._listeners: list[Listener] = []
        self._lock = threading.RLock()
        self._subscription: Subscription | None = None
        self._token: CancellationToken | None = None
        self._buffer: list[RowChange] = []

    @property
    def channel(self) -> str | None:
        if self.scope is None:
            return None
        return f"{self.channel_prefix}:{self.scope}"

    def items(self) -> list[dict[str, Any]]:
        return self.mirror.items()

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def state(self) -> dict[str, Any]:
        return {"data": self.items(), "loading": self.loading, "error": self.error}

    def start(self, scope: Any) -> dict[str, Any]:
        """Troca o escopo: encerra a inscrição anterior, inscreve e carrega."""
        with self._lock:
            self._teardown()
            self.scope = scope
            if scope is None:
                self.mirror.reset([])
                self.loading = False
                self.error = None
                return self.state()
            token = CancellationToken()
            self._token = token
            self.loading = True
            self.error = None
            self._buffer = []
            self._subscription = self.hub.subscribe(
                self.channel,
                table=self.table,
                row_filter=RowFilter(self.column, str(scope)),
                callback=self._on_change,
            )

        try:
            rows = self.loader(scope)
            error = None
        except Exception:
            logger.exception(f"[REALTIME] {self.error_message} ({self.channel})")
            rows, error = [], self.error_message

        with self._lock:
            if token.cancelled:
                return self.state()
            self.mirror.reset(rows)
            self.error = error
            pending, self._buffer = self._buffer, []
            self.loading = False
            for change in pending:
                self._apply(change)
            return self.state()

    def close(self) -> None:
        with self._lock:
            self._teardown()
            self.scope = None

    def _teardown(self) -> None:
        if self._token is not None:
            self._token.cancel()
            self._token = None
        if self._subscription is not None:
            self.hub.unsubscribe(self._subscription)
            self._subscription = None
        self._buffer = []

    def _on_change(self, change: RowChange) -> None:
        with self._lock:
            if self._subscription is None:
                return
            if self.loading:
                self._buffer.append(change)
                return
            self._apply(change)

    def _apply(self, change: RowChange) -> None:
        if not self.mirror.apply(change):
            return
        self.on_applied(change)
        for listener in list(self._listeners):
            listener(change)

    def on_applied(self, change: RowChange) -> None:
        return None


class MessageFeed(RealtimeFeed):
    table = "portal_messages"
    column = "project_id"
    channel_prefix = "messages"
    error_message = "Erro ao carregar mensagens"

    def __init__(self, hub: RealtimeHub, loader: Loader, sender: Callable[..., dict[str, Any]]) -> None:
        super().__init__(hub, loader, correlation_key="client_ref")
        self.sender = sender

    def send(
        self,
        message: str,
        *,
        sender_id: UUID | None,
        sender_type: str,
        client_ref: str | None = None,
    ) -> dict[str, Any]:
        """Envio otimista: a entrada local é conciliada pelo `client_ref` no eco."""
        if self.scope is None:
            raise RuntimeError("Feed de mensagens sem projeto")
        ref = (client_ref or "").strip() or uuid4().hex
        self.mirror.insert(
            {
                "id": None,
                "project_id": str(self.scope),
                "sender_id": str(sender_id) if sender_id else None,
                "sender_type": sender_type,
                "message": message,
                "client_ref": ref,
                "is_read": False,
                "read_at": None,
                "created_at": datetime.utcnow().isoformat(),
                "updated_at": None,
                "pending": True,
            }
        )
        try:
            record = self.sender(
                project_id=self.scope,
                sender_id=sender_id,
                sender_type=sender_type,
                content=message,
                client_ref=ref,
            )
        except Exception:
            self.mirror.discard_ref(ref)
            raise
        self.mirror.insert(record)
        return record


class NotificationFeed(RealtimeFeed):
    table = "portal_notifications"
    column = "user_id"
    channel_prefix = "notifications"
    error_message = "Erro ao carregar notificações"

    def __init__(
        self,
        hub: RealtimeHub,
        loader: Loader,
        alert: Callable[[dict[str, Any]], None] | None = None,
    ) -> None:
        super().__init__(hub, loader)
        self.alert = alert

    def unread_count(self) -> int:
        return sum(1 for item in self.items() if not item.get("is_read"))

    def on_applied(self, change: RowChange) -> None:
        if change.event != ChangeEvent.INSERT or self.alert is None:
            return
        try:
            self.alert(change.record)
        except Exception as exc:
            # O aviso sonoro é opcional; falhas não chegam ao usuário
            logger.warning(f"[REALTIME] falha ao emitir alerta de notificação: {exc}")
