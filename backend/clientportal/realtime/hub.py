from __future__ import annotations

import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable
from uuid import uuid4

from clientportal.core.logging_setup import logger


class ChangeEvent(str, Enum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"


@dataclass(frozen=True)
class RowChange:
    event: ChangeEvent
    table: str
    record: dict[str, Any]


@dataclass(frozen=True)
class RowFilter:
    """Filtro de linha no formato `coluna=eq.valor`."""

    column: str
    value: str

    def matches(self, record: dict[str, Any]) -> bool:
        return str(record.get(self.column)) == self.value

    def __str__(self) -> str:
        return f"{self.column}=eq.{self.value}"


@dataclass
class Subscription:
    channel: str
    table: str
    row_filter: RowFilter
    callback: Callable[[RowChange], None]
    key: str = field(default_factory=lambda: uuid4().hex)
    events: frozenset[ChangeEvent] = field(
        default_factory=lambda: frozenset({ChangeEvent.INSERT, ChangeEvent.UPDATE})
    )
    # Serializa a entrega dentro do canal (FIFO)
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def accepts(self, change: RowChange) -> bool:
        return (
            change.table == self.table
            and change.event in self.events
            and self.row_filter.matches(change.record)
        )


class RealtimeHub:
    """Pub/sub em processo para mudanças de linha (INSERT/UPDATE).

    Vários assinantes podem usar o mesmo nome de canal (um por conexão);
    cada inscrição é identificada pela própria chave.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._subscriptions: dict[str, Subscription] = {}

    def subscribe(
        self,
        channel: str,
        *,
        table: str,
        row_filter: RowFilter,
        callback: Callable[[RowChange], None],
    ) -> Subscription:
        subscription = Subscription(channel=channel, table=table, row_filter=row_filter, callback=callback)
        with self._lock:
            self._subscriptions[subscription.key] = subscription
        logger.info(f"[REALTIME] inscrito em {channel} ({table} {row_filter})")
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        with self._lock:
            if self._subscriptions.pop(subscription.key, None) is None:
                return
        logger.info(f"[REALTIME] canal removido {subscription.channel}")

    def channels(self) -> list[str]:
        with self._lock:
            return [item.channel for item in self._subscriptions.values()]

    def publish(self, change: RowChange) -> int:
        with self._lock:
            targets = [item for item in self._subscriptions.values() if item.accepts(change)]
        delivered = 0
        for subscription in targets:
            with subscription.lock:
                try:
                    subscription.callback(change)
                    delivered += 1
                except Exception:
                    logger.exception(
                        f"[REALTIME] falha ao entregar {change.event.value} em {subscription.channel}"
                    )
        return delivered

    def publish_change(self, table: str, event: ChangeEvent, record: dict[str, Any]) -> int:
        return self.publish(RowChange(event=event, table=table, record=record))


_hub = RealtimeHub()


def get_hub() -> RealtimeHub:
    return _hub
