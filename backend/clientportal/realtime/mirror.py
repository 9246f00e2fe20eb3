from __future__ import annotations

import threading
from typing import Any, Iterable

from clientportal.realtime.hub import ChangeEvent, RowChange


class RealtimeMirror:
    """Lista ordenada em memória espelhando as linhas de um canal.

    INSERT acrescenta no fim; UPDATE substitui o item de mesmo id.
    Antes de acrescentar, procura o mesmo `id` ou a mesma chave de
    correlação (envio otimista) e substitui no lugar.
    """

    def __init__(self, items: Iterable[dict[str, Any]] = (), *, correlation_key: str | None = "client_ref") -> None:
        self.correlation_key = correlation_key
        self._lock = threading.RLock()
        self._items: list[dict[str, Any]] = [dict(item) for item in items]

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def items(self) -> list[dict[str, Any]]:
        with self._lock:
            return [dict(item) for item in self._items]

    def reset(self, items: Iterable[dict[str, Any]]) -> None:
        with self._lock:
            self._items = [dict(item) for item in items]

    def apply(self, change: RowChange) -> bool:
        if change.event == ChangeEvent.INSERT:
            self.insert(change.record)
            return True
        return self.update(change.record)

    def insert(self, record: dict[str, Any]) -> None:
        with self._lock:
            index = self._find(record)
            if index is None:
                self._items.append(dict(record))
            else:
                self._items[index] = dict(record)

    def update(self, record: dict[str, Any]) -> bool:
        record_id = _key(record.get("id"))
        if record_id is None:
            return False
        with self._lock:
            for index, item in enumerate(self._items):
                if _key(item.get("id")) == record_id:
                    self._items[index] = dict(record)
                    return True
        return False

    def discard_ref(self, ref: str) -> bool:
        if not ref or not self.correlation_key:
            return False
        with self._lock:
            for index, item in enumerate(self._items):
                if item.get(self.correlation_key) == ref:
                    del self._items[index]
                    return True
        return False

    def _find(self, record: dict[str, Any]) -> int | None:
        record_id = _key(record.get("id"))
        ref = record.get(self.correlation_key) if self.correlation_key else None
        for index, item in enumerate(self._items):
            if record_id is not None and _key(item.get("id")) == record_id:
                return index
            if ref and item.get(self.correlation_key) == ref:
                return index
        return None


def _key(value: Any) -> str | None:
    return None if value is None else str(value)
