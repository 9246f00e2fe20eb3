from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar

from clientportal.core.logging_setup import logger

T = TypeVar("T")


class CancellationToken:
    """Marca de cancelamento compartilhada entre quem inicia e quem conclui uma carga."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


@dataclass
class ResourceState(Generic[T]):
    data: T
    loading: bool = False
    error: str | None = None

    def as_dict(self) -> dict[str, Any]:
        return {"data": self.data, "loading": self.loading, "error": self.error}


class EntityResource(Generic[T]):
    """Carrega a coleção associada a um identificador.

    Sem identificador não há consulta. Falhas viram uma mensagem genérica
    (o detalhe vai para o log). Trocar o identificador cancela a carga
    anterior; um resultado cancelado é descartado.
    """

    def __init__(
        self,
        fetch: Callable[[Any], T],
        *,
        empty: Callable[[], T] = list,
        error_message: str = "Erro ao carregar dados",
        identifier: Any = None,
    ) -> None:
        self._fetch = fetch
        self._empty = empty
        self.error_message = error_message
        self.identifier = identifier
        self._lock = threading.Lock()
        self._token: CancellationToken | None = None
        self.state: ResourceState[T] = ResourceState(data=empty(), loading=identifier is not None)

    def set_identifier(self, identifier: Any) -> ResourceState[T]:
        with self._lock:
            if self._token is not None:
                self._token.cancel()
            self.identifier = identifier
        return self.load()

    def load(self) -> ResourceState[T]:
        with self._lock:
            identifier = self.identifier
            if identifier is None:
                self._token = None
                self.state = ResourceState(data=self._empty(), loading=False)
                return self.state
            token = CancellationToken()
            self._token = token
            self.state = ResourceState(data=self.state.data, loading=True)

        try:
            result = ResourceState(data=self._fetch(identifier), loading=False)
        except Exception:
            logger.exception(f"[RESOURCE] {self.error_message} (id={identifier})")
            result = ResourceState(data=self._empty(), loading=False, error=self.error_message)

        with self._lock:
            if token.cancelled:
                logger.info(f"[RESOURCE] resultado descartado para id={identifier}")
                return self.state
            self.state = result
            return result

    def close(self) -> None:
        with self._lock:
            if self._token is not None:
                self._token.cancel()
                self._token = None


def load_resource(
    identifier: Any,
    fetch: Callable[[Any], T],
    *,
    empty: Callable[[], T] = list,
    error_message: str = "Erro ao carregar dados",
) -> ResourceState[T]:
    return EntityResource(fetch, empty=empty, error_message=error_message, identifier=identifier).load()
