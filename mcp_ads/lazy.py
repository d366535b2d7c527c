from __future__ import annotations

import enum
import logging
import threading
from typing import Callable, Generic, Optional, TypeVar

T = TypeVar("T")

log = logging.getLogger("mcp_ads.lazy")


class ClientState(str, enum.Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"


class LazyClient(Generic[T]):
    """
    Vendor SDK handle built on first use.

    ``get()`` moves UNINITIALIZED -> READY exactly once, even when several
    threads make their first call together. If the factory raises, the state
    stays UNINITIALIZED and the next ``get()`` tries again.
    """

    def __init__(self, factory: Callable[[], T], name: str = "client"):
        self._factory = factory
        self._name = name
        self._client: Optional[T] = None
        self._lock = threading.Lock()

    @property
    def state(self) -> ClientState:
        return ClientState.READY if self._client is not None else ClientState.UNINITIALIZED

    def get(self) -> T:
        client = self._client
        if client is not None:
            return client
        with self._lock:
            if self._client is None:
                log.info("initializing %s", self._name)
                self._client = self._factory()
            return self._client
