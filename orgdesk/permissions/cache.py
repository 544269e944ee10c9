from __future__ import annotations

import threading
import time
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

from orgdesk.logging_config import get_logger
from orgdesk.models.enums import OrgRole, Plan

log = get_logger(__name__)

V = TypeVar("V")

@dataclass(frozen=True)
class CacheScope:
    organization_id: uuid.UUID | None
    role: OrgRole | None
    plan: Plan | None = None

@dataclass
class _Entry(Generic[V]):
    value: V
    loaded_at: float

class LayerCache(Generic[V]):
    """
    Time-bounded cache of permission layer snapshots, one slot per scope.

    A failed reload keeps serving the last good snapshot for that scope.
    Writes to any layer must call ``invalidate``/``invalidate_org``/``clear``.
    """

    def __init__(self, ttl_seconds: float = 60.0, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[CacheScope, _Entry[V]] = {}
        self._lock = threading.Lock()

    def get(self, scope: CacheScope) -> V | None:
        with self._lock:
            entry = self._entries.get(scope)
        if entry is None or self._expired(entry):
            return None
        return entry.value

    def put(self, scope: CacheScope, value: V) -> None:
        with self._lock:
            self._entries[scope] = _Entry(value=value, loaded_at=self._clock())

    def get_or_load(self, scope: CacheScope, loader: Callable[[], V]) -> V:
        with self._lock:
            entry = self._entries.get(scope)
        if entry is not None and not self._expired(entry):
            return entry.value

        try:
            value = loader()
        except Exception as e:
            if entry is None:
                raise
            log.warning("permission reload failed for %s, serving last good snapshot: %s", scope, e)
            return entry.value

        self.put(scope, value)
        return value

    def invalidate(self, scope: CacheScope) -> None:
        with self._lock:
            self._entries.pop(scope, None)

    def invalidate_org(self, organization_id: uuid.UUID) -> None:
        with self._lock:
            for scope in [s for s in self._entries if s.organization_id == organization_id]:
                del self._entries[scope]

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _expired(self, entry: _Entry[V]) -> bool:
        return self._clock() - entry.loaded_at >= self.ttl_seconds
