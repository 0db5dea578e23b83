from __future__ import annotations

import time
from dataclasses import dataclass, field
from threading import Lock
from typing import Any


@dataclass
class RegistryEntry:
    orchestrator: Any
    session_controller: Any
    kind: str = "interview"
    active: bool = True
    created_at: float = field(default_factory=time.time)
    updated_at: float = field(default_factory=time.time)


class SessionRegistry:
    """Live connections by id. Closed entries linger until ``cleanup_inactive`` ages them out."""

    MIN_TTL_SEC = 30.0

    def __init__(self):
        self._lock = Lock()
        self._entries: dict[str, RegistryEntry] = {}

    def register(self, session_id: str, orchestrator, session_controller, kind: str = "interview") -> None:
        entry = RegistryEntry(orchestrator=orchestrator, session_controller=session_controller, kind=kind)
        with self._lock:
            self._entries[session_id] = entry

    def touch(self, session_id: str) -> None:
        with self._lock:
            entry = self._entries.get(session_id)
            if entry is not None:
                entry.updated_at = time.time()

    def mark_inactive(self, session_id: str) -> None:
        with self._lock:
            entry = self._entries.get(session_id)
            if entry is not None:
                entry.active = False
                entry.updated_at = time.time()

    def get(self, session_id: str) -> dict | None:
        with self._lock:
            entry = self._entries.get(session_id)
            if entry is None:
                return None
            return dict(vars(entry))

    def active_count(self, kind: str | None = None) -> int:
        with self._lock:
            return len([e for e in self._entries.values() if e.active and (kind is None or e.kind == kind)])

    def cleanup_inactive(self, ttl_sec: float) -> int:
        cutoff = time.time() - max(self.MIN_TTL_SEC, float(ttl_sec or 900.0))
        with self._lock:
            expired = [sid for sid, e in self._entries.items() if not e.active and e.updated_at <= cutoff]
            for session_id in expired:
                del self._entries[session_id]
        return len(expired)


session_registry = SessionRegistry()
