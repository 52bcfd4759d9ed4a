"""In-memory per-connection state. Nothing here is persisted."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Dict, Optional

from quizzer.utils.auth import now_seconds


@dataclass
class ConnectionState:
    """Identity resolved for one realtime connection."""

    connection_id: str
    created_at: int = field(default_factory=now_seconds)
    user_mail: Optional[str] = None
    is_admin: bool = False


class ConnectionRegistry:
    """Open connections keyed by their handle, with a live-connection counter."""

    def __init__(self) -> None:
        self._connections: Dict[str, ConnectionState] = {}
        self._lock = threading.Lock()

    def open(self, connection_id: str) -> ConnectionState:
        with self._lock:
            state = self._connections.get(connection_id)
            if state is None:
                state = ConnectionState(connection_id)
                self._connections[connection_id] = state
            return state

    def get(self, connection_id: str) -> Optional[ConnectionState]:
        return self._connections.get(connection_id)

    def close(self, connection_id: str) -> Optional[ConnectionState]:
        with self._lock:
            return self._connections.pop(connection_id, None)

    @property
    def active_users(self) -> int:
        return len(self._connections)
