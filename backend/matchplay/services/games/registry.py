from dataclasses import dataclass
from typing import Dict, Optional


@dataclass
class Membership:
    session_id: str
    role: str
    label: str


class ConnectionRegistry:
    """Live connections and, for the matched ones, their session membership."""

    def __init__(self):
        self._connections: Dict[str, Optional[Membership]] = {}

    def __len__(self) -> int:
        return len(self._connections)

    def __contains__(self, connection_id: str) -> bool:
        return connection_id in self._connections

    def add(self, connection_id: str) -> None:
        self._connections.setdefault(connection_id, None)

    def remove(self, connection_id: str) -> Optional[Membership]:
        return self._connections.pop(connection_id, None)

    def membership(self, connection_id: str) -> Optional[Membership]:
        return self._connections.get(connection_id)

    def bind(self, connection_id: str, membership: Membership) -> None:
        self._connections[connection_id] = membership

    def unbind(self, connection_id: str, session_id: str) -> None:
        # Only clear a membership that still points at this session
        current = self._connections.get(connection_id)
        if current is not None and current.session_id == session_id:
            self._connections[connection_id] = None
