from collections import deque
from typing import Deque, Optional, Tuple

from .errors import QueueStateError


class MatchmakingQueue:
    """FIFO of connection ids waiting for an opponent.

    Not thread-safe on its own; the session manager calls it from inside
    its event lock.
    """

    def __init__(self):
        self._waiting: Deque[str] = deque()

    def __len__(self) -> int:
        return len(self._waiting)

    def __contains__(self, connection_id: str) -> bool:
        return connection_id in self._waiting

    def request_match(self, connection_id: str) -> Optional[Tuple[str, str]]:
        """Pair with the head of the queue, or enqueue and return None."""
        if connection_id in self._waiting:
            raise QueueStateError('Already waiting for an opponent')
        if self._waiting:
            opponent_id = self._waiting.popleft()
            return connection_id, opponent_id
        self._waiting.append(connection_id)
        return None

    def remove_if_waiting(self, connection_id: str) -> bool:
        try:
            self._waiting.remove(connection_id)
        except ValueError:
            return False
        return True
