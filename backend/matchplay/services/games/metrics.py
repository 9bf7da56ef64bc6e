import time
from typing import Any, Dict


class MetricsAggregator:
    """Process-lifetime counters for connections and sessions.

    Only the session manager records into it; everyone else reads
    ``to_dict()``.
    """

    def __init__(self):
        self.started_at = time.monotonic()
        self.total_connections = 0
        self.peak_connections = 0
        self.total_games = 0
        self.active_games = 0
        self.completed_games = 0
        self.average_game_duration = 0.0

    @property
    def uptime(self) -> float:
        return time.monotonic() - self.started_at

    def record_connect(self, live_connections: int) -> None:
        self.total_connections += 1
        self.peak_connections = max(self.peak_connections, live_connections)

    def record_game_started(self) -> None:
        self.total_games += 1
        self.active_games += 1

    def record_game_abandoned(self) -> None:
        self.active_games = max(0, self.active_games - 1)

    def record_game_completed(self, duration: float) -> None:
        self.active_games = max(0, self.active_games - 1)
        self.completed_games += 1
        self.average_game_duration += (duration - self.average_game_duration) / self.completed_games

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total_connections': self.total_connections,
            'peak_connections': self.peak_connections,
            'total_games': self.total_games,
            'active_games': self.active_games,
            'completed_games': self.completed_games,
            'average_game_duration': self.average_game_duration,
        }
