"""Errors raised by the session lifecycle engine.

All of them are local to one event: the manager reports them to the
originating connection and carries on.
"""
from typing import Any, Dict


class GameError(Exception):
    kind = 'GameError'

    def to_dict(self) -> Dict[str, Any]:
        return {'kind': self.kind, 'message': str(self)}


class IllegalMove(GameError):
    kind = 'IllegalMove'


class NotYourTurn(GameError):
    kind = 'NotYourTurn'


class SessionNotFound(GameError):
    kind = 'SessionNotFound'


class QueueStateError(GameError):
    kind = 'QueueStateError'


class AlreadyInSession(GameError):
    """find_game from a connection that still holds a session membership."""
    kind = 'AlreadyInSession'
