"""Game domain services: matchmaking, sessions and metrics.

Nothing in this package knows about Socket.IO or Flask; the session
manager talks to the outside world through the ``deliver`` and
``schedule`` callables it is constructed with.
"""
from .errors import AlreadyInSession, GameError, IllegalMove, NotYourTurn, QueueStateError, SessionNotFound
from .manager import SessionManager

__all__ = [
    'AlreadyInSession',
    'GameError',
    'IllegalMove',
    'NotYourTurn',
    'QueueStateError',
    'SessionManager',
    'SessionNotFound',
]
