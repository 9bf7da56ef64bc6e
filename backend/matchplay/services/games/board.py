import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from .errors import IllegalMove

ROLES = ('X', 'O')
CELL_COUNT = 9

WINNING_LINES: Tuple[Tuple[int, int, int], ...] = (
    (0, 1, 2), (3, 4, 5), (6, 7, 8),  # rows
    (0, 3, 6), (1, 4, 7), (2, 5, 8),  # columns
    (0, 4, 8), (2, 4, 6),  # diagonals
)


def other_role(role: str) -> str:
    return ROLES[1] if role == ROLES[0] else ROLES[0]


@dataclass
class Session:
    session_id: str
    players: Dict[str, str]  # role -> connection id
    board: List[Optional[str]] = field(default_factory=lambda: [None] * CELL_COUNT)
    current_turn: str = ROLES[0]
    winner: Optional[str] = None
    is_draw: bool = False
    move_count: int = 0
    winning_line: Optional[Tuple[int, int, int]] = None
    created_at: float = field(default_factory=time.time)

    @property
    def is_over(self) -> bool:
        return self.winner is not None or self.is_draw

    def opponent_of(self, connection_id: str) -> Optional[str]:
        for role, cid in self.players.items():
            if cid == connection_id:
                return self.players[other_role(role)]
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'board': list(self.board),
            'current_turn': self.current_turn,
            'winner': self.winner,
            'is_draw': self.is_draw,
            'move_count': self.move_count,
            'winning_line': list(self.winning_line) if self.winning_line else None,
        }


def completed_lines(board: List[Optional[str]]) -> List[Tuple[int, int, int]]:
    """Every line held entirely by one marker, in enumeration order."""
    lines = []
    for a, b, c in WINNING_LINES:
        if board[a] is not None and board[a] == board[b] == board[c]:
            lines.append((a, b, c))
    return lines


def submit_move(session: Session, role: str, cell: Any) -> Dict[str, Any]:
    """Apply ``role``'s marker at ``cell`` and return the post-move snapshot.

    Raises IllegalMove without touching the board when the session is
    already over, it is not ``role``'s turn, or the cell is out of range
    or taken. The turn only flips when the move did not end the game.
    """
    if session.is_over:
        raise IllegalMove('Game is already over')
    if role != session.current_turn:
        raise IllegalMove(f'It is {session.current_turn} to move, not {role}')
    if isinstance(cell, bool) or not isinstance(cell, int) or not 0 <= cell < CELL_COUNT:
        raise IllegalMove(f'Cell must be an integer between 0 and {CELL_COUNT - 1}')
    if session.board[cell] is not None:
        raise IllegalMove(f'Cell {cell} is already taken')

    session.board[cell] = role
    session.move_count += 1

    lines = completed_lines(session.board)
    if lines:
        session.winning_line = lines[0]
        session.winner = session.board[lines[0][0]]
    elif session.move_count == CELL_COUNT:
        session.is_draw = True
    else:
        session.current_turn = other_role(role)
    return session.to_dict()
