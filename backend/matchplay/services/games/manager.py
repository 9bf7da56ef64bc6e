import logging
import secrets
import threading
import time
from contextlib import contextmanager
from typing import Any, Callable, Dict, List, Optional, Tuple

from .board import ROLES, Session, other_role, submit_move
from .errors import AlreadyInSession, GameError, IllegalMove, NotYourTurn, SessionNotFound
from .matchmaking import MatchmakingQueue
from .metrics import MetricsAggregator
from .registry import ConnectionRegistry, Membership

# (event, payload, connection id)
Outbound = Tuple[str, Dict[str, Any], str]
Deliver = Callable[[str, Dict[str, Any], str], None]
Schedule = Callable[[float, Callable[[], None]], None]

LABELS = {ROLES[0]: 'Player1', ROLES[1]: 'Player2'}


def new_session_id() -> str:
    return f"game_{int(time.time() * 1000)}_{secrets.token_hex(5)}"


class SessionManager:
    """Owns the waiting queue, the session table and the membership table.

    Every inbound event runs its state changes under one lock and queues
    outbound messages; the messages are delivered once the lock is released.
    """

    def __init__(
        self,
        deliver: Deliver,
        schedule: Optional[Schedule] = None,
        end_delay: float = 0.1,
        logger: Optional[logging.Logger] = None,
        clock: Callable[[], float] = time.time,
    ):
        self._deliver = deliver
        self._schedule = schedule
        self._end_delay = end_delay
        self._logger = logger or logging.getLogger(__name__)
        self._clock = clock
        self._lock = threading.Lock()
        self._sessions: Dict[str, Session] = {}
        self.queue = MatchmakingQueue()
        self.registry = ConnectionRegistry()
        self.metrics = MetricsAggregator()

    # ---- event plumbing ----

    @contextmanager
    def _event(self, connection_id: Optional[str]):
        outbox: List[Outbound] = []
        try:
            with self._lock:
                yield outbox
        except GameError as exc:
            self._logger.warning(f"[error] sid={connection_id} {exc.kind}: {exc}")
            if connection_id is not None:
                outbox.append(('error', exc.to_dict(), connection_id))
        for event, payload, to in outbox:
            self._deliver(event, payload, to)

    def get_session(self, session_id: str) -> Optional[Session]:
        with self._lock:
            return self._sessions.get(session_id)

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            return self._snapshot()

    def _snapshot(self) -> Dict[str, Any]:
        data = self.metrics.to_dict()
        data['active_connections'] = len(self.registry)
        data['games_in_progress'] = self.metrics.active_games
        data['waiting_players'] = len(self.queue)
        data['uptime'] = self.metrics.uptime
        return data

    # ---- inbound events ----

    def on_connect(self, connection_id: str) -> None:
        with self._event(connection_id) as outbox:
            self.registry.add(connection_id)
            self.metrics.record_connect(len(self.registry))
            outbox.append(('connected', {
                'player_id': connection_id,
                'metrics': {
                    'active_games': self.metrics.active_games,
                    'active_players': len(self.registry),
                },
            }, connection_id))
            self._logger.info(f"[connect] sid={connection_id} connections={len(self.registry)}")

    def request_match(self, connection_id: str) -> None:
        with self._event(connection_id) as outbox:
            if self.registry.membership(connection_id) is not None:
                raise AlreadyInSession('Already in a game')
            if connection_id not in self.queue:
                pair = self.queue.request_match(connection_id)
                if pair is not None:
                    self._start_session(pair, outbox)
                    return
            outbox.append(('waiting', {'message': 'Searching for opponent...'}, connection_id))
            self._logger.info(f"[waiting] sid={connection_id} queue={len(self.queue)}")

    def cancel_match(self, connection_id: str) -> None:
        with self._event(connection_id) as outbox:
            if self.queue.remove_if_waiting(connection_id):
                self._logger.info(f"[cancel] sid={connection_id} queue={len(self.queue)}")
            outbox.append(('left', {'message': 'Stopped searching'}, connection_id))

    def make_move(self, connection_id: str, data: Any) -> None:
        finished = None
        with self._event(connection_id) as outbox:
            data = data if isinstance(data, dict) else {}
            session_id = data.get('session_id')
            membership = self.registry.membership(connection_id)
            session = self._sessions.get(session_id) if isinstance(session_id, str) else None
            if session is None or membership is None or membership.session_id != session_id:
                raise SessionNotFound('Game not found')
            if session.is_over:
                raise IllegalMove('Game is already over')
            if membership.role != session.current_turn:
                raise NotYourTurn('Not your turn')

            state = submit_move(session, membership.role, data.get('cell'))
            for cid in session.players.values():
                outbox.append(('game_update', state, cid))
            self._logger.debug(
                f"[move] session={session_id} role={membership.role} cell={data.get('cell')} moves={session.move_count}"
            )

            if session.is_over:
                duration = self._clock() - session.created_at
                self.metrics.record_game_completed(duration)
                finished = (session_id, {
                    'winner': session.winner,
                    'is_draw': session.is_draw,
                    'move_count': session.move_count,
                    'duration': duration,
                })
                self._logger.info(
                    f"[game-end] session={session_id} duration={duration:.1f}s winner={session.winner or 'draw'} active={self.metrics.active_games}"
                )
        if finished:
            self._schedule_end(*finished)

    def leave_session(self, connection_id: str) -> None:
        with self._event(connection_id) as outbox:
            self.queue.remove_if_waiting(connection_id)
            membership = self.registry.membership(connection_id)
            if membership is not None:
                self.registry.unbind(connection_id, membership.session_id)
                self._abandon(connection_id, membership, outbox)
                self._logger.info(f"[leave] sid={connection_id} session={membership.session_id}")
            outbox.append(('left', {'message': 'You left the game'}, connection_id))

    def on_disconnect(self, connection_id: str) -> None:
        with self._event(None) as outbox:
            self.queue.remove_if_waiting(connection_id)
            membership = self.registry.remove(connection_id)
            if membership is not None:
                self._abandon(connection_id, membership, outbox)
            self._logger.info(
                f"[disconnect] sid={connection_id} connections={len(self.registry)} active={self.metrics.active_games}"
            )

    def send_metrics(self, connection_id: str) -> None:
        with self._event(connection_id) as outbox:
            outbox.append(('metrics', self._snapshot(), connection_id))

    # ---- session lifecycle ----

    def _start_session(self, pair: Tuple[str, str], outbox: List[Outbound]) -> None:
        session_id = new_session_id()
        while session_id in self._sessions:
            session_id = new_session_id()
        players = dict(zip(ROLES, pair))
        session = Session(session_id, players, created_at=self._clock())
        self._sessions[session_id] = session
        for role, cid in players.items():
            self.registry.bind(cid, Membership(session_id, role, LABELS[role]))
        self.metrics.record_game_started()

        state = session.to_dict()
        for role, cid in players.items():
            outbox.append(('game_start', {
                'session_id': session_id,
                'role': role,
                'opponent': LABELS[other_role(role)],
                'state': state,
            }, cid))
        self._logger.info(f"[match] session={session_id} X={pair[0]} O={pair[1]} active={self.metrics.active_games}")

    def _abandon(self, connection_id: str, membership: Membership, outbox: List[Outbound]) -> None:
        session = self._sessions.get(membership.session_id)
        if session is None or session.is_over:
            # Finished games are torn down by their end notice
            return
        del self._sessions[session.session_id]
        self.metrics.record_game_abandoned()
        opponent_id = session.opponent_of(connection_id)
        if opponent_id is not None:
            self.registry.unbind(opponent_id, session.session_id)
            outbox.append(('opponent_disconnected', {'message': 'Opponent disconnected. You win!'}, opponent_id))

    def _schedule_end(self, session_id: str, result: Dict[str, Any]) -> None:
        if self._schedule is not None and self._end_delay > 0:
            self._schedule(self._end_delay, lambda: self._finish_session(session_id, result))
        else:
            self._finish_session(session_id, result)

    def _finish_session(self, session_id: str, result: Dict[str, Any]) -> None:
        with self._event(None) as outbox:
            session = self._sessions.pop(session_id, None)
            if session is None:
                return
            for cid in session.players.values():
                membership = self.registry.membership(cid)
                if membership is not None and membership.session_id == session_id:
                    self.registry.unbind(cid, session_id)
                    outbox.append(('game_end', dict(result), cid))
