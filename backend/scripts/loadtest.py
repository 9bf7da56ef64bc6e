"""Simulate many concurrent players against a running matchplay server.

Each bot connects over Socket.IO, asks for a game, plays random legal
moves when it is its turn and re-queues after game_end or
opponent_disconnected. Totals are printed on exit.

    python scripts/loadtest.py --url http://localhost:3000 --players 100
"""
import random
import threading
import time
from typing import Any, Dict, List, Optional

import click
import socketio
from socketio.exceptions import ConnectionError as SocketConnectionError


class Stats:
    def __init__(self):
        self._lock = threading.Lock()
        self.started_at = time.time()
        self.connected = 0
        self.games_started = 0
        self.games_completed = 0
        self.total_moves = 0
        self.errors = 0
        self.latencies: List[float] = []

    def bump(self, field: str, by: int = 1) -> None:
        with self._lock:
            setattr(self, field, getattr(self, field) + by)

    def add_latency(self, ms: float) -> None:
        with self._lock:
            self.latencies.append(ms)

    def report(self) -> str:
        with self._lock:
            elapsed = time.time() - self.started_at
            lines = [
                f"Duration:         {elapsed:.1f}s",
                f"Connected:        {self.connected}",
                f"Games started:    {self.games_started}",
                f"Games completed:  {self.games_completed}",
                f"Total moves:      {self.total_moves}",
                f"Errors:           {self.errors}",
            ]
            if self.latencies:
                ordered = sorted(self.latencies)
                avg = sum(ordered) / len(ordered)
                p95 = ordered[min(len(ordered) - 1, int(len(ordered) * 0.95))]
                lines.append(f"Match latency:    avg={avg:.0f}ms p95={p95:.0f}ms max={ordered[-1]:.0f}ms")
            if elapsed > 0:
                lines.append(f"Games/second:     {self.games_completed / elapsed:.2f}")
            return '\n'.join(lines)


class BotPlayer:
    def __init__(self, bot_id: int, url: str, namespace: str, move_delay: float, requeue_delay: float, stats: Stats):
        self.bot_id = bot_id
        self.url = url
        self.namespace = namespace
        self.move_delay = move_delay
        self.requeue_delay = requeue_delay
        self.stats = stats
        self.session_id: Optional[str] = None
        self.role: Optional[str] = None
        self.searching_since: Optional[float] = None
        self.sio = socketio.Client(reconnection=False)
        self._register()

    def _register(self) -> None:
        ns = self.namespace
        self.sio.on('connect', self.on_connect, namespace=ns)
        self.sio.on('disconnect', self.on_disconnect, namespace=ns)
        self.sio.on('game_start', self.on_game_start, namespace=ns)
        self.sio.on('game_update', self.on_game_update, namespace=ns)
        self.sio.on('game_end', self.on_game_end, namespace=ns)
        self.sio.on('opponent_disconnected', self.on_opponent_disconnected, namespace=ns)
        self.sio.on('error', self.on_error, namespace=ns)

    def connect(self) -> None:
        self.sio.connect(self.url, namespaces=[self.namespace], transports=['websocket'], wait_timeout=5)

    def close(self) -> None:
        if self.sio.connected:
            self.sio.disconnect()

    # ---- handlers ----

    def on_connect(self) -> None:
        self.stats.bump('connected')

    def on_disconnect(self, reason=None) -> None:
        self.stats.bump('connected', -1)

    def on_game_start(self, data: Dict[str, Any]) -> None:
        self.session_id = data['session_id']
        self.role = data['role']
        self.stats.bump('games_started')
        if self.searching_since is not None:
            self.stats.add_latency((time.time() - self.searching_since) * 1000.0)
            self.searching_since = None
        self._maybe_move(data['state'])

    def on_game_update(self, state: Dict[str, Any]) -> None:
        self._maybe_move(state)

    def on_game_end(self, data: Dict[str, Any]) -> None:
        self.stats.bump('games_completed')
        result = 'draw' if data['is_draw'] else f"{data['winner']} wins"
        click.echo(f"bot {self.bot_id}: game ended, {result} ({data['move_count']} moves, {data['duration']:.1f}s)")
        self._requeue()

    def on_opponent_disconnected(self, data: Dict[str, Any]) -> None:
        click.echo(f"bot {self.bot_id}: opponent disconnected")
        self._requeue()

    def on_error(self, data: Dict[str, Any]) -> None:
        self.stats.bump('errors')
        click.echo(f"bot {self.bot_id}: {data.get('kind')}: {data.get('message')}", err=True)

    # ---- actions ----

    def find_game(self) -> None:
        if self.sio.connected:
            self.searching_since = time.time()
            self.sio.emit('find_game', namespace=self.namespace)

    def _requeue(self) -> None:
        self.session_id = None
        self.role = None
        self.sio.start_background_task(self._delayed, self.requeue_delay, self.find_game)

    def _maybe_move(self, state: Dict[str, Any]) -> None:
        if state.get('winner') or state.get('is_draw') or state.get('current_turn') != self.role:
            return
        free = [i for i, cell in enumerate(state['board']) if cell is None]
        if free:
            session_id = self.session_id
            self.sio.start_background_task(self._delayed, self.move_delay, self._move, session_id, random.choice(free))

    def _move(self, session_id: str, cell: int) -> None:
        if self.sio.connected and session_id == self.session_id:
            self.sio.emit('make_move', {'session_id': session_id, 'cell': cell}, namespace=self.namespace)
            self.stats.bump('total_moves')

    def _delayed(self, delay: float, fn, *args) -> None:
        self.sio.sleep(delay)
        fn(*args)


@click.command()
@click.option('--url', default='http://localhost:3000', show_default=True)
@click.option('--namespace', default='/ws', show_default=True)
@click.option('--players', default=100, show_default=True, help='Number of simulated players.')
@click.option('--batch-size', default=10, show_default=True, help='Players connected per batch.')
@click.option('--move-delay', default=1.0, show_default=True, help='Seconds between receiving a turn and moving.')
@click.option('--requeue-delay', default=2.0, show_default=True, help='Seconds before looking for a new game.')
@click.option('--duration', default=60.0, show_default=True, help='Seconds to run before disconnecting.')
def main(url, namespace, players, batch_size, move_delay, requeue_delay, duration):
    """Connect PLAYERS bots, let them play for DURATION seconds, then print totals."""
    stats = Stats()
    bots: List[BotPlayer] = []
    click.echo(f"Starting load test: {players} players against {url}{namespace}")
    for start in range(0, players, batch_size):
        batch = [BotPlayer(i, url, namespace, move_delay, requeue_delay, stats)
                 for i in range(start, min(start + batch_size, players))]
        for bot in batch:
            try:
                bot.connect()
            except SocketConnectionError as exc:
                stats.bump('errors')
                click.echo(f"bot {bot.bot_id}: connection failed: {exc}", err=True)
                continue
            bots.append(bot)
            bot.find_game()
        click.echo(f"Connected {len(bots)}/{players}")
        time.sleep(0.1)

    try:
        time.sleep(duration)
    except KeyboardInterrupt:
        pass
    finally:
        for bot in bots:
            bot.close()
        click.echo(stats.report())


if __name__ == '__main__':
    main()
