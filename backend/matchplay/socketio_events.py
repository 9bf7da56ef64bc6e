from flask import current_app, request
from flask_socketio import emit
from typing import Any, Callable, Dict

from matchplay import socketio
from matchplay.services.games import SessionManager


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _manager() -> SessionManager:
    return current_app.extensions['matchplay']


def handle_connect(auth=None):
    _manager().on_connect(_get_sid())


def handle_disconnect(reason=None):
    _manager().on_disconnect(_get_sid())


def handle_find_game(data=None):
    _manager().request_match(_get_sid())


def handle_cancel_find(data=None):
    _manager().cancel_match(_get_sid())


def handle_make_move(data=None):
    _manager().make_move(_get_sid(), data)


def handle_leave_game(data=None):
    _manager().leave_session(_get_sid())


def handle_get_metrics(data=None):
    _manager().send_metrics(_get_sid())


def handle_ping(data=None):
    emit('pong', data or {})


# ---- Outbound side: what the session manager is given to talk back ----

def make_deliver(namespace: str, logger) -> Callable[[str, Dict[str, Any], str], None]:
    def _deliver(event: str, payload: Dict[str, Any], sid: str) -> None:
        # Use socketio.emit since this may be called from a background task
        try:
            socketio.emit(event, payload, to=sid, namespace=namespace)
        except Exception as exc:
            # The connection may already be gone; nothing to clean up
            logger.warning(f"[deliver-failed] event={event} sid={sid}: {exc}")
    return _deliver


def make_schedule(logger) -> Callable[[float, Callable[[], None]], None]:
    def _schedule(delay: float, callback: Callable[[], None]) -> None:
        def _runner():
            socketio.sleep(delay)
            try:
                callback()
            except Exception:
                logger.exception('[timer] deferred task failed')
        socketio.start_background_task(_runner)
    return _schedule


def register_socketio_handlers(namespace: str = '/ws') -> None:
    """Register Socket.IO event handlers on ``namespace``."""
    socketio.on_event('connect', handle_connect, namespace=namespace)
    socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
    socketio.on_event('find_game', handle_find_game, namespace=namespace)
    socketio.on_event('cancel_find', handle_cancel_find, namespace=namespace)
    socketio.on_event('make_move', handle_make_move, namespace=namespace)
    socketio.on_event('leave_game', handle_leave_game, namespace=namespace)
    socketio.on_event('get_metrics', handle_get_metrics, namespace=namespace)
    socketio.on_event('ping', handle_ping, namespace=namespace)
