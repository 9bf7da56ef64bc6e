from datetime import datetime, timezone

from flask import Blueprint, current_app, jsonify

main = Blueprint('main', __name__)


def _snapshot():
    return current_app.extensions['matchplay'].snapshot()


@main.route('/')
def index():
    return jsonify({'message': 'Matchplay game server', 'socketio_namespace': current_app.config.get('SOCKETIO_NAMESPACE', '/ws')})


@main.route('/health')
def health():
    metrics = _snapshot()
    uptime = metrics.pop('uptime')
    metrics['timestamp'] = datetime.now(timezone.utc).isoformat()
    return jsonify({'status': 'healthy', 'uptime': uptime, 'metrics': metrics})


@main.route('/metrics')
def metrics():
    return jsonify(_snapshot())
