from flask import Flask, jsonify
from flask_cors import CORS
from flask_socketio import SocketIO
from config import Config

socketio = SocketIO(async_mode=None)


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(flask_app.config.get('LOG_LEVEL', 'INFO'))

    allowed_origins = flask_app.config.get('CORS_ORIGINS') or []
    CORS(flask_app, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from matchplay.services.games import SessionManager
    from matchplay.socketio_events import make_deliver, make_schedule, register_socketio_handlers

    namespace = flask_app.config.get('SOCKETIO_NAMESPACE', '/ws')
    # One manager per app: it owns the queue, the sessions and the metrics
    flask_app.extensions['matchplay'] = SessionManager(
        deliver=make_deliver(namespace, flask_app.logger),
        schedule=make_schedule(flask_app.logger),
        end_delay=float(flask_app.config.get('END_NOTICE_DELAY_SEC', 0.1)),
        logger=flask_app.logger,
    )

    from matchplay.main import main
    flask_app.register_blueprint(main)

    register_socketio_handlers(namespace)

    @flask_app.errorhandler(404)
    def not_found(exc):
        return jsonify({'error': 'Not found'}), 404

    return flask_app
