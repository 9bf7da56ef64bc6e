import click

from matchplay import create_app, socketio

app = create_app()


@click.command()
@click.option('--host', default=None, help='Interface to bind (defaults to HOST).')
@click.option('--port', default=None, type=int, help='Port to listen on (defaults to PORT).')
@click.option('--debug/--no-debug', default=False)
def main(host, port, debug):
    """Run the matchmaking server with the Socket.IO dev server."""
    host = host or app.config['HOST']
    port = port or app.config['PORT']
    app.logger.info(f"Game server on http://{host}:{port} | health: /health | metrics: /metrics")
    socketio.run(app, host=host, port=port, debug=debug, allow_unsafe_werkzeug=debug)


if __name__ == '__main__':
    main()
