import logging
import threading

import click
from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO

from config import Config

socketio = SocketIO(async_mode=None)


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(getattr(logging, flask_app.config.get('LOG_LEVEL', 'INFO'), logging.INFO))

    origins = flask_app.config.get('CORS_ORIGINS') or [flask_app.config.get('CLIENT_URL')]
    CORS(flask_app, supports_credentials=True, origins=origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=origins)

    from guessmates.main import main
    flask_app.register_blueprint(main)

    # Build the game engine: one server per app, shared by handlers and timers
    from guessmates.services.games import CountryFactProvider, GameRules, GameServer
    from guessmates.services.games.broadcast import SocketIOBroadcaster
    from guessmates.services.games.facts import MIN_FACTS
    from guessmates.services.games.scheduler import make_scheduler

    namespace = flask_app.config.get('SOCKETIO_NAMESPACE', '/')
    lock = threading.RLock()
    facts = CountryFactProvider.from_json(flask_app.config.get('COUNTRY_DATA_PATH'))
    flask_app.extensions['guessmates'] = GameServer(
        broadcaster=SocketIOBroadcaster(socketio, namespace=namespace),
        facts=facts,
        scheduler=make_scheduler(flask_app, socketio, lock),
        rules=GameRules.from_config(flask_app.config),
        lock=lock,
    )

    # Register Socket.IO event handlers
    from guessmates.socketio_events import register_socketio_handlers
    register_socketio_handlers(namespace=namespace)

    @click.command('check-facts')
    def check_facts_command():
        """Reports how many bundled countries can be played."""
        playable = 0
        names = facts.candidates()
        for name in names:
            if len(facts.facts_for(name)) >= MIN_FACTS:
                playable += 1
        click.echo(f'{playable} of {len(names)} candidate countries are playable.')

    flask_app.cli.add_command(check_facts_command)

    return flask_app
