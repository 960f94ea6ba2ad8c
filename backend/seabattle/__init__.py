from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_bcrypt import Bcrypt
from flask_login import LoginManager
from flask_cors import CORS
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
bcrypt = Bcrypt()
login_manager = LoginManager()
socketio = SocketIO(async_mode=None)


class ServerState:
    """Per-application game state, stored under ``app.extensions['seabattle']``.

    ``sessions`` maps a Socket.IO session id to the logged-in player.
    """

    def __init__(self, engine, accounts, notifier):
        self.engine = engine
        self.accounts = accounts
        self.notifier = notifier
        self.sessions = {}


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    allowed_origins = flask_app.config.get('CORS_ORIGINS') or []
    namespace = flask_app.config.get('SOCKETIO_NAMESPACE', '/ws')

    db.init_app(flask_app)
    bcrypt.init_app(flask_app)
    login_manager.init_app(flask_app)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from seabattle.main import main
    flask_app.register_blueprint(main)

    # Build the game engine once per app; handlers reach it through current_app
    from seabattle.services.accounts import AccountStore
    from seabattle.services.games import create_engine
    from seabattle.services.games.notifier import SocketIONotifier

    accounts = AccountStore()
    notifier = SocketIONotifier(socketio, namespace=namespace, logger=flask_app.logger)
    engine = create_engine(
        notifier,
        accounts,
        logger=flask_app.logger,
        enforce_fleet=flask_app.config.get('ENFORCE_FLEET', False),
    )
    flask_app.extensions['seabattle'] = ServerState(engine, accounts, notifier)

    from seabattle.socketio_events import register_socketio_handlers
    register_socketio_handlers(namespace=namespace)

    # Flask-Login user loader
    from seabattle.models import User

    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(User, int(user_id))

    with flask_app.app_context():
        db.create_all()

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the database."""
        with flask_app.app_context():
            db.drop_all()
            db.create_all()

            # Seed players
            for name in ['player1', 'player2']:
                user = User(name=name, wins=0)
                user.set_password('password')
                db.session.add(user)

            db.session.commit()
            print('Database has been reset and seeded!')

    flask_app.cli.add_command(db_reset_command)

    return flask_app
