from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_bcrypt import Bcrypt
from flask_login import LoginManager
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
bcrypt = Bcrypt()
login_manager = LoginManager()
migrate = Migrate()
socketio = SocketIO(async_mode=None)


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(flask_app.config.get('LOG_LEVEL', 'INFO'))

    origins = flask_app.config.get('ALLOWED_ORIGINS') or []

    db.init_app(flask_app)
    bcrypt.init_app(flask_app)
    login_manager.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=origins)

    from arcade.api.accounts import accounts
    flask_app.register_blueprint(accounts, url_prefix='/accounts')

    from arcade.api.settings import settings
    flask_app.register_blueprint(settings, url_prefix='/global')

    from arcade.api.levels import levels
    flask_app.register_blueprint(levels, url_prefix='/levels')

    from arcade.socketio_events import register_socketio_handlers
    register_socketio_handlers()

    # Flask-Login user loader
    from arcade.models import Account

    @login_manager.user_loader
    def load_account(account_id):
        return db.session.get(Account, int(account_id))

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the database."""
        with flask_app.app_context():
            db.drop_all()
            db.create_all()

            admin = Account(username='ADMIN', is_admin=True, ip_address='unknown')
            admin.set_password(flask_app.config['ADMIN_PASSWORD'])
            db.session.add(admin)
            db.session.commit()
            print('Database has been reset and seeded!')

    @click.command('make-admin')
    @click.argument('username')
    @click.option('--revoke', is_flag=True, help='Remove the admin flag instead.')
    def make_admin_command(username, revoke):
        """Grants (or revokes) admin rights for an account."""
        with flask_app.app_context():
            account = Account.query.filter_by(username=username.upper()).first()
            if account is None:
                raise click.ClickException(f'No account named {username.upper()}')
            account.is_admin = not revoke
            db.session.commit()
            state = 'revoked from' if revoke else 'granted to'
            print(f'Admin rights {state} {account.username}')

    flask_app.cli.add_command(db_reset_command)
    flask_app.cli.add_command(make_admin_command)

    return flask_app
