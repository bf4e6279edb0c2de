import logging
import os

from datetime import timezone, timedelta
from logging.handlers import RotatingFileHandler

from dotenv import load_dotenv
from flask import Flask, jsonify

from app.config import config_map
from app.extensions import db, login_manager, migrate

__version__ = '0.3.0'

BEARER_PREFIX = 'Bearer '


def create_app(config_name=None):
    """Application factory for creating the Flask app instance.

    Args:
        config_name: Configuration name ('development', 'production' or
                     'testing'). Defaults to FLASK_ENV environment variable
                     or 'development'.

    Returns:
        Configured Flask application instance.
    """
    # Load environment variables from the appropriate .env file
    env = config_name or os.environ.get('FLASK_ENV', 'development')
    env_file = os.path.join(
        os.path.dirname(os.path.dirname(os.path.abspath(__file__))),
        f'.env.{env}',
    )
    if os.path.exists(env_file):
        load_dotenv(env_file)

    # Also load a local .env if it exists (overrides the environment-specific one)
    dotenv_path = os.path.join(
        os.path.dirname(os.path.dirname(os.path.abspath(__file__))),
        '.env',
    )
    if os.path.exists(dotenv_path):
        load_dotenv(dotenv_path, override=True)

    # Determine final config name after env files are loaded
    if config_name is None:
        config_name = os.environ.get('FLASK_ENV', 'development')

    app = Flask(__name__)

    config_class = config_map.get(config_name, config_map['development'])
    app.config.from_object(config_class)

    _configure_logging(app)

    # Initialize extensions
    db.init_app(app)
    login_manager.init_app(app)
    migrate.init_app(app, db)

    _register_auth(app)
    _register_blueprints(app)

    # Timezone helper
    def to_display_tz(dt, _app=None):
        """Convert a naive UTC datetime to the configured display timezone."""
        target = _app or app
        offset = target.config.get('DISPLAY_TIMEZONE_OFFSET', 0)
        tz = timezone(timedelta(hours=offset))
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt.astimezone(tz)

    app.to_display_tz = to_display_tz

    @app.route('/health')
    def health():
        return jsonify({'status': 'ok', 'version': __version__})

    # Create database tables if they don't exist
    with app.app_context():
        db.create_all()

    return app


def _configure_logging(app):
    """Set up RotatingFileHandler on the root logger."""
    max_bytes = app.config.get('LOG_FILE_MAX_BYTES', 0)
    if not max_bytes:
        return

    log_dir = os.path.join(app.instance_path, 'logs')
    os.makedirs(log_dir, exist_ok=True)

    log_file = os.path.join(log_dir, 'app.log')
    handler = RotatingFileHandler(
        log_file,
        maxBytes=max_bytes,
        backupCount=app.config.get('LOG_FILE_BACKUP_COUNT', 3),
    )
    handler.setFormatter(logging.Formatter(
        app.config.get('LOG_FORMAT', '%(asctime)s [%(levelname)s] %(name)s: %(message)s')
    ))
    handler.setLevel(logging.DEBUG)

    root = logging.getLogger()
    root.addHandler(handler)
    if root.level == logging.WARNING:
        root.setLevel(logging.DEBUG)


def _register_auth(app):
    """Bearer-token authentication for the extension API via Flask-Login."""

    @login_manager.user_loader
    def load_user(user_id):
        from app.models.user import User
        return db.session.get(User, int(user_id))

    @login_manager.request_loader
    def load_user_from_request(request):
        header = request.headers.get('Authorization', '')
        if not header.startswith(BEARER_PREFIX):
            return None
        raw = header[len(BEARER_PREFIX):].strip()
        if not raw:
            return None
        from app.models import ExtensionToken
        token = ExtensionToken.validate(raw)
        return token.user if token else None

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({'error': 'Unauthorized'}), 401


def _register_blueprints(app):
    """Register all application blueprints."""
    from app.views.extension import extension_bp
    from app.views.api import api_bp

    app.register_blueprint(extension_bp)
    app.register_blueprint(api_bp)
