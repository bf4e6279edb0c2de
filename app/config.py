import os


def _sqlite_engine_options(uri, timeout):
    """Busy timeout for SQLite; a lock held past it surfaces as OperationalError."""
    if uri.startswith('sqlite'):
        return {'connect_args': {'timeout': timeout}}
    return {}


class BaseConfig:
    """Base configuration shared across all environments."""

    # Flask core
    SECRET_KEY = os.environ.get('SECRET_KEY', 'fallback-secret-key-change-me')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Database
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        'SQLALCHEMY_DATABASE_URI', 'sqlite:///dev.db'
    )

    # Ingestion transaction
    TRACK_MAX_RETRIES = int(os.environ.get('TRACK_MAX_RETRIES', '3'))
    TRACK_RETRY_BASE_DELAY = float(os.environ.get('TRACK_RETRY_BASE_DELAY', '0.5'))
    TRACK_TRANSACTION_TIMEOUT = float(os.environ.get('TRACK_TRANSACTION_TIMEOUT', '10'))
    SQLALCHEMY_ENGINE_OPTIONS = _sqlite_engine_options(
        SQLALCHEMY_DATABASE_URI, TRACK_TRANSACTION_TIMEOUT
    )

    # Calendar days (activity, streak) are counted in this UTC offset
    DISPLAY_TIMEZONE_OFFSET = int(os.environ.get('DISPLAY_TIMEZONE_OFFSET', '0'))

    # Origins that receive CORS headers on /api
    EXTENSION_ORIGIN_PREFIXES = tuple(
        p.strip() for p in os.environ.get(
            'EXTENSION_ORIGIN_PREFIXES', 'chrome-extension://'
        ).split(',') if p.strip()
    )

    # Logging
    LOG_FILE_MAX_BYTES = int(os.environ.get('LOG_FILE_MAX_BYTES', '0'))
    LOG_FILE_BACKUP_COUNT = int(os.environ.get('LOG_FILE_BACKUP_COUNT', '3'))
    LOG_FORMAT = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'


class DevelopmentConfig(BaseConfig):
    """Development environment configuration."""

    DEBUG = True


class ProductionConfig(BaseConfig):
    """Production environment configuration."""

    DEBUG = False
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        'SQLALCHEMY_DATABASE_URI', 'sqlite:///prod.db'
    )
    SQLALCHEMY_ENGINE_OPTIONS = _sqlite_engine_options(
        SQLALCHEMY_DATABASE_URI, BaseConfig.TRACK_TRANSACTION_TIMEOUT
    )
    LOG_FILE_MAX_BYTES = int(os.environ.get('LOG_FILE_MAX_BYTES', str(5 * 1024 * 1024)))


class TestingConfig(BaseConfig):
    """Testing environment configuration."""

    TESTING = True
    DEBUG = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    SQLALCHEMY_ENGINE_OPTIONS = {}
    SECRET_KEY = 'test-secret-key'
    TRACK_RETRY_BASE_DELAY = 0.0
    DISPLAY_TIMEZONE_OFFSET = 0
    LOG_FILE_MAX_BYTES = 0
    SERVER_NAME = 'localhost'


config_map = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
}
