# config.py
import os
import secrets
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

basedir = os.path.abspath(os.path.dirname(__file__))


def _env_flag(name, default):
    return os.environ.get(name, str(default)).lower() in ('1', 'true', 'yes')


class Config:
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or \
        'sqlite:///' + os.path.join(basedir, 'instance', 'nocram.db')
    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_pre_ping': True,  # Enables automatic reconnection
        'pool_recycle': 300,    # Recycle connections every 5 minutes
    }
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # --- Stable SECRET_KEY -------------------------------------------------
    # If SECRET_KEY is not provided via environment, generate it once and
    # store it under instance/.flask_secret_key so restarts keep sessions.
    _secret_key_env = os.environ.get('SECRET_KEY')
    if _secret_key_env:
        SECRET_KEY = _secret_key_env
    else:
        _secret_file = Path(basedir) / 'instance' / '.flask_secret_key'
        if _secret_file.exists():
            SECRET_KEY = _secret_file.read_text().strip()
        else:
            _secret_file.parent.mkdir(parents=True, exist_ok=True)
            SECRET_KEY = secrets.token_hex(32)
            _secret_file.write_text(SECRET_KEY)

    # Flask-Security
    SECURITY_PASSWORD_SALT = os.environ.get('SECURITY_PASSWORD_SALT')
    SECURITY_PASSWORD_HASH = 'pbkdf2_sha512'
    SECURITY_REGISTERABLE = True
    SECURITY_SEND_REGISTER_EMAIL = False
    SECURITY_CONFIRMABLE = False
    SECURITY_RECOVERABLE = False
    SECURITY_URL_PREFIX = '/security'
    SECURITY_CSRF_IGNORE_UNAUTH_ENDPOINTS = True
    SECURITY_POST_LOGIN_VIEW = '/health'
    WTF_CSRF_CHECK_DEFAULT = False

    # Add a warning if no salt is set
    if not os.environ.get('SECURITY_PASSWORD_SALT'):
        import warnings
        warnings.warn('SECURITY_PASSWORD_SALT not set. Using default value.')
        SECURITY_PASSWORD_SALT = 'nocram-default-salt'

    # Email settings
    MAIL_SERVER = os.environ.get('MAIL_SERVER', 'localhost')
    MAIL_PORT = int(os.environ.get('MAIL_PORT', 587))
    MAIL_USE_TLS = os.environ.get('MAIL_USE_TLS', 'True').lower() == 'true'
    MAIL_USERNAME = os.environ.get('MAIL_USERNAME')
    MAIL_PASSWORD = os.environ.get('MAIL_PASSWORD')
    MAIL_DEFAULT_SENDER = os.environ.get('MAIL_DEFAULT_SENDER', 'noreply@nocram.app')
    SECURITY_EMAIL_SENDER = MAIL_DEFAULT_SENDER

    # Link placed in reminder emails
    CLIENT_URL = os.environ.get('CLIENT_URL', 'http://localhost:3000')

    # Reminder engine
    REMINDER_CRON_SCHEDULE = os.environ.get('REMINDER_CRON_SCHEDULE', '0 9 * * *')  # 9 AM daily
    REMINDER_SCHEDULER_ENABLED = _env_flag('REMINDER_SCHEDULER_ENABLED', True)
    REMINDER_RUN_ON_STARTUP = False
    REMINDER_LOOKAHEAD_DAYS = int(os.environ.get('REMINDER_LOOKAHEAD_DAYS', 7))
    REMINDER_DEFAULT_DAYS = os.environ.get('REMINDER_DEFAULT_DAYS', '7,2,1')

    # APScheduler; None means server local time
    SCHEDULER_TIMEZONE = os.environ.get('SCHEDULER_TIMEZONE') or None
    SCHEDULER_API_ENABLED = False


class DevelopmentConfig(Config):
    DEBUG = True
    FLASK_ENV = 'development'
    # Run one check shortly after start-up so changes are visible right away
    REMINDER_RUN_ON_STARTUP = _env_flag('REMINDER_RUN_ON_STARTUP', True)


class ProductionConfig(Config):
    DEBUG = False
    FLASK_ENV = 'production'
    MAIL_USE_SSL = os.environ.get('MAIL_USE_SSL', 'False').lower() == 'true'
    SESSION_COOKIE_SECURE = True


# Function to get the appropriate config
def get_config():
    env = os.environ.get('FLASK_ENV', 'development').lower()
    if env == 'production':
        return ProductionConfig()
    return DevelopmentConfig()
