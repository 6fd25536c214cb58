# blockvote/config.py

import os
from datetime import timedelta


def _env_flag(name, default=False):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY', 'change-me-in-production')
    JWT_SECRET_KEY = os.environ.get('JWT_SECRET_KEY', 'change-me-in-production-jwt')
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(minutes=int(os.environ.get('JWT_ACCESS_MINUTES', '60')))
    JWT_TOKEN_LOCATION = ['headers', 'cookies']
    JWT_COOKIE_CSRF_PROTECT = False
    JWT_ACCESS_COOKIE_PATH = '/'
    JWT_COOKIE_SECURE = _env_flag('JWT_COOKIE_SECURE')

    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL', 'sqlite:///blockvote.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # create missing tables at startup without recording an alembic revision.
    # Migrated databases set this to false and use "flask db upgrade"; a database
    # built this way must be marked with "flask db stamp head" before its first upgrade.
    AUTO_CREATE_TABLES = _env_flag('AUTO_CREATE_TABLES', True)

    # "sql" uses SQLALCHEMY_DATABASE_URI, "memory" keeps everything in process
    STORAGE_BACKEND = os.environ.get('STORAGE_BACKEND', 'sql')

    PASSWORD_MIN_LENGTH = int(os.environ.get('PASSWORD_MIN_LENGTH', '6'))
    PASSWORD_HASH_TIME_COST = 3
    PASSWORD_HASH_MEMORY_COST = 65536
    WALLET_AUTH_ENABLED = _env_flag('WALLET_AUTH_ENABLED')

    # first-run admin; skipped unless a password is provided
    BOOTSTRAP_ADMIN_EMAIL = os.environ.get('BOOTSTRAP_ADMIN_EMAIL', 'admin@blockvote.com')
    BOOTSTRAP_ADMIN_PASSWORD = os.environ.get('BOOTSTRAP_ADMIN_PASSWORD')

    AUDIT_LOG_DIR = os.environ.get('AUDIT_LOG_DIR', 'logs')
    RECEIPT_SIGNING_KEY = os.environ.get('RECEIPT_SIGNING_KEY')  # Ed25519 private key, PEM
    AUDIT_SIGNING_KEY = os.environ.get('AUDIT_SIGNING_KEY')  # Ed25519 private key, PEM

    RATELIMIT_STORAGE_URI = os.environ.get('RATELIMIT_STORAGE_URI', 'memory://')
    RATELIMIT_ENABLED = _env_flag('RATELIMIT_ENABLED', True)

    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')


class TestingConfig(Config):
    TESTING = True
    SECRET_KEY = 'test'
    JWT_SECRET_KEY = 'test-secret-key-that-is-long-enough-for-hs256'
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    STORAGE_BACKEND = 'sql'
    BOOTSTRAP_ADMIN_EMAIL = 'admin@blockvote.com'
    BOOTSTRAP_ADMIN_PASSWORD = 'admin123'
    AUDIT_LOG_DIR = None  # no audit file unless a test sets one
    RATELIMIT_ENABLED = False
    PASSWORD_HASH_TIME_COST = 1
    PASSWORD_HASH_MEMORY_COST = 8192
