# blockvote/__init__.py

import logging
import os

from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_jwt_extended import JWTManager
from sqlalchemy import inspect
from werkzeug.middleware.proxy_fix import ProxyFix

# Extensions are created unbound and attached in create_app()
db = SQLAlchemy()  # Database ORM
migrate = Migrate()  # DB migrations
jwt = JWTManager()
limiter = Limiter(key_func=get_remote_address, default_limits=["10000/hour"])


@jwt.expired_token_loader
def expired_token_callback(jwt_header, jwt_payload):
    return jsonify({"error": "Token has expired", "code": "unauthorized"}), 401


@jwt.unauthorized_loader
def missing_token_callback(reason):
    return jsonify({"error": reason, "code": "unauthorized"}), 401

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = os.path.join(os.path.dirname(__file__), 'database', 'migrations')


class Services:
    """Service objects wired to one repository, shared by routes and CLI commands."""

    def __init__(self, repository, auth, elections, votes, audit_logger=None):
        self.repository = repository
        self.auth = auth
        self.elections = elections
        self.votes = votes
        self.audit_logger = audit_logger


def build_services(config, repository):
    from blockvote.audit.audit_logger import AuditLogger
    from blockvote.authentication.auth_service import AuthService
    from blockvote.elections.election_service import ElectionService
    from blockvote.encryption.password_hashing import PasswordHashingService
    from blockvote.encryption.vote_receipts import ReceiptService, load_signing_key
    from blockvote.security.input_validator import InputValidator
    from blockvote.voting.vote_service import VoteService

    audit_logger = None
    if config.get('AUDIT_LOG_DIR'):
        audit_key = config.get('AUDIT_SIGNING_KEY')
        audit_logger = AuditLogger(
            log_dir=config['AUDIT_LOG_DIR'],
            signing_key=load_signing_key(audit_key) if audit_key else None,
        )
    validator = InputValidator()
    password_service = PasswordHashingService(
        min_length=config['PASSWORD_MIN_LENGTH'],
        time_cost=config['PASSWORD_HASH_TIME_COST'],
        memory_cost=config['PASSWORD_HASH_MEMORY_COST'],
    )
    return Services(
        repository=repository,
        auth=AuthService(
            repository,
            password_service=password_service,
            validator=validator,
            audit_logger=audit_logger,
            wallet_auth_enabled=config['WALLET_AUTH_ENABLED'],
        ),
        elections=ElectionService(repository, validator=validator, audit_logger=audit_logger),
        votes=VoteService(
            repository,
            receipt_service=ReceiptService(config.get('RECEIPT_SIGNING_KEY')),
            audit_logger=audit_logger,
        ),
        audit_logger=audit_logger,
    )


def create_app(config_object='blockvote.config.Config', overrides=None):
    app = Flask(__name__)
    app.config.from_object(config_object)
    if overrides:
        app.config.update(overrides)

    logging.basicConfig(level=app.config.get('LOG_LEVEL', 'INFO'))

    # Fix proxy headers for HTTPS
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_port=1)

    db.init_app(app)
    migrate.init_app(app, db, directory=MIGRATIONS_DIR)
    jwt.init_app(app)
    limiter.init_app(app)

    # Ensure model modules are imported so SQLAlchemy metadata is populated
    from blockvote.database import models  # noqa: F401
    from blockvote.database.repository import InMemoryRepository
    from blockvote.database.sql_repository import SqlAlchemyRepository

    backend = app.config['STORAGE_BACKEND']
    if backend == 'memory':
        repository = InMemoryRepository()
    elif backend == 'sql':
        repository = SqlAlchemyRepository()
        if app.config.get('AUTO_CREATE_TABLES', True):
            with app.app_context():
                db.create_all()
    else:
        raise ValueError(f"Unknown STORAGE_BACKEND: {backend}")

    services = build_services(app.config, repository)
    app.extensions['blockvote'] = services

    if app.config.get('BOOTSTRAP_ADMIN_PASSWORD'):
        with app.app_context():
            if backend == 'sql' and not inspect(db.engine).has_table(models.User.__tablename__):
                # migrations own the schema; the admin is created once it exists
                logger.warning("Database schema missing; run 'flask db upgrade', then 'flask create-admin'")
            else:
                services.auth.bootstrap_admin(
                    app.config['BOOTSTRAP_ADMIN_EMAIL'],
                    app.config['BOOTSTRAP_ADMIN_PASSWORD'],
                )
    else:
        logger.warning("BOOTSTRAP_ADMIN_PASSWORD not set; no default admin created")

    from blockvote.routes import api
    from blockvote.cli import register_commands
    app.register_blueprint(api)
    register_commands(app)

    return app
