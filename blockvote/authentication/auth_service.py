# blockvote/authentication/auth_service.py

import logging
import uuid

from blockvote.database.records import User, UserRole
from blockvote.elections.status import utcnow
from blockvote.encryption.password_hashing import PasswordHashingService
from blockvote.errors import AuthenticationError, FeatureDisabledError, ValidationError
from blockvote.security.input_validator import InputValidator

logger = logging.getLogger(__name__)

DEFAULT_ADMIN_NAME = "System Administrator"


class AuthService:
    def __init__(self, repository, password_service=None, validator=None, audit_logger=None,
                 wallet_auth_enabled=False, clock=utcnow):
        self.repository = repository
        self.password_service = password_service or PasswordHashingService()
        self.validator = validator or InputValidator()
        self.audit_logger = audit_logger
        self.wallet_auth_enabled = wallet_auth_enabled
        self.clock = clock

    def _audit(self, event_type, data, user_id=None):
        if self.audit_logger is not None:
            self.audit_logger.log_event(event_type, data, user_id=user_id)

    def register(self, name, email, password, confirm_password):
        name = self.validator.require_text(name, "Name", max_length=100)
        email = self.validator.normalize_email(email)
        if password != confirm_password:
            raise ValidationError("Passwords do not match")
        password_hash = self.password_service.hash_password(password)

        # the repository enforces email uniqueness; EmailTakenError propagates
        user = self.repository.add_user(User(
            id=uuid.uuid4().hex,
            name=name,
            email=email,
            password_hash=password_hash,
            role=UserRole.VOTER.value,
            created_at=self.clock(),
        ))
        logger.info("Registered user %s", user.id)
        self._audit('user_registered', {'role': user.role}, user_id=user.id)
        return user

    def login(self, email, password):
        user = self.repository.get_user_by_email(email.strip() if isinstance(email, str) else None)
        if (user is None or not isinstance(password, str)
                or not self.password_service.verify_password(password, user.password_hash)):
            self._audit('failed_login', {'email': email if isinstance(email, str) else None})
            raise AuthenticationError()
        self._audit('successful_login', {'role': user.role}, user_id=user.id)
        return user

    def login_with_wallet(self, wallet_address, signature, message):
        if not self.wallet_auth_enabled:
            raise FeatureDisabledError("Wallet authentication is currently disabled")
        # TODO: verify the signed message against wallet_address once a signature verifier is chosen
        raise FeatureDisabledError("Wallet authentication has no signature verifier configured")

    def get_user(self, user_id):
        return self.repository.get_user(user_id)

    def bootstrap_admin(self, email, password, name=DEFAULT_ADMIN_NAME):
        """Create the first administrator; an existing account with that email is left as is."""
        email = self.validator.normalize_email(email)
        existing = self.repository.get_user_by_email(email)
        if existing is not None:
            return existing
        admin = self.repository.add_user(User(
            id=uuid.uuid4().hex,
            name=name,
            email=email,
            password_hash=self.password_service.hash_password(password),
            role=UserRole.ADMIN.value,
            created_at=self.clock(),
        ))
        logger.info("Default admin user created: %s", email)
        self._audit('admin_bootstrapped', {'email': email}, user_id=admin.id)
        return admin

    def reset_admin(self, email, password, name=DEFAULT_ADMIN_NAME):
        """Force the admin account back to the given password and admin role."""
        email = self.validator.normalize_email(email)
        existing = self.repository.get_user_by_email(email)
        if existing is None:
            return self.bootstrap_admin(email, password, name)
        existing.password_hash = self.password_service.hash_password(password)
        existing.role = UserRole.ADMIN.value
        admin = self.repository.save_user(existing)
        logger.info("Admin user reset: %s", email)
        self._audit('admin_reset', {'email': email}, user_id=admin.id)
        return admin

    def list_users(self, role=None):
        """Users newest first, each paired with the number of votes they cast."""
        if role is not None and role not in {r.value for r in UserRole}:
            raise ValidationError(f"Unknown role: {role}")
        return [
            (user, self.repository.count_votes(voter_id=user.id))
            for user in self.repository.list_users(role=role)
        ]
