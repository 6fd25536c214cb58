# blockvote/encryption/password_hashing.py

from argon2 import PasswordHasher
from argon2.exceptions import VerificationError, InvalidHashError, HashingError

from blockvote.errors import ValidationError

# Argon2id password hashing; each hash carries its own random salt

DEFAULT_MIN_LENGTH = 6


class PasswordHashingService:
    def __init__(self, min_length=DEFAULT_MIN_LENGTH, time_cost=3, memory_cost=65536):
        self.min_length = min_length
        self.ph = PasswordHasher(
            time_cost=time_cost,
            memory_cost=memory_cost,
            parallelism=4,
            hash_len=32,
            salt_len=16,
        )

    def hash_password(self, password: str) -> str:
        if not self.is_acceptable_password(password):
            raise ValidationError(f"Password must be at least {self.min_length} characters")
        try:
            return self.ph.hash(password)
        except HashingError as e:
            raise ValidationError(f"Password hashing failed: {str(e)}")

    def verify_password(self, password: str, hash_value: str) -> bool:
        try:
            self.ph.verify(hash_value, password)
            return True
        except (VerificationError, InvalidHashError):
            return False

    def needs_rehash(self, hash_value: str) -> bool:
        return self.ph.check_needs_rehash(hash_value)

    def is_acceptable_password(self, password) -> bool:
        return isinstance(password, str) and len(password) >= self.min_length
