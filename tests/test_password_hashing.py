import pytest
from blockvote.encryption.password_hashing import PasswordHashingService
from blockvote.errors import ValidationError


@pytest.fixture
def password_service():
    return PasswordHashingService(time_cost=1, memory_cost=8192)


def test_hash_and_verify_password(password_service):
    password = "StrongPass123!"
    hashed = password_service.hash_password(password)

    # Verify the original password works
    assert password_service.verify_password(password, hashed) is True

    # Wrong password should fail
    assert password_service.verify_password("WrongPass456!", hashed) is False

    # Check if hash needs rehash (should be False immediately)
    assert password_service.needs_rehash(hashed) is False


def test_hashes_are_salted(password_service):
    assert password_service.hash_password("secret1") != password_service.hash_password("secret1")


def test_minimum_length(password_service):
    assert password_service.is_acceptable_password("123456") is True
    assert password_service.is_acceptable_password("12345") is False
    assert password_service.is_acceptable_password(None) is False
    with pytest.raises(ValidationError):
        password_service.hash_password("short")


def test_custom_minimum_length():
    service = PasswordHashingService(min_length=10, time_cost=1, memory_cost=8192)
    assert service.is_acceptable_password("123456789") is False
    assert service.is_acceptable_password("1234567890") is True


def test_verify_against_garbage_hash(password_service):
    assert password_service.verify_password("secret1", "not-a-hash") is False
