import pytest
from flask_jwt_extended import decode_token

from blockvote import create_app
from blockvote.database.records import User
from blockvote.security.token_manager import TokenManager


@pytest.fixture
def app():
    return create_app('blockvote.config.TestingConfig', {'STORAGE_BACKEND': 'memory'})


@pytest.fixture
def token_manager():
    return TokenManager()


@pytest.fixture
def user():
    return User(id="u1", name="Ada", email="ada@example.com", password_hash="x", role="admin")


def test_token_carries_identity_and_role(app, token_manager, user):
    with app.app_context():
        decoded = decode_token(token_manager.generate_token(user))
    assert decoded["sub"] == "u1"
    assert decoded["role"] == "admin"
    assert decoded["name"] == "Ada"


def test_default_expiry_comes_from_config(app, token_manager, user):
    with app.app_context():
        decoded = decode_token(token_manager.generate_token(user))
    expected = app.config["JWT_ACCESS_TOKEN_EXPIRES"].total_seconds()
    assert decoded["exp"] - decoded["iat"] == expected


def test_custom_expiry(app, token_manager, user):
    with app.app_context():
        decoded = decode_token(token_manager.generate_token(user, expires_in=30))
    assert decoded["exp"] - decoded["iat"] == 30


def test_expired_token_is_refused_by_the_api(app, token_manager, user):
    with app.app_context():
        token = token_manager.generate_token(user, expires_in=-1)
    resp = app.test_client().get('/auth/me', headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401
    assert resp.get_json()["error"] == "Token has expired"
