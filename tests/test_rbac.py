import pytest
from flask_jwt_extended.exceptions import NoAuthorizationError

from blockvote import create_app
from blockvote.authentication.rbac import Permission, RBACService, require_permission
from blockvote.database.records import User, UserRole
from blockvote.errors import PermissionDeniedError
from blockvote.security.token_manager import TokenManager


@pytest.fixture
def rbac():
    return RBACService()


@pytest.fixture
def app():
    return create_app('blockvote.config.TestingConfig', {'STORAGE_BACKEND': 'memory'})


def test_voter_permissions(rbac):
    assert rbac.has_permission(UserRole.VOTER, Permission.VOTE)
    assert rbac.has_permission("voter", "view_results")
    assert not rbac.has_permission("voter", Permission.MANAGE_ELECTIONS)
    assert not rbac.has_permission("voter", Permission.MANAGE_USERS)


def test_admin_has_every_permission(rbac):
    assert all(rbac.has_permission("admin", permission) for permission in Permission)


def test_unknown_role_or_permission(rbac):
    assert not rbac.has_permission("superuser", Permission.VOTE)
    assert not rbac.has_permission(None, Permission.VOTE)
    assert not rbac.has_permission("admin", "launch_rockets")


def _auth_header(app, role):
    user = User(id="u1", name="Ada", email="ada@example.com", password_hash="x", role=role)
    with app.app_context():
        token = TokenManager().generate_token(user)
    return {"Authorization": f"Bearer {token}"}


def test_require_permission_allows_matching_role(app):
    @require_permission(Permission.MANAGE_ELECTIONS)
    def protected():
        return "ok"

    with app.test_request_context(headers=_auth_header(app, "admin")):
        assert protected() == "ok"


def test_require_permission_denies_other_role(app):
    @require_permission(Permission.MANAGE_USERS)
    def protected():
        return "ok"

    with app.test_request_context(headers=_auth_header(app, "voter")):
        with pytest.raises(PermissionDeniedError):
            protected()


def test_require_permission_needs_a_token(app):
    @require_permission(Permission.VOTE)
    def protected():
        return "ok"

    with app.test_request_context():
        with pytest.raises(NoAuthorizationError):
            protected()
