# blockvote/authentication/rbac.py

from enum import Enum
from functools import wraps
from flask_jwt_extended import get_jwt, verify_jwt_in_request

from blockvote.database.records import UserRole
from blockvote.errors import PermissionDeniedError

# Role-based access control; the caller's role travels in the JWT "role" claim


class Permission(Enum):
    VOTE = "vote"
    VIEW_RESULTS = "view_results"
    VIEW_OWN_HISTORY = "view_own_history"
    MANAGE_ELECTIONS = "manage_elections"
    MANAGE_USERS = "manage_users"


ROLE_PERMISSIONS = {
    UserRole.VOTER: [
        Permission.VOTE,
        Permission.VIEW_RESULTS,
        Permission.VIEW_OWN_HISTORY,
    ],
    UserRole.ADMIN: [
        Permission.VOTE,
        Permission.VIEW_RESULTS,
        Permission.VIEW_OWN_HISTORY,
        Permission.MANAGE_ELECTIONS,
        Permission.MANAGE_USERS,
    ],
}


class RBACService:
    def has_permission(self, user_role, permission):
        try:
            if isinstance(user_role, str):
                user_role = UserRole(user_role)
            if isinstance(permission, str):
                permission = Permission(permission)
        except ValueError:
            return False
        return permission in ROLE_PERMISSIONS.get(user_role, [])


rbac_service = RBACService()


def require_permission(permission):
    """Require a valid JWT whose role grants `permission`."""
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            verify_jwt_in_request()
            role = get_jwt().get('role')
            if not rbac_service.has_permission(role, permission):
                raise PermissionDeniedError()
            return func(*args, **kwargs)
        return wrapper
    return decorator
