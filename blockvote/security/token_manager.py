# blockvote/security/token_manager.py
from datetime import timedelta
from flask_jwt_extended import create_access_token

# JWT issuing via Flask-JWT-Extended; the role rides along as a claim and
# is read back by authentication/rbac.py


class TokenManager:
    def generate_token(self, user, expires_in: int = None) -> str:
        expires_delta = timedelta(seconds=expires_in) if expires_in else None
        return create_access_token(
            identity=str(user.id),
            additional_claims={"role": user.role, "name": user.name},
            expires_delta=expires_delta,
        )
