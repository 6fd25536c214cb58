# blockvote/errors.py
"""Error taxonomy shared by the services and the HTTP layer.

Every error carries the HTTP status and the short machine code the API
returns alongside the message:

- BlockVoteError: base class, generic "operation failed" (500)
  - NotFoundError: referenced entity is absent (404)
  - ValidationError: missing or invalid input (400), also a ValueError
  - DuplicateError: uniqueness violated (409)
    - EmailTakenError: email already registered
    - AlreadyVotedError: voter already voted in the election
  - ElectionStateError: election is in the wrong status for the action (409)
  - AuthenticationError: bad credentials or no identity (401)
  - PermissionDeniedError: role lacks the permission (403)
  - FeatureDisabledError: capability switched off (501)
  - StorageError: persistence backend failed (500)
"""


class BlockVoteError(Exception):
    status_code = 500
    code = "operation_failed"
    default_message = "Operation failed"

    def __init__(self, message=None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message

    def to_dict(self):
        return {"error": self.message, "code": self.code}


class NotFoundError(BlockVoteError):
    status_code = 404
    code = "not_found"
    default_message = "Not found"


class ValidationError(BlockVoteError, ValueError):
    status_code = 400
    code = "validation_failed"
    default_message = "Invalid input"


class DuplicateError(BlockVoteError):
    status_code = 409
    code = "duplicate"
    default_message = "Record already exists"


class EmailTakenError(DuplicateError):
    default_message = "User already exists with this email"


class AlreadyVotedError(DuplicateError):
    default_message = "You have already voted in this election"


class ElectionStateError(BlockVoteError):
    status_code = 409
    code = "invalid_state"
    default_message = "Election is not in a valid state for this action"


class AuthenticationError(BlockVoteError):
    status_code = 401
    code = "unauthorized"
    default_message = "Invalid email or password"


class PermissionDeniedError(BlockVoteError):
    status_code = 403
    code = "forbidden"
    default_message = "Permission denied"


class FeatureDisabledError(BlockVoteError):
    status_code = 501
    code = "feature_disabled"
    default_message = "This feature is currently disabled"


class StorageError(BlockVoteError):
    default_message = "Storage operation failed"
