"""Error taxonomy shared by the REST routers and the socket gateway.

Each error carries the HTTP status it maps to; the socket gateway only uses
the message.
"""


class ChatServiceError(Exception):
    """Base exception for the requirements chat service."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ChatServiceError):
    """Missing or malformed input."""

    status_code = 400


class AuthenticationError(ChatServiceError):
    """Missing, invalid or stale credentials."""

    status_code = 401


class AuthorizationError(ChatServiceError):
    """Caller is not a member of the chat or acts outside their event."""

    status_code = 403


class NotFoundError(ChatServiceError):
    status_code = 404


class ConflictError(ChatServiceError):
    """Operation conflicts with existing state, e.g. a duplicate bid."""

    status_code = 409


class InvalidOperationError(ConflictError):
    """Operation is never allowed for this caller, e.g. bidding on own requirement."""

    status_code = 400


class InternalError(ChatServiceError):
    """Storage or transaction failure."""

    status_code = 500
