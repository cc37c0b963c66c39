"""
Domain exceptions for the session / payment core.

Services raise these; the API layer renders them through a single exception
handler (see main.py) as ``{"detail": ..., "code": ...}`` with the class's
status code. Idempotent re-application (joining twice, re-marking a paid
payment) is never an error and has no exception here.
"""


class KakiBadmintonError(Exception):
    """Base exception for all core errors."""

    status_code = 400
    default_detail = "Request could not be processed."
    code = "error"

    def __init__(self, detail: str = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class AuthenticationError(KakiBadmintonError):
    status_code = 401
    default_detail = "Caller identity is missing or invalid."
    code = "not_authenticated"


class PermissionDenied(KakiBadmintonError):
    status_code = 403
    default_detail = "You do not have permission to perform this action."
    code = "permission_denied"


class NotSessionHostError(PermissionDenied):
    default_detail = "Only the session host can do this."
    code = "not_session_host"


class NotFoundError(KakiBadmintonError):
    status_code = 404
    default_detail = "Not found."
    code = "not_found"


class UserNotFoundError(NotFoundError):
    code = "user_not_found"

    def __init__(self, user_id: int):
        self.user_id = user_id
        super().__init__(f"User {user_id} not found")


class SessionNotFoundError(NotFoundError):
    code = "session_not_found"

    def __init__(self, session_id: int):
        self.session_id = session_id
        super().__init__(f"Session {session_id} not found")


class PaymentNotFoundError(NotFoundError):
    code = "payment_not_found"

    def __init__(self, session_id: int, user_id: int):
        self.session_id = session_id
        self.user_id = user_id
        super().__init__(f"No payment for user {user_id} in session {session_id}")


class ProofRequestNotFoundError(NotFoundError):
    default_detail = "No open payment proof request. It may have expired."
    code = "proof_request_not_found"


class InvalidStateError(KakiBadmintonError):
    status_code = 409
    default_detail = "Operation not allowed in the current state."
    code = "invalid_state"


class SessionAlreadySettledError(InvalidStateError):
    default_detail = "Session is already settled."
    code = "session_already_settled"
