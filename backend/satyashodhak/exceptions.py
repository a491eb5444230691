"""
Error taxonomy for the SatyaShodhak API.

Every error a caller can observe derives from SatyaShodhakError and carries
the HTTP status and machine-readable code used by the exception handlers in
satyashodhak.main.
"""


class SatyaShodhakError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code: int = 500
    code: str = "INTERNAL_ERROR"
    default_message: str = "An unexpected error occurred"

    def __init__(self, message: str = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


# Validation

class EmptyClaimError(SatyaShodhakError):
    """Raised when the submitted claim is empty after trimming."""
    status_code = 400
    code = "EMPTY_CLAIM"
    default_message = "Claim is required"


class InvalidInputError(SatyaShodhakError):
    """Raised when request input is malformed."""
    status_code = 400
    code = "VALIDATION_ERROR"
    default_message = "Invalid request"


# Authentication and authorization

class AuthenticationRequiredError(SatyaShodhakError):
    status_code = 401
    code = "AUTHENTICATION_REQUIRED"
    default_message = "Authentication required"


class AuthenticationInvalidError(SatyaShodhakError):
    status_code = 401
    code = "AUTHENTICATION_INVALID"
    default_message = "Invalid authentication"


class PermissionDeniedError(SatyaShodhakError):
    status_code = 403
    code = "PERMISSION_DENIED"
    default_message = "You are not allowed to modify this resource"


# Lookups

class ResultNotFoundError(SatyaShodhakError):
    status_code = 404
    code = "RESULT_NOT_FOUND"
    default_message = "The requested verification result does not exist"


class CommentNotFoundError(SatyaShodhakError):
    status_code = 404
    code = "COMMENT_NOT_FOUND"
    default_message = "The requested comment does not exist"


# Reasoning engine

class EngineNotConfiguredError(SatyaShodhakError):
    status_code = 500
    code = "ENGINE_NOT_CONFIGURED"
    default_message = "ANTHROPIC_API_KEY not configured"


class RateLimitedError(SatyaShodhakError):
    status_code = 429
    code = "RATE_LIMITED"
    default_message = "Rate limit exceeded. Please try again later."


class QuotaExhaustedError(SatyaShodhakError):
    status_code = 402
    code = "QUOTA_EXHAUSTED"
    default_message = "AI credits exhausted. Please add credits to continue."


class EngineRequestFailedError(SatyaShodhakError):
    status_code = 500
    code = "ENGINE_REQUEST_FAILED"
    default_message = "AI API request failed"


# Persistence and fallback

class PersistenceFailedError(SatyaShodhakError):
    status_code = 500
    code = "PERSISTENCE_FAILED"
    default_message = "Failed to save verification result"


class VerificationFailedError(SatyaShodhakError):
    status_code = 500
    code = "VERIFICATION_FAILED"
    default_message = "Verification failed"
