# core/errors.py

from core.logging_config import logger


# ============================================================
# Error taxonomy
# ============================================================

class HotelOSError(Exception):
    """
    Base class for every error the back-office core raises on purpose.
    Carries an actionable message and the HTTP status the API maps it to.
    """

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthorized(HotelOSError):
    status_code = 403
    default_message = "You are not allowed to perform this action."


class NotAuthenticated(Unauthorized):
    status_code = 401
    default_message = "Invalid or expired authentication token"


class InvalidCredentials(HotelOSError):
    # Never says which of email/password was wrong
    status_code = 401
    default_message = "Invalid email or password"

    def __init__(self):
        super().__init__(self.default_message)


class EmailAlreadyInUse(HotelOSError):
    status_code = 409
    default_message = "This email address is already in use."


class SignupFailed(HotelOSError):
    status_code = 400
    default_message = "Signup failed"

    def __init__(self, detail: str = None):
        message = f"Signup failed: {detail}" if detail else self.default_message
        super().__init__(message)


class UnsupportedOperation(HotelOSError):
    status_code = 501
    default_message = "This operation is not supported."


class OperationNotAllowed(HotelOSError):
    status_code = 400
    default_message = "This operation is not allowed."


class NotFound(HotelOSError):
    status_code = 404
    default_message = "Resource not found"


class StoreUnavailable(HotelOSError):
    status_code = 503
    default_message = "Document store unavailable"


# ============================================================
# Collaborator error helpers
# ============================================================

def extract_store_error(error: Exception) -> str:
    """
    Safely extract readable details from Supabase Python client errors.
    Handles:
      • PostgREST errors
      • GoTrue (Auth) errors
      • Generic Python exceptions
    """

    # Case 1: Supabase Auth / GoTrue errors
    message = getattr(error, "message", None)
    if message:
        return str(message)

    # Case 2: errors with args (common)
    if getattr(error, "args", None):
        return str(error.args[0])

    # Case 3: Plain string fallback
    return str(error) or type(error).__name__


def handle_store_error(error: Exception, operation: str = "Store operation") -> StoreUnavailable:
    """
    Log a collaborator failure and wrap it as StoreUnavailable.
    Returns the exception (doesn't raise) so the caller decides to raise
    it or route it to an error channel.
    """
    if isinstance(error, StoreUnavailable):
        return error

    detail = extract_store_error(error)
    logger.error(f"{operation}: {detail}")
    return StoreUnavailable(f"{operation} failed: {detail}")
