"""Custom exception classes for the campus portal.

Every expected failure of a core operation is one of these; the API layer
maps them to HTTP responses through ``PortalError.status_code``.
"""

from fastapi import status


class PortalError(Exception):
    """Base exception for the campus portal."""

    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str = "An error occurred"):
        self.message = message
        super().__init__(self.message)


class AuthenticationRequired(PortalError):
    """Raised when no valid session accompanies a protected call."""
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)


class InvalidCredentials(PortalError):
    """Raised when the supplied credential does not match."""
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message)


class AccountDisabled(PortalError):
    """Raised when the user exists but is not active."""
    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, message: str = "Account is disabled"):
        super().__init__(message)


class PermissionDenied(PortalError):
    """Raised when the caller lacks tile access, write rights or admin rights."""
    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, message: str = "Insufficient permissions"):
        super().__init__(message)


class NotFound(PortalError):
    """Raised when a referenced role, user or request does not exist."""
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message)


class AlreadyDecided(PortalError):
    """Raised when reviewing an access request that is no longer pending."""
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, message: str = "Request has already been reviewed"):
        super().__init__(message)


class ValidationError(PortalError):
    """Raised when input validation fails."""
    status_code = status.HTTP_400_BAD_REQUEST


class StorageFailure(PortalError):
    """Raised when the store cannot complete a read or write. Not retried."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str = "Storage unavailable"):
        super().__init__(message)
