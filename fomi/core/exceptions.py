"""
Client Exceptions

Errors raised by the backend client, the services and the store.
"""

from typing import Optional


class FomiException(Exception):
    """Base exception for Fomí client errors."""

    def __init__(self, message: str, status_code: int = 500):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class BackendError(FomiException):
    """A PostgREST, Storage or RPC call failed."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        code: Optional[str] = None,
        details: Optional[str] = None,
        hint: Optional[str] = None,
    ):
        super().__init__(message=message, status_code=status_code)
        self.code = code
        self.details = details
        self.hint = hint


class AuthError(FomiException):
    """The auth service rejected the request."""

    def __init__(self, message: str = "Authentication failed", status_code: int = 400):
        super().__init__(message=message, status_code=status_code)


class NotAuthenticatedError(FomiException):
    """A write needs a signed-in viewer."""

    def __init__(self, message: str = "Not signed in"):
        super().__init__(message=message, status_code=401)


class NotFoundError(FomiException):
    """Resource not found."""

    def __init__(self, resource: str, resource_id: str):
        super().__init__(
            message=f"{resource} not found: {resource_id}",
            status_code=404
        )


class DefaultListError(FomiException):
    """The default save list could not be resolved or created."""

    def __init__(self, message: str = "Default list unavailable"):
        super().__init__(message=message, status_code=500)


class ListNotDeletableError(FomiException):
    """The default list cannot be deleted."""

    def __init__(self, list_id: str):
        super().__init__(
            message=f"Default list cannot be deleted: {list_id}",
            status_code=409
        )
