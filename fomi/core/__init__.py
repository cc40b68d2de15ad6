"""Core infrastructure modules."""

from .exceptions import (
    FomiException,
    BackendError,
    AuthError,
    NotAuthenticatedError,
    NotFoundError,
    DefaultListError,
    ListNotDeletableError,
)
from .logging import bind_viewer, setup_logging, get_logger

__all__ = [
    "FomiException",
    "BackendError",
    "AuthError",
    "NotAuthenticatedError",
    "NotFoundError",
    "DefaultListError",
    "ListNotDeletableError",
    "setup_logging",
    "bind_viewer",
    "get_logger",
]
