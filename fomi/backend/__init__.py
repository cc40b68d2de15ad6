"""HTTP client for the hosted Supabase backend."""

from .client import SupabaseClient
from .auth import AuthClient
from .query import QueryBuilder
from .responses import APIResponse
from .storage import StorageClient

__all__ = [
    "SupabaseClient",
    "AuthClient",
    "QueryBuilder",
    "APIResponse",
    "StorageClient",
]
