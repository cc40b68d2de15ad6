"""
Supabase Client

Thin httpx wrapper over the hosted backend:
- /rest/v1     PostgREST tables and RPC
- /auth/v1     GoTrue sessions
- /storage/v1  object storage

Requests carry the anon key as `apikey` and the viewer's access token
(or the anon key when signed out) as the bearer token.
"""

from pathlib import Path
from typing import Any, Dict, Optional
import httpx

from ..config import Settings, get_settings
from ..core.exceptions import BackendError
from ..core.logging import get_logger
from .auth import AuthClient
from .query import QueryBuilder
from .responses import raise_for_status
from .storage import StorageClient

logger = get_logger(__name__)


class SupabaseClient:
    """
    Entry point to the backend.

    One instance per viewer session; it holds the auth state used to
    authorize every request.
    """

    def __init__(
        self,
        url: Optional[str] = None,
        key: Optional[str] = None,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or get_settings()
        self.url = (url if url is not None else self.settings.supabase_url).rstrip("/")
        self.key = key if key is not None else self.settings.supabase_anon_key
        self._transport = transport

        session_path = Path(self.settings.session_file) if self.settings.session_file else None
        self.auth = AuthClient(self, session_path=session_path)
        self.storage = StorageClient(self)

        if not self.is_configured():
            logger.error("supabase_not_configured")

    def is_configured(self) -> bool:
        """Check if Supabase credentials are configured."""
        return bool(self.url and self.key)

    def _get_headers(self) -> Dict[str, str]:
        """Get authorization headers."""
        token = self.auth.access_token or self.key
        return {
            "apikey": self.key,
            "Authorization": f"Bearer {token}",
        }

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Any = None,
        json: Any = None,
        content: Optional[bytes] = None,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> httpx.Response:
        """
        Send one request to the backend.

        Transport failures become BackendError; HTTP error statuses are
        returned as-is for the caller to interpret.
        """
        if not self.is_configured():
            raise BackendError("Supabase not configured", status_code=500)

        try:
            async with httpx.AsyncClient(
                transport=self._transport,
                timeout=timeout or self.settings.request_timeout,
            ) as client:
                return await client.request(
                    method,
                    f"{self.url}{path}",
                    params=params,
                    json=json,
                    content=content,
                    headers={**self._get_headers(), **(headers or {})},
                )
        except httpx.TimeoutException as e:
            logger.error("supabase_timeout", method=method, path=path)
            raise BackendError("Supabase timeout", status_code=504) from e
        except httpx.HTTPError as e:
            logger.error("supabase_request_error", method=method, path=path, error=str(e))
            raise BackendError(f"Supabase request failed: {e}", status_code=503) from e

    def table(self, name: str) -> QueryBuilder:
        """Start a query against a table."""
        return QueryBuilder(self, name)

    async def rpc(self, name: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """Call a remote procedure and return its decoded result."""
        response = await self.request(
            "POST",
            f"/rest/v1/rpc/{name}",
            json=params or {},
            headers={"Content-Type": "application/json"},
        )
        raise_for_status(response)
        if not response.content:
            return None
        return response.json()
