"""
Response helpers shared by the REST, auth and storage clients.
"""

from typing import Any, Optional
import httpx
from pydantic import BaseModel

from ..core.exceptions import BackendError


class APIResponse(BaseModel):
    """Decoded PostgREST response."""
    data: Any = None
    count: Optional[int] = None


def error_message(response: httpx.Response) -> str:
    """Extract a readable message from a PostgREST, GoTrue or Storage error body."""
    try:
        body = response.json()
    except ValueError:
        return response.text[:200] or f"HTTP {response.status_code}"
    if isinstance(body, dict):
        for key in ("message", "error_description", "msg", "error"):
            if body.get(key):
                return str(body[key])
    return response.text[:200]


def raise_for_status(response: httpx.Response) -> None:
    """Raise BackendError for any non-2xx response."""
    if response.is_success:
        return
    code = details = hint = None
    try:
        body = response.json()
        if isinstance(body, dict):
            code = body.get("code")
            details = body.get("details")
            hint = body.get("hint")
    except ValueError:
        pass
    raise BackendError(
        message=error_message(response),
        status_code=response.status_code,
        code=str(code) if code is not None else None,
        details=details,
        hint=hint,
    )


def parse_content_range(header: Optional[str]) -> Optional[int]:
    """Total from a Content-Range header such as `0-24/3573` or `*/0`."""
    if not header or "/" not in header:
        return None
    total = header.rsplit("/", 1)[1]
    return int(total) if total.isdigit() else None
