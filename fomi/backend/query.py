"""
PostgREST Query Builder

Fluent builder mirroring the table API of the Supabase JS client:

    await client.table("reviews") \
        .select("*, user:profiles!user_id(id, username)") \
        .eq("is_active", True) \
        .order("created_at", desc=True) \
        .limit(50) \
        .execute()
"""

from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional, Tuple

from ..core.exceptions import BackendError
from .responses import APIResponse, parse_content_range, raise_for_status

if TYPE_CHECKING:
    from .client import SupabaseClient


# Characters that force quoting inside in.(...) and or=(...) lists
_RESERVED = set(',()".: ')

_WRITE_METHODS = ("POST", "PATCH", "DELETE")


def format_value(value: Any) -> str:
    """Render a Python value as a PostgREST filter operand."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _quote(value: Any) -> str:
    text = format_value(value)
    if any(ch in _RESERVED for ch in text):
        escaped = text.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}"'
    return text


class QueryBuilder:
    """Builds and executes one request against /rest/v1/{table}."""

    def __init__(self, client: "SupabaseClient", table: str):
        self._client = client
        self._table = table
        self._method = "GET"
        self._params: List[Tuple[str, str]] = []
        self._json: Any = None
        self._prefer: List[str] = []
        self._returning = False
        self._count: Optional[str] = None
        self._single = False
        self._maybe_single = False

    # ------------------------------------------------------------------
    # Verbs
    # ------------------------------------------------------------------

    def select(self, columns: str = "*", count: Optional[str] = None, head: bool = False) -> "QueryBuilder":
        """
        Choose returned columns.

        After insert/update/delete this asks for the written rows back.
        """
        self._set_param("select", "".join(columns.split()))
        if self._method in _WRITE_METHODS:
            self._returning = True
        else:
            self._method = "HEAD" if head else "GET"
        if count:
            self._count = count
        return self

    def insert(self, rows: Any, upsert: bool = False, ignore_duplicates: bool = False) -> "QueryBuilder":
        self._method = "POST"
        self._json = rows
        if upsert:
            resolution = "ignore-duplicates" if ignore_duplicates else "merge-duplicates"
            self._prefer.append(f"resolution={resolution}")
        return self

    def update(self, values: Dict[str, Any]) -> "QueryBuilder":
        self._method = "PATCH"
        self._json = values
        return self

    def delete(self) -> "QueryBuilder":
        self._method = "DELETE"
        return self

    # ------------------------------------------------------------------
    # Filters
    # ------------------------------------------------------------------

    def _filter(self, column: str, operator: str, value: Any) -> "QueryBuilder":
        self._params.append((column, f"{operator}.{format_value(value)}"))
        return self

    def eq(self, column: str, value: Any) -> "QueryBuilder":
        return self._filter(column, "eq", value)

    def neq(self, column: str, value: Any) -> "QueryBuilder":
        return self._filter(column, "neq", value)

    def gt(self, column: str, value: Any) -> "QueryBuilder":
        return self._filter(column, "gt", value)

    def gte(self, column: str, value: Any) -> "QueryBuilder":
        return self._filter(column, "gte", value)

    def lt(self, column: str, value: Any) -> "QueryBuilder":
        return self._filter(column, "lt", value)

    def lte(self, column: str, value: Any) -> "QueryBuilder":
        return self._filter(column, "lte", value)

    def like(self, column: str, pattern: str) -> "QueryBuilder":
        return self._filter(column, "like", pattern)

    def ilike(self, column: str, pattern: str) -> "QueryBuilder":
        return self._filter(column, "ilike", pattern)

    def is_(self, column: str, value: Any) -> "QueryBuilder":
        return self._filter(column, "is", value)

    def in_(self, column: str, values: Iterable[Any]) -> "QueryBuilder":
        joined = ",".join(_quote(v) for v in values)
        self._params.append((column, f"in.({joined})"))
        return self

    def contains(self, column: str, values: Iterable[Any]) -> "QueryBuilder":
        joined = ",".join(_quote(v) for v in values)
        self._params.append((column, f"cs.{{{joined}}}"))
        return self

    def or_(self, filters: str) -> "QueryBuilder":
        """Raw PostgREST disjunction, e.g. `full_name.ilike.%ana%,username.ilike.%ana%`."""
        self._params.append(("or", f"({filters})"))
        return self

    # ------------------------------------------------------------------
    # Modifiers
    # ------------------------------------------------------------------

    def order(self, column: str, desc: bool = False, nulls_last: Optional[bool] = None) -> "QueryBuilder":
        term = f"{column}.{'desc' if desc else 'asc'}"
        if nulls_last is not None:
            term += ".nullslast" if nulls_last else ".nullsfirst"
        existing = self._get_param("order")
        self._set_param("order", f"{existing},{term}" if existing else term)
        return self

    def limit(self, count: int) -> "QueryBuilder":
        self._set_param("limit", str(count))
        return self

    def single(self) -> "QueryBuilder":
        """Expect exactly one row; zero or many rows is an error."""
        self._single = True
        return self

    def maybe_single(self) -> "QueryBuilder":
        """Expect at most one row; zero rows yields None."""
        self._maybe_single = True
        return self

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def _get_param(self, name: str) -> Optional[str]:
        for key, value in self._params:
            if key == name:
                return value
        return None

    def _set_param(self, name: str, value: str) -> None:
        self._params = [(k, v) for k, v in self._params if k != name]
        self._params.append((name, value))

    def _build_headers(self) -> Dict[str, str]:
        headers: Dict[str, str] = {}
        prefer = list(self._prefer)
        if self._method in _WRITE_METHODS:
            prefer.append("return=representation" if self._returning else "return=minimal")
        if self._count:
            prefer.append(f"count={self._count}")
        if prefer:
            headers["Prefer"] = ",".join(prefer)
        if self._json is not None:
            headers["Content-Type"] = "application/json"
        if self._single:
            headers["Accept"] = "application/vnd.pgrst.object+json"
        return headers

    async def execute(self) -> APIResponse:
        """Send the request and decode the rows (and count, if requested)."""
        response = await self._client.request(
            self._method,
            f"/rest/v1/{self._table}",
            params=self._params,
            json=self._json,
            headers=self._build_headers(),
        )
        raise_for_status(response)

        count = None
        if self._count:
            count = parse_content_range(response.headers.get("content-range"))

        data = None
        if self._method != "HEAD" and response.content:
            data = response.json()

        if self._maybe_single:
            rows = data or []
            if isinstance(rows, dict):
                data = rows
            elif len(rows) > 1:
                raise BackendError(
                    f"Expected at most one row from {self._table}, got {len(rows)}",
                    status_code=406,
                    code="PGRST116",
                )
            else:
                data = rows[0] if rows else None

        return APIResponse(data=data, count=count)
