"""
Auth Client

GoTrue endpoints under /auth/v1 plus local session bookkeeping.

The backend does not push session changes to this client, so events are
emitted locally whenever a call here creates, refreshes or drops the
session, the same way the JS client does.
"""

import inspect
from pathlib import Path
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, List, Optional, Union

from pydantic import ValidationError

from ..core.exceptions import AuthError, FomiException, NotAuthenticatedError
from ..core.logging import get_logger
from ..models.session import AuthEvent, Session
from .responses import error_message

if TYPE_CHECKING:
    from .client import SupabaseClient

logger = get_logger(__name__)

SessionListener = Callable[[AuthEvent, Optional[Session]], Union[None, Awaitable[None]]]


class AuthClient:
    """
    Session issuance and observation.

    Listeners registered with `on_session_change` are awaited in
    registration order for every event.
    """

    def __init__(self, client: "SupabaseClient", session_path: Optional[Path] = None):
        self._client = client
        self._session: Optional[Session] = None
        self._session_path = session_path
        self._restored = False
        self._listeners: List[SessionListener] = []

    @property
    def access_token(self) -> Optional[str]:
        return self._session.access_token if self._session else None

    # =========================================================================
    # SESSION STORAGE
    # =========================================================================

    def _load_stored_session(self) -> Optional[Session]:
        if not self._session_path or not self._session_path.exists():
            return None
        try:
            return Session.model_validate_json(self._session_path.read_text())
        except (OSError, ValidationError) as e:
            logger.warning("stored_session_unreadable", path=str(self._session_path), error=str(e))
            return None

    def _store_session(self, session: Optional[Session]) -> None:
        if not self._session_path:
            return
        try:
            if session is None:
                self._session_path.unlink(missing_ok=True)
            else:
                self._session_path.parent.mkdir(parents=True, exist_ok=True)
                self._session_path.write_text(session.model_dump_json())
        except OSError as e:
            logger.warning("session_store_failed", path=str(self._session_path), error=str(e))

    async def get_current_session(self) -> Optional[Session]:
        """Current session, restoring a persisted one on first call."""
        if self._session is None and not self._restored:
            self._session = self._load_stored_session()
        self._restored = True
        return self._session

    # =========================================================================
    # EVENTS
    # =========================================================================

    def on_session_change(self, callback: SessionListener) -> Callable[[], None]:
        """Register a listener; returns a function that removes it."""
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    async def _emit(self, event: AuthEvent, session: Optional[Session]) -> None:
        for listener in list(self._listeners):
            result = listener(event, session)
            if inspect.isawaitable(result):
                await result

    async def _set_session(self, session: Optional[Session], event: AuthEvent) -> None:
        self._session = session
        self._restored = True
        self._store_session(session)
        logger.info("auth_event", auth_event=event.value, user_id=session.user_id if session else None)
        await self._emit(event, session)

    # =========================================================================
    # GOTRUE CALLS
    # =========================================================================

    async def _call(
        self,
        method: str,
        path: str,
        payload: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, str]] = None,
        use_session: bool = False,
    ) -> Dict[str, Any]:
        headers = {"Content-Type": "application/json"}
        if not use_session:
            headers["Authorization"] = f"Bearer {self._client.key}"
        response = await self._client.request(
            method,
            f"/auth/v1/{path}",
            params=params,
            json=payload,
            headers=headers,
        )
        if not response.is_success:
            raise AuthError(error_message(response), status_code=response.status_code)
        if not response.content:
            return {}
        return response.json()

    async def sign_in_with_password(self, email: str, password: str) -> Session:
        data = await self._call(
            "POST",
            "token",
            {"email": email, "password": password},
            params={"grant_type": "password"},
        )
        session = Session.from_token_response(data)
        await self._set_session(session, AuthEvent.SIGNED_IN)
        return session

    async def sign_up(
        self,
        email: str,
        password: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Optional[Session]:
        """
        Register an account.

        Returns the session when the project signs users in immediately,
        or None while email verification is pending.
        """
        data = await self._call(
            "POST",
            "signup",
            {"email": email, "password": password, "data": metadata or {}},
        )
        if not data.get("access_token"):
            logger.info("sign_up_pending_verification", email=email)
            return None
        session = Session.from_token_response(data)
        await self._set_session(session, AuthEvent.SIGNED_IN)
        return session

    async def refresh_session(self) -> Session:
        """Exchange the refresh token for a new session."""
        current = await self.get_current_session()
        if current is None or not current.refresh_token:
            raise AuthError("No refresh token available", status_code=401)
        data = await self._call(
            "POST",
            "token",
            {"refresh_token": current.refresh_token},
            params={"grant_type": "refresh_token"},
        )
        session = Session.from_token_response(data)
        await self._set_session(session, AuthEvent.TOKEN_REFRESHED)
        return session

    async def sign_out(self, scope: str = "global") -> None:
        """
        Drop the session.

        The local session is always cleared, even when the server call fails.
        `scope="local"` skips the server call.
        """
        if self._session is not None and scope != "local":
            try:
                await self._call("POST", "logout", params={"scope": scope}, use_session=True)
            except FomiException as e:
                logger.warning("sign_out_remote_failed", error=e.message)
        await self._set_session(None, AuthEvent.SIGNED_OUT)

    async def reset_password_for_email(self, email: str, redirect_to: Optional[str] = None) -> None:
        params = {"redirect_to": redirect_to} if redirect_to else None
        await self._call("POST", "recover", {"email": email}, params=params)

    async def resend_verification(self, email: str) -> None:
        await self._call("POST", "resend", {"type": "signup", "email": email})

    async def update_password(self, password: str) -> None:
        if self._session is None:
            raise NotAuthenticatedError()
        await self._call("PUT", "user", {"password": password}, use_session=True)
        await self._emit(AuthEvent.USER_UPDATED, self._session)
