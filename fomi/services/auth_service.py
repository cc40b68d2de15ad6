"""
Auth Service

Sign-in, registration, password flows and onboarding preferences.
Auth flows propagate errors to the caller.
"""

from typing import Callable, Optional

from ..backend import SupabaseClient
from ..backend.auth import SessionListener
from ..core.exceptions import AuthError
from ..core.logging import get_logger
from ..models.session import Session
from ..models.user import Profile, UserPreferences
from .profile_service import ProfileService
from .rows import parse_written_row

logger = get_logger(__name__)


class AuthService:
    """Wraps the auth client with the app's login and signup rules."""

    def __init__(self, client: SupabaseClient, profiles: Optional[ProfileService] = None):
        self.client = client
        self.profiles = profiles or ProfileService(client)
        self.settings = client.settings

    async def get_current_session(self) -> Optional[Session]:
        return await self.client.auth.get_current_session()

    def on_session_change(self, callback: SessionListener) -> Callable[[], None]:
        return self.client.auth.on_session_change(callback)

    async def refresh_session(self) -> Session:
        return await self.client.auth.refresh_session()

    async def sign_in(self, identifier: str, password: str) -> Session:
        """
        Sign in with an email or a username.

        A username is resolved to its account email first.
        """
        email = identifier.strip()
        if "@" not in email:
            resolved = await self.profiles.get_email_by_username(email)
            if not resolved:
                raise AuthError("User not found", status_code=404)
            email = resolved
        return await self.client.auth.sign_in_with_password(email, password)

    async def sign_up(
        self,
        email: str,
        password: str,
        full_name: str,
        username: str,
    ) -> Optional[Session]:
        return await self.client.auth.sign_up(
            email.strip(),
            password,
            metadata={"full_name": full_name.strip(), "username": username.strip().lower()},
        )

    async def sign_out(self, scope: str = "global") -> None:
        await self.client.auth.sign_out(scope=scope)

    async def reset_password(self, email: str, redirect_to: Optional[str] = None) -> None:
        await self.client.auth.reset_password_for_email(
            email.strip(),
            redirect_to=redirect_to or self.settings.password_reset_redirect_url,
        )

    async def resend_verification(self, email: str) -> None:
        await self.client.auth.resend_verification(email.strip())

    async def update_password(self, password: str) -> None:
        await self.client.auth.update_password(password)

    async def check_username_available(self, username: str) -> bool:
        result = await self.client.rpc(
            "check_username_available",
            {"target_username": username.strip().lower()},
        )
        return bool(result)

    async def update_preferences(self, user_id: str, prefs: UserPreferences) -> Profile:
        """Write onboarding answers in one update and return the stored row."""
        response = await self.client.table("profiles") \
            .update(prefs.to_profile_columns()) \
            .eq("id", user_id) \
            .select("*") \
            .single() \
            .execute()
        logger.info("preferences_saved", user_id=user_id)
        return parse_written_row(Profile, response.data, "profiles")
