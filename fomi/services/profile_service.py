"""
Profile Service

Profile rows, the derived counts shown on profile screens, profile
search and blocking.
"""

import asyncio
import re
from typing import Any, Dict, List, Optional

from ..backend import SupabaseClient
from ..core.exceptions import BackendError
from ..core.logging import get_logger
from ..models.user import EDITABLE_PROFILE_FIELDS, Profile, ProfileSummary
from .rows import parse_row, parse_rows, parse_written_row

logger = get_logger(__name__)

PROFILE_CARD_COLUMNS = "id, username, full_name, profile_photo_url, is_verified"


class ProfileService:
    """Reads swallow and log backend errors; writes raise BackendError."""

    def __init__(self, client: SupabaseClient):
        self.client = client
        self.settings = client.settings

    async def get_profile(self, user_id: str) -> Optional[Profile]:
        try:
            response = await self.client.table("profiles") \
                .select("*") \
                .eq("id", user_id) \
                .maybe_single() \
                .execute()
        except BackendError as e:
            logger.error("get_profile_failed", user_id=user_id, error=e.message)
            return None
        return parse_row(Profile, response.data, "profiles")

    async def get_profile_by_username(self, username: str) -> Optional[Profile]:
        try:
            response = await self.client.table("profiles") \
                .select("*") \
                .eq("username", username.lower()) \
                .maybe_single() \
                .execute()
        except BackendError as e:
            logger.error("get_profile_by_username_failed", username=username, error=e.message)
            return None
        return parse_row(Profile, response.data, "profiles")

    async def get_email_by_username(self, username: str) -> Optional[str]:
        try:
            response = await self.client.table("profiles") \
                .select("email") \
                .eq("username", username.lower()) \
                .maybe_single() \
                .execute()
        except BackendError as e:
            logger.error("get_email_by_username_failed", username=username, error=e.message)
            return None
        return (response.data or {}).get("email")

    # =========================================================================
    # COUNTS
    # =========================================================================

    async def _count(self, table: str, **filters: Any) -> int:
        query = self.client.table(table).select("*", count="exact", head=True)
        for column, value in filters.items():
            query = query.eq(column, value)
        try:
            response = await query.execute()
        except BackendError as e:
            logger.error("count_failed", table=table, filters=filters, error=e.message)
            return 0
        return response.count or 0

    async def count_active_reviews(self, user_id: str) -> int:
        return await self._count("reviews", user_id=user_id, is_active=True)

    async def count_followers(self, user_id: str) -> int:
        return await self._count("follows", following_id=user_id)

    async def count_following(self, user_id: str) -> int:
        return await self._count("follows", follower_id=user_id)

    async def get_profile_summary(self, user_id: str) -> Optional[ProfileSummary]:
        """Profile row plus active review, follower and following counts."""
        profile, reviews, followers, following = await asyncio.gather(
            self.get_profile(user_id),
            self.count_active_reviews(user_id),
            self.count_followers(user_id),
            self.count_following(user_id),
        )
        if profile is None:
            return None
        return ProfileSummary(
            **profile.model_dump(),
            reviews_count=reviews,
            followers_count=followers,
            following_count=following,
        )

    # =========================================================================
    # SEARCH
    # =========================================================================

    async def search_profiles(self, query: str, limit: Optional[int] = None) -> List[Profile]:
        """Match full name or username; short queries return nothing."""
        term = re.sub(r"[,()]", " ", query).strip()
        if len(term) < self.settings.profile_search_min_chars:
            return []
        try:
            response = await self.client.table("profiles") \
                .select(f"{PROFILE_CARD_COLUMNS}, email") \
                .or_(f"full_name.ilike.%{term}%,username.ilike.%{term}%") \
                .limit(limit or self.settings.search_limit) \
                .execute()
        except BackendError as e:
            logger.error("search_profiles_failed", query=term, error=e.message)
            return []
        return parse_rows(Profile, response.data, "profiles")

    # =========================================================================
    # WRITES
    # =========================================================================

    async def update_profile(self, user_id: str, fields: Dict[str, Any]) -> Profile:
        """Write the editable profile columns and return the stored row."""
        updates = {k: v for k, v in fields.items() if k in EDITABLE_PROFILE_FIELDS}
        if "username" in updates and updates["username"]:
            updates["username"] = updates["username"].lower()
        response = await self.client.table("profiles") \
            .update(updates) \
            .eq("id", user_id) \
            .select("*") \
            .single() \
            .execute()
        return parse_written_row(Profile, response.data, "profiles")

    async def block_user(self, blocker_id: str, blocked_id: str) -> None:
        await self.client.table("blocks") \
            .insert({"blocker_id": blocker_id, "blocked_id": blocked_id}) \
            .execute()
        logger.info("user_blocked", blocker_id=blocker_id, blocked_id=blocked_id)
