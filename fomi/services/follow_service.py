"""
Follow Service

Outgoing and incoming follow edges.
"""

from typing import List, Optional

from ..backend import SupabaseClient
from ..core.exceptions import BackendError
from ..core.logging import get_logger
from ..models.user import Profile
from .profile_service import PROFILE_CARD_COLUMNS
from .rows import parse_rows

logger = get_logger(__name__)


class FollowService:
    """Reads swallow and log backend errors; writes raise BackendError."""

    def __init__(self, client: SupabaseClient):
        self.client = client

    async def follow(self, follower_id: str, following_id: str) -> None:
        await self.client.table("follows") \
            .insert({"follower_id": follower_id, "following_id": following_id}) \
            .execute()
        logger.info("follow_created", follower_id=follower_id, following_id=following_id)

    async def unfollow(self, follower_id: str, following_id: str) -> None:
        await self.client.table("follows") \
            .delete() \
            .eq("follower_id", follower_id) \
            .eq("following_id", following_id) \
            .execute()
        logger.info("follow_deleted", follower_id=follower_id, following_id=following_id)

    async def get_following_ids(self, user_id: str) -> List[str]:
        try:
            response = await self.client.table("follows") \
                .select("following_id") \
                .eq("follower_id", user_id) \
                .execute()
        except BackendError as e:
            logger.error("get_following_ids_failed", user_id=user_id, error=e.message)
            return []
        return [row["following_id"] for row in response.data or []]

    async def get_following(self, user_id: str) -> List[Profile]:
        try:
            response = await self.client.table("follows") \
                .select(f"following:profiles!following_id({PROFILE_CARD_COLUMNS})") \
                .eq("follower_id", user_id) \
                .execute()
        except BackendError as e:
            logger.error("get_following_failed", user_id=user_id, error=e.message)
            return []
        return parse_rows(Profile, [row.get("following") for row in response.data or []], "follows")

    async def get_followers(self, user_id: str) -> List[Profile]:
        try:
            response = await self.client.table("follows") \
                .select(f"follower:profiles!follower_id({PROFILE_CARD_COLUMNS})") \
                .eq("following_id", user_id) \
                .execute()
        except BackendError as e:
            logger.error("get_followers_failed", user_id=user_id, error=e.message)
            return []
        return parse_rows(Profile, [row.get("follower") for row in response.data or []], "follows")

    async def get_mutual_followers(self, user_id: str) -> List[Profile]:
        """People the user follows who follow back, ordered by name."""
        following_ids = await self.get_following_ids(user_id)
        if not following_ids:
            return []
        try:
            mutual = await self.client.table("follows") \
                .select("follower_id") \
                .eq("following_id", user_id) \
                .in_("follower_id", following_ids) \
                .execute()
            mutual_ids = [row["follower_id"] for row in mutual.data or []]
            if not mutual_ids:
                return []
            profiles = await self.client.table("profiles") \
                .select(PROFILE_CARD_COLUMNS) \
                .in_("id", mutual_ids) \
                .order("full_name") \
                .execute()
        except BackendError as e:
            logger.error("get_mutual_followers_failed", user_id=user_id, error=e.message)
            return []
        return parse_rows(Profile, profiles.data, "profiles")

    async def is_following(self, follower_id: str, following_id: str) -> Optional[bool]:
        """Whether the follow row exists; None when the lookup fails."""
        try:
            response = await self.client.table("follows") \
                .select("follower_id") \
                .eq("follower_id", follower_id) \
                .eq("following_id", following_id) \
                .maybe_single() \
                .execute()
        except BackendError as e:
            logger.error("is_following_failed", follower_id=follower_id, error=e.message)
            return None
        return response.data is not None
