"""
Lists Service

Saved-place lists and their restaurant memberships.
"""

from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..backend import SupabaseClient
from ..core.exceptions import BackendError
from ..core.logging import get_logger
from ..models.lists import RestaurantList
from ..models.restaurant import Restaurant
from .rows import parse_rows, parse_written_row

logger = get_logger(__name__)

# Columns a list owner may change
LIST_UPDATE_FIELDS = frozenset({"name", "is_private", "cover_photo_url"})

Membership = Tuple[str, str]  # (list_id, restaurant_id)


class ListsService:
    """Reads swallow and log backend errors; writes raise BackendError."""

    def __init__(self, client: SupabaseClient):
        self.client = client

    async def get_user_lists(self, user_id: str) -> Optional[List[RestaurantList]]:
        """
        The user's lists, newest first, without memberships.

        Returns None when the fetch fails.
        """
        try:
            response = await self.client.table("lists") \
                .select("*") \
                .eq("user_id", user_id) \
                .order("created_at", desc=True) \
                .execute()
        except BackendError as e:
            logger.error("get_user_lists_failed", user_id=user_id, error=e.message)
            return None
        return parse_rows(RestaurantList, response.data, "lists")

    async def get_memberships(self, list_ids: Sequence[str]) -> List[Membership]:
        if not list_ids:
            return []
        try:
            response = await self.client.table("list_restaurants") \
                .select("list_id, restaurant_id") \
                .in_("list_id", list_ids) \
                .execute()
        except BackendError as e:
            logger.error("get_memberships_failed", lists=len(list_ids), error=e.message)
            return []
        return [(row["list_id"], row["restaurant_id"]) for row in response.data or []]

    async def get_list_restaurants(self, list_id: str) -> List[Restaurant]:
        try:
            response = await self.client.table("list_restaurants") \
                .select("restaurant_id, restaurants(*)") \
                .eq("list_id", list_id) \
                .execute()
        except BackendError as e:
            logger.error("get_list_restaurants_failed", list_id=list_id, error=e.message)
            return []
        return parse_rows(Restaurant, [row.get("restaurants") for row in response.data or []], "list_restaurants")

    # =========================================================================
    # WRITES
    # =========================================================================

    async def create_list(
        self,
        user_id: str,
        name: str,
        is_private: bool = False,
        is_default: bool = False,
        cover: Optional[str] = None,
    ) -> RestaurantList:
        response = await self.client.table("lists") \
            .insert({
                "user_id": user_id,
                "name": name,
                "is_private": is_private,
                "is_default": is_default,
                "cover_photo_url": cover,
            }) \
            .select("*") \
            .single() \
            .execute()
        created = parse_written_row(RestaurantList, response.data, "lists")
        logger.info("list_created", list_id=created.id, is_default=is_default)
        return created

    async def update_list(self, list_id: str, updates: Dict[str, Any]) -> RestaurantList:
        """Write only the given fields and return the stored row."""
        fields = {k: v for k, v in updates.items() if k in LIST_UPDATE_FIELDS}
        response = await self.client.table("lists") \
            .update(fields) \
            .eq("id", list_id) \
            .select("*") \
            .single() \
            .execute()
        return parse_written_row(RestaurantList, response.data, "lists")

    async def delete_list(self, list_id: str) -> None:
        await self.client.table("lists").delete().eq("id", list_id).execute()
        logger.info("list_deleted", list_id=list_id)

    async def add_restaurant_to_list(self, list_id: str, restaurant_id: str) -> None:
        await self.client.table("list_restaurants") \
            .insert({"list_id": list_id, "restaurant_id": restaurant_id}) \
            .execute()

    async def remove_restaurant_from_list(self, list_id: str, restaurant_id: str) -> None:
        await self.client.table("list_restaurants") \
            .delete() \
            .eq("list_id", list_id) \
            .eq("restaurant_id", restaurant_id) \
            .execute()
