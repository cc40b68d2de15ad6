"""
Notification Service

Activity addressed to the viewer.
"""

from typing import List

from ..backend import SupabaseClient
from ..core.exceptions import BackendError
from ..core.logging import get_logger
from ..models.notification import Notification
from .rows import parse_rows

logger = get_logger(__name__)

NOTIFICATION_SELECT = (
    "*, "
    "actor:profiles!actor_id(id, username, full_name, profile_photo_url), "
    "review:reviews!review_id(id, title, photos, restaurant:restaurants!restaurant_id(name))"
)


class NotificationService:
    def __init__(self, client: SupabaseClient):
        self.client = client

    async def get_notifications(self, user_id: str, limit: int = 50) -> List[Notification]:
        try:
            response = await self.client.table("notifications") \
                .select(NOTIFICATION_SELECT) \
                .eq("user_id", user_id) \
                .order("created_at", desc=True) \
                .limit(limit) \
                .execute()
        except BackendError as e:
            logger.error("get_notifications_failed", user_id=user_id, error=e.message)
            return []
        return parse_rows(Notification, response.data, "notifications")

    async def get_unread_count(self, user_id: str) -> int:
        try:
            response = await self.client.table("notifications") \
                .select("*", count="exact", head=True) \
                .eq("user_id", user_id) \
                .eq("is_read", False) \
                .execute()
        except BackendError as e:
            logger.error("get_unread_count_failed", user_id=user_id, error=e.message)
            return 0
        return response.count or 0

    async def mark_as_read(self, notification_id: str) -> None:
        await self.client.table("notifications") \
            .update({"is_read": True}) \
            .eq("id", notification_id) \
            .execute()

    async def mark_all_as_read(self, user_id: str) -> None:
        await self.client.table("notifications") \
            .update({"is_read": True}) \
            .eq("user_id", user_id) \
            .eq("is_read", False) \
            .execute()

    async def delete_notification(self, notification_id: str) -> None:
        await self.client.table("notifications").delete().eq("id", notification_id).execute()
