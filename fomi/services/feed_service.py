"""
Feed Service

Review, like, comment and tag rows.
"""

from typing import Iterable, List, Optional, Set

from ..backend import SupabaseClient
from ..core.exceptions import BackendError
from ..core.logging import get_logger
from ..models.review import Comment, NewReview, Review, ReviewPhoto
from .rows import parse_rows, parse_written_row

logger = get_logger(__name__)

AUTHOR_PROJECTION = "user:profiles!user_id(id, username, full_name, profile_photo_url, is_verified)"
RESTAURANT_PROJECTION = "restaurant:restaurants!restaurant_id(id, name, neighborhood, photo_url)"
REVIEW_FEED_SELECT = f"*, {AUTHOR_PROJECTION}, {RESTAURANT_PROJECTION}"
COMMENT_SELECT = "*, user:profiles!user_id(id, username, full_name, profile_photo_url)"


class FeedService:
    """
    Service for the review feed.

    Reads swallow and log backend errors; writes raise BackendError.
    """

    def __init__(self, client: SupabaseClient):
        self.client = client
        self.settings = client.settings

    # =========================================================================
    # FEED READS
    # =========================================================================

    async def get_reviews(self, limit: Optional[int] = None) -> Optional[List[Review]]:
        """
        Newest active reviews with author and restaurant projections.

        Returns None when the fetch fails so callers can keep what they have.
        """
        try:
            response = await self.client.table("reviews") \
                .select(REVIEW_FEED_SELECT) \
                .eq("is_active", True) \
                .order("created_at", desc=True) \
                .limit(limit or self.settings.feed_limit) \
                .execute()
        except BackendError as e:
            logger.error("get_reviews_failed", error=e.message)
            return None
        return parse_rows(Review, response.data, "reviews")

    async def get_user_like_ids(self, user_id: str) -> Set[str]:
        try:
            response = await self.client.table("likes") \
                .select("review_id") \
                .eq("user_id", user_id) \
                .execute()
        except BackendError as e:
            logger.error("get_user_likes_failed", user_id=user_id, error=e.message)
            return set()
        return {row["review_id"] for row in response.data or []}

    async def get_default_list_restaurant_ids(self, user_id: str) -> Set[str]:
        """Restaurant ids in the user's default list."""
        try:
            response = await self.client.table("list_restaurants") \
                .select("restaurant_id, lists!inner(user_id, is_default)") \
                .eq("lists.user_id", user_id) \
                .eq("lists.is_default", True) \
                .execute()
        except BackendError as e:
            logger.error("get_saved_restaurants_failed", user_id=user_id, error=e.message)
            return set()
        return {row["restaurant_id"] for row in response.data or []}

    async def get_user_reviews(self, user_id: str) -> List[Review]:
        try:
            response = await self.client.table("reviews") \
                .select(f"*, {RESTAURANT_PROJECTION}") \
                .eq("user_id", user_id) \
                .eq("is_active", True) \
                .order("created_at", desc=True) \
                .execute()
        except BackendError as e:
            logger.error("get_user_reviews_failed", user_id=user_id, error=e.message)
            return []
        return parse_rows(Review, response.data, "reviews")

    # =========================================================================
    # LIKES
    # =========================================================================

    async def add_like(self, user_id: str, review_id: str) -> None:
        await self.client.table("likes") \
            .insert({"user_id": user_id, "review_id": review_id}) \
            .execute()

    async def remove_like(self, user_id: str, review_id: str) -> None:
        await self.client.table("likes") \
            .delete() \
            .eq("user_id", user_id) \
            .eq("review_id", review_id) \
            .execute()

    # =========================================================================
    # COMMENTS
    # =========================================================================

    async def get_comments(self, review_id: str) -> List[Comment]:
        """Active comments, oldest first."""
        try:
            response = await self.client.table("comments") \
                .select(COMMENT_SELECT) \
                .eq("review_id", review_id) \
                .eq("is_active", True) \
                .order("created_at") \
                .execute()
        except BackendError as e:
            logger.error("get_comments_failed", review_id=review_id, error=e.message)
            return []
        return parse_rows(Comment, response.data, "comments")

    async def add_comment(self, user_id: str, review_id: str, content: str) -> Comment:
        response = await self.client.table("comments") \
            .insert({"user_id": user_id, "review_id": review_id, "content": content}) \
            .select(COMMENT_SELECT) \
            .single() \
            .execute()
        return parse_written_row(Comment, response.data, "comments")

    # =========================================================================
    # AUTHORING
    # =========================================================================

    async def create_review(self, user_id: str, review: NewReview) -> Review:
        """Insert the review row with an empty photo array."""
        scores = review.scores
        response = await self.client.table("reviews") \
            .insert({
                "user_id": user_id,
                "restaurant_id": review.restaurant_id,
                "title": review.title,
                "description": review.description,
                "review_type": review.review_type.value,
                "score_1": scores.score_1,
                "score_2": scores.score_2,
                "score_3": scores.score_3,
                "score_4": scores.score_4,
                "average_score": scores.average,
                "voltaria": review.voltaria,
                "occasions": list(review.occasions),
                "photos": [],
            }) \
            .select("*") \
            .single() \
            .execute()
        return parse_written_row(Review, response.data, "reviews")

    async def update_review_photos(self, review_id: str, photos: List[ReviewPhoto]) -> None:
        await self.client.table("reviews") \
            .update({"photos": [photo.model_dump() for photo in photos]}) \
            .eq("id", review_id) \
            .execute()

    async def add_review_tags(self, review_id: str, tagged_user_ids: Iterable[str]) -> None:
        rows = [
            {"review_id": review_id, "tagged_user_id": user_id}
            for user_id in tagged_user_ids
        ]
        if not rows:
            return
        await self.client.table("review_tags").insert(rows).execute()
