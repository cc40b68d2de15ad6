"""
Restaurant Service

Restaurant lookups for search, list details, recommendations and the
discover map. All methods are reads: errors are logged and yield empty
results.
"""

from typing import List, Optional, Sequence

from ..backend import SupabaseClient
from ..core.exceptions import BackendError
from ..core.logging import get_logger
from ..models.restaurant import MapBounds, Restaurant, SearchPage, SearchSort
from .rows import parse_row, parse_rows

logger = get_logger(__name__)


class RestaurantService:
    """Read-only access to the restaurants table."""

    def __init__(self, client: SupabaseClient):
        self.client = client
        self.settings = client.settings

    async def search_restaurants(
        self,
        query: str = "",
        cuisine: Optional[str] = None,
        price_level: Optional[int] = None,
        min_rating: Optional[float] = None,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
        sort_by: SearchSort = SearchSort.DISTANCE,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> SearchPage:
        """
        One page of the search_restaurants RPC.

        An empty query with no filters still returns the nearest
        restaurants. Distances are measured from the given point, or from
        the configured default origin when the location is unknown.
        """
        page_size = limit or self.settings.search_limit
        term = query.strip()
        params = {
            "search_term": term or None,
            "cuisine_filter": cuisine,
            "price_filter": price_level,
            "min_rating": min_rating,
            "user_lat": latitude if latitude is not None else self.settings.default_latitude,
            "user_lng": longitude if longitude is not None else self.settings.default_longitude,
            "sort_by": SearchSort(sort_by).value,
            "page_limit": page_size,
            "page_offset": offset,
        }
        try:
            data = await self.client.rpc("search_restaurants", params)
        except BackendError as e:
            logger.error("search_restaurants_failed", query=term, offset=offset, error=e.message)
            return SearchPage(offset=offset, next_offset=offset)

        rows = data or []
        results = parse_rows(Restaurant, rows, "search_restaurants")
        total = rows[0].get("total_count") if rows else None
        return SearchPage(
            results=results,
            offset=offset,
            next_offset=offset + len(rows),
            has_more=len(rows) == page_size,
            total_count=total if total is not None else offset + len(rows),
        )

    async def get_restaurants_by_ids(self, ids: Sequence[str]) -> List[Restaurant]:
        if not ids:
            return []
        try:
            response = await self.client.table("restaurants") \
                .select("*") \
                .in_("id", list(dict.fromkeys(ids))) \
                .execute()
        except BackendError as e:
            logger.error("get_restaurants_by_ids_failed", count=len(ids), error=e.message)
            return []
        return parse_rows(Restaurant, response.data, "restaurants")

    async def get_restaurant_by_id(self, restaurant_id: str) -> Optional[Restaurant]:
        try:
            response = await self.client.table("restaurants") \
                .select("*") \
                .eq("id", restaurant_id) \
                .maybe_single() \
                .execute()
        except BackendError as e:
            logger.error("get_restaurant_failed", restaurant_id=restaurant_id, error=e.message)
            return None
        return parse_row(Restaurant, response.data, "restaurants")

    async def get_restaurants_in_bounds(
        self,
        bounds: MapBounds,
        cuisine: Optional[str] = None,
        price_level: Optional[int] = None,
        min_rating: Optional[float] = None,
        limit: int = 200,
    ) -> List[Restaurant]:
        """Restaurants inside the visible map rectangle, best rated first."""
        query = self.client.table("restaurants") \
            .select("*") \
            .gte("latitude", bounds.south) \
            .lte("latitude", bounds.north) \
            .gte("longitude", bounds.west) \
            .lte("longitude", bounds.east)
        if cuisine:
            query = query.contains("cuisine_types", [cuisine])
        if price_level:
            query = query.eq("price_level", price_level)
        if min_rating:
            query = query.gte("rating", min_rating)
        try:
            response = await query \
                .order("rating", desc=True, nulls_last=True) \
                .limit(limit) \
                .execute()
        except BackendError as e:
            logger.error("get_restaurants_in_bounds_failed", error=e.message)
            return []
        return parse_rows(Restaurant, response.data, "restaurants")

    async def get_active_restaurants(self, limit: Optional[int] = None) -> List[Restaurant]:
        """The candidate pool scored by recommendations."""
        try:
            response = await self.client.table("restaurants") \
                .select("*") \
                .eq("is_active", True) \
                .limit(limit or self.settings.recommendation_pool_limit) \
                .execute()
        except BackendError as e:
            logger.error("get_active_restaurants_failed", error=e.message)
            return []
        return parse_rows(Restaurant, response.data, "restaurants")
