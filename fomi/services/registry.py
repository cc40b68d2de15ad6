"""
Service Registry

Bundles every service built on one backend client so the store can be
given a single dependency.
"""

from typing import Optional

from ..backend import SupabaseClient
from .auth_service import AuthService
from .feed_service import FeedService
from .follow_service import FollowService
from .lists_service import ListsService
from .notification_service import NotificationService
from .profile_service import ProfileService
from .recommendation_service import RecommendationService
from .restaurant_service import RestaurantService
from .storage_service import StorageService


class Services:
    """All services sharing one client (and therefore one auth session)."""

    def __init__(self, client: SupabaseClient):
        self.client = client
        self.profiles = ProfileService(client)
        self.auth = AuthService(client, profiles=self.profiles)
        self.feed = FeedService(client)
        self.lists = ListsService(client)
        self.follows = FollowService(client)
        self.restaurants = RestaurantService(client)
        self.recommendations = RecommendationService(client, restaurants=self.restaurants)
        self.storage = StorageService(client)
        self.notifications = NotificationService(client)


def build_services(client: Optional[SupabaseClient] = None) -> Services:
    """Build services on the given client, or on one configured from settings."""
    return Services(client or SupabaseClient())
