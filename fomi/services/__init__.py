"""Row-level services over the Supabase backend."""

from .auth_service import AuthService
from .feed_service import FeedService
from .follow_service import FollowService
from .lists_service import ListsService
from .notification_service import NotificationService
from .profile_service import ProfileService
from .recommendation_service import RecommendationService
from .restaurant_service import RestaurantService
from .storage_service import StorageService
from .registry import Services, build_services

__all__ = [
    "AuthService",
    "FeedService",
    "FollowService",
    "ListsService",
    "NotificationService",
    "ProfileService",
    "RecommendationService",
    "RestaurantService",
    "StorageService",
    "Services",
    "build_services",
]
