"""Pydantic models for the Fomí client."""

from .session import Session, AuthEvent
from .user import (
    Profile,
    ProfileSummary,
    CurrentUser,
    UserPreferences,
    RadarPreferences,
    EDITABLE_PROFILE_FIELDS,
)
from .restaurant import Restaurant, MapBounds, SearchPage, SearchSort, format_distance
from .lists import RestaurantList
from .review import (
    Review,
    ReviewType,
    ReviewPhoto,
    ReviewAuthor,
    ReviewRestaurant,
    ReviewScores,
    Comment,
    PhotoUpload,
    NewReview,
    PublishedReview,
)
from .notification import Notification, NotificationType
from .recommendation import (
    ReviewSignal,
    ReviewAnalysis,
    ScoredRestaurant,
    RecommendationSection,
)

__all__ = [
    "Session",
    "AuthEvent",
    "Profile",
    "ProfileSummary",
    "CurrentUser",
    "UserPreferences",
    "RadarPreferences",
    "EDITABLE_PROFILE_FIELDS",
    "Restaurant",
    "MapBounds",
    "SearchPage",
    "SearchSort",
    "format_distance",
    "RestaurantList",
    "Review",
    "ReviewType",
    "ReviewPhoto",
    "ReviewAuthor",
    "ReviewRestaurant",
    "ReviewScores",
    "Comment",
    "PhotoUpload",
    "NewReview",
    "PublishedReview",
    "Notification",
    "NotificationType",
    "ReviewSignal",
    "ReviewAnalysis",
    "ScoredRestaurant",
    "RecommendationSection",
]
