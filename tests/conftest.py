"""
Pytest Fixtures

Shared mocks and fixtures for testing.
"""

import pytest
from unittest.mock import MagicMock, AsyncMock
from typing import Any, Dict

from fomi.config import Settings
from fomi.models.lists import RestaurantList
from fomi.models.review import Review
from fomi.models.session import Session
from fomi.models.user import CurrentUser, ProfileSummary
from fomi.state.store import AppStore

SERVICE_NAMES = (
    "profiles",
    "auth",
    "feed",
    "lists",
    "follows",
    "restaurants",
    "storage",
    "notifications",
    "recommendations",
)


@pytest.fixture
def settings():
    """Settings pointing at a fake project, ignoring any local .env."""
    return Settings(
        supabase_url="https://test.supabase.co",
        supabase_anon_key="anon-key",
        environment="test",
        debug=False,
        _env_file=None,
    )


@pytest.fixture
def mock_services():
    """Service registry with every service mocked and empty reads."""
    mock = MagicMock()
    for name in SERVICE_NAMES:
        setattr(mock, name, AsyncMock())

    mock.auth.on_session_change = MagicMock(return_value=MagicMock())
    mock.auth.get_current_session.return_value = None

    mock.profiles.get_profile_summary.return_value = None
    mock.lists.get_user_lists.return_value = []
    mock.lists.get_memberships.return_value = []
    mock.follows.get_following_ids.return_value = []
    mock.feed.get_reviews.return_value = []
    mock.feed.get_user_like_ids.return_value = set()
    mock.feed.get_default_list_restaurant_ids.return_value = set()
    return mock


@pytest.fixture
def store(mock_services, settings):
    """Store with no viewer."""
    return AppStore(mock_services, settings=settings)


@pytest.fixture
def viewer():
    return CurrentUser(
        id="user_1",
        full_name="Ana Souza",
        username="ana",
        reviews_count=4,
        followers_count=10,
        following_count=2,
    )


@pytest.fixture
def session():
    return Session(access_token="token_1", refresh_token="refresh_1", user_id="user_1")


@pytest.fixture
def signed_in_store(store, viewer, session):
    """Store with a loaded viewer and no lists or reviews yet."""
    store.session = session
    store.current_user = viewer
    store.following = ["user_2"]
    return store


@pytest.fixture
def make_review():
    """Build a feed review; keyword overrides win."""
    def _make(review_id: str, restaurant_id: str = "rest_1", **overrides: Any) -> Review:
        data: Dict[str, Any] = {
            "id": review_id,
            "user_id": "user_9",
            "restaurant_id": restaurant_id,
            "title": "Pastel de feira",
            "score_1": 8,
            "score_2": 9,
            "score_3": 7,
            "score_4": 8,
            "likes_count": 3,
            "comments_count": 1,
        }
        data.update(overrides)
        return Review.model_validate(data)
    return _make


@pytest.fixture
def make_list():
    """Build a cached list whose count matches its items."""
    def _make(list_id: str, items=(), is_default: bool = False, **overrides: Any) -> RestaurantList:
        return RestaurantList(
            id=list_id,
            user_id=overrides.pop("user_id", "user_1"),
            name=overrides.pop("name", "Quero ir" if is_default else "Favoritos"),
            is_default=is_default,
            items=list(items),
            count=len(items),
            **overrides,
        )
    return _make


@pytest.fixture
def profile_summary():
    return ProfileSummary(
        id="user_2",
        full_name="Bruno Lima",
        username="bruno",
        reviews_count=7,
        followers_count=5,
        following_count=3,
    )
