"""
Preferences Tests

Onboarding answers mapped onto profile columns.
"""

import pytest

from fomi.core.exceptions import BackendError, NotAuthenticatedError
from fomi.models.user import CurrentUser, Profile, RadarPreferences, UserPreferences


@pytest.fixture
def prefs():
    return UserPreferences(
        dislikes=["japanese"],
        occasions=["date", "friends"],
        radar=RadarPreferences(frequency="weekly", placeTypes=["bar"], behavior=["explorer"]),
        restrictions=["vegetarian"],
    )


def test_preferences_map_to_profile_columns(prefs):
    assert prefs.to_profile_columns() == {
        "cuisines_disliked": ["japanese"],
        "occasions": ["date", "friends"],
        "frequency": "weekly",
        "place_types": ["bar"],
        "behavior": ["explorer"],
        "dietary_restrictions": ["vegetarian"],
        "onboarding_completed": True,
    }


def test_viewer_exposes_stored_preferences():
    user = CurrentUser(
        id="user_1",
        cuisines_disliked=["japanese"],
        frequency="weekly",
        place_types=None,
        dietary_restrictions=["vegan"],
    )

    prefs = user.preferences

    assert prefs.dislikes == ["japanese"]
    assert prefs.radar.frequency == "weekly"
    assert prefs.radar.place_types == []
    assert prefs.restrictions == ["vegan"]


class TestSetUserPreferences:

    @pytest.mark.asyncio
    async def test_saves_and_merges_row(self, signed_in_store, mock_services, prefs):
        mock_services.auth.update_preferences.return_value = Profile(
            id="user_1",
            full_name="Ana Souza",
            username="ana",
            onboarding_completed=True,
            **{k: v for k, v in prefs.to_profile_columns().items() if k != "onboarding_completed"},
        )

        user = await signed_in_store.set_user_preferences(prefs)

        mock_services.auth.update_preferences.assert_awaited_once_with("user_1", prefs)
        assert user.onboarding_completed is True
        assert user.occasions == ["date", "friends"]
        assert user.following_count == 2
        assert signed_in_store.current_user is user

    @pytest.mark.asyncio
    async def test_errors_propagate(self, signed_in_store, mock_services, prefs, viewer):
        mock_services.auth.update_preferences.side_effect = BackendError("column does not exist", status_code=400)

        with pytest.raises(BackendError):
            await signed_in_store.set_user_preferences(prefs)

        assert signed_in_store.current_user == viewer

    @pytest.mark.asyncio
    async def test_requires_viewer(self, store, prefs):
        with pytest.raises(NotAuthenticatedError):
            await store.set_user_preferences(prefs)
