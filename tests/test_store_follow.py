"""
Store Follow & Profile Tests

Follow bookkeeping, profile caching and profile edits.
"""

import pytest

from fomi.core.exceptions import BackendError, NotAuthenticatedError
from fomi.models.review import PhotoUpload
from fomi.models.user import Profile


class TestFollow:

    @pytest.mark.asyncio
    async def test_follow_moves_only_viewer_count(self, signed_in_store, mock_services, profile_summary):
        """The target's cached followers_count is left for the next profile load."""
        store = signed_in_store
        store.following = []
        store.profiles = {"user_2": profile_summary}

        await store.follow_user("user_2")

        mock_services.follows.follow.assert_awaited_once_with("user_1", "user_2")
        assert store.is_following("user_2")
        assert store.current_user.following_count == 3
        assert store.profiles["user_2"].followers_count == 5

    @pytest.mark.asyncio
    async def test_profile_reload_reconciles_counts(self, signed_in_store, mock_services, profile_summary):
        store = signed_in_store
        store.following = []
        store.profiles = {"user_2": profile_summary}
        await store.follow_user("user_2")

        mock_services.profiles.get_profile_summary.return_value = profile_summary.model_copy(
            update={"followers_count": 6}
        )
        reloaded = await store.load_profile("user_2")

        assert reloaded.followers_count == 6
        assert store.profiles["user_2"].followers_count == 6

    @pytest.mark.asyncio
    async def test_unfollow_clamps_at_zero(self, signed_in_store, mock_services):
        store = signed_in_store
        store.current_user = store.current_user.model_copy(update={"following_count": 0})

        await store.unfollow_user("user_2")

        mock_services.follows.unfollow.assert_awaited_once_with("user_1", "user_2")
        assert store.following == []
        assert store.current_user.following_count == 0

    @pytest.mark.asyncio
    async def test_cannot_follow_self(self, signed_in_store, mock_services):
        with pytest.raises(ValueError):
            await signed_in_store.follow_user("user_1")
        mock_services.follows.follow.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failed_follow_leaves_state(self, signed_in_store, mock_services):
        store = signed_in_store
        mock_services.follows.follow.side_effect = BackendError("duplicate key", status_code=409)

        with pytest.raises(BackendError):
            await store.follow_user("user_3")

        assert store.following == ["user_2"]
        assert store.current_user.following_count == 2

    @pytest.mark.asyncio
    async def test_follow_requires_viewer(self, store):
        with pytest.raises(NotAuthenticatedError):
            await store.follow_user("user_2")

    @pytest.mark.asyncio
    async def test_follow_state_is_reconciled_with_backend(self, signed_in_store, mock_services):
        store = signed_in_store
        mock_services.follows.is_following.side_effect = [False, True]

        assert await store.refresh_follow_state("user_2") is False
        assert store.following == []
        assert await store.refresh_follow_state("user_3") is True
        assert store.following == ["user_3"]
        mock_services.follows.is_following.assert_awaited_with("user_1", "user_3")

    @pytest.mark.asyncio
    async def test_failed_follow_lookup_keeps_cache(self, signed_in_store, mock_services):
        mock_services.follows.is_following.return_value = None

        assert await signed_in_store.refresh_follow_state("user_2") is True
        assert signed_in_store.following == ["user_2"]

    @pytest.mark.asyncio
    async def test_follow_state_without_viewer(self, store, mock_services):
        assert await store.refresh_follow_state("user_2") is False
        mock_services.follows.is_following.assert_not_awaited()


class TestProfiles:

    @pytest.mark.asyncio
    async def test_loading_own_profile_refreshes_viewer(self, signed_in_store, mock_services, viewer):
        store = signed_in_store
        mock_services.profiles.get_profile_summary.return_value = viewer.model_copy(
            update={"followers_count": 11, "bio": "Comendo por SP"}
        )

        await store.load_profile("user_1")

        assert store.current_user.followers_count == 11
        assert store.current_user.bio == "Comendo por SP"

    @pytest.mark.asyncio
    async def test_missing_profile_is_not_cached(self, signed_in_store, mock_services):
        mock_services.profiles.get_profile_summary.return_value = None

        assert await signed_in_store.load_profile("user_404") is None
        assert "user_404" not in signed_in_store.profiles

    @pytest.mark.asyncio
    async def test_update_profile_merges_row(self, signed_in_store, mock_services):
        mock_services.profiles.update_profile.return_value = Profile(
            id="user_1", full_name="Ana S.", username="ana", city="São Paulo"
        )

        user = await signed_in_store.update_profile(full_name="Ana S.", city="São Paulo")

        mock_services.profiles.update_profile.assert_awaited_once_with(
            "user_1", {"full_name": "Ana S.", "city": "São Paulo"}
        )
        assert user.full_name == "Ana S."
        assert user.city == "São Paulo"
        assert user.followers_count == 10

    @pytest.mark.asyncio
    async def test_upload_avatar_saves_url(self, signed_in_store, mock_services):
        url = "https://test.supabase.co/storage/v1/object/public/profile-photos/user_1/avatar.png?v=1"
        mock_services.storage.upload_profile_photo.return_value = url
        mock_services.profiles.update_profile.return_value = Profile(
            id="user_1", full_name="Ana Souza", username="ana", profile_photo_url=url
        )

        result = await signed_in_store.upload_avatar(PhotoUpload(filename="me.png", content=b"png"))

        assert result == url
        mock_services.profiles.update_profile.assert_awaited_once_with("user_1", {"profile_photo_url": url})
        assert signed_in_store.current_user.profile_photo_url == url

    @pytest.mark.asyncio
    async def test_profile_by_username(self, store, mock_services):
        mock_services.profiles.get_profile_by_username.return_value = Profile(id="user_2", username="bruno")

        profile = await store.get_profile_by_username("bruno")

        assert profile.id == "user_2"
        mock_services.profiles.get_profile_by_username.assert_awaited_once_with("bruno")

    @pytest.mark.asyncio
    async def test_cannot_block_self(self, signed_in_store, mock_services):
        with pytest.raises(ValueError):
            await signed_in_store.block_user("user_1")
        mock_services.profiles.block_user.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_follow_lists_empty_without_viewer(self, store, mock_services):
        assert await store.get_following_users() == []
        assert await store.get_mutual_followers() == []
        mock_services.follows.get_following.assert_not_awaited()
