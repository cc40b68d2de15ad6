"""
Store Feed Tests

Feed refresh, likes, publishing reviews and comments.
"""

import pytest

from fomi.core.exceptions import BackendError, NotAuthenticatedError
from fomi.models.review import Comment, NewReview, PhotoUpload, Review, ReviewPhoto, ReviewScores


def new_review(**overrides):
    data = {
        "restaurantId": "rest_1",
        "title": "Melhor coxinha",
        "description": "Crocante",
        "reviewType": "presencial",
        "scores": ReviewScores(score_1=9, score_2=8, score_3=7, score_4=10),
    }
    data.update(overrides)
    return NewReview(**data)


def photo(name: str) -> PhotoUpload:
    return PhotoUpload(filename=name, content=b"jpeg-bytes", content_type="image/jpeg")


class TestRefreshFeed:

    @pytest.mark.asyncio
    async def test_applies_viewer_flags(self, signed_in_store, mock_services, make_review):
        mock_services.feed.get_reviews.return_value = [
            make_review("rev_1", "rest_1"),
            make_review("rev_2", "rest_2"),
        ]
        mock_services.feed.get_user_like_ids.return_value = {"rev_2"}
        mock_services.feed.get_default_list_restaurant_ids.return_value = {"rest_1"}

        await signed_in_store.refresh_feed()

        mock_services.feed.get_reviews.assert_awaited_once_with(50)
        flags = [(r.id, r.is_liked, r.is_saved) for r in signed_in_store.reviews]
        assert flags == [("rev_1", False, True), ("rev_2", True, False)]

    @pytest.mark.asyncio
    async def test_refresh_is_idempotent(self, signed_in_store, mock_services, make_review):
        mock_services.feed.get_reviews.return_value = [make_review("rev_1"), make_review("rev_2", "rest_2")]
        mock_services.feed.get_user_like_ids.return_value = {"rev_1"}

        await signed_in_store.refresh_feed()
        first = signed_in_store.reviews
        await signed_in_store.refresh_feed()

        assert signed_in_store.reviews == first

    @pytest.mark.asyncio
    async def test_failed_fetch_keeps_current_feed(self, signed_in_store, mock_services, make_review):
        cached = [make_review("rev_1")]
        signed_in_store.reviews = cached
        mock_services.feed.get_reviews.return_value = None

        await signed_in_store.refresh_feed()

        assert signed_in_store.reviews is cached
        mock_services.feed.get_user_like_ids.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_anonymous_feed_has_no_flags(self, store, mock_services, make_review):
        mock_services.feed.get_reviews.return_value = [make_review("rev_1", is_liked=True)]

        await store.refresh_feed()

        assert store.reviews[0].is_liked is False
        mock_services.feed.get_user_like_ids.assert_not_awaited()


class TestToggleLike:

    @pytest.mark.asyncio
    async def test_like_is_applied_optimistically(self, signed_in_store, mock_services, make_review):
        signed_in_store.reviews = [make_review("rev_1", likes_count=3)]

        await signed_in_store.toggle_like("rev_1")

        review = signed_in_store.reviews[0]
        assert review.is_liked is True
        assert review.likes_count == 4
        mock_services.feed.add_like.assert_awaited_once_with("user_1", "rev_1")

    @pytest.mark.asyncio
    async def test_like_rolls_back_on_failure(self, signed_in_store, mock_services, make_review):
        signed_in_store.reviews = [make_review("rev_1", likes_count=3)]
        mock_services.feed.add_like.side_effect = BackendError("duplicate key", status_code=409, code="23505")

        await signed_in_store.toggle_like("rev_1")

        review = signed_in_store.reviews[0]
        assert review.is_liked is False
        assert review.likes_count == 3

    @pytest.mark.asyncio
    async def test_unlike_rolls_back_on_failure(self, signed_in_store, mock_services, make_review):
        signed_in_store.reviews = [make_review("rev_1", likes_count=0, is_liked=True)]
        mock_services.feed.remove_like.side_effect = BackendError("timeout", status_code=504)

        await signed_in_store.toggle_like("rev_1")

        review = signed_in_store.reviews[0]
        assert review.is_liked is True
        assert review.likes_count == 0

    @pytest.mark.asyncio
    async def test_toggle_twice_restores_state(self, signed_in_store, mock_services, make_review):
        original = make_review("rev_1", likes_count=3)
        signed_in_store.reviews = [original]

        await signed_in_store.toggle_like("rev_1")
        await signed_in_store.toggle_like("rev_1")

        assert signed_in_store.reviews[0] == original
        mock_services.feed.remove_like.assert_awaited_once_with("user_1", "rev_1")

    @pytest.mark.asyncio
    async def test_unknown_review_is_ignored(self, signed_in_store, mock_services):
        await signed_in_store.toggle_like("rev_missing")
        mock_services.feed.add_like.assert_not_awaited()


class TestAddReview:
    """Tests for the three-phase publish."""

    @pytest.mark.asyncio
    async def test_publish_without_photos(self, signed_in_store, mock_services):
        mock_services.feed.create_review.return_value = Review(id="rev_new", user_id="user_1", restaurant_id="rest_1")

        result = await signed_in_store.add_review(new_review())

        assert result.id == "rev_new"
        assert result.photos == []
        assert result.is_complete
        mock_services.storage.upload_review_photos.assert_not_awaited()
        mock_services.feed.update_review_photos.assert_not_awaited()
        mock_services.feed.add_review_tags.assert_not_awaited()
        mock_services.feed.get_reviews.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_photos_are_ordered_among_successful_uploads(self, signed_in_store, mock_services):
        mock_services.feed.create_review.return_value = Review(id="rev_new", user_id="user_1", restaurant_id="rest_1")
        mock_services.storage.upload_review_photos.return_value = [
            "https://cdn/user_1/rev_new_1.jpg",
            None,
            "https://cdn/user_1/rev_new_3.jpg",
        ]
        files = [photo("a.jpg"), photo("b.jpg"), photo("c.jpg")]

        result = await signed_in_store.add_review(new_review(photoFiles=files))

        mock_services.storage.upload_review_photos.assert_awaited_once_with("user_1", "rev_new", files)
        assert [(p.url, p.order) for p in result.photos] == [
            ("https://cdn/user_1/rev_new_1.jpg", 1),
            ("https://cdn/user_1/rev_new_3.jpg", 2),
        ]
        assert result.failed_photos == ["b.jpg"]
        assert not result.is_complete
        mock_services.feed.update_review_photos.assert_awaited_once_with("rev_new", result.photos)

    @pytest.mark.asyncio
    async def test_photo_patch_failure_is_reported(self, signed_in_store, mock_services):
        mock_services.feed.create_review.return_value = Review(id="rev_new", user_id="user_1", restaurant_id="rest_1")
        mock_services.storage.upload_review_photos.return_value = ["https://cdn/1.jpg", "https://cdn/2.jpg"]
        mock_services.feed.update_review_photos.side_effect = BackendError("patch failed")

        result = await signed_in_store.add_review(new_review(photoFiles=[photo("a.jpg"), photo("b.jpg")]))

        assert result.id == "rev_new"
        assert result.photos == []
        assert result.failed_photos == ["a.jpg", "b.jpg"]
        mock_services.feed.get_reviews.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_tag_failure_is_reported(self, signed_in_store, mock_services):
        mock_services.feed.create_review.return_value = Review(id="rev_new", user_id="user_1", restaurant_id="rest_1")
        mock_services.feed.add_review_tags.side_effect = BackendError("fk violation", status_code=409)

        result = await signed_in_store.add_review(new_review(taggedUserIds=["user_2", "user_3"]))

        mock_services.feed.add_review_tags.assert_awaited_once_with("rev_new", ["user_2", "user_3"])
        assert result.tags_saved is False
        assert not result.is_complete

    @pytest.mark.asyncio
    async def test_insert_failure_raises_before_uploads(self, signed_in_store, mock_services):
        mock_services.feed.create_review.side_effect = BackendError("insert failed")

        with pytest.raises(BackendError):
            await signed_in_store.add_review(new_review(photoFiles=[photo("a.jpg")]))

        mock_services.storage.upload_review_photos.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_requires_viewer(self, store):
        with pytest.raises(NotAuthenticatedError):
            await store.add_review(new_review())


class TestComments:

    @pytest.mark.asyncio
    async def test_add_comment_bumps_count(self, signed_in_store, mock_services, make_review):
        signed_in_store.reviews = [make_review("rev_1", comments_count=1), make_review("rev_2", comments_count=0)]
        mock_services.feed.add_comment.return_value = Comment(
            id="c_1", user_id="user_1", review_id="rev_1", content="Concordo!"
        )

        comment = await signed_in_store.add_comment("rev_1", "  Concordo!  ")

        mock_services.feed.add_comment.assert_awaited_once_with("user_1", "rev_1", "Concordo!")
        assert comment.id == "c_1"
        assert [r.comments_count for r in signed_in_store.reviews] == [2, 0]

    @pytest.mark.asyncio
    async def test_empty_comment_is_rejected(self, signed_in_store, mock_services):
        with pytest.raises(ValueError):
            await signed_in_store.add_comment("rev_1", "   ")
        mock_services.feed.add_comment.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failed_comment_leaves_count(self, signed_in_store, mock_services, make_review):
        signed_in_store.reviews = [make_review("rev_1", comments_count=1)]
        mock_services.feed.add_comment.side_effect = BackendError("insert failed")

        with pytest.raises(BackendError):
            await signed_in_store.add_comment("rev_1", "Oi")

        assert signed_in_store.reviews[0].comments_count == 1


def test_review_photo_dump_shape():
    assert ReviewPhoto(url="https://cdn/1.jpg", order=1, size_bytes=10).model_dump() == {
        "url": "https://cdn/1.jpg",
        "order": 1,
        "size_bytes": 10,
    }
