"""
App Store

The viewer's in-memory state and every operation that changes it.

State:
- session, current_user   who is signed in
- lists                   the viewer's lists with membership items/counts
- reviews                 the feed window, with viewer-relative flags
- following               ids the viewer follows
- profiles                summaries of profiles opened by the viewer
- loading                 true while the viewer is being loaded

Error policy:
- Reads are logged and swallowed; partial state is kept.
- toggle_like / toggle_save_restaurant are optimistic and roll back when
  the write fails.
- Every other write goes to the backend first, changes local state only on
  success, and raises on failure.

Every change replaces whole collections; cached objects are never mutated
in place.
"""

import asyncio
from typing import Any, Callable, Dict, FrozenSet, List, Optional, Sequence

from ..config import Settings, get_settings
from ..core.exceptions import (
    DefaultListError,
    FomiException,
    ListNotDeletableError,
    NotAuthenticatedError,
    NotFoundError,
)
from ..core.logging import bind_viewer, get_logger
from ..models.lists import RestaurantList
from ..models.notification import Notification
from ..models.recommendation import RecommendationSection
from ..models.restaurant import MapBounds, Restaurant, SearchPage
from ..models.review import Comment, NewReview, PhotoUpload, PublishedReview, Review, ReviewPhoto
from ..models.session import AuthEvent, Session
from ..models.user import CurrentUser, Profile, ProfileSummary, UserPreferences
from ..services.registry import Services
from .projections import (
    apply_viewer_flags,
    build_lists,
    bump_comments,
    find_default_list,
    find_list,
    mark_saved,
    merge_list_row,
    replace_list,
    shift_like,
    with_membership,
)

logger = get_logger(__name__)

StoreListener = Callable[["AppStore", FrozenSet[str]], None]


class AppStore:
    """
    Client state for one viewer.

    Construct it with the services it should talk to; there is no global
    instance.
    """

    def __init__(self, services: Services, settings: Optional[Settings] = None):
        self.services = services
        self.settings = settings or get_settings()

        self.session: Optional[Session] = None
        self.current_user: Optional[CurrentUser] = None
        self.lists: List[RestaurantList] = []
        self.reviews: List[Review] = []
        self.following: List[str] = []
        self.profiles: Dict[str, ProfileSummary] = {}
        self.loading: bool = False
        self._bootstrapping = False

        self._listeners: List[StoreListener] = []
        self._unsubscribe_auth: Optional[Callable[[], None]] = None

    # =========================================================================
    # STATE PLUMBING
    # =========================================================================

    def subscribe(self, listener: StoreListener) -> Callable[[], None]:
        """Call `listener(store, changed_fields)` after every state change."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set(self, **changes: Any) -> None:
        for name, value in changes.items():
            setattr(self, name, value)
        changed = frozenset(changes)
        for listener in list(self._listeners):
            try:
                listener(self, changed)
            except Exception as e:
                logger.error("store_listener_failed", fields=sorted(changed), error=str(e))

    @property
    def viewer_id(self) -> Optional[str]:
        if self.current_user is not None:
            return self.current_user.id
        if self.session is not None:
            return self.session.user_id
        return None

    def _require_viewer(self) -> str:
        viewer_id = self.viewer_id
        if viewer_id is None:
            raise NotAuthenticatedError()
        return viewer_id

    def _find_review(self, review_id: str) -> Optional[Review]:
        return next((r for r in self.reviews if r.id == review_id), None)

    # =========================================================================
    # SESSION & BOOTSTRAP
    # =========================================================================

    def _ensure_subscribed(self) -> None:
        if self._unsubscribe_auth is None:
            self._unsubscribe_auth = self.services.auth.on_session_change(self._on_auth_event)

    async def start(self) -> None:
        """
        Restore any existing session and load the viewer.

        `loading` stays true for the whole bootstrap.
        """
        self._ensure_subscribed()
        self._bootstrapping = True
        self._set(loading=True)
        try:
            session = await self.services.auth.get_current_session()
            if session is not None and session.is_expired():
                session = await self._refresh_or_clear()
            if session is not None:
                self._set(session=session)
                await self.load_viewer(session.user_id)
        except FomiException as e:
            logger.error("bootstrap_failed", error=e.message)
        finally:
            self._bootstrapping = False
            self._set(loading=False)

    async def _refresh_or_clear(self) -> Optional[Session]:
        try:
            return await self.services.auth.refresh_session()
        except FomiException as e:
            logger.warning("stored_session_invalid", error=e.message)
            await self.services.auth.sign_out(scope="local")
            return None

    async def _on_auth_event(self, event: AuthEvent, session: Optional[Session]) -> None:
        logger.info("auth_state_changed", auth_event=event.value)
        if event == AuthEvent.SIGNED_OUT:
            self.clear(loading=self._bootstrapping)
        elif event == AuthEvent.SIGNED_IN and session is not None:
            self._set(session=session, loading=True)
            try:
                await self.load_viewer(session.user_id)
            finally:
                self._set(loading=self._bootstrapping)
        elif session is not None:
            self._set(session=session)

    async def load_viewer(self, user_id: str) -> None:
        """Profile with counts, lists, follow ids, then the feed."""
        try:
            summary, lists, following = await asyncio.gather(
                self.services.profiles.get_profile_summary(user_id),
                self._load_lists(user_id),
                self.services.follows.get_following_ids(user_id),
            )
        except FomiException as e:
            logger.error("load_viewer_failed", user_id=user_id, error=e.message)
            return

        changes: Dict[str, Any] = {"following": list(following)}
        if summary is not None:
            changes["current_user"] = CurrentUser(**summary.model_dump())
        else:
            logger.warning("viewer_profile_missing", user_id=user_id)
        if lists is not None:
            changes["lists"] = lists
        self._set(**changes)
        bind_viewer(user_id)

        await self.refresh_feed(user_id)
        logger.info(
            "viewer_loaded",
            user_id=user_id,
            lists=len(self.lists),
            following=len(self.following),
            reviews=len(self.reviews),
        )

    async def _load_lists(self, user_id: str) -> Optional[List[RestaurantList]]:
        lists = await self.services.lists.get_user_lists(user_id)
        if lists is None:
            return None
        memberships = await self.services.lists.get_memberships([lst.id for lst in lists])
        return build_lists(lists, memberships)

    def clear(self, loading: bool = False) -> None:
        """Drop everything cached for the viewer."""
        bind_viewer(None)
        self._set(
            session=None,
            current_user=None,
            lists=[],
            reviews=[],
            following=[],
            profiles={},
            loading=loading,
        )

    def close(self) -> None:
        if self._unsubscribe_auth is not None:
            self._unsubscribe_auth()
            self._unsubscribe_auth = None

    # Auth flows propagate errors to the caller.

    async def sign_in(self, identifier: str, password: str) -> Session:
        self._ensure_subscribed()
        return await self.services.auth.sign_in(identifier, password)

    async def sign_up(self, email: str, password: str, full_name: str, username: str) -> Optional[Session]:
        self._ensure_subscribed()
        return await self.services.auth.sign_up(email, password, full_name, username)

    async def sign_out(self) -> None:
        self._set(loading=True)
        try:
            await self.services.auth.sign_out()
        finally:
            self.clear()

    async def reset_password(self, email: str) -> None:
        await self.services.auth.reset_password(email)

    async def resend_verification(self, email: str) -> None:
        await self.services.auth.resend_verification(email)

    async def update_password(self, password: str) -> None:
        await self.services.auth.update_password(password)

    async def check_username_available(self, username: str) -> bool:
        return await self.services.auth.check_username_available(username)

    # =========================================================================
    # FEED
    # =========================================================================

    async def refresh_feed(self, user_id: Optional[str] = None) -> None:
        """
        Reload the newest reviews and the viewer's like/save flags.

        A failed review fetch keeps the current feed.
        """
        viewer_id = user_id or self.viewer_id
        reviews = await self.services.feed.get_reviews(self.settings.feed_limit)
        if reviews is None:
            return

        liked_ids: set = set()
        saved_ids: set = set()
        if viewer_id is not None:
            liked_ids = await self.services.feed.get_user_like_ids(viewer_id)
            saved_ids = await self.services.feed.get_default_list_restaurant_ids(viewer_id)

        self._set(reviews=apply_viewer_flags(reviews, liked_ids, saved_ids))
        logger.debug("feed_refreshed", count=len(reviews))

    async def toggle_like(self, review_id: str) -> None:
        """Flip the like optimistically; undo it if the write fails."""
        viewer_id = self.viewer_id
        review = self._find_review(review_id)
        if viewer_id is None or review is None:
            return

        was_liked = review.is_liked
        self._set(reviews=shift_like(self.reviews, review_id, not was_liked))
        try:
            if was_liked:
                await self.services.feed.remove_like(viewer_id, review_id)
            else:
                await self.services.feed.add_like(viewer_id, review_id)
        except FomiException as e:
            logger.warning("toggle_like_rolled_back", review_id=review_id, error=e.message)
            self._set(reviews=shift_like(self.reviews, review_id, was_liked))

    async def get_user_reviews(self, user_id: str) -> List[Review]:
        return await self.services.feed.get_user_reviews(user_id)

    # =========================================================================
    # SAVING & LISTS
    # =========================================================================

    async def ensure_default_list(self) -> RestaurantList:
        """
        The viewer's default list, creating it when missing.

        Raises:
            DefaultListError: if the list cannot be created
        """
        viewer_id = self._require_viewer()
        existing = find_default_list(self.lists)
        if existing is not None:
            return existing

        try:
            created = await self.services.lists.create_list(
                viewer_id,
                self.settings.default_list_name,
                is_private=False,
                is_default=True,
            )
        except FomiException as e:
            raise DefaultListError(f"Could not create default list: {e.message}") from e

        created = created.model_copy(update={"items": [], "count": 0})
        self._set(lists=[*self.lists, created])
        return created

    def is_saved(self, restaurant_id: str) -> bool:
        default_list = find_default_list(self.lists)
        return default_list is not None and default_list.contains(restaurant_id)

    def _apply_membership(self, list_id: str, restaurant_id: str, present: bool) -> None:
        lst = find_list(self.lists, list_id)
        if lst is None:
            return
        changes: Dict[str, Any] = {
            "lists": replace_list(self.lists, with_membership(lst, restaurant_id, present)),
        }
        if lst.is_default:
            changes["reviews"] = mark_saved(self.reviews, restaurant_id, present)
        self._set(**changes)

    async def toggle_save_restaurant(self, restaurant_id: str) -> bool:
        """
        Save or unsave a restaurant in the default list.

        Returns the saved state after the call; False when there is no
        viewer or the default list could not be created.
        """
        if self.viewer_id is None:
            return False
        try:
            default_list = await self.ensure_default_list()
        except DefaultListError as e:
            logger.error("toggle_save_no_default_list", restaurant_id=restaurant_id, error=e.message)
            return False

        was_saved = default_list.contains(restaurant_id)
        self._apply_membership(default_list.id, restaurant_id, not was_saved)
        try:
            if was_saved:
                await self.services.lists.remove_restaurant_from_list(default_list.id, restaurant_id)
            else:
                await self.services.lists.add_restaurant_to_list(default_list.id, restaurant_id)
        except FomiException as e:
            logger.warning("toggle_save_rolled_back", restaurant_id=restaurant_id, error=e.message)
            self._apply_membership(default_list.id, restaurant_id, was_saved)
            return was_saved
        return not was_saved

    async def add_restaurant_to_list(self, list_id: str, restaurant_id: str) -> None:
        await self.services.lists.add_restaurant_to_list(list_id, restaurant_id)
        self._apply_membership(list_id, restaurant_id, True)

    async def remove_restaurant_from_list(self, list_id: str, restaurant_id: str) -> None:
        await self.services.lists.remove_restaurant_from_list(list_id, restaurant_id)
        self._apply_membership(list_id, restaurant_id, False)

    async def create_list(self, name: str, is_private: bool, cover: Optional[str] = None) -> RestaurantList:
        viewer_id = self._require_viewer()
        created = await self.services.lists.create_list(
            viewer_id, name.strip(), is_private=is_private, cover=cover
        )
        created = created.model_copy(update={"items": [], "count": 0})
        self._set(lists=[*self.lists, created])
        return created

    async def update_list(self, list_id: str, **fields: Any) -> Optional[RestaurantList]:
        """Write the given fields, then merge the stored row into the cache."""
        if not fields:
            return find_list(self.lists, list_id)
        row = await self.services.lists.update_list(list_id, fields)
        existing = find_list(self.lists, list_id)
        if existing is None:
            return row
        merged = merge_list_row(existing, row)
        self._set(lists=replace_list(self.lists, merged))
        return merged

    async def delete_list(self, list_id: str) -> bool:
        """
        Delete a list the viewer owns.

        Returns False when the list is not cached.

        Raises:
            ListNotDeletableError: for the default list
        """
        lst = find_list(self.lists, list_id)
        if lst is None:
            return False
        if lst.is_default:
            raise ListNotDeletableError(list_id)
        await self.services.lists.delete_list(list_id)
        self._set(lists=[item for item in self.lists if item.id != list_id])
        return True

    async def upload_list_cover(self, list_id: str, photo: PhotoUpload) -> RestaurantList:
        viewer_id = self._require_viewer()
        if find_list(self.lists, list_id) is None:
            raise NotFoundError("List", list_id)
        url = await self.services.storage.upload_list_cover(viewer_id, list_id, photo)
        return await self.update_list(list_id, cover_photo_url=url)

    async def get_list_restaurants(self, list_id: str) -> List[Restaurant]:
        return await self.services.lists.get_list_restaurants(list_id)

    # =========================================================================
    # REVIEWS & COMMENTS
    # =========================================================================

    async def add_review(self, new_review: NewReview) -> PublishedReview:
        """
        Publish a review in three steps: row, photos, tags.

        The row insert raises on failure. Photo and tag failures leave the
        review published and are reported on the result. The feed is
        reloaded afterwards.
        """
        viewer_id = self._require_viewer()
        review = await self.services.feed.create_review(viewer_id, new_review)
        result = PublishedReview(id=review.id)

        if new_review.photo_files:
            result.photos, result.failed_photos = await self._attach_photos(
                viewer_id, review.id, new_review.photo_files
            )

        if new_review.tagged_user_ids:
            try:
                await self.services.feed.add_review_tags(review.id, new_review.tagged_user_ids)
            except FomiException as e:
                logger.error("review_tags_failed", review_id=review.id, error=e.message)
                result.tags_saved = False

        await self.refresh_feed()
        logger.info(
            "review_published",
            review_id=review.id,
            photos=len(result.photos),
            failed_photos=len(result.failed_photos),
        )
        return result

    async def _attach_photos(self, viewer_id: str, review_id: str, files: Sequence[PhotoUpload]):
        urls = await self.services.storage.upload_review_photos(viewer_id, review_id, files)
        photos: List[ReviewPhoto] = []
        failed: List[str] = []
        for photo, url in zip(files, urls):
            if url is None:
                failed.append(photo.filename)
                continue
            photos.append(ReviewPhoto(url=url, order=len(photos) + 1, size_bytes=photo.size))

        if photos:
            try:
                await self.services.feed.update_review_photos(review_id, photos)
            except FomiException as e:
                logger.error("review_photos_patch_failed", review_id=review_id, error=e.message)
                return [], [photo.filename for photo in files]
        return photos, failed

    async def fetch_comments(self, review_id: str) -> List[Comment]:
        return await self.services.feed.get_comments(review_id)

    async def add_comment(self, review_id: str, content: str) -> Comment:
        viewer_id = self._require_viewer()
        text = content.strip()
        if not text:
            raise ValueError("Comment is empty")
        comment = await self.services.feed.add_comment(viewer_id, review_id, text)
        self._set(reviews=bump_comments(self.reviews, review_id))
        return comment

    # =========================================================================
    # FOLLOWS & PROFILES
    # =========================================================================

    def is_following(self, user_id: str) -> bool:
        return user_id in self.following

    def _shift_following_count(self, delta: int) -> Optional[CurrentUser]:
        if self.current_user is None:
            return None
        count = max(0, self.current_user.following_count + delta)
        return self.current_user.model_copy(update={"following_count": count})

    async def follow_user(self, user_id: str) -> None:
        """
        Follow someone.

        Only the viewer's following_count moves; the target's
        followers_count is reconciled on its next profile load.
        """
        viewer_id = self._require_viewer()
        if user_id == viewer_id:
            raise ValueError("Cannot follow yourself")
        await self.services.follows.follow(viewer_id, user_id)
        following = self.following if user_id in self.following else [*self.following, user_id]
        self._set(following=following, current_user=self._shift_following_count(1))

    async def unfollow_user(self, user_id: str) -> None:
        viewer_id = self._require_viewer()
        await self.services.follows.unfollow(viewer_id, user_id)
        self._set(
            following=[uid for uid in self.following if uid != user_id],
            current_user=self._shift_following_count(-1),
        )

    async def refresh_follow_state(self, user_id: str) -> bool:
        """
        Ask the backend whether the viewer follows `user_id` and reconcile
        `following` with the answer. Keeps the cached state when the lookup
        fails.
        """
        viewer_id = self.viewer_id
        if viewer_id is None:
            return False
        follows = await self.services.follows.is_following(viewer_id, user_id)
        if follows is None:
            return self.is_following(user_id)
        if follows and user_id not in self.following:
            self._set(following=[*self.following, user_id])
        elif not follows and user_id in self.following:
            self._set(following=[uid for uid in self.following if uid != user_id])
        return follows

    async def load_profile(self, user_id: str) -> Optional[ProfileSummary]:
        """Fetch a profile with counts and cache it in `profiles`."""
        summary = await self.services.profiles.get_profile_summary(user_id)
        if summary is None:
            return None
        changes: Dict[str, Any] = {"profiles": {**self.profiles, user_id: summary}}
        if self.current_user is not None and user_id == self.current_user.id:
            changes["current_user"] = self.current_user.model_copy(update=summary.model_dump())
        self._set(**changes)
        return summary

    async def get_profile_by_username(self, username: str) -> Optional[Profile]:
        return await self.services.profiles.get_profile_by_username(username)

    async def get_following_users(self) -> List[Profile]:
        viewer_id = self.viewer_id
        if viewer_id is None:
            return []
        return await self.services.follows.get_following(viewer_id)

    async def get_followers(self, user_id: Optional[str] = None) -> List[Profile]:
        target = user_id or self.viewer_id
        if target is None:
            return []
        return await self.services.follows.get_followers(target)

    async def get_mutual_followers(self) -> List[Profile]:
        viewer_id = self.viewer_id
        if viewer_id is None:
            return []
        return await self.services.follows.get_mutual_followers(viewer_id)

    def _merge_profile(self, row: Profile) -> CurrentUser:
        if self.current_user is None:
            return CurrentUser(**row.model_dump())
        return self.current_user.model_copy(update=row.model_dump())

    async def set_user_preferences(self, prefs: UserPreferences) -> CurrentUser:
        """Save onboarding answers; errors propagate."""
        viewer_id = self._require_viewer()
        row = await self.services.auth.update_preferences(viewer_id, prefs)
        self._set(current_user=self._merge_profile(row))
        return self.current_user

    async def update_profile(self, **fields: Any) -> CurrentUser:
        viewer_id = self._require_viewer()
        row = await self.services.profiles.update_profile(viewer_id, fields)
        self._set(current_user=self._merge_profile(row))
        return self.current_user

    async def upload_avatar(self, photo: PhotoUpload) -> str:
        viewer_id = self._require_viewer()
        url = await self.services.storage.upload_profile_photo(viewer_id, photo)
        await self.update_profile(profile_photo_url=url)
        return url

    async def block_user(self, user_id: str) -> None:
        viewer_id = self._require_viewer()
        if user_id == viewer_id:
            raise ValueError("Cannot block yourself")
        await self.services.profiles.block_user(viewer_id, user_id)

    # =========================================================================
    # DISCOVERY & NOTIFICATIONS
    # =========================================================================

    async def search_restaurants(self, query: str = "", offset: int = 0, **filters: Any) -> SearchPage:
        """
        One page of search results. Pass the previous page's `next_offset`
        with the same query and filters to load more.
        """
        return await self.services.restaurants.search_restaurants(query, offset=offset, **filters)

    async def get_restaurant(self, restaurant_id: str) -> Optional[Restaurant]:
        return await self.services.restaurants.get_restaurant_by_id(restaurant_id)

    async def get_restaurants_by_ids(self, ids: Sequence[str]) -> List[Restaurant]:
        return await self.services.restaurants.get_restaurants_by_ids(ids)

    async def get_restaurants_in_bounds(self, bounds: MapBounds, **filters: Any) -> List[Restaurant]:
        return await self.services.restaurants.get_restaurants_in_bounds(bounds, **filters)

    async def search_profiles(self, query: str) -> List[Profile]:
        return await self.services.profiles.search_profiles(query)

    async def get_recommendations(self) -> List[RecommendationSection]:
        """Discover sections for the signed-in viewer; empty without one."""
        if self.current_user is None:
            return []
        return await self.services.recommendations.get_recommendations(self.current_user)

    async def fetch_notifications(self) -> List[Notification]:
        viewer_id = self.viewer_id
        if viewer_id is None:
            return []
        return await self.services.notifications.get_notifications(viewer_id)

    async def unread_notifications(self) -> int:
        viewer_id = self.viewer_id
        if viewer_id is None:
            return 0
        return await self.services.notifications.get_unread_count(viewer_id)

    async def mark_notifications_read(self, notification_id: Optional[str] = None) -> None:
        """Mark one notification, or all of them when no id is given."""
        viewer_id = self._require_viewer()
        if notification_id:
            await self.services.notifications.mark_as_read(notification_id)
        else:
            await self.services.notifications.mark_all_as_read(viewer_id)

    async def delete_notification(self, notification_id: str) -> None:
        self._require_viewer()
        await self.services.notifications.delete_notification(notification_id)
