"""
State Projections

Pure functions over cached entities. Each returns new objects and never
mutates its inputs, so the store can swap whole collections at once.
"""

from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from ..models.lists import RestaurantList
from ..models.review import Review


def apply_viewer_flags(
    reviews: Iterable[Review],
    liked_ids: Set[str],
    saved_restaurant_ids: Set[str],
) -> List[Review]:
    """Set `is_liked`/`is_saved` for one viewer by set membership."""
    return [
        review.model_copy(update={
            "is_liked": review.id in liked_ids,
            "is_saved": review.restaurant_id in saved_restaurant_ids,
        })
        for review in reviews
    ]


def build_lists(
    lists: Iterable[RestaurantList],
    memberships: Iterable[Tuple[str, str]],
) -> List[RestaurantList]:
    """Attach (list_id, restaurant_id) memberships as items and counts."""
    items: Dict[str, List[str]] = defaultdict(list)
    for list_id, restaurant_id in memberships:
        if restaurant_id not in items[list_id]:
            items[list_id].append(restaurant_id)
    return [
        lst.model_copy(update={"items": items[lst.id], "count": len(items[lst.id])})
        for lst in lists
    ]


def find_default_list(lists: Sequence[RestaurantList]) -> Optional[RestaurantList]:
    return next((lst for lst in lists if lst.is_default), None)


def find_list(lists: Sequence[RestaurantList], list_id: str) -> Optional[RestaurantList]:
    return next((lst for lst in lists if lst.id == list_id), None)


def with_membership(lst: RestaurantList, restaurant_id: str, present: bool) -> RestaurantList:
    """
    Add or remove one restaurant.

    `items` and `count` change together so `count == len(items)` holds.
    """
    items = [item for item in lst.items if item != restaurant_id]
    if present:
        items.append(restaurant_id)
    return lst.model_copy(update={"items": items, "count": len(items)})


def replace_list(lists: Sequence[RestaurantList], updated: RestaurantList) -> List[RestaurantList]:
    return [updated if lst.id == updated.id else lst for lst in lists]


def merge_list_row(existing: RestaurantList, row: RestaurantList) -> RestaurantList:
    """Take stored columns from `row`, keep the cached membership."""
    return row.model_copy(update={"items": list(existing.items), "count": existing.count})


def mark_saved(reviews: Iterable[Review], restaurant_id: str, saved: bool) -> List[Review]:
    """Patch `is_saved` on every review of a restaurant."""
    return [
        review.model_copy(update={"is_saved": saved}) if review.restaurant_id == restaurant_id else review
        for review in reviews
    ]


def shift_like(reviews: Iterable[Review], review_id: str, liked: bool) -> List[Review]:
    """Set `is_liked` and move `likes_count` by one in that direction."""
    delta = 1 if liked else -1
    return [
        review.model_copy(update={
            "is_liked": liked,
            "likes_count": review.likes_count + delta,
        }) if review.id == review_id else review
        for review in reviews
    ]


def bump_comments(reviews: Iterable[Review], review_id: str) -> List[Review]:
    return [
        review.model_copy(update={"comments_count": review.comments_count + 1})
        if review.id == review_id else review
        for review in reviews
    ]
