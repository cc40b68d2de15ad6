"""
Projection Tests

Pure state transforms used by the store.
"""

import pytest

from fomi.models.restaurant import MapBounds, Restaurant
from fomi.models.review import Review, ReviewType
from fomi.state import projections


def test_build_lists_attaches_unique_items(make_list):
    lists = [make_list("list_a"), make_list("list_b")]
    memberships = [("list_a", "rest_1"), ("list_a", "rest_1"), ("list_a", "rest_2"), ("list_x", "rest_3")]

    built = projections.build_lists(lists, memberships)

    assert [(lst.id, lst.items, lst.count) for lst in built] == [
        ("list_a", ["rest_1", "rest_2"], 2),
        ("list_b", [], 0),
    ]


def test_with_membership_does_not_mutate(make_list):
    original = make_list("list_a", items=["rest_1"])

    added = projections.with_membership(original, "rest_2", True)
    removed = projections.with_membership(added, "rest_1", False)

    assert original.items == ["rest_1"]
    assert added.items == ["rest_1", "rest_2"]
    assert removed.items == ["rest_2"]
    assert removed.count == 1


def test_find_default_list(make_list):
    lists = [make_list("list_a"), make_list("list_default", is_default=True)]
    assert projections.find_default_list(lists).id == "list_default"
    assert projections.find_default_list(lists[:1]) is None


def test_mark_saved_touches_only_matching_restaurant(make_review):
    reviews = [make_review("rev_1", "rest_1"), make_review("rev_2", "rest_2"), make_review("rev_3", "rest_1")]

    marked = projections.mark_saved(reviews, "rest_1", True)

    assert [r.is_saved for r in marked] == [True, False, True]
    assert marked[1] is reviews[1]


def test_shift_like_is_reversible(make_review):
    reviews = [make_review("rev_1", likes_count=0)]

    liked = projections.shift_like(reviews, "rev_1", True)
    restored = projections.shift_like(liked, "rev_1", False)

    assert liked[0].likes_count == 1
    assert restored == reviews


def test_merge_list_row_keeps_membership(make_list):
    cached = make_list("list_a", items=["rest_1"])
    row = make_list("list_a", name="Novo nome")

    merged = projections.merge_list_row(cached, row)

    assert merged.name == "Novo nome"
    assert merged.items == ["rest_1"]
    assert merged.count == 1


class TestModels:

    def test_review_derives_average(self):
        review = Review(id="r", user_id="u", restaurant_id="x", score_1=8, score_2=9, score_3=7, score_4=None)
        assert review.average_score == 8.0

    def test_review_normalizes_nulls(self):
        review = Review.model_validate({
            "id": "r",
            "user_id": "u",
            "restaurant_id": "x",
            "title": None,
            "photos": None,
            "likes_count": None,
            "review_type": "presencial",
        })
        assert review.title == ""
        assert review.photos == []
        assert review.likes_count == 0
        assert review.review_type == ReviewType.IN_PERSON

    def test_restaurant_accepts_legacy_review_count(self):
        restaurant = Restaurant.model_validate({"id": "x", "name": "Bar do Zé", "review_count": 12})
        assert restaurant.reviews_count == 12
        assert not restaurant.has_location

    def test_map_bounds_validate_order(self):
        bounds = MapBounds(south=-23.7, west=-46.8, north=-23.4, east=-46.4)
        assert bounds.contains(-23.55, -46.63)
        with pytest.raises(ValueError):
            MapBounds(south=-23.4, west=-46.8, north=-23.7, east=-46.4)
