"""
Recommendation Service

Ranks restaurants for the viewer from their onboarding preferences and
their own reviews. Scoring and sectioning are pure functions over
already-fetched rows; the service only does the two reads.
"""

from collections import Counter, defaultdict
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Sequence

from ..backend import SupabaseClient
from ..core.exceptions import BackendError
from ..core.logging import get_logger
from ..models.recommendation import (
    RecommendationSection,
    ReviewAnalysis,
    ReviewSignal,
    ScoredRestaurant,
)
from ..models.restaurant import Restaurant
from ..models.user import Profile
from .restaurant_service import RestaurantService
from .rows import parse_rows

logger = get_logger(__name__)

REVIEW_SIGNAL_SELECT = (
    "id, restaurant_id, average_score, voltaria, occasions, "
    "restaurant:restaurants!restaurant_id(id, cuisine_types)"
)

# Reviews at or above this average count as liked
LIKED_SCORE = 4.0
FAVORITES_LIMIT = 5
FOR_YOU_MIN_SCORE = 60
DISCOVER_SIZE = 20

REASON_FAVORITE_CUISINE = "Culinária que você adora"
REASON_NEARBY = "Perto de você"
REASON_TOP_RATED = "Muito bem avaliado"
REASON_POPULAR = "Popular"


def analyze_reviews(signals: Sequence[ReviewSignal]) -> ReviewAnalysis:
    """Favourite cuisines and occasions from the reviews the viewer liked."""
    if not signals:
        return ReviewAnalysis()

    cuisine_scores: Dict[str, List[float]] = defaultdict(list)
    occasion_counts: Counter = Counter()
    total = 0.0
    for signal in signals:
        score = signal.average_score or 0.0
        total += score
        if score < LIKED_SCORE:
            continue
        if signal.restaurant is not None:
            for cuisine in signal.restaurant.cuisine_types:
                cuisine_scores[cuisine].append(score)
        occasion_counts.update(signal.occasions)

    by_average = sorted(
        cuisine_scores.items(),
        key=lambda item: sum(item[1]) / len(item[1]),
        reverse=True,
    )
    return ReviewAnalysis(
        favorite_cuisines=[cuisine for cuisine, _ in by_average[:FAVORITES_LIMIT]],
        favorite_occasions=[occasion for occasion, _ in occasion_counts.most_common(FAVORITES_LIMIT)],
        average_user_score=total / len(signals),
        reviewed_restaurant_ids={signal.restaurant_id for signal in signals},
        voltaria_positive=[signal.restaurant_id for signal in signals if signal.voltaria],
    )


def _contains(haystack: Optional[str], needle: Optional[str]) -> bool:
    if not haystack or not needle:
        return False
    return needle.lower() in haystack.lower()


def match_score(restaurant: Restaurant, profile: Profile, analysis: ReviewAnalysis) -> ScoredRestaurant:
    """
    Score one restaurant for the viewer, clamped to 0..100.

    Starts at 50. Disliked cuisines and places already reviewed pull the
    score down; favourite cuisines, matching occasions, location and
    community rating push it up. Each boost that is worth explaining adds
    a reason shown on the card.
    """
    score = 50
    reasons: List[str] = []
    cuisines = restaurant.cuisine_types

    if any(cuisine in profile.cuisines_disliked for cuisine in cuisines):
        score -= 30
    if restaurant.id in analysis.reviewed_restaurant_ids:
        score -= 20

    if any(cuisine in analysis.favorite_cuisines for cuisine in cuisines):
        score += 20
        reasons.append(REASON_FAVORITE_CUISINE)

    shared = [occasion for occasion in restaurant.occasions if occasion in profile.occasions]
    if shared:
        score += min(15, 5 * len(shared))
        reasons.append(f"Bom para {shared[0]}")
    if any(occasion in analysis.favorite_occasions for occasion in restaurant.occasions):
        score += 10

    if _contains(restaurant.neighborhood, profile.neighborhood):
        score += 15
        reasons.append(REASON_NEARBY)
    if _contains(restaurant.city, profile.city):
        score += 5

    rating = restaurant.rating or 0.0
    if rating >= 4.5:
        score += 10
        reasons.append(REASON_TOP_RATED)
    elif rating >= 4.0:
        score += 5
    if (restaurant.reviews_count or 0) >= 100:
        score += 5
        if REASON_TOP_RATED not in reasons:
            reasons.append(REASON_POPULAR)

    return ScoredRestaurant(
        **restaurant.model_dump(),
        match_score=max(0, min(100, score)),
        match_reasons=reasons,
    )


def _created_key(restaurant: Restaurant) -> datetime:
    created = restaurant.created_at
    if created.tzinfo is None:
        return created.replace(tzinfo=timezone.utc)
    return created


def build_sections(
    scored: Iterable[ScoredRestaurant],
    profile: Profile,
    analysis: ReviewAnalysis,
    size: int = 10,
) -> List[RecommendationSection]:
    """
    Group scored restaurants into discover sections, ordered by priority.

    Sections that would be empty are left out. "Novidades" only lists
    restaurants with a creation date. "Descubra" only appears when nothing
    else does.
    """
    ranked = sorted(scored, key=lambda r: r.match_score, reverse=True)
    unreviewed = [r for r in ranked if r.id not in analysis.reviewed_restaurant_ids]
    sections: List[RecommendationSection] = []

    def add(section_id: str, title: str, subtitle: str, items: List[ScoredRestaurant], priority: int) -> None:
        if items:
            sections.append(RecommendationSection(
                id=section_id, title=title, subtitle=subtitle, items=items[:size], priority=priority,
            ))

    add(
        "for-you", "Para Você", "Baseado no seu perfil e avaliações",
        [r for r in unreviewed if r.match_score >= FOR_YOU_MIN_SCORE], 1,
    )

    if analysis.favorite_cuisines:
        favorites = set(analysis.favorite_cuisines)
        add(
            "based-on-reviews", "Baseado nas suas avaliações",
            f"Você gosta de {analysis.favorite_cuisines[0]}",
            [r for r in unreviewed if favorites.intersection(r.cuisine_types)], 2,
        )

    if profile.occasions:
        wanted = set(profile.occasions)
        add(
            "for-occasions", "Para suas ocasiões",
            f"Perfeitos para {profile.occasions[0].lower()}",
            [r for r in unreviewed if wanted.intersection(r.occasions)], 3,
        )

    if profile.neighborhood:
        add(
            "nearby", "Perto de você", f"Em {profile.neighborhood}",
            [r for r in ranked if _contains(r.neighborhood, profile.neighborhood)], 4,
        )

    top_rated = sorted(
        (r for r in ranked if (r.rating or 0.0) >= 4.0),
        key=lambda r: r.rating,
        reverse=True,
    )
    add("top-rated", "Mais Bem Avaliados", "Os favoritos da comunidade", top_rated, 5)

    newest = sorted((r for r in ranked if r.created_at is not None), key=_created_key, reverse=True)
    add("newest", "Novidades", "Recém chegados na plataforma", newest, 6)

    if not sections and ranked:
        sections.append(RecommendationSection(
            id="discover", title="Descubra", subtitle="Restaurantes para explorar",
            items=ranked[:DISCOVER_SIZE], priority=10,
        ))

    return sorted(sections, key=lambda s: s.priority)


class RecommendationService:
    """Fetches the inputs for recommendations and ranks them."""

    def __init__(self, client: SupabaseClient, restaurants: Optional[RestaurantService] = None):
        self.client = client
        self.settings = client.settings
        self.restaurants = restaurants or RestaurantService(client)

    async def analyze_user_reviews(self, user_id: str) -> ReviewAnalysis:
        try:
            response = await self.client.table("reviews") \
                .select(REVIEW_SIGNAL_SELECT) \
                .eq("user_id", user_id) \
                .eq("is_active", True) \
                .execute()
        except BackendError as e:
            logger.error("analyze_user_reviews_failed", user_id=user_id, error=e.message)
            return ReviewAnalysis()
        return analyze_reviews(parse_rows(ReviewSignal, response.data, "reviews"))

    async def get_recommendations(self, profile: Profile) -> List[RecommendationSection]:
        """Discover sections for the viewer; empty when nothing can be fetched."""
        analysis = await self.analyze_user_reviews(profile.id)
        pool = await self.restaurants.get_active_restaurants(self.settings.recommendation_pool_limit)
        scored = [match_score(restaurant, profile, analysis) for restaurant in pool]
        sections = build_sections(
            scored, profile, analysis, size=self.settings.recommendation_section_size,
        )
        logger.info(
            "recommendations_built",
            user_id=profile.id,
            candidates=len(pool),
            sections=[section.id for section in sections],
        )
        return sections
