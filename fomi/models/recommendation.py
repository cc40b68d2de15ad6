"""
Recommendation Models

What the viewer's own reviews say about their taste, and the ranked
sections shown on the discover screen.
"""

from typing import List, Optional, Set
from pydantic import BaseModel, Field, field_validator

from .restaurant import Restaurant


class ReviewedCuisines(BaseModel):
    id: str
    cuisine_types: List[str] = Field(default_factory=list)

    @field_validator("cuisine_types", mode="before")
    @classmethod
    def _null_list(cls, value):
        return [] if value is None else value


class ReviewSignal(BaseModel):
    """The slice of one of the viewer's reviews that recommendations read."""
    id: str
    restaurant_id: str
    average_score: Optional[float] = None
    voltaria: Optional[bool] = None
    occasions: List[str] = Field(default_factory=list)
    restaurant: Optional[ReviewedCuisines] = None

    @field_validator("occasions", mode="before")
    @classmethod
    def _null_list(cls, value):
        return [] if value is None else value


class ReviewAnalysis(BaseModel):
    """Taste profile derived from the viewer's active reviews."""
    favorite_cuisines: List[str] = Field(default_factory=list)
    favorite_occasions: List[str] = Field(default_factory=list)
    average_user_score: float = 0.0
    reviewed_restaurant_ids: Set[str] = Field(default_factory=set)
    voltaria_positive: List[str] = Field(default_factory=list)


class ScoredRestaurant(Restaurant):
    """A restaurant with its 0-100 match score for the viewer."""
    match_score: int = 50
    match_reasons: List[str] = Field(default_factory=list)


class RecommendationSection(BaseModel):
    """One horizontal row of the discover screen; lower priority shows first."""
    id: str
    title: str
    subtitle: str = ""
    items: List[ScoredRestaurant] = Field(default_factory=list)
    priority: int = 0
