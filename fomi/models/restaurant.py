"""
Restaurant Models

Read-mostly reference entities fetched on demand.
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator


class Restaurant(BaseModel):
    """Row of the restaurants table."""
    id: str
    name: str
    address: Optional[str] = None
    city: Optional[str] = None
    neighborhood: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    instagram: Optional[str] = None
    google_maps_url: Optional[str] = None
    google_place_id: Optional[str] = None
    photo_url: Optional[str] = None
    cuisine_types: List[str] = Field(default_factory=list)
    occasions: List[str] = Field(default_factory=list)
    price_level: Optional[int] = Field(None, description="1 (cheap) to 4 (expensive)")
    rating: Optional[float] = None
    reviews_count: Optional[int] = Field(
        None,
        validation_alias=AliasChoices("reviews_count", "review_count"),
    )
    is_active: bool = True
    created_at: Optional[datetime] = None

    # Only set on search results
    distance_km: Optional[float] = None

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("cuisine_types", "occasions", mode="before")
    @classmethod
    def _null_list(cls, value):
        return [] if value is None else value

    @property
    def has_location(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    @property
    def distance_label(self) -> Optional[str]:
        if self.distance_km is None:
            return None
        return format_distance(self.distance_km)


def format_distance(km: float) -> str:
    """`850m` below one kilometre, `2.4km` above."""
    if km < 1:
        return f"{round(km * 1000)}m"
    return f"{km:.1f}km"


class SearchSort(str, Enum):
    """Orderings accepted by the search_restaurants RPC."""
    DISTANCE = "distance"
    RATING = "rating"
    PRICE_ASC = "price_asc"
    PRICE_DESC = "price_desc"


class SearchPage(BaseModel):
    """
    One page of restaurant search results.

    `next_offset` is where the following page starts.
    """
    results: List[Restaurant] = Field(default_factory=list)
    offset: int = 0
    next_offset: int = 0
    has_more: bool = False
    total_count: int = 0


class MapBounds(BaseModel):
    """Visible map rectangle in degrees."""
    south: float = Field(..., ge=-90, le=90)
    west: float = Field(..., ge=-180, le=180)
    north: float = Field(..., ge=-90, le=90)
    east: float = Field(..., ge=-180, le=180)

    @model_validator(mode="after")
    def _check_order(self):
        if self.south > self.north:
            raise ValueError("south must not be greater than north")
        if self.west > self.east:
            raise ValueError("west must not be greater than east")
        return self

    def contains(self, latitude: float, longitude: float) -> bool:
        return (
            self.south <= latitude <= self.north
            and self.west <= longitude <= self.east
        )
