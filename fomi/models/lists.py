"""
List Models

Saved-place lists owned by the viewer.
"""

from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field


class RestaurantList(BaseModel):
    """
    A user's list of restaurants.

    `count` caches the membership cardinality and must always equal
    `len(items)`. At most one list per user is the default save target.
    """
    id: str
    user_id: str
    name: str
    is_private: bool = False
    is_default: bool = False
    cover_photo_url: Optional[str] = None

    count: int = 0
    items: List[str] = Field(default_factory=list, description="Restaurant ids")

    model_config = ConfigDict(populate_by_name=True)

    def contains(self, restaurant_id: str) -> bool:
        return restaurant_id in self.items
