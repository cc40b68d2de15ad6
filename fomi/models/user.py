"""
User Models

Profiles, the signed-in viewer and onboarding preferences.
"""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field, ConfigDict, field_validator


PROFILE_LIST_COLUMNS = (
    "cuisines_disliked",
    "occasions",
    "place_types",
    "behavior",
    "dietary_restrictions",
)

# Columns a user may edit from the profile screen
EDITABLE_PROFILE_FIELDS = frozenset({
    "full_name",
    "username",
    "bio",
    "city",
    "neighborhood",
    "profile_photo_url",
})


class RadarPreferences(BaseModel):
    """How and where the user goes out."""
    frequency: str = ""
    place_types: List[str] = Field(default_factory=list, alias="placeTypes")
    behavior: List[str] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True)


class UserPreferences(BaseModel):
    """
    Structured onboarding answers.

    Stored as flat columns on the profile row.
    """
    dislikes: List[str] = Field(default_factory=list)
    occasions: List[str] = Field(default_factory=list)
    radar: RadarPreferences = Field(default_factory=RadarPreferences)
    restrictions: List[str] = Field(default_factory=list)

    def to_profile_columns(self) -> Dict[str, Any]:
        """Map onto profile columns, marking onboarding as completed."""
        return {
            "cuisines_disliked": list(self.dislikes),
            "occasions": list(self.occasions),
            "frequency": self.radar.frequency,
            "place_types": list(self.radar.place_types),
            "behavior": list(self.radar.behavior),
            "dietary_restrictions": list(self.restrictions),
            "onboarding_completed": True,
        }


class Profile(BaseModel):
    """Row of the profiles table."""
    id: str
    full_name: str = ""
    username: str = ""
    email: Optional[str] = None
    profile_photo_url: Optional[str] = None
    bio: Optional[str] = None
    city: Optional[str] = None
    neighborhood: Optional[str] = None
    is_verified: bool = False
    onboarding_completed: bool = False

    # Preferences
    cuisines_disliked: List[str] = Field(default_factory=list)
    occasions: List[str] = Field(default_factory=list)
    frequency: Optional[str] = None
    place_types: List[str] = Field(default_factory=list)
    behavior: List[str] = Field(default_factory=list)
    dietary_restrictions: List[str] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True)

    @field_validator(*PROFILE_LIST_COLUMNS, mode="before")
    @classmethod
    def _null_list(cls, value):
        return [] if value is None else value

    @field_validator("full_name", "username", mode="before")
    @classmethod
    def _null_text(cls, value):
        return "" if value is None else value

    @field_validator("is_verified", "onboarding_completed", mode="before")
    @classmethod
    def _null_flag(cls, value):
        return bool(value)


class ProfileSummary(Profile):
    """Profile plus the counts shown on a profile screen."""
    reviews_count: int = 0
    followers_count: int = 0
    following_count: int = 0


class CurrentUser(ProfileSummary):
    """
    The signed-in viewer.

    Counts are computed at load time; only following_count is maintained
    incrementally afterwards.
    """

    @property
    def preferences(self) -> UserPreferences:
        return UserPreferences(
            dislikes=self.cuisines_disliked,
            occasions=self.occasions,
            radar=RadarPreferences(
                frequency=self.frequency or "",
                place_types=self.place_types,
                behavior=self.behavior,
            ),
            restrictions=self.dietary_restrictions,
        )
