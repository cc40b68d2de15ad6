"""
Review Models

Feed reviews, comments and the review authoring input/output.
"""

from datetime import datetime
from enum import Enum
from pathlib import PurePosixPath
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class ReviewType(str, Enum):
    """How the restaurant was experienced."""
    IN_PERSON = "in_person"
    DELIVERY = "delivery"

    @classmethod
    def parse(cls, value: str) -> "ReviewType":
        """Accept the wizard's labels as well as stored values."""
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().lower()
        if normalized in ("presencial", "in_person", "in-person"):
            return cls.IN_PERSON
        return cls.DELIVERY


class ReviewPhoto(BaseModel):
    """One entry of a review's ordered photo array."""
    url: str
    order: int
    size_bytes: int = 0


class ReviewAuthor(BaseModel):
    """Minimal author projection embedded in feed rows."""
    id: str
    username: str = ""
    full_name: str = ""
    profile_photo_url: Optional[str] = None
    is_verified: bool = False

    @field_validator("username", "full_name", mode="before")
    @classmethod
    def _null_text(cls, value):
        return "" if value is None else value

    @field_validator("is_verified", mode="before")
    @classmethod
    def _null_flag(cls, value):
        return bool(value)


class ReviewRestaurant(BaseModel):
    """Minimal restaurant projection embedded in feed rows."""
    id: str
    name: str = ""
    neighborhood: Optional[str] = None
    photo_url: Optional[str] = None


class ReviewScores(BaseModel):
    """The four sub-scores collected by the review wizard."""
    score_1: float = Field(..., ge=0, le=10)
    score_2: float = Field(..., ge=0, le=10)
    score_3: float = Field(..., ge=0, le=10)
    score_4: float = Field(..., ge=0, le=10)

    @property
    def average(self) -> float:
        return average_of([self.score_1, self.score_2, self.score_3, self.score_4])


def average_of(scores: List[Optional[float]]) -> Optional[float]:
    """Mean of the present scores, rounded to one decimal."""
    present = [s for s in scores if s is not None]
    if not present:
        return None
    return round(sum(present) / len(present), 1)


class Review(BaseModel):
    """
    Review as cached in the feed.

    `is_liked` and `is_saved` are relative to the viewer and are computed
    when the feed is fetched.
    """
    id: str
    user_id: str
    user: Optional[ReviewAuthor] = None
    restaurant_id: str
    restaurant: Optional[ReviewRestaurant] = None
    title: str = ""
    description: str = ""
    review_type: ReviewType = ReviewType.IN_PERSON

    score_1: Optional[float] = None
    score_2: Optional[float] = None
    score_3: Optional[float] = None
    score_4: Optional[float] = None
    average_score: Optional[float] = None

    photos: List[ReviewPhoto] = Field(default_factory=list)
    created_at: Optional[datetime] = None

    # Would the author go back
    voltaria: Optional[bool] = None
    occasions: List[str] = Field(default_factory=list)

    likes_count: int = 0
    comments_count: int = 0

    # Viewer-relative
    is_liked: bool = False
    is_saved: bool = False

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("title", "description", mode="before")
    @classmethod
    def _null_text(cls, value):
        return "" if value is None else value

    @field_validator("likes_count", "comments_count", mode="before")
    @classmethod
    def _null_count(cls, value):
        return 0 if value is None else value

    @field_validator("photos", "occasions", mode="before")
    @classmethod
    def _null_list(cls, value):
        return [] if value is None else value

    @field_validator("review_type", mode="before")
    @classmethod
    def _parse_type(cls, value):
        return ReviewType.parse(value) if value is not None else ReviewType.IN_PERSON

    @model_validator(mode="after")
    def _derive_average(self):
        if self.average_score is None:
            self.average_score = average_of(
                [self.score_1, self.score_2, self.score_3, self.score_4]
            )
        return self


class Comment(BaseModel):
    """Active comment on a review."""
    id: str
    user_id: str
    user: Optional[ReviewAuthor] = None
    review_id: str
    content: str
    created_at: Optional[datetime] = None


class PhotoUpload(BaseModel):
    """A photo picked by the user, not yet uploaded."""
    filename: str
    content: bytes
    content_type: Optional[str] = None

    @property
    def extension(self) -> str:
        suffix = PurePosixPath(self.filename).suffix.lstrip(".")
        return suffix.lower() or "jpg"

    @property
    def size(self) -> int:
        return len(self.content)


class NewReview(BaseModel):
    """Input collected by the three-step review wizard."""
    restaurant_id: str = Field(..., alias="restaurantId")
    title: str
    description: str = ""
    review_type: ReviewType = Field(ReviewType.IN_PERSON, alias="reviewType")
    scores: ReviewScores
    voltaria: Optional[bool] = None
    occasions: List[str] = Field(default_factory=list)
    photo_files: List[PhotoUpload] = Field(default_factory=list, alias="photoFiles")
    tagged_user_ids: List[str] = Field(default_factory=list, alias="taggedUserIds")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("review_type", mode="before")
    @classmethod
    def _parse_type(cls, value):
        return ReviewType.parse(value)


class PublishedReview(BaseModel):
    """
    Outcome of publishing a review.

    The review row always exists once this is returned; photo and tag
    failures are reported here instead of raised.
    """
    id: str
    photos: List[ReviewPhoto] = Field(default_factory=list)
    failed_photos: List[str] = Field(default_factory=list, description="Filenames")
    tags_saved: bool = True

    @property
    def is_complete(self) -> bool:
        return not self.failed_photos and self.tags_saved
