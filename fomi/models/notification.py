"""
Notification Models

Activity addressed to the viewer (likes, comments, follows, tags).
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional
from pydantic import BaseModel, ConfigDict

from .review import ReviewAuthor


class NotificationType(str, Enum):
    """Notification kinds."""
    LIKE = "like"
    COMMENT = "comment"
    NEW_FOLLOWER = "new_follower"
    TAG = "tag"
    NEW_REVIEW = "new_review"


class Notification(BaseModel):
    """Row of the notifications table with actor and review projections."""
    id: str
    type: NotificationType
    actor_id: str
    actor: Optional[ReviewAuthor] = None
    review_id: Optional[str] = None
    review: Optional[Dict[str, Any]] = None
    is_read: bool = False
    created_at: Optional[datetime] = None

    model_config = ConfigDict(use_enum_values=True)
