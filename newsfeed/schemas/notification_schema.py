from pydantic import BaseModel
from typing import Optional
from datetime import datetime
from enum import Enum

from newsfeed.schemas.user_schema import AuthorProfile

class NotificationMode(str, Enum):
    POST = "post"
    COMMENT = "comment"
    REACT = "react"
    FOLLOW = "follow"

class NotificationRef(BaseModel):
    mode: NotificationMode
    ref_id: int
    post_id: Optional[int] = None

class NotificationCreate(BaseModel):
    user_id: int
    initiated_by: int
    content: str
    ref: NotificationRef

class NotificationResponse(BaseModel):
    id: int
    content: str
    read: bool
    created_at: datetime
    ref: NotificationRef
    initiated_by: Optional[AuthorProfile] = None
    url: str
