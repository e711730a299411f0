from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime

from newsfeed.schemas.reaction_schema import ReactionSummary
from newsfeed.schemas.user_schema import AuthorProfile

class CommentCreate(BaseModel):
    post_id: int
    content: str = Field(..., min_length=1, max_length=2000)
    parent_comment_id: Optional[int] = None
    reply_to: Optional[int] = None

class CommentUpdate(BaseModel):
    content: str = Field(..., min_length=1, max_length=2000)

class CommentResponse(BaseModel):
    id: int
    post_id: int
    parent_comment_id: Optional[int] = None
    reply_to: Optional[int] = None
    content: str
    created_at: datetime
    user: Optional[AuthorProfile] = None
    reactions: ReactionSummary
    bookmarked: bool = False
    replies: List['CommentResponse'] = []

# For nested models
CommentResponse.model_rebuild()
