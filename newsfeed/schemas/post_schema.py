from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime
from enum import Enum

from newsfeed.schemas.comment_schema import CommentResponse
from newsfeed.schemas.reaction_schema import ReactionSummary
from newsfeed.schemas.user_schema import AuthorProfile

class VisibilityMode(str, Enum):
    ALL = "all"
    COMMUNITY = "community"
    PRIVATE = "private"

class Visibility(BaseModel):
    mode: VisibilityMode = VisibilityMode.ALL
    community_id: Optional[int] = None

class PostUpdate(BaseModel):
    content: Optional[str] = Field(None, min_length=1)
    topic: Optional[str] = Field(None, max_length=100)

class ShareRequest(BaseModel):
    post_id: int

class ShareSummary(BaseModel):
    count: int = 0
    shared: bool = False

class PostResponse(BaseModel):
    id: int
    user: Optional[AuthorProfile] = None
    content: str
    file_urls: List[str] = []
    visibility: Visibility
    topic: Optional[str] = None
    created_at: datetime
    reactions: ReactionSummary
    bookmarked: bool = False
    shares: ShareSummary = Field(default_factory=ShareSummary)
    comments_count: int = 0
    comments: Optional[List[CommentResponse]] = None
    # Set only on share pointers
    parent_post_id: Optional[int] = None
    shared_by: Optional[int] = None

class PostCreatedResponse(BaseModel):
    id: int
    message: str = "Post created successfully"

class ShareToggleResponse(BaseModel):
    outcome: str
    message: str
    post_id: Optional[int] = None
