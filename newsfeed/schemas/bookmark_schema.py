from pydantic import BaseModel, ConfigDict, model_validator
from typing import Optional
from datetime import datetime

class BookmarkToggleRequest(BaseModel):
    post_id: Optional[int] = None
    comment_id: Optional[int] = None

    @model_validator(mode="after")
    def check_single_target(self):
        if (self.post_id is None) == (self.comment_id is None):
            raise ValueError("Exactly one of post_id or comment_id must be provided")
        return self

class BookmarkResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    post_id: Optional[int] = None
    comment_id: Optional[int] = None
    created_at: datetime

class BookmarkToggleResponse(BaseModel):
    outcome: str
    message: str
    bookmark: Optional[BookmarkResponse] = None
