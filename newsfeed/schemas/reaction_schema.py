from pydantic import BaseModel, Field, model_validator
from typing import Optional
from enum import Enum

class ReactionKind(str, Enum):
    LIKE = "like"
    DISLIKE = "dislike"

    @property
    def opposite(self) -> "ReactionKind":
        return ReactionKind.DISLIKE if self is ReactionKind.LIKE else ReactionKind.LIKE

class LikeSummary(BaseModel):
    count: int = 0
    liked: bool = False

class DislikeSummary(BaseModel):
    count: int = 0
    disliked: bool = False

class ReactionSummary(BaseModel):
    like: LikeSummary = Field(default_factory=LikeSummary)
    dislike: DislikeSummary = Field(default_factory=DislikeSummary)

class ReactionToggleRequest(BaseModel):
    post_id: Optional[int] = None
    comment_id: Optional[int] = None
    reaction: ReactionKind

    @model_validator(mode="after")
    def check_single_target(self):
        if (self.post_id is None) == (self.comment_id is None):
            raise ValueError("Exactly one of post_id or comment_id must be provided")
        return self

class ReactionToggleResponse(BaseModel):
    outcome: str
    message: str
    reactions: ReactionSummary
