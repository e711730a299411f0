from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List
from datetime import datetime
from enum import Enum

class CommunityVisibility(str, Enum):
    ALL = "all"
    MANUAL = "manual"

class CommunityRole(str, Enum):
    SUPER_ADMIN = "super_admin"
    ADMIN = "admin"
    MEMBER = "member"

class CommunityCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1)
    visibility: CommunityVisibility = CommunityVisibility.ALL
    topics: List[str] = []

class CommunityUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    visibility: Optional[CommunityVisibility] = None
    topics: Optional[List[str]] = None

class JoinCommunityRequest(BaseModel):
    community_id: int

class CommunityResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str
    topics: List[str] = []
    image: Optional[str] = None
    cover_image: Optional[str] = None
    visibility: CommunityVisibility
    created_at: datetime
    members_count: int = 0

class CommunityDetailResponse(CommunityResponse):
    is_member: bool = False
    is_admin: bool = False
