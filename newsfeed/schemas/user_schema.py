from pydantic import BaseModel, EmailStr, ConfigDict, Field
from typing import Optional

class AuthorProfile(BaseModel):
    """Public profile of a user, never carries credentials"""
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    first_name: str
    last_name: str
    phone_number: Optional[str] = None
    gender: Optional[str] = None
    image: Optional[str] = None
    bio: Optional[str] = None
    cover_image: Optional[str] = None

class UserDetailResponse(AuthorProfile):
    # Only filled in when the viewer is looking at their own profile
    email: Optional[str] = None
    followers_count: int = 0
    followees_count: int = 0
    communities_count: int = 0
    posts_count: int = 0
    # None when the viewer is anonymous
    is_following: Optional[bool] = None

class UserPersonalUpdate(BaseModel):
    username: Optional[str] = Field(None, min_length=3, max_length=50, pattern=r'^[a-zA-Z0-9_.]+$')
    email: Optional[EmailStr] = None
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    phone_number: Optional[str] = Field(None, max_length=30)
    gender: Optional[str] = Field(None, max_length=20)
    existing_password: Optional[str] = None
    new_password: Optional[str] = None
