from pydantic import BaseModel, Field
from typing import Any, Dict, Optional

class TokenData(BaseModel):
    """Identity returned by the auth service for a validated token"""
    user_id: int
    username: str

class TokenValidationRequest(BaseModel):
    """Body forwarded to the auth service"""
    cookies: Dict[str, str] = Field(default_factory=dict)
    headers: Dict[str, str] = Field(default_factory=dict)

class TokenValidationResponse(BaseModel):
    data: Optional[TokenData] = None
    tokens: Optional[Dict[str, Any]] = None
