from pydantic import BaseModel

class MessageResponse(BaseModel):
    message: str

class ToggleResponse(BaseModel):
    """Result of a toggle endpoint (reaction, bookmark, share, follow, membership)"""
    outcome: str
    message: str
