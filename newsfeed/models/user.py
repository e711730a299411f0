from sqlalchemy import Column, String, Text, Index
from newsfeed.db.base import BaseModel

class User(BaseModel):
    __tablename__ = "users"

    username = Column(String(50), unique=True, index=True, nullable=False)
    email = Column(String(100), unique=True, index=True, nullable=False)
    password = Column(String(255), nullable=False)

    # Public profile
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    phone_number = Column(String(30))
    gender = Column(String(20))
    image = Column(String(255))
    cover_image = Column(String(255))
    bio = Column(Text)

    __table_args__ = (
        Index('ix_users_created_at', 'created_at'),
    )
