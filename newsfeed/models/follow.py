from sqlalchemy import Column, Integer, ForeignKey, CheckConstraint, Index, UniqueConstraint
from sqlalchemy.orm import relationship
from newsfeed.db.base import BaseModel

class Follow(BaseModel):
    __tablename__ = "follows"

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    following_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    # Relationships
    follower = relationship("User", foreign_keys=[user_id])
    following = relationship("User", foreign_keys=[following_id])

    # Ensure unique follow relationships
    __table_args__ = (
        UniqueConstraint('user_id', 'following_id', name='unique_follow'),
        CheckConstraint('user_id <> following_id', name='check_no_self_follow'),
        Index('ix_follows_user_id', 'user_id'),
        Index('ix_follows_following_id', 'following_id'),
    )
