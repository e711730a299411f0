from sqlalchemy import Column, Text, Integer, ForeignKey, Index
from sqlalchemy.orm import relationship
from newsfeed.db.base import BaseModel

class Comment(BaseModel):
    __tablename__ = "comments"

    post_id = Column(Integer, ForeignKey("posts.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    content = Column(Text, nullable=False)
    parent_comment_id = Column(Integer, ForeignKey("comments.id", ondelete="CASCADE"), nullable=True)
    reply_to = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    # Relationships
    post = relationship("Post", back_populates="comments")
    user = relationship("User", foreign_keys=[user_id])
    reactions = relationship(
        "Reaction",
        back_populates="comment",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="Reaction.id",
    )

    # Indexes for better performance
    __table_args__ = (
        Index('ix_comments_post_id', 'post_id'),
        Index('ix_comments_user_id', 'user_id'),
        Index('ix_comments_parent_comment_id', 'parent_comment_id'),
        Index('ix_comments_created_at', 'created_at'),
    )
