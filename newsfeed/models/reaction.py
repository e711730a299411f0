from sqlalchemy import Column, Integer, ForeignKey, String, CheckConstraint, Index, UniqueConstraint
from sqlalchemy.orm import relationship
from newsfeed.db.base import BaseModel

class Reaction(BaseModel):
    __tablename__ = "reactions"

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    post_id = Column(Integer, ForeignKey("posts.id", ondelete="CASCADE"), nullable=True)
    comment_id = Column(Integer, ForeignKey("comments.id", ondelete="CASCADE"), nullable=True)
    kind = Column(String(10), nullable=False)  # 'like', 'dislike'

    # Relationships
    post = relationship("Post", back_populates="reactions")
    comment = relationship("Comment", back_populates="reactions")

    __table_args__ = (
        # One reaction of each kind per user and target
        UniqueConstraint('user_id', 'post_id', 'kind', name='unique_post_reaction'),
        UniqueConstraint('user_id', 'comment_id', 'kind', name='unique_comment_reaction'),

        CheckConstraint(
            '(post_id IS NOT NULL AND comment_id IS NULL) OR (post_id IS NULL AND comment_id IS NOT NULL)',
            name='check_reaction_target'
        ),
        CheckConstraint("kind IN ('like', 'dislike')", name='check_reaction_kind'),

        Index('ix_reactions_post_id', 'post_id'),
        Index('ix_reactions_comment_id', 'comment_id'),
        Index('ix_reactions_user_id', 'user_id'),
    )
