from sqlalchemy import Column, String, Text, Integer, ForeignKey, JSON, Index
from sqlalchemy.orm import relationship
from newsfeed.db.base import BaseModel

class Post(BaseModel):
    __tablename__ = "posts"

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    content = Column(Text, nullable=False)
    file_urls = Column(JSON, default=list, nullable=False)
    visibility_mode = Column(String(20), default="all", nullable=False)  # all, community, private
    community_id = Column(Integer, ForeignKey("communities.id", ondelete="CASCADE"), nullable=True)
    topic = Column(String(100))

    # Share pointers reference the original without a foreign key, so a
    # deleted original leaves them dangling rather than cascading.
    parent_post_id = Column(Integer, nullable=True)
    shared_by = Column(Integer, nullable=True)

    # Relationships
    user = relationship("User", foreign_keys=[user_id])
    comments = relationship("Comment", back_populates="post", cascade="all, delete-orphan")
    reactions = relationship(
        "Reaction",
        back_populates="post",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="Reaction.id",
    )

    @property
    def is_share(self) -> bool:
        return self.parent_post_id is not None and self.shared_by is not None

    __table_args__ = (
        Index('ix_posts_user_id', 'user_id'),
        Index('ix_posts_created_at', 'created_at'),
        Index('ix_posts_visibility_mode', 'visibility_mode'),
        Index('ix_posts_community_id', 'community_id'),
        Index('ix_posts_topic', 'topic'),
        Index('ix_posts_parent_post_id', 'parent_post_id'),
    )
