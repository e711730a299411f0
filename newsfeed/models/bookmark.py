from sqlalchemy import Column, Integer, ForeignKey, CheckConstraint, Index, UniqueConstraint
from newsfeed.db.base import BaseModel

class Bookmark(BaseModel):
    __tablename__ = "bookmarks"

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    post_id = Column(Integer, ForeignKey("posts.id", ondelete="CASCADE"), nullable=True)
    comment_id = Column(Integer, ForeignKey("comments.id", ondelete="CASCADE"), nullable=True)

    __table_args__ = (
        UniqueConstraint('user_id', 'post_id', name='unique_post_bookmark'),
        UniqueConstraint('user_id', 'comment_id', name='unique_comment_bookmark'),

        # A bookmark targets either a post or a comment, never both
        CheckConstraint(
            '(post_id IS NOT NULL AND comment_id IS NULL) OR (post_id IS NULL AND comment_id IS NOT NULL)',
            name='check_bookmark_target'
        ),

        Index('ix_bookmarks_user_id', 'user_id'),
    )
