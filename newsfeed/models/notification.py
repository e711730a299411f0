from sqlalchemy import Column, String, Text, Integer, ForeignKey, Boolean, Index
from sqlalchemy.orm import relationship
from newsfeed.db.base import BaseModel

class Notification(BaseModel):
    __tablename__ = "notifications"

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    initiated_by = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    content = Column(Text, nullable=False)
    read = Column(Boolean, default=False, nullable=False)

    # What triggered the notification
    ref_mode = Column(String(20), nullable=False)  # post, comment, react, follow
    ref_id = Column(Integer, nullable=False)
    ref_post_id = Column(Integer, nullable=True)

    # Relationships
    initiator = relationship("User", foreign_keys=[initiated_by])

    # Indexes for better performance
    __table_args__ = (
        Index('ix_notifications_user_id', 'user_id'),
        Index('ix_notifications_created_at', 'created_at'),
        Index('ix_notifications_read', 'read'),
    )
