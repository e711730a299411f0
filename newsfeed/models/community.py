from sqlalchemy import Column, String, Text, Integer, ForeignKey, Index, UniqueConstraint, text
from sqlalchemy.orm import relationship
from newsfeed.db.base import BaseModel

class Community(BaseModel):
    __tablename__ = "communities"

    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=False)
    image = Column(String(255))
    cover_image = Column(String(255))
    visibility = Column(String(20), default="all", nullable=False)  # all, manual

    # Relationships
    members = relationship("CommunityMember", back_populates="community", cascade="all, delete-orphan")
    topic_links = relationship(
        "CommunityTopic",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="CommunityTopic.id",
    )

    @property
    def topics(self):
        return [link.name for link in self.topic_links]

    @topics.setter
    def topics(self, names):
        existing = {link.name: link for link in self.topic_links}
        self.topic_links = [
            existing.get(name) or CommunityTopic(name=name)
            for name in dict.fromkeys(names or [])
        ]

    __table_args__ = (
        Index('ix_communities_name', 'name'),
    )

class CommunityTopic(BaseModel):
    __tablename__ = "community_topics"

    community_id = Column(Integer, ForeignKey("communities.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(100), nullable=False)

    __table_args__ = (
        UniqueConstraint('community_id', 'name', name='unique_community_topic'),
        Index('ix_community_topics_name', 'name'),
    )

class CommunityMember(BaseModel):
    __tablename__ = "community_members"

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    community_id = Column(Integer, ForeignKey("communities.id", ondelete="CASCADE"), nullable=False)
    role = Column(String(20), default="member", nullable=False)  # super_admin, admin, member

    # Relationships
    community = relationship("Community", back_populates="members")

    __table_args__ = (
        UniqueConstraint('user_id', 'community_id', name='unique_community_member'),
        # Only the creator holds the super_admin role
        Index(
            'ix_community_members_super_admin',
            'community_id',
            unique=True,
            postgresql_where=text("role = 'super_admin'"),
            sqlite_where=text("role = 'super_admin'"),
        ),
        Index('ix_community_members_user_id', 'user_id'),
    )
