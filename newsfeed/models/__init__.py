"""
Models package for Newsfeed API
"""
from newsfeed.db.base import Base, BaseModel
from newsfeed.models.user import User
from newsfeed.models.post import Post
from newsfeed.models.comment import Comment
from newsfeed.models.reaction import Reaction
from newsfeed.models.bookmark import Bookmark
from newsfeed.models.follow import Follow
from newsfeed.models.community import Community, CommunityMember, CommunityTopic
from newsfeed.models.notification import Notification

__all__ = [
    'Base',
    'BaseModel',
    'User',
    'Post',
    'Comment',
    'Reaction',
    'Bookmark',
    'Follow',
    'Community',
    'CommunityMember',
    'CommunityTopic',
    'Notification',
]
