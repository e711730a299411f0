from typing import List, Optional, Union, TYPE_CHECKING
from sqlalchemy import inspect
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError
from passlib.context import CryptContext
import logging

from newsfeed.config import settings
from newsfeed.exceptions import ConflictError, ForbiddenError, NotFoundError
from newsfeed.models.user import User
from newsfeed.repositories import comments as comment_repo
from newsfeed.repositories import communities as community_repo
from newsfeed.repositories import follows as follow_repo
from newsfeed.repositories import posts as post_repo
from newsfeed.repositories import users as user_repo
from newsfeed.schemas.community_schema import CommunityResponse
from newsfeed.schemas.reaction_schema import ReactionKind
from newsfeed.schemas.user_schema import AuthorProfile, UserDetailResponse, UserPersonalUpdate
from newsfeed.utils.pagination import page_bounds

if TYPE_CHECKING:
    from newsfeed.services.notification_service import NotificationDispatcher

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def transform_user_details(user: Optional[User]) -> Optional[AuthorProfile]:
    """Public profile of a loaded user; never exposes password or email"""
    if user is None:
        return None
    return AuthorProfile.model_validate(user)


def author_reference(record) -> Union[User, int]:
    """The record's loaded author if it came with one, its user id otherwise"""
    if "user" in inspect(record).unloaded or record.user is None:
        return record.user_id
    return record.user


async def resolve_author(db: AsyncSession, user: Union[User, int, None]) -> Optional[AuthorProfile]:
    """
    Resolve a user id or an already loaded User into its public profile.

    An id with no matching user resolves to None.
    """
    if user is None or isinstance(user, User):
        return transform_user_details(user)
    return transform_user_details(await user_repo.get_user(db, user))


class UserService:
    def __init__(self, db: AsyncSession, dispatcher: "Optional[NotificationDispatcher]" = None):
        self.db = db
        self.dispatcher = dispatcher

    def verify_password(self, plain_password: str, hashed_password: str) -> bool:
        return pwd_context.verify(plain_password, hashed_password)

    def get_password_hash(self, password: str) -> str:
        return pwd_context.hash(password)

    async def get_user_by_username(self, username: str) -> User:
        user = await user_repo.get_user_by_username(self.db, username)
        if not user:
            raise NotFoundError("User not found")
        return user

    async def get_profile(self, username: str, viewer_id: Optional[int] = None) -> UserDetailResponse:
        """Profile with follower, followee, community and post counts"""
        user = await self.get_user_by_username(username)
        is_owner = viewer_id == user.id

        is_following = None
        if viewer_id is not None:
            is_following = await follow_repo.get_follow(self.db, viewer_id, user.id) is not None

        profile = transform_user_details(user)
        return UserDetailResponse(
            **profile.model_dump(),
            email=user.email if is_owner else None,
            followers_count=await self.retrieve_user_followers(user.id),
            followees_count=await self.retrieve_user_followees(user.id),
            communities_count=await self.retrieve_user_communities(user.id),
            posts_count=await self.retrieve_user_posts(user.id, viewer_id=viewer_id),
            is_following=is_following,
        )

    # -------------------------
    # Count-or-list retrievals
    # -------------------------
    async def _parse_posts(self, posts, viewer_id: Optional[int]):
        from newsfeed.services.post_service import PostService

        return await PostService(self.db).parse_posts(posts, viewer_id)

    async def retrieve_user_posts(
        self,
        user_id: int,
        detailed: bool = False,
        pagination: Optional[int] = None,
        viewer_id: Optional[int] = None,
    ):
        # Private posts only count for their author
        include_private = viewer_id == user_id
        if not detailed:
            return await post_repo.count_user_posts(self.db, user_id, include_private)
        skip, limit = page_bounds(pagination, settings.PAGE_SIZE)
        posts = await post_repo.list_user_posts(self.db, user_id, include_private, skip, limit)
        return await self._parse_posts(posts, viewer_id)

    async def _retrieve_reacted(
        self,
        user_id: int,
        kind: ReactionKind,
        detailed: bool,
        pagination: Optional[int],
        viewer_id: Optional[int],
    ):
        if not detailed:
            return await post_repo.count_posts_reacted_by(self.db, user_id, kind.value)
        skip, limit = page_bounds(pagination, settings.PAGE_SIZE)
        posts = await post_repo.list_posts_reacted_by(self.db, user_id, kind.value, skip, limit)
        return await self._parse_posts(posts, viewer_id)

    async def retrieve_user_liked_posts(
        self,
        user_id: int,
        detailed: bool = False,
        pagination: Optional[int] = None,
        viewer_id: Optional[int] = None,
    ):
        return await self._retrieve_reacted(user_id, ReactionKind.LIKE, detailed, pagination, viewer_id)

    async def retrieve_user_disliked_posts(
        self,
        user_id: int,
        detailed: bool = False,
        pagination: Optional[int] = None,
        viewer_id: Optional[int] = None,
    ):
        return await self._retrieve_reacted(user_id, ReactionKind.DISLIKE, detailed, pagination, viewer_id)

    async def retrieve_user_saved_posts(
        self,
        user_id: int,
        detailed: bool = False,
        pagination: Optional[int] = None,
    ):
        if not detailed:
            return await post_repo.count_bookmarked_posts(self.db, user_id)
        skip, limit = page_bounds(pagination, settings.PAGE_SIZE)
        posts = await post_repo.list_bookmarked_posts(self.db, user_id, skip, limit)
        return await self._parse_posts(posts, user_id)

    async def retrieve_user_saved_comments(
        self,
        user_id: int,
        detailed: bool = False,
        pagination: Optional[int] = None,
    ):
        from newsfeed.services.comment_service import CommentService

        if not detailed:
            return await comment_repo.count_bookmarked_comments(self.db, user_id)
        skip, limit = page_bounds(pagination, settings.PAGE_SIZE)
        comments = await comment_repo.list_bookmarked_comments(self.db, user_id, skip, limit)
        return await CommentService(self.db).parse_comments(comments, user_id)

    async def retrieve_user_followers(
        self,
        user_id: int,
        detailed: bool = False,
        pagination: Optional[int] = None,
    ):
        if not detailed:
            return await follow_repo.count_followers(self.db, user_id)
        skip, limit = page_bounds(pagination, settings.PAGE_SIZE)
        users = await follow_repo.list_followers(self.db, user_id, skip, limit)
        return [transform_user_details(user) for user in users]

    async def retrieve_user_followees(
        self,
        user_id: int,
        detailed: bool = False,
        pagination: Optional[int] = None,
    ):
        if not detailed:
            return await follow_repo.count_followees(self.db, user_id)
        skip, limit = page_bounds(pagination, settings.PAGE_SIZE)
        users = await follow_repo.list_followees(self.db, user_id, skip, limit)
        return [transform_user_details(user) for user in users]

    async def retrieve_user_communities(
        self,
        user_id: int,
        detailed: bool = False,
        pagination: Optional[int] = None,
    ):
        if not detailed:
            return await community_repo.count_user_communities(self.db, user_id)
        skip, limit = page_bounds(pagination, settings.PAGE_SIZE)
        communities = await community_repo.list_user_communities(self.db, user_id, skip, limit)
        result: List[CommunityResponse] = []
        for community in communities:
            response = CommunityResponse.model_validate(community)
            response.members_count = await community_repo.count_members(self.db, community.id)
            result.append(response)
        return result

    # -------------------------
    # Writes
    # -------------------------
    async def toggle_follow(self, follower_id: int, username: str) -> str:
        """Follow or unfollow a user; returns "followed" or "unfollowed"."""
        target = await self.get_user_by_username(username)
        if target.id == follower_id:
            raise ConflictError("You cannot follow yourself")

        existing = await follow_repo.get_follow(self.db, follower_id, target.id)
        try:
            if existing:
                await follow_repo.delete_follow(self.db, existing)
                outcome = "unfollowed"
            else:
                await follow_repo.create_follow(self.db, follower_id, target.id)
                outcome = "followed"
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError("Follow already being toggled")

        logger.info(f"User {follower_id} {outcome} user {target.id}")

        if outcome == "followed" and self.dispatcher:
            self.dispatcher.user_followed(follower_id=follower_id, followed_id=target.id)
        return outcome

    async def update_personal(self, user_id: int, data: UserPersonalUpdate) -> UserDetailResponse:
        user = await user_repo.get_user(self.db, user_id)
        if not user:
            raise NotFoundError("User not found")

        fields = data.model_dump(exclude_unset=True, exclude={"existing_password", "new_password"})
        fields = {key: value for key, value in fields.items() if value is not None}

        if "username" in fields and fields["username"] != user.username:
            if await user_repo.get_user_by_username(self.db, fields["username"]):
                raise ConflictError("Username already taken")
        if "email" in fields and fields["email"] != user.email:
            if await user_repo.get_user_by_email(self.db, fields["email"]):
                raise ConflictError("Email already registered")

        if data.new_password:
            if not data.existing_password or not self.verify_password(data.existing_password, user.password):
                raise ForbiddenError("Existing password is incorrect")
            fields["password"] = self.get_password_hash(data.new_password)

        try:
            await user_repo.update_user(self.db, user, **fields)
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError("Username or email already in use")

        logger.info(f"Personal details updated for user {user_id}")
        return await self.get_profile(user.username, viewer_id=user_id)

    async def update_account(
        self,
        user_id: int,
        bio: Optional[str] = None,
        image: Optional[str] = None,
        cover_image: Optional[str] = None,
    ) -> UserDetailResponse:
        user = await user_repo.get_user(self.db, user_id)
        if not user:
            raise NotFoundError("User not found")

        fields = {}
        if bio is not None:
            fields["bio"] = bio
        if image:
            fields["image"] = image
        if cover_image:
            fields["cover_image"] = cover_image

        await user_repo.update_user(self.db, user, **fields)
        await self.db.commit()

        logger.info(f"Account details updated for user {user_id}")
        return await self.get_profile(user.username, viewer_id=user_id)
