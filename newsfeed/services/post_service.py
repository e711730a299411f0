from typing import List, Optional, Sequence, TYPE_CHECKING
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError
import logging

from newsfeed.config import settings
from newsfeed.exceptions import ForbiddenError, NotFoundError
from newsfeed.models.post import Post
from newsfeed.repositories import comments as comment_repo
from newsfeed.repositories import communities as community_repo
from newsfeed.repositories import posts as post_repo
from newsfeed.schemas.post_schema import (
    PostResponse,
    PostUpdate,
    ShareSummary,
    Visibility,
    VisibilityMode,
)
from newsfeed.services.bookmark_service import is_bookmarked
from newsfeed.services.comment_service import CommentService
from newsfeed.services.reaction_service import aggregate_reactions
from newsfeed.services.user_service import author_reference, resolve_author
from newsfeed.utils.pagination import page_bounds

if TYPE_CHECKING:
    from newsfeed.services.notification_service import NotificationDispatcher

logger = logging.getLogger(__name__)

class PostService:
    def __init__(self, db: AsyncSession, dispatcher: "Optional[NotificationDispatcher]" = None):
        self.db = db
        self.dispatcher = dispatcher
        self.comment_service = CommentService(db)

    # -------------------------
    # Response assembly
    # -------------------------
    async def _bookmarked(self, post_id: int, viewer_id: Optional[int]) -> bool:
        try:
            return await is_bookmarked(self.db, viewer_id, post_id=post_id)
        except SQLAlchemyError as e:
            logger.warning(f"Could not resolve bookmark for post {post_id}: {e}")
            return False

    async def _shares(self, post_id: int, viewer_id: Optional[int]) -> ShareSummary:
        try:
            shares = await post_repo.list_shares(self.db, post_id)
        except SQLAlchemyError as e:
            logger.warning(f"Could not resolve shares for post {post_id}: {e}")
            return ShareSummary()
        shared = viewer_id is not None and any(share.shared_by == viewer_id for share in shares)
        return ShareSummary(count=len(shares), shared=shared)

    async def parse_post(
        self,
        post: Post,
        viewer_id: Optional[int] = None,
        include_comments: bool = False,
    ) -> Optional[PostResponse]:
        """
        Build the viewer-relative response for a stored post.

        A share pointer is displayed with its original's content, media,
        visibility, topic, reactions, comments and author, but keeps its own
        id, timestamp and share fields. Returns None when the original of a
        share pointer no longer exists.
        """
        resolved = post
        if post.is_share:
            resolved = await post_repo.get_post(self.db, post.parent_post_id)
            if resolved is None:
                logger.info(f"Share {post.id} points to missing post {post.parent_post_id}")
                return None

        comments = None
        if include_comments:
            flat = await comment_repo.list_post_comments(self.db, resolved.id)
            comments_count = len(flat)
            comments = await self.comment_service.build_comment_tree(flat, viewer_id)
        else:
            comments_count = await comment_repo.count_post_comments(self.db, resolved.id)

        return PostResponse(
            id=post.id,
            user=await resolve_author(self.db, author_reference(resolved)),
            content=resolved.content,
            file_urls=list(resolved.file_urls or []),
            visibility=Visibility(mode=resolved.visibility_mode, community_id=resolved.community_id),
            topic=resolved.topic,
            created_at=post.created_at,
            reactions=aggregate_reactions(resolved.reactions, viewer_id),
            bookmarked=await self._bookmarked(resolved.id, viewer_id),
            shares=await self._shares(resolved.id, viewer_id),
            comments_count=comments_count,
            comments=comments,
            parent_post_id=post.parent_post_id,
            shared_by=post.shared_by,
        )

    async def parse_posts(
        self,
        posts: Sequence[Post],
        viewer_id: Optional[int] = None,
        include_comments: bool = False,
    ) -> List[PostResponse]:
        """Assemble every post, leaving out dangling shares"""
        result = []
        for post in posts:
            parsed = await self.parse_post(post, viewer_id, include_comments)
            if parsed is not None:
                result.append(parsed)
        return result

    # -------------------------
    # Reads
    # -------------------------
    async def get_post(self, post_id: int, viewer_id: Optional[int] = None) -> PostResponse:
        post = await post_repo.get_post(self.db, post_id)
        if not post:
            raise NotFoundError("Post not found")
        if post.visibility_mode == VisibilityMode.PRIVATE.value and post.user_id != viewer_id:
            raise NotFoundError("Post not found")

        parsed = await self.parse_post(post, viewer_id, include_comments=True)
        if parsed is None:
            raise NotFoundError("Post not found")
        return parsed

    async def list_posts(
        self,
        pagination: Optional[int] = 1,
        topics: Optional[Sequence[str]] = None,
        viewer_id: Optional[int] = None,
    ) -> List[PostResponse]:
        """
        Public posts, newest first. With topics, falls back to posts without
        a topic once the topical posts run out.
        """
        skip, limit = page_bounds(pagination or 1, settings.PAGE_SIZE)
        posts = await post_repo.list_public_posts(self.db, topics=topics, skip=skip, limit=limit)
        if topics and not posts:
            posts = await post_repo.list_public_posts(self.db, without_topic=True, skip=skip, limit=limit)
        return await self.parse_posts(posts, viewer_id)

    # -------------------------
    # Writes
    # -------------------------
    async def create_post(
        self,
        user_id: int,
        content: str,
        visibility_mode: VisibilityMode = VisibilityMode.ALL,
        community_id: Optional[int] = None,
        topic: Optional[str] = None,
        file_urls: Optional[List[str]] = None,
    ) -> Post:
        visibility_mode = VisibilityMode(visibility_mode)
        if visibility_mode == VisibilityMode.COMMUNITY:
            if community_id is None or not await community_repo.get_community(self.db, community_id):
                raise NotFoundError("Community not found")
            if not await community_repo.get_membership(self.db, user_id, community_id):
                raise ForbiddenError("Only members can post in this community")
        else:
            community_id = None

        post = await post_repo.create_post(
            self.db,
            user_id=user_id,
            content=content,
            file_urls=file_urls,
            visibility_mode=visibility_mode.value,
            community_id=community_id,
            topic=topic,
        )
        await self.db.commit()

        logger.info(f"Post {post.id} created by user {user_id}")

        if self.dispatcher and visibility_mode != VisibilityMode.PRIVATE:
            self.dispatcher.post_created(
                author_id=user_id,
                post_id=post.id,
                content=content,
                community_id=community_id,
            )
        return post

    async def _owned_post(self, user_id: int, post_id: int) -> Post:
        post = await post_repo.get_post(self.db, post_id)
        if not post:
            raise NotFoundError("Post not found")
        if post.user_id != user_id:
            raise ForbiddenError("Not authorized to modify this post")
        return post

    async def update_post(self, user_id: int, post_id: int, data: PostUpdate) -> PostResponse:
        post = await self._owned_post(user_id, post_id)

        fields = {key: value for key, value in data.model_dump(exclude_unset=True).items() if value is not None}
        await post_repo.update_post(self.db, post, **fields)
        await self.db.commit()

        logger.info(f"Post {post_id} updated by user {user_id}")

        parsed = await self.parse_post(post, user_id)
        if parsed is None:
            raise NotFoundError("Post not found")
        return parsed

    async def delete_post(self, user_id: int, post_id: int) -> None:
        post = await self._owned_post(user_id, post_id)
        await post_repo.delete_post(self.db, post)
        await self.db.commit()
        logger.info(f"Post {post_id} deleted by user {user_id}")
