from typing import Dict, List, Optional, Sequence, TYPE_CHECKING
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError
import logging

from newsfeed.exceptions import ForbiddenError, NotFoundError
from newsfeed.models.comment import Comment
from newsfeed.repositories import comments as comment_repo
from newsfeed.repositories import posts as post_repo
from newsfeed.repositories import users as user_repo
from newsfeed.schemas.comment_schema import CommentCreate, CommentResponse
from newsfeed.services.bookmark_service import is_bookmarked
from newsfeed.services.reaction_service import aggregate_reactions
from newsfeed.services.user_service import author_reference, resolve_author

if TYPE_CHECKING:
    from newsfeed.services.notification_service import NotificationDispatcher

logger = logging.getLogger(__name__)

class CommentService:
    def __init__(self, db: AsyncSession, dispatcher: "Optional[NotificationDispatcher]" = None):
        self.db = db
        self.dispatcher = dispatcher

    async def _bookmarked(self, comment_id: int, viewer_id: Optional[int]) -> bool:
        try:
            return await is_bookmarked(self.db, viewer_id, comment_id=comment_id)
        except SQLAlchemyError as e:
            logger.warning(f"Could not resolve bookmark for comment {comment_id}: {e}")
            return False

    async def parse_comment(self, comment: Comment, viewer_id: Optional[int] = None) -> CommentResponse:
        """Decorate a single comment with reactions, bookmark state and author"""
        return CommentResponse(
            id=comment.id,
            post_id=comment.post_id,
            parent_comment_id=comment.parent_comment_id,
            reply_to=comment.reply_to,
            content=comment.content,
            created_at=comment.created_at,
            user=await resolve_author(self.db, author_reference(comment)),
            reactions=aggregate_reactions(comment.reactions, viewer_id),
            bookmarked=await self._bookmarked(comment.id, viewer_id),
            replies=[],
        )

    async def parse_comments(
        self,
        comments: Sequence[Comment],
        viewer_id: Optional[int] = None,
    ) -> List[CommentResponse]:
        return [await self.parse_comment(comment, viewer_id) for comment in comments]

    async def build_comment_tree(
        self,
        comments: Sequence[Comment],
        viewer_id: Optional[int] = None,
    ) -> List[CommentResponse]:
        """
        Arrange the flat comments of one post into top-level comments with
        their direct replies.

        Input order is kept at both levels. Replies whose parent is not a
        top-level comment of the input are left out.
        """
        top_level: Dict[int, CommentResponse] = {}
        for comment in comments:
            if comment.parent_comment_id is None:
                top_level[comment.id] = await self.parse_comment(comment, viewer_id)

        for comment in comments:
            parent = top_level.get(comment.parent_comment_id) if comment.parent_comment_id else None
            if parent is not None:
                parent.replies.append(await self.parse_comment(comment, viewer_id))

        return list(top_level.values())

    async def create_comment(self, user_id: int, data: CommentCreate) -> CommentResponse:
        post = await post_repo.get_displayed_post(self.db, data.post_id)
        if not post:
            raise NotFoundError("Post not found")

        parent_author_id = None
        if data.parent_comment_id is not None:
            parent = await comment_repo.get_comment(self.db, data.parent_comment_id)
            if not parent or parent.post_id != post.id:
                raise NotFoundError("Parent comment not found")
            parent_author_id = parent.user_id

        if data.reply_to is not None and not await user_repo.get_user(self.db, data.reply_to):
            raise NotFoundError("Replied user not found")

        comment = await comment_repo.create_comment(
            self.db,
            post_id=post.id,
            user_id=user_id,
            content=data.content,
            parent_comment_id=data.parent_comment_id,
            reply_to=data.reply_to,
        )
        await self.db.commit()

        logger.info(f"Comment {comment.id} created on post {post.id} by user {user_id}")

        if self.dispatcher:
            self.dispatcher.comment_created(
                commenter_id=user_id,
                comment_id=comment.id,
                post_id=post.id,
                post_author_id=post.user_id,
                content=comment.content,
                reply_to=data.reply_to,
                parent_author_id=parent_author_id,
            )

        return await self.parse_comment(comment, user_id)

    async def edit_comment(self, user_id: int, comment_id: int, content: str) -> CommentResponse:
        comment = await comment_repo.get_comment(self.db, comment_id)
        if not comment:
            raise NotFoundError("Comment not found")
        if comment.user_id != user_id:
            raise ForbiddenError("Not authorized to edit this comment")

        await comment_repo.update_comment(self.db, comment, content)
        await self.db.commit()

        logger.info(f"Comment {comment_id} edited by user {user_id}")
        return await self.parse_comment(comment, user_id)

    async def get_comment(self, comment_id: int, viewer_id: Optional[int] = None) -> CommentResponse:
        """A comment with its direct replies, oldest first"""
        comment = await comment_repo.get_comment(self.db, comment_id)
        if not comment:
            raise NotFoundError("Comment not found")

        response = await self.parse_comment(comment, viewer_id)
        replies = await comment_repo.list_replies(self.db, comment.id)
        response.replies = await self.parse_comments(replies, viewer_id)
        return response
