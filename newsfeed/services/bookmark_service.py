from typing import List, Optional, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError
import logging

from newsfeed.exceptions import ConflictError, NotFoundError
from newsfeed.models.bookmark import Bookmark
from newsfeed.repositories import bookmarks as bookmark_repo
from newsfeed.repositories import comments as comment_repo
from newsfeed.repositories import posts as post_repo

logger = logging.getLogger(__name__)


async def is_bookmarked(
    db: AsyncSession,
    viewer_id: Optional[int],
    post_id: Optional[int] = None,
    comment_id: Optional[int] = None,
) -> bool:
    """Whether the viewer bookmarked the post or comment"""
    if viewer_id is None:
        return False
    bookmark = await bookmark_repo.get_bookmark(db, viewer_id, post_id=post_id, comment_id=comment_id)
    return bookmark is not None


class BookmarkService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def toggle_bookmark(
        self,
        user_id: int,
        post_id: Optional[int] = None,
        comment_id: Optional[int] = None,
    ) -> Tuple[str, Optional[Bookmark]]:
        """Returns ("created", bookmark) or ("removed", None)"""
        if post_id is not None:
            post = await post_repo.get_displayed_post(self.db, post_id)
            if not post:
                raise NotFoundError("Post not found")
            post_id = post.id
        elif not await comment_repo.get_comment(self.db, comment_id):
            raise NotFoundError("Comment not found")

        existing = await bookmark_repo.get_bookmark(
            self.db, user_id, post_id=post_id, comment_id=comment_id
        )
        try:
            if existing:
                await bookmark_repo.delete_bookmark(self.db, existing)
                await self.db.commit()
                logger.info(f"Bookmark removed: user={user_id}, post={post_id}, comment={comment_id}")
                return "removed", None

            bookmark = await bookmark_repo.create_bookmark(
                self.db, user_id, post_id=post_id, comment_id=comment_id
            )
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError("Bookmark already being toggled")

        logger.info(f"Bookmark created: user={user_id}, post={post_id}, comment={comment_id}")
        return "created", bookmark

    async def list_bookmarks(self, user_id: int) -> List[Bookmark]:
        return await bookmark_repo.list_user_bookmarks(self.db, user_id)
