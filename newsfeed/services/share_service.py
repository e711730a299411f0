from typing import Optional, Tuple, TYPE_CHECKING
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from newsfeed.exceptions import ForbiddenError, NotFoundError
from newsfeed.models.post import Post
from newsfeed.repositories import communities as community_repo
from newsfeed.repositories import posts as post_repo
from newsfeed.schemas.post_schema import VisibilityMode

if TYPE_CHECKING:
    from newsfeed.services.notification_service import NotificationDispatcher

logger = logging.getLogger(__name__)

class ShareService:
    def __init__(self, db: AsyncSession, dispatcher: "Optional[NotificationDispatcher]" = None):
        self.db = db
        self.dispatcher = dispatcher

    async def _check_can_share(self, user_id: int, original: Post) -> None:
        """Private posts are shareable by their author only, community posts by members"""
        if original.visibility_mode == VisibilityMode.PRIVATE.value and original.user_id != user_id:
            raise NotFoundError("Post not found")
        if original.visibility_mode == VisibilityMode.COMMUNITY.value:
            if not await community_repo.get_membership(self.db, user_id, original.community_id):
                raise ForbiddenError("Only members can share this community post")

    async def toggle_share(self, user_id: int, post_id: int) -> Tuple[str, Optional[Post]]:
        """
        Share a post, or remove the user's existing share of it.

        Sharing a share pointer shares the post it points to. Returns
        ("shared", pointer) or ("unshared", None).
        """
        original = await post_repo.get_displayed_post(self.db, post_id)
        if not original:
            raise NotFoundError("Post not found")

        existing = await post_repo.get_share(self.db, user_id, original.id)
        if existing:
            await post_repo.delete_share(self.db, existing)
            await self.db.commit()
            logger.info(f"User {user_id} unshared post {original.id}")
            return "unshared", None

        await self._check_can_share(user_id, original)

        pointer = await post_repo.create_post(
            self.db,
            user_id=user_id,
            content=original.content,
            visibility_mode=original.visibility_mode,
            community_id=original.community_id,
            topic=original.topic,
            parent_post_id=original.id,
            shared_by=user_id,
        )
        await self.db.commit()

        logger.info(f"User {user_id} shared post {original.id} as {pointer.id}")

        if self.dispatcher:
            self.dispatcher.post_shared(sharer_id=user_id, author_id=original.user_id, post_id=original.id)
        return "shared", pointer
