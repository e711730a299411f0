from typing import Awaitable, Callable, List, Optional
from fastapi import BackgroundTasks
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
import logging

from newsfeed.config import settings
from newsfeed.exceptions import NotFoundError
from newsfeed.models.notification import Notification
from newsfeed.models.user import User
from newsfeed.repositories import communities as community_repo
from newsfeed.repositories import follows as follow_repo
from newsfeed.repositories import notifications as notification_repo
from newsfeed.repositories import users as user_repo
from newsfeed.schemas.notification_schema import (
    NotificationCreate,
    NotificationMode,
    NotificationRef,
    NotificationResponse,
)
from newsfeed.services.user_service import transform_user_details
from newsfeed.utils.pagination import page_bounds
from newsfeed.websocket.manager import ws_manager

logger = logging.getLogger(__name__)


def preview(text: str, length: Optional[int] = None) -> str:
    """Shorten text to at most `length` characters, marking the cut with ..."""
    length = length or settings.NOTIFICATION_PREVIEW_LENGTH
    if len(text) <= length:
        return text
    return text[: length - 3] + "..."


def notification_url(ref: NotificationRef) -> str:
    base = settings.PUBLIC_APP_URL.rstrip("/")
    if ref.mode == NotificationMode.FOLLOW:
        return f"{base}/profile/{ref.ref_id}"
    if ref.mode in (NotificationMode.COMMENT, NotificationMode.REACT):
        return f"{base}/post/{ref.post_id}/#{ref.ref_id}"
    return f"{base}/post/{ref.ref_id}/"


def to_response(notification: Notification) -> NotificationResponse:
    ref = NotificationRef(
        mode=notification.ref_mode,
        ref_id=notification.ref_id,
        post_id=notification.ref_post_id,
    )
    return NotificationResponse(
        id=notification.id,
        content=notification.content,
        read=notification.read,
        created_at=notification.created_at,
        ref=ref,
        initiated_by=transform_user_details(notification.initiator),
        url=notification_url(ref),
    )


async def create_notification(db: AsyncSession, data: NotificationCreate) -> Notification:
    """Persist an unread notification and push it to the recipient's live connections"""
    notification = await notification_repo.create_notification(
        db,
        user_id=data.user_id,
        initiated_by=data.initiated_by,
        content=data.content,
        ref_mode=data.ref.mode.value,
        ref_id=data.ref.ref_id,
        ref_post_id=data.ref.post_id,
    )
    await db.commit()

    await ws_manager.send_notification(data.user_id, to_response(notification).model_dump(mode="json"))
    return notification


def _display_name(user: Optional[User]) -> str:
    if user is None:
        return "Someone"
    return f"{user.first_name} {user.last_name}"


class NotificationDispatcher:
    """
    Schedules notification fan-out to run after the response is sent.

    Every job opens its own session; failures are logged and never reach
    the request that triggered them.
    """

    def __init__(self, background_tasks: BackgroundTasks, session_factory: async_sessionmaker):
        self.background_tasks = background_tasks
        self.session_factory = session_factory

    def _schedule(self, job: Callable[..., Awaitable[None]], **kwargs) -> None:
        self.background_tasks.add_task(self._run, job, **kwargs)

    async def _run(self, job: Callable[..., Awaitable[None]], **kwargs) -> None:
        try:
            async with self.session_factory() as db:
                await job(db, **kwargs)
        except Exception:
            logger.exception(f"Notification job {job.__name__} failed")

    async def _notify(
        self,
        db: AsyncSession,
        recipient_id: Optional[int],
        initiator_id: int,
        content: str,
        ref: NotificationRef,
    ) -> bool:
        if recipient_id is None or recipient_id == initiator_id:
            return False
        await create_notification(
            db,
            NotificationCreate(user_id=recipient_id, initiated_by=initiator_id, content=content, ref=ref),
        )
        return True

    # -------------------------
    # Scheduling entry points
    # -------------------------
    def post_created(self, author_id: int, post_id: int, content: str, community_id: Optional[int] = None) -> None:
        self._schedule(
            self.send_post_notifications,
            author_id=author_id,
            post_id=post_id,
            content=content,
            community_id=community_id,
        )

    def comment_created(
        self,
        commenter_id: int,
        comment_id: int,
        post_id: int,
        post_author_id: int,
        content: str,
        reply_to: Optional[int] = None,
        parent_author_id: Optional[int] = None,
    ) -> None:
        self._schedule(
            self.send_comment_notifications,
            commenter_id=commenter_id,
            comment_id=comment_id,
            post_id=post_id,
            post_author_id=post_author_id,
            content=content,
            reply_to=reply_to,
            parent_author_id=parent_author_id,
        )

    def reaction_added(
        self,
        actor_id: int,
        recipient_id: int,
        kind: str,
        target_id: int,
        post_id: int,
        on_comment: bool = False,
    ) -> None:
        self._schedule(
            self.send_reaction_notification,
            actor_id=actor_id,
            recipient_id=recipient_id,
            kind=kind,
            target_id=target_id,
            post_id=post_id,
            on_comment=on_comment,
        )

    def user_followed(self, follower_id: int, followed_id: int) -> None:
        self._schedule(self.send_follow_notification, follower_id=follower_id, followed_id=followed_id)

    def post_shared(self, sharer_id: int, author_id: int, post_id: int) -> None:
        self._schedule(self.send_share_notification, sharer_id=sharer_id, author_id=author_id, post_id=post_id)

    # -------------------------
    # Jobs
    # -------------------------
    async def send_post_notifications(
        self,
        db: AsyncSession,
        author_id: int,
        post_id: int,
        content: str,
        community_id: Optional[int] = None,
    ) -> int:
        """Community members for a community post, the author's followers otherwise"""
        if community_id is not None:
            recipients = await community_repo.list_member_ids(db, community_id)
        else:
            recipients = await follow_repo.list_follower_ids(db, author_id)

        ref = NotificationRef(mode=NotificationMode.POST, ref_id=post_id)
        sent = 0
        for recipient_id in dict.fromkeys(recipients):
            if await self._notify(db, recipient_id, author_id, preview(content), ref):
                sent += 1
        logger.info(f"Post {post_id} notified {sent} users")
        return sent

    async def send_comment_notifications(
        self,
        db: AsyncSession,
        commenter_id: int,
        comment_id: int,
        post_id: int,
        post_author_id: int,
        content: str,
        reply_to: Optional[int] = None,
        parent_author_id: Optional[int] = None,
    ) -> int:
        commenter = await user_repo.get_user(db, commenter_id)
        name = _display_name(commenter)
        ref = NotificationRef(mode=NotificationMode.COMMENT, ref_id=comment_id, post_id=post_id)

        reply_target = reply_to if reply_to is not None else parent_author_id
        sent = 0
        if await self._notify(db, reply_target, commenter_id, f"{name} replied to your comment: {preview(content)}", ref):
            sent += 1
        if await self._notify(db, post_author_id, commenter_id, f"{name} commented on your post: {preview(content)}", ref):
            sent += 1
        return sent

    async def send_reaction_notification(
        self,
        db: AsyncSession,
        actor_id: int,
        recipient_id: int,
        kind: str,
        target_id: int,
        post_id: int,
        on_comment: bool = False,
    ) -> bool:
        actor = await user_repo.get_user(db, actor_id)
        target = "comment" if on_comment else "post"
        ref = NotificationRef(mode=NotificationMode.REACT, ref_id=target_id, post_id=post_id)
        return await self._notify(db, recipient_id, actor_id, f"{_display_name(actor)} {kind}d your {target}", ref)

    async def send_follow_notification(self, db: AsyncSession, follower_id: int, followed_id: int) -> bool:
        follower = await user_repo.get_user(db, follower_id)
        ref = NotificationRef(mode=NotificationMode.FOLLOW, ref_id=follower_id)
        return await self._notify(db, followed_id, follower_id, f"{_display_name(follower)} started following you", ref)

    async def send_share_notification(self, db: AsyncSession, sharer_id: int, author_id: int, post_id: int) -> bool:
        sharer = await user_repo.get_user(db, sharer_id)
        ref = NotificationRef(mode=NotificationMode.POST, ref_id=post_id)
        return await self._notify(db, author_id, sharer_id, f"{_display_name(sharer)} shared your post", ref)


class NotificationService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_notifications(self, user_id: int, pagination: Optional[int] = 1) -> List[NotificationResponse]:
        skip, limit = page_bounds(pagination or 1, settings.PAGE_SIZE)
        notifications = await notification_repo.list_user_notifications(self.db, user_id, skip, limit)
        return [to_response(notification) for notification in notifications]

    async def mark_all_read(self, user_id: int) -> int:
        updated = await notification_repo.mark_all_read(self.db, user_id)
        await self.db.commit()
        logger.info(f"Marked {updated} notifications read for user {user_id}")
        return updated

    async def mark_read(self, user_id: int, notification_id: int) -> NotificationResponse:
        notification = await notification_repo.get_notification(self.db, notification_id)
        if not notification or notification.user_id != user_id:
            raise NotFoundError("Notification not found")
        await notification_repo.mark_read(self.db, notification)
        await self.db.commit()
        return to_response(notification)
