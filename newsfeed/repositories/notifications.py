from typing import List, Optional
from sqlalchemy import select, desc, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from newsfeed.models.notification import Notification
from newsfeed.utils.pagination import paginate


async def create_notification(
    db: AsyncSession,
    user_id: int,
    initiated_by: int,
    content: str,
    ref_mode: str,
    ref_id: int,
    ref_post_id: Optional[int] = None,
) -> Notification:
    notification = Notification(
        user_id=user_id,
        initiated_by=initiated_by,
        content=content,
        read=False,
        ref_mode=ref_mode,
        ref_id=ref_id,
        ref_post_id=ref_post_id,
    )
    db.add(notification)
    await db.flush()
    await db.refresh(notification, attribute_names=["initiator"])
    return notification


async def get_notification(db: AsyncSession, notification_id: int) -> Optional[Notification]:
    res = await db.execute(
        select(Notification)
        .options(selectinload(Notification.initiator))
        .where(Notification.id == notification_id)
    )
    return res.scalar_one_or_none()


async def list_user_notifications(
    db: AsyncSession,
    user_id: int,
    skip: int = 0,
    limit: Optional[int] = None,
) -> List[Notification]:
    q = (
        select(Notification)
        .options(selectinload(Notification.initiator))
        .where(Notification.user_id == user_id)
        .order_by(desc(Notification.created_at), desc(Notification.id))
    )
    res = await db.execute(paginate(q, skip, limit))
    return list(res.scalars())


async def mark_all_read(db: AsyncSession, user_id: int) -> int:
    res = await db.execute(
        update(Notification)
        .where(Notification.user_id == user_id, Notification.read.is_(False))
        .values(read=True)
        .execution_options(synchronize_session=False)
    )
    return res.rowcount or 0


async def mark_read(db: AsyncSession, notification: Notification) -> Notification:
    notification.read = True
    await db.flush()
    return notification
