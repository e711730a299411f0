from typing import List, Optional
from sqlalchemy import select, desc
from sqlalchemy.ext.asyncio import AsyncSession

from newsfeed.models.bookmark import Bookmark


async def get_bookmark(
    db: AsyncSession,
    user_id: int,
    post_id: Optional[int] = None,
    comment_id: Optional[int] = None,
) -> Optional[Bookmark]:
    q = select(Bookmark).where(Bookmark.user_id == user_id)
    if post_id is not None:
        q = q.where(Bookmark.post_id == post_id)
    else:
        q = q.where(Bookmark.comment_id == comment_id)
    res = await db.execute(q)
    return res.scalar_one_or_none()


async def create_bookmark(
    db: AsyncSession,
    user_id: int,
    post_id: Optional[int] = None,
    comment_id: Optional[int] = None,
) -> Bookmark:
    bookmark = Bookmark(user_id=user_id, post_id=post_id, comment_id=comment_id)
    db.add(bookmark)
    await db.flush()
    await db.refresh(bookmark)
    return bookmark


async def delete_bookmark(db: AsyncSession, bookmark: Bookmark) -> None:
    await db.delete(bookmark)
    await db.flush()


async def list_user_bookmarks(db: AsyncSession, user_id: int) -> List[Bookmark]:
    res = await db.execute(
        select(Bookmark).where(Bookmark.user_id == user_id).order_by(desc(Bookmark.id))
    )
    return list(res.scalars())
