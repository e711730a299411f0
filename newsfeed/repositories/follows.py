from typing import List, Optional
from sqlalchemy import select, desc, func
from sqlalchemy.ext.asyncio import AsyncSession

from newsfeed.models.follow import Follow
from newsfeed.models.user import User
from newsfeed.utils.pagination import paginate


async def get_follow(db: AsyncSession, follower_id: int, following_id: int) -> Optional[Follow]:
    res = await db.execute(
        select(Follow).where(Follow.user_id == follower_id, Follow.following_id == following_id)
    )
    return res.scalar_one_or_none()


async def create_follow(db: AsyncSession, follower_id: int, following_id: int) -> Follow:
    follow = Follow(user_id=follower_id, following_id=following_id)
    db.add(follow)
    await db.flush()
    return follow


async def delete_follow(db: AsyncSession, follow: Follow) -> None:
    await db.delete(follow)
    await db.flush()


async def list_follower_ids(db: AsyncSession, user_id: int) -> List[int]:
    res = await db.execute(select(Follow.user_id).where(Follow.following_id == user_id))
    return list(res.scalars())


async def list_followers(
    db: AsyncSession,
    user_id: int,
    skip: int = 0,
    limit: Optional[int] = None,
) -> List[User]:
    q = (
        select(User)
        .join(Follow, Follow.user_id == User.id)
        .where(Follow.following_id == user_id)
        .order_by(desc(Follow.id))
    )
    res = await db.execute(paginate(q, skip, limit))
    return list(res.scalars())


async def count_followers(db: AsyncSession, user_id: int) -> int:
    res = await db.execute(
        select(func.count()).select_from(Follow).where(Follow.following_id == user_id)
    )
    return int(res.scalar_one() or 0)


async def list_followees(
    db: AsyncSession,
    user_id: int,
    skip: int = 0,
    limit: Optional[int] = None,
) -> List[User]:
    q = (
        select(User)
        .join(Follow, Follow.following_id == User.id)
        .where(Follow.user_id == user_id)
        .order_by(desc(Follow.id))
    )
    res = await db.execute(paginate(q, skip, limit))
    return list(res.scalars())


async def count_followees(db: AsyncSession, user_id: int) -> int:
    res = await db.execute(
        select(func.count()).select_from(Follow).where(Follow.user_id == user_id)
    )
    return int(res.scalar_one() or 0)
