from typing import List, Optional
from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession

from newsfeed.models.user import User
from newsfeed.utils.pagination import paginate


async def get_user(db: AsyncSession, user_id: int) -> Optional[User]:
    res = await db.execute(select(User).where(User.id == user_id))
    return res.scalar_one_or_none()


async def get_user_by_username(db: AsyncSession, username: str) -> Optional[User]:
    res = await db.execute(select(User).where(User.username == username))
    return res.scalar_one_or_none()


async def get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    res = await db.execute(select(User).where(User.email == email))
    return res.scalar_one_or_none()


async def search_users(
    db: AsyncSession,
    term: str,
    skip: int = 0,
    limit: Optional[int] = None,
) -> List[User]:
    pattern = f"%{term}%"
    q = (
        select(User)
        .where(
            or_(
                User.username.ilike(pattern),
                User.first_name.ilike(pattern),
                User.last_name.ilike(pattern),
            )
        )
        .order_by(User.username)
    )
    res = await db.execute(paginate(q, skip, limit))
    return list(res.scalars())


async def update_user(db: AsyncSession, user: User, **fields) -> User:
    for key, value in fields.items():
        setattr(user, key, value)
    await db.flush()
    return user
