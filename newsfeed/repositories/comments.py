from typing import List, Optional
from sqlalchemy import select, desc, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from newsfeed.models.bookmark import Bookmark
from newsfeed.models.comment import Comment
from newsfeed.utils.pagination import paginate


async def create_comment(
    db: AsyncSession,
    post_id: int,
    user_id: int,
    content: str,
    parent_comment_id: Optional[int] = None,
    reply_to: Optional[int] = None,
) -> Comment:
    comment = Comment(
        post_id=post_id,
        user_id=user_id,
        content=content,
        parent_comment_id=parent_comment_id,
        reply_to=reply_to,
    )
    db.add(comment)
    await db.flush()
    await db.refresh(comment, attribute_names=["reactions"])
    return comment


async def get_comment(db: AsyncSession, comment_id: int) -> Optional[Comment]:
    res = await db.execute(
        select(Comment).options(selectinload(Comment.user)).where(Comment.id == comment_id)
    )
    return res.scalar_one_or_none()


async def list_post_comments(db: AsyncSession, post_id: int) -> List[Comment]:
    """Every comment of a post, oldest first"""
    q = (
        select(Comment)
        .options(selectinload(Comment.user))
        .where(Comment.post_id == post_id)
        .order_by(Comment.created_at, Comment.id)
    )
    res = await db.execute(q)
    return list(res.scalars())


async def count_post_comments(db: AsyncSession, post_id: int) -> int:
    res = await db.execute(
        select(func.count()).select_from(Comment).where(Comment.post_id == post_id)
    )
    return int(res.scalar_one() or 0)


async def list_replies(db: AsyncSession, comment_id: int) -> List[Comment]:
    q = (
        select(Comment)
        .options(selectinload(Comment.user))
        .where(Comment.parent_comment_id == comment_id)
        .order_by(Comment.created_at, Comment.id)
    )
    res = await db.execute(q)
    return list(res.scalars())


async def list_bookmarked_comments(
    db: AsyncSession,
    user_id: int,
    skip: int = 0,
    limit: Optional[int] = None,
) -> List[Comment]:
    q = (
        select(Comment)
        .options(selectinload(Comment.user))
        .join(Bookmark, Bookmark.comment_id == Comment.id)
        .where(Bookmark.user_id == user_id)
        .order_by(desc(Bookmark.id))
    )
    res = await db.execute(paginate(q, skip, limit))
    return list(res.scalars())


async def count_bookmarked_comments(db: AsyncSession, user_id: int) -> int:
    q = (
        select(func.count())
        .select_from(Bookmark)
        .join(Comment, Bookmark.comment_id == Comment.id)
        .where(Bookmark.user_id == user_id)
    )
    res = await db.execute(q)
    return int(res.scalar_one() or 0)


async def search_comments(
    db: AsyncSession,
    term: str,
    skip: int = 0,
    limit: Optional[int] = None,
) -> List[Comment]:
    q = (
        select(Comment)
        .options(selectinload(Comment.user))
        .where(Comment.content.ilike(f"%{term}%"))
        .order_by(desc(Comment.created_at), desc(Comment.id))
    )
    res = await db.execute(paginate(q, skip, limit))
    return list(res.scalars())


async def update_comment(db: AsyncSession, comment: Comment, content: str) -> Comment:
    comment.content = content
    await db.flush()
    return comment
