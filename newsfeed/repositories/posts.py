from typing import List, Optional, Sequence
from sqlalchemy import select, desc, func, delete, exists, or_, and_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased, selectinload

from newsfeed.models.bookmark import Bookmark
from newsfeed.models.comment import Comment
from newsfeed.models.post import Post
from newsfeed.models.reaction import Reaction
from newsfeed.utils.pagination import paginate


def _not_dangling():
    """Exclude share pointers whose original no longer exists"""
    original = aliased(Post)
    return or_(
        Post.parent_post_id.is_(None),
        exists(select(original.id).where(original.id == Post.parent_post_id)),
    )


async def _count(db: AsyncSession, stmt) -> int:
    res = await db.execute(select(func.count()).select_from(stmt.subquery()))
    return int(res.scalar_one() or 0)


# -------------------------
# POSTS
# -------------------------
async def create_post(
    db: AsyncSession,
    user_id: int,
    content: str,
    file_urls: Optional[List[str]] = None,
    visibility_mode: str = "all",
    community_id: Optional[int] = None,
    topic: Optional[str] = None,
    parent_post_id: Optional[int] = None,
    shared_by: Optional[int] = None,
) -> Post:
    post = Post(
        user_id=user_id,
        content=content,
        file_urls=list(file_urls or []),
        visibility_mode=visibility_mode,
        community_id=community_id,
        topic=topic,
        parent_post_id=parent_post_id,
        shared_by=shared_by,
    )
    db.add(post)
    await db.flush()
    await db.refresh(post, attribute_names=["reactions"])
    return post


async def get_post(db: AsyncSession, post_id: int) -> Optional[Post]:
    res = await db.execute(
        select(Post).options(selectinload(Post.user)).where(Post.id == post_id)
    )
    return res.scalar_one_or_none()


async def get_displayed_post(db: AsyncSession, post_id: int) -> Optional[Post]:
    """The post whose payload `post_id` shows: itself, or the original of a share pointer"""
    post = await get_post(db, post_id)
    if post is not None and post.is_share:
        return await get_post(db, post.parent_post_id)
    return post


async def list_public_posts(
    db: AsyncSession,
    topics: Optional[Sequence[str]] = None,
    without_topic: bool = False,
    skip: int = 0,
    limit: Optional[int] = None,
) -> List[Post]:
    q = select(Post).options(selectinload(Post.user)).where(
        Post.visibility_mode == "all", _not_dangling()
    )
    if without_topic:
        q = q.where(Post.topic.is_(None))
    elif topics:
        q = q.where(Post.topic.in_(list(topics)))
    q = paginate(q.order_by(desc(Post.created_at), desc(Post.id)), skip, limit)
    res = await db.execute(q)
    return list(res.scalars())


async def list_community_posts(
    db: AsyncSession,
    community_id: int,
    skip: int = 0,
    limit: Optional[int] = None,
) -> List[Post]:
    q = (
        select(Post)
        .options(selectinload(Post.user))
        .where(Post.community_id == community_id, Post.visibility_mode == "community", _not_dangling())
        .order_by(desc(Post.created_at), desc(Post.id))
    )
    res = await db.execute(paginate(q, skip, limit))
    return list(res.scalars())


def _user_posts_query(user_id: int, include_private: bool):
    q = select(Post).where(Post.user_id == user_id, _not_dangling())
    if not include_private:
        q = q.where(Post.visibility_mode != "private")
    return q


async def list_user_posts(
    db: AsyncSession,
    user_id: int,
    include_private: bool = False,
    skip: int = 0,
    limit: Optional[int] = None,
) -> List[Post]:
    q = (
        _user_posts_query(user_id, include_private)
        .options(selectinload(Post.user))
        .order_by(desc(Post.created_at), desc(Post.id))
    )
    res = await db.execute(paginate(q, skip, limit))
    return list(res.scalars())


async def count_user_posts(db: AsyncSession, user_id: int, include_private: bool = False) -> int:
    return await _count(db, _user_posts_query(user_id, include_private))


def _reacted_posts_query(user_id: int, kind: str):
    return (
        select(Post)
        .join(Reaction, Reaction.post_id == Post.id)
        .where(Reaction.user_id == user_id, Reaction.kind == kind, _not_dangling())
    )


async def list_posts_reacted_by(
    db: AsyncSession,
    user_id: int,
    kind: str,
    skip: int = 0,
    limit: Optional[int] = None,
) -> List[Post]:
    """Posts the user reacted to with `kind`, most recent reaction first"""
    q = (
        _reacted_posts_query(user_id, kind)
        .options(selectinload(Post.user))
        .order_by(desc(Reaction.id))
    )
    res = await db.execute(paginate(q, skip, limit))
    return list(res.scalars())


async def count_posts_reacted_by(db: AsyncSession, user_id: int, kind: str) -> int:
    return await _count(db, _reacted_posts_query(user_id, kind))


def _bookmarked_posts_query(user_id: int):
    return (
        select(Post)
        .join(Bookmark, Bookmark.post_id == Post.id)
        .where(Bookmark.user_id == user_id, _not_dangling())
    )


async def list_bookmarked_posts(
    db: AsyncSession,
    user_id: int,
    skip: int = 0,
    limit: Optional[int] = None,
) -> List[Post]:
    q = (
        _bookmarked_posts_query(user_id)
        .options(selectinload(Post.user))
        .order_by(desc(Bookmark.id))
    )
    res = await db.execute(paginate(q, skip, limit))
    return list(res.scalars())


async def count_bookmarked_posts(db: AsyncSession, user_id: int) -> int:
    return await _count(db, _bookmarked_posts_query(user_id))


async def search_posts(
    db: AsyncSession,
    term: str,
    skip: int = 0,
    limit: Optional[int] = None,
) -> List[Post]:
    q = (
        select(Post)
        .options(selectinload(Post.user))
        .where(
            Post.content.ilike(f"%{term}%"),
            Post.visibility_mode != "private",
            Post.parent_post_id.is_(None),
        )
        .order_by(desc(Post.created_at), desc(Post.id))
    )
    res = await db.execute(paginate(q, skip, limit))
    return list(res.scalars())


async def update_post(db: AsyncSession, post: Post, **fields) -> Post:
    for key, value in fields.items():
        setattr(post, key, value)
    await db.flush()
    return post


async def delete_post(db: AsyncSession, post: Post) -> None:
    """
    Delete a post together with its comments, reactions and bookmarks.

    Share pointers referencing it are left alone.
    """
    comment_ids = select(Comment.id).where(Comment.post_id == post.id)
    await db.execute(
        delete(Bookmark)
        .where(or_(Bookmark.post_id == post.id, Bookmark.comment_id.in_(comment_ids)))
        .execution_options(synchronize_session=False)
    )
    await db.execute(
        delete(Reaction)
        .where(Reaction.comment_id.in_(comment_ids))
        .execution_options(synchronize_session=False)
    )
    # Replies before their parents
    await db.execute(
        delete(Comment)
        .where(Comment.post_id == post.id, Comment.parent_comment_id.is_not(None))
        .execution_options(synchronize_session=False)
    )
    await db.execute(
        delete(Comment)
        .where(Comment.post_id == post.id)
        .execution_options(synchronize_session=False)
    )
    await db.delete(post)
    await db.flush()


# -------------------------
# SHARES
# -------------------------
async def get_share(db: AsyncSession, user_id: int, parent_post_id: int) -> Optional[Post]:
    res = await db.execute(
        select(Post).where(and_(Post.shared_by == user_id, Post.parent_post_id == parent_post_id))
    )
    return res.scalars().first()


async def list_shares(db: AsyncSession, parent_post_id: int) -> List[Post]:
    res = await db.execute(
        select(Post).where(Post.parent_post_id == parent_post_id).order_by(Post.id)
    )
    return list(res.scalars())


async def delete_share(db: AsyncSession, share: Post) -> None:
    await db.delete(share)
    await db.flush()
