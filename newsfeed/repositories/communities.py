from typing import List, Optional, Sequence
from sqlalchemy import select, desc, func
from sqlalchemy.ext.asyncio import AsyncSession

from newsfeed.models.community import Community, CommunityMember, CommunityTopic
from newsfeed.utils.pagination import paginate


# -------------------------
# COMMUNITIES
# -------------------------
async def create_community(
    db: AsyncSession,
    name: str,
    description: str,
    visibility: str = "all",
    topics: Optional[Sequence[str]] = None,
) -> Community:
    community = Community(name=name, description=description, visibility=visibility)
    community.topics = list(topics or [])
    db.add(community)
    await db.flush()
    await db.refresh(community, attribute_names=["topic_links"])
    return community


async def get_community(db: AsyncSession, community_id: int) -> Optional[Community]:
    res = await db.execute(select(Community).where(Community.id == community_id))
    return res.scalar_one_or_none()


async def update_community(db: AsyncSession, community: Community, **fields) -> Community:
    for key, value in fields.items():
        setattr(community, key, value)
    await db.flush()
    return community


async def delete_community(db: AsyncSession, community: Community) -> None:
    await db.delete(community)
    await db.flush()


async def list_communities(
    db: AsyncSession,
    topics: Optional[Sequence[str]] = None,
    skip: int = 0,
    limit: Optional[int] = None,
) -> List[Community]:
    q = select(Community)
    if topics:
        tagged = select(CommunityTopic.community_id).where(CommunityTopic.name.in_(list(topics)))
        q = q.where(Community.id.in_(tagged))
    q = q.order_by(desc(Community.created_at), desc(Community.id))
    res = await db.execute(paginate(q, skip, limit))
    return list(res.scalars())


async def search_communities(
    db: AsyncSession,
    term: str,
    skip: int = 0,
    limit: Optional[int] = None,
) -> List[Community]:
    q = (
        select(Community)
        .where(Community.name.ilike(f"%{term}%"))
        .order_by(Community.name, Community.id)
    )
    res = await db.execute(paginate(q, skip, limit))
    return list(res.scalars())


# -------------------------
# MEMBERSHIPS
# -------------------------
async def get_membership(db: AsyncSession, user_id: int, community_id: int) -> Optional[CommunityMember]:
    res = await db.execute(
        select(CommunityMember).where(
            CommunityMember.user_id == user_id,
            CommunityMember.community_id == community_id,
        )
    )
    return res.scalar_one_or_none()


async def create_membership(
    db: AsyncSession,
    user_id: int,
    community_id: int,
    role: str = "member",
) -> CommunityMember:
    member = CommunityMember(user_id=user_id, community_id=community_id, role=role)
    db.add(member)
    await db.flush()
    return member


async def delete_membership(db: AsyncSession, member: CommunityMember) -> None:
    await db.delete(member)
    await db.flush()


async def count_members(db: AsyncSession, community_id: int) -> int:
    res = await db.execute(
        select(func.count()).select_from(CommunityMember).where(CommunityMember.community_id == community_id)
    )
    return int(res.scalar_one() or 0)


async def list_member_ids(db: AsyncSession, community_id: int) -> List[int]:
    res = await db.execute(
        select(CommunityMember.user_id).where(CommunityMember.community_id == community_id)
    )
    return list(res.scalars())


async def list_user_communities(
    db: AsyncSession,
    user_id: int,
    skip: int = 0,
    limit: Optional[int] = None,
) -> List[Community]:
    q = (
        select(Community)
        .join(CommunityMember, CommunityMember.community_id == Community.id)
        .where(CommunityMember.user_id == user_id)
        .order_by(desc(CommunityMember.id))
    )
    res = await db.execute(paginate(q, skip, limit))
    return list(res.scalars())


async def count_user_communities(db: AsyncSession, user_id: int) -> int:
    res = await db.execute(
        select(func.count()).select_from(CommunityMember).where(CommunityMember.user_id == user_id)
    )
    return int(res.scalar_one() or 0)
