from typing import List, Optional, Sequence
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError
import logging

from newsfeed.config import settings
from newsfeed.exceptions import ConflictError, ForbiddenError, InternalError, NotFoundError
from newsfeed.models.community import Community
from newsfeed.repositories import communities as community_repo
from newsfeed.repositories import posts as post_repo
from newsfeed.schemas.community_schema import (
    CommunityCreate,
    CommunityDetailResponse,
    CommunityResponse,
    CommunityRole,
    CommunityUpdate,
)
from newsfeed.schemas.post_schema import PostResponse
from newsfeed.services.post_service import PostService
from newsfeed.utils.pagination import page_bounds

logger = logging.getLogger(__name__)

ADMIN_ROLES = (CommunityRole.SUPER_ADMIN.value, CommunityRole.ADMIN.value)

class CommunityService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _get_community(self, community_id: int) -> Community:
        community = await community_repo.get_community(self.db, community_id)
        if not community:
            raise NotFoundError("Community not found")
        return community

    async def _to_response(self, community: Community) -> CommunityResponse:
        response = CommunityResponse.model_validate(community)
        response.members_count = await community_repo.count_members(self.db, community.id)
        return response

    async def create_community(
        self,
        user_id: int,
        data: CommunityCreate,
    ) -> CommunityDetailResponse:
        """Create a community with its creator as super admin"""
        community = await community_repo.create_community(
            self.db,
            name=data.name,
            description=data.description,
            visibility=data.visibility.value,
            topics=data.topics,
        )
        await self.db.commit()

        try:
            await community_repo.create_membership(
                self.db, user_id, community.id, role=CommunityRole.SUPER_ADMIN.value
            )
            await self.db.commit()
        except Exception as e:
            # Without its super admin the community must not exist
            logger.error(f"Failed to add creator to community {community.id}: {e}")
            await self.db.rollback()
            await community_repo.delete_community(self.db, community)
            await self.db.commit()
            raise InternalError("Failed to create community")

        logger.info(f"Community {community.id} created by user {user_id}")
        return await self.get_community(community.id, user_id)

    async def update_community(
        self,
        user_id: int,
        community_id: int,
        data: CommunityUpdate,
    ) -> CommunityDetailResponse:
        community = await self._get_community(community_id)
        membership = await community_repo.get_membership(self.db, user_id, community_id)
        if not membership or membership.role not in ADMIN_ROLES:
            raise ForbiddenError("Only community admins can edit the community")

        fields = {key: value for key, value in data.model_dump(exclude_unset=True).items() if value is not None}
        if "visibility" in fields:
            fields["visibility"] = fields["visibility"].value

        await community_repo.update_community(self.db, community, **fields)
        await self.db.commit()

        logger.info(f"Community {community_id} updated by user {user_id}")
        return await self.get_community(community_id, user_id)

    async def get_community(self, community_id: int, viewer_id: Optional[int] = None) -> CommunityDetailResponse:
        community = await self._get_community(community_id)
        response = await self._to_response(community)

        membership = None
        if viewer_id is not None:
            membership = await community_repo.get_membership(self.db, viewer_id, community_id)

        return CommunityDetailResponse(
            **response.model_dump(),
            is_member=membership is not None,
            is_admin=membership is not None and membership.role in ADMIN_ROLES,
        )

    async def list_communities(
        self,
        pagination: Optional[int] = 1,
        topics: Optional[Sequence[str]] = None,
    ) -> List[CommunityResponse]:
        skip, limit = page_bounds(pagination or 1, settings.PAGE_SIZE)
        communities = await community_repo.list_communities(self.db, topics=topics, skip=skip, limit=limit)
        return [await self._to_response(community) for community in communities]

    async def search_communities(
        self,
        term: str,
        skip: int = 0,
        limit: Optional[int] = None,
    ) -> List[CommunityResponse]:
        communities = await community_repo.search_communities(self.db, term, skip, limit)
        return [await self._to_response(community) for community in communities]

    async def toggle_membership(self, user_id: int, community_id: int) -> str:
        """Join or leave a community; returns "joined" or "left"."""
        await self._get_community(community_id)
        membership = await community_repo.get_membership(self.db, user_id, community_id)

        try:
            if membership:
                if membership.role == CommunityRole.SUPER_ADMIN.value:
                    raise ConflictError("The community creator cannot leave the community")
                await community_repo.delete_membership(self.db, membership)
                outcome = "left"
            else:
                await community_repo.create_membership(self.db, user_id, community_id)
                outcome = "joined"
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError("Membership already being toggled")

        logger.info(f"User {user_id} {outcome} community {community_id}")
        return outcome

    async def list_community_posts(
        self,
        community_id: int,
        pagination: Optional[int] = 1,
        viewer_id: Optional[int] = None,
    ) -> List[PostResponse]:
        await self._get_community(community_id)
        skip, limit = page_bounds(pagination or 1, settings.PAGE_SIZE)
        posts = await post_repo.list_community_posts(self.db, community_id, skip=skip, limit=limit)
        return await PostService(self.db).parse_posts(posts, viewer_id)
