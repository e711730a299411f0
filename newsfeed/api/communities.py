from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
from newsfeed.db.session import get_db
from newsfeed.exceptions import NewsfeedError
from newsfeed.schemas.auth_schema import TokenData
from newsfeed.schemas.common_schema import ToggleResponse
from newsfeed.schemas.community_schema import (
    CommunityCreate,
    CommunityDetailResponse,
    CommunityResponse,
    CommunityUpdate,
    JoinCommunityRequest,
)
from newsfeed.schemas.post_schema import PostResponse
from newsfeed.services.auth_service import get_current_user, get_optional_user
from newsfeed.services.community_service import CommunityService
import logging

logger = logging.getLogger(__name__)

router = APIRouter()

@router.post("", response_model=CommunityDetailResponse, status_code=status.HTTP_201_CREATED)
async def create_community(
    community_data: CommunityCreate,
    current_user: TokenData = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Create a community; the creator becomes its super admin"""
    try:
        community_service = CommunityService(db)
        return await community_service.create_community(current_user.user_id, community_data)
    except (HTTPException, NewsfeedError):
        raise
    except Exception as e:
        logger.error(f"Create community error: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create community"
        )

@router.get("", response_model=List[CommunityResponse])
async def get_communities(
    pagination: int = Query(1, ge=1),
    topics: Optional[List[str]] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    try:
        community_service = CommunityService(db)
        return await community_service.list_communities(pagination, topics)
    except (HTTPException, NewsfeedError):
        raise
    except Exception as e:
        logger.error(f"Get communities error: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get communities"
        )

@router.post("/join", response_model=ToggleResponse)
async def toggle_membership(
    join_data: JoinCommunityRequest,
    current_user: TokenData = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Join a community, or leave it if already a member"""
    try:
        community_service = CommunityService(db)
        outcome = await community_service.toggle_membership(current_user.user_id, join_data.community_id)
        return ToggleResponse(outcome=outcome, message=f"Community {outcome}")
    except (HTTPException, NewsfeedError):
        raise
    except Exception as e:
        logger.error(f"Toggle membership error: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to toggle membership"
        )

@router.put("/{community_id}", response_model=CommunityDetailResponse)
async def update_community(
    community_id: int,
    community_data: CommunityUpdate,
    current_user: TokenData = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    try:
        community_service = CommunityService(db)
        return await community_service.update_community(current_user.user_id, community_id, community_data)
    except (HTTPException, NewsfeedError):
        raise
    except Exception as e:
        logger.error(f"Update community error: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update community"
        )

@router.get("/{community_id}", response_model=CommunityDetailResponse)
async def get_community(
    community_id: int,
    current_user: Optional[TokenData] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    try:
        community_service = CommunityService(db)
        viewer_id = current_user.user_id if current_user else None
        return await community_service.get_community(community_id, viewer_id)
    except (HTTPException, NewsfeedError):
        raise
    except Exception as e:
        logger.error(f"Get community error: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get community"
        )

@router.get("/{community_id}/posts", response_model=List[PostResponse])
async def get_community_posts(
    community_id: int,
    pagination: int = Query(1, ge=1),
    current_user: Optional[TokenData] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    try:
        community_service = CommunityService(db)
        viewer_id = current_user.user_id if current_user else None
        return await community_service.list_community_posts(community_id, pagination, viewer_id)
    except (HTTPException, NewsfeedError):
        raise
    except Exception as e:
        logger.error(f"Get community posts error: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get community posts"
        )
