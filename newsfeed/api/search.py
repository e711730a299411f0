from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
import logging

from newsfeed.config import settings
from newsfeed.db.session import get_db
from newsfeed.repositories import comments as comment_repo
from newsfeed.repositories import posts as post_repo
from newsfeed.repositories import users as user_repo
from newsfeed.schemas.auth_schema import TokenData
from newsfeed.schemas.comment_schema import CommentResponse
from newsfeed.schemas.community_schema import CommunityResponse
from newsfeed.schemas.post_schema import PostResponse
from newsfeed.schemas.user_schema import AuthorProfile
from newsfeed.services.auth_service import get_optional_user
from newsfeed.services.comment_service import CommentService
from newsfeed.services.community_service import CommunityService
from newsfeed.services.post_service import PostService
from newsfeed.services.user_service import transform_user_details
from newsfeed.utils.pagination import page_bounds

logger = logging.getLogger(__name__)

router = APIRouter()

def _search_bounds(pagination: int):
    return page_bounds(pagination, settings.SEARCH_PAGE_SIZE)

@router.get("/posts", response_model=List[PostResponse])
async def search_posts(
    query: str = Query(..., min_length=1, max_length=100),
    pagination: int = Query(1, ge=1),
    current_user: Optional[TokenData] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db)
):
    """Search posts"""
    try:
        skip, limit = _search_bounds(pagination)
        posts = await post_repo.search_posts(db, query, skip, limit)
        viewer_id = current_user.user_id if current_user else None
        return await PostService(db).parse_posts(posts, viewer_id)
    except Exception as e:
        logger.error(f"Error searching posts: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to search posts"
        )

@router.get("/comments", response_model=List[CommentResponse])
async def search_comments(
    query: str = Query(..., min_length=1, max_length=100),
    pagination: int = Query(1, ge=1),
    current_user: Optional[TokenData] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db)
):
    """Search comments"""
    try:
        skip, limit = _search_bounds(pagination)
        comments = await comment_repo.search_comments(db, query, skip, limit)
        viewer_id = current_user.user_id if current_user else None
        return await CommentService(db).parse_comments(comments, viewer_id)
    except Exception as e:
        logger.error(f"Error searching comments: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to search comments"
        )

@router.get("/users", response_model=List[AuthorProfile])
async def search_users(
    query: str = Query(..., min_length=1, max_length=100),
    pagination: int = Query(1, ge=1),
    db: AsyncSession = Depends(get_db)
):
    """Search users by username or name"""
    try:
        skip, limit = _search_bounds(pagination)
        users = await user_repo.search_users(db, query, skip, limit)
        return [transform_user_details(user) for user in users]
    except Exception as e:
        logger.error(f"Error searching users: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to search users"
        )

@router.get("/communities", response_model=List[CommunityResponse])
async def search_communities(
    query: str = Query(..., min_length=1, max_length=100),
    pagination: int = Query(1, ge=1),
    db: AsyncSession = Depends(get_db)
):
    """Search communities by name"""
    try:
        skip, limit = _search_bounds(pagination)
        return await CommunityService(db).search_communities(query, skip, limit)
    except Exception as e:
        logger.error(f"Error searching communities: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to search communities"
        )
